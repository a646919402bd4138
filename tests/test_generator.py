from pathlib import Path
import random
import sys

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from generator import (
    Cell,
    Maze,
    MazeConfig,
    MazeGenerator,
    MazeInvariantError,
    Orientation,
    generate_maze,
    wall_decision,
)
from tester import count_passages, count_reachable, downward_exit_errors, validate


class ScriptedRandom:
    """按给定序列返回 random() 的假随机源，用于检查消耗次数"""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def random(self):
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


HEADS = 0.1  # coin_flip -> True
TAILS = 0.9  # coin_flip -> False


@pytest.mark.parametrize("orientation", list(Orientation))
@pytest.mark.parametrize("size", [(1, 1), (1, 7), (7, 1), (2, 2), (12, 9), (30, 4)])
def test_generated_mazes_are_perfect(orientation, size):
    width, height = size
    for seed in range(15):
        maze = generate_maze(width, height, orientation, seed=seed)
        assert maze.width == width
        assert maze.height == height
        assert count_reachable(maze) == width * height
        assert count_passages(maze) == width * height - 1
        assert validate(maze) == []


def test_boundary_walls():
    maze = generate_maze(8, 6, seed=3)
    assert all(row[-1].right_wall for row in maze)
    assert all(cell.bottom_wall for cell in maze.rows[-1])


def test_downward_exit_invariant_holds():
    for seed in range(20):
        maze = generate_maze(10, 10, Orientation.VERTICAL, seed=seed)
        assert downward_exit_errors(maze) == []


def test_downward_exit_check_detects_sealed_region():
    # 2x2 中左上角被完全封闭
    sealed = Maze.from_layout({"rows": [
        [{"right_wall": True, "bottom_wall": True}, {"right_wall": True, "bottom_wall": False}],
        [{"right_wall": False, "bottom_wall": True}, {"right_wall": True, "bottom_wall": True}],
    ]})
    assert downward_exit_errors(sealed) == ["row 0: region 0 has no passage downward"]


def test_single_cell_maze():
    maze = generate_maze(1, 1, seed=0)
    cell = maze.cell(0, 0)
    assert cell.right_wall
    assert cell.bottom_wall


def test_single_row_is_closed_into_one_set():
    for seed in range(30):
        gen = MazeGenerator(MazeConfig(2, 1, seed=seed))
        maze = gen.generate()
        left, right = maze.rows[0]
        assert left.bottom_wall and right.bottom_wall
        assert not left.right_wall
        assert right.right_wall
        assert len(gen.sets) == 1


def test_same_seed_gives_same_maze():
    a = generate_maze(15, 15, Orientation.HORIZONTAL, seed=42)
    b = generate_maze(15, 15, Orientation.HORIZONTAL, seed=42)
    assert a == b


def test_generators_do_not_share_random_state():
    config = MazeConfig(10, 10, seed=7)
    first = MazeGenerator(config)
    second = MazeGenerator(config)
    assert first.rng is not second.rng
    assert first.generate() == second.generate()


def test_config_rejects_empty_sizes():
    with pytest.raises(ValueError):
        MazeConfig(0, 5)
    with pytest.raises(ValueError):
        MazeConfig(5, 0)


def test_orientation_from_token():
    assert Orientation.from_token("h") is Orientation.HORIZONTAL
    assert Orientation.from_token("Horiz") is Orientation.HORIZONTAL
    assert Orientation.from_token("VERTICAL") is Orientation.VERTICAL
    assert Orientation.from_token("n") is Orientation.NORMAL
    assert Orientation.from_token("x") is None
    assert Orientation.from_token("") is None


def test_wall_decision_normal_uses_one_flip():
    rng = ScriptedRandom([HEADS])
    assert wall_decision(Orientation.NORMAL, True, rng) is True
    assert wall_decision(Orientation.NORMAL, False, rng) is True
    assert rng.calls == 2


def test_wall_decision_vertical_bias():
    # 右墙取 OR，底墙取 AND
    assert wall_decision(Orientation.VERTICAL, True, ScriptedRandom([TAILS, HEADS])) is True
    assert wall_decision(Orientation.VERTICAL, False, ScriptedRandom([HEADS, TAILS])) is False
    assert wall_decision(Orientation.VERTICAL, False, ScriptedRandom([HEADS, HEADS])) is True


def test_wall_decision_horizontal_bias():
    assert wall_decision(Orientation.HORIZONTAL, True, ScriptedRandom([HEADS, TAILS])) is False
    assert wall_decision(Orientation.HORIZONTAL, False, ScriptedRandom([TAILS, HEADS])) is True
    assert wall_decision(Orientation.HORIZONTAL, False, ScriptedRandom([TAILS, TAILS])) is False


def test_bias_skews_wall_counts():
    def right_walls(orientation):
        total = 0
        for seed in range(10):
            maze = generate_maze(20, 20, orientation, seed=seed)
            total += sum(cell.right_wall for row in maze.rows[:-1] for cell in row[:-1])
        return total

    assert right_walls(Orientation.VERTICAL) > right_walls(Orientation.HORIZONTAL)


def test_assign_sets_fills_unused_ids():
    gen = MazeGenerator(MazeConfig(4, 1))
    gen.row = [Cell(3), Cell(0), Cell(1), Cell(0)]
    gen.assign_sets()
    assert [c.set_id for c in gen.row] == [3, 2, 1, 4]
    assert gen.sets == {3: [0], 2: [1], 1: [2], 4: [3]}


def test_assign_sets_on_fresh_row():
    gen = MazeGenerator(MazeConfig(5, 1))
    gen.row = [Cell() for _ in range(5)]
    gen.assign_sets()
    assert [c.set_id for c in gen.row] == [1, 2, 3, 4, 5]


def test_right_walls_separate_same_set_cells():
    gen = MazeGenerator(MazeConfig(3, 2), rng=ScriptedRandom([TAILS]))
    gen.row = [Cell(1), Cell(1), Cell(2)]
    gen.build_set_table()
    gen.place_right_walls()
    # 同集合强制加墙，不同集合在不放墙时合并
    assert gen.row[0].right_wall
    assert not gen.row[1].right_wall
    assert [c.set_id for c in gen.row] == [1, 1, 1]
    assert gen.sets == {1: [0, 1, 2]}


def test_bottom_walls_keep_one_exit_per_set():
    gen = MazeGenerator(MazeConfig(4, 2), rng=ScriptedRandom([HEADS]))
    gen.row = [Cell(1), Cell(1), Cell(1), Cell(2)]
    gen.build_set_table()
    gen.place_bottom_walls()
    assert [c.bottom_wall for c in gen.row] == [True, True, False, False]
    # 底墙不改变集合表
    assert gen.sets == {1: [0, 1, 2], 2: [3]}


def test_prepare_next_row_resets_walled_cells():
    gen = MazeGenerator(MazeConfig(3, 2))
    gen.row = [Cell(1, True, True), Cell(2, False, False), Cell(2, True, True)]
    gen.prepare_next_row()
    assert [(c.set_id, c.right_wall, c.bottom_wall) for c in gen.row] == [
        (0, False, False), (2, False, False), (0, True, False)]


def test_union_with_missing_set_fails_loudly():
    gen = MazeGenerator(MazeConfig(2, 1))
    gen.row = [Cell(1), Cell(2)]
    gen.sets = {1: [0]}
    with pytest.raises(MazeInvariantError):
        gen.union(0, 1)


def test_union_of_same_set_fails_loudly():
    gen = MazeGenerator(MazeConfig(2, 1))
    gen.row = [Cell(1), Cell(1)]
    gen.build_set_table()
    with pytest.raises(MazeInvariantError):
        gen.union(0, 1)


def test_empty_maze_has_no_width():
    with pytest.raises(MazeInvariantError):
        Maze(()).width


def test_layout_round_trip_keeps_walls():
    maze = generate_maze(6, 4, seed=11)
    assert Maze.from_layout(maze.to_layout()) == maze


def test_layout_with_ragged_rows_is_rejected():
    with pytest.raises(ValueError):
        Maze.from_layout({"rows": [
            [{"right_wall": True, "bottom_wall": True}],
            [{"right_wall": False, "bottom_wall": True}, {"right_wall": True, "bottom_wall": True}],
        ]})


def test_layout_with_empty_row_is_rejected():
    with pytest.raises(ValueError):
        Maze.from_layout({"width": 0, "height": 1, "rows": [[]]})


def test_verbose_logs_to_stderr(capsys):
    MazeGenerator(MazeConfig(3, 3, seed=1), verbose=True).generate()
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "迷宫生成完成" in captured.err


def test_explicit_rng_is_used():
    rng = random.Random(5)
    a = MazeGenerator(MazeConfig(5, 5), rng=rng).generate()
    b = MazeGenerator(MazeConfig(5, 5, seed=5)).generate()
    assert a == b


def test_compatibility_module_exports_generator():
    from MazeGeneration import MazeConfig as LegacyConfig, MazeGenerator as LegacyGenerator

    assert LegacyGenerator is MazeGenerator
    maze = LegacyGenerator(LegacyConfig(3, 3, seed=1)).generate()
    assert maze == generate_maze(3, 3, seed=1)


def test_second_generate_resets_counters():
    gen = MazeGenerator(MazeConfig(8, 8, seed=2))
    gen.generate()
    first = (gen.unions, gen.forced_walls)

    gen.rng = random.Random(2)
    gen.generate()
    assert (gen.unions, gen.forced_walls) == first
