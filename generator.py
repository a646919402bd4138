#!/usr/bin/env python3

import argparse
import json
import random
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

LAYOUT_PATH = Path("maze_layout.json")

USAGE = "generator.py <width> <height> [h[orizontal]|v[ertical]|n[ormal]]"


class MazeInvariantError(RuntimeError):
    """算法内部不变量被破坏（例如集合表中找不到某个集合）"""


class Orientation(Enum):
    """迷宫走向偏好，会改变墙壁与通道的概率"""
    NORMAL = "normal"
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"

    @classmethod
    def from_token(cls, token: str) -> Optional["Orientation"]:
        """按前缀（不区分大小写）解析命令行中的走向参数，无法识别时返回 None"""
        t = (token or "").strip().lower()
        if not t:
            return None
        for orientation in cls:
            if orientation.value.startswith(t):
                return orientation
        return None


@dataclass
class MazeConfig:
    """迷宫配置类，包含生成所需的全部参数"""
    width: int = 10                                   # 列数
    height: int = 10                                  # 行数
    orientation: Orientation = Orientation.NORMAL     # 走向偏好
    seed: Optional[int] = None                        # 随机种子，None 表示不固定

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise ValueError(f"迷宫尺寸必须至少为 1x1，实际为 {self.width}x{self.height}")


@dataclass
class Cell:
    """生成过程中的单元格，set_id 为 0 表示尚未分配集合"""
    set_id: int = 0
    right_wall: bool = False
    bottom_wall: bool = False


@dataclass(frozen=True)
class MazeCell:
    """最终迷宫中的单元格，只保留墙壁信息"""
    right_wall: bool
    bottom_wall: bool


@dataclass(frozen=True)
class Maze:
    """生成完毕的迷宫：自上而下的行，每行自左向右的单元格"""
    rows: Tuple[Tuple[MazeCell, ...], ...]

    @property
    def height(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        if not self.rows:
            raise MazeInvariantError("迷宫没有任何行，无法确定宽度")
        return len(self.rows[0])

    def __iter__(self) -> Iterator[Tuple[MazeCell, ...]]:
        return iter(self.rows)

    def cell(self, row: int, col: int) -> MazeCell:
        return self.rows[row][col]

    def passages(self) -> Iterator[Tuple[Tuple[int, int], Tuple[int, int]]]:
        """列出所有相邻且无墙相隔的单元格对 ((行, 列), (行, 列))"""
        for r, row in enumerate(self.rows):
            for c, cell in enumerate(row):
                if not cell.right_wall and c + 1 < len(row):
                    yield (r, c), (r, c + 1)
                if not cell.bottom_wall and r + 1 < len(self.rows):
                    yield (r, c), (r + 1, c)

    def to_layout(self) -> Dict:
        return {
            "width": self.width,
            "height": self.height,
            "rows": [
                [{"right_wall": cell.right_wall, "bottom_wall": cell.bottom_wall} for cell in row]
                for row in self.rows
            ],
        }

    @classmethod
    def from_layout(cls, data: Dict) -> "Maze":
        """从 to_layout() 导出的字典重建迷宫"""
        rows = tuple(
            tuple(MazeCell(bool(c["right_wall"]), bool(c["bottom_wall"])) for c in row)
            for row in data["rows"]
        )
        if not rows or not rows[0] or any(len(row) != len(rows[0]) for row in rows):
            raise ValueError("迷宫布局的行为空或长度不一致")
        return cls(rows)


def coin_flip(rng: random.Random) -> bool:
    return rng.random() < 0.5


def wall_decision(orientation: Orientation, horizontal: bool, rng: random.Random) -> bool:
    """返回 True 表示放置墙壁（水平方向即不合并集合）。

    Args:
        orientation: 走向偏好
        horizontal: True 表示右墙决策，False 表示底墙决策
        rng: 本次生成独占的随机数生成器
    """
    if orientation is Orientation.NORMAL:
        return coin_flip(rng)
    # 竖向走廊：右墙更多、底墙更少；横向走廊相反
    favour_walls = (orientation is Orientation.VERTICAL) == horizontal
    if favour_walls:
        return coin_flip(rng) or coin_flip(rng)
    return coin_flip(rng) and coin_flip(rng)


class MazeGenerator:
    """Eller 算法的逐行生成器。

    生成器只持有当前行、当前行的集合表以及随机数生成器，
    已完成的行复制进 ``finished_rows`` 后不再修改。
    """

    def __init__(self, config: MazeConfig, rng: Optional[random.Random] = None, verbose: bool = False):
        self.config = config
        self.rng = rng if rng is not None else random.Random(config.seed)
        self.verbose = verbose

        self.row: List[Cell] = []
        # 集合表：set_id -> 该集合在当前行中的列号（按加入顺序）
        self.sets: Dict[int, List[int]] = {}
        self.finished_rows: List[Tuple[MazeCell, ...]] = []
        self.unions = 0
        self.forced_walls = 0

    def _log(self, message: str) -> None:
        if self.verbose:
            print(message, file=sys.stderr)

    def _log_row(self, index: int) -> None:
        """打印当前行的墙壁与集合情况"""
        if not self.verbose:
            return
        right_walls = sum(1 for cell in self.row if cell.right_wall)
        bottom_walls = sum(1 for cell in self.row if cell.bottom_wall)
        self._log(f"  >> 第 {index} 行: 集合数 {len(self.sets)}, 右墙 {right_walls}, 底墙 {bottom_walls}")

    def _members(self, set_id: int, table: Optional[Dict[int, List[int]]] = None) -> List[int]:
        table = self.sets if table is None else table
        try:
            return table[set_id]
        except KeyError:
            raise MazeInvariantError(f"集合表中找不到集合 {set_id}，列的集合划分已被破坏") from None

    def build_set_table(self) -> None:
        """根据当前行已有的非零 set_id 重建集合表"""
        self.sets = {}
        for i, cell in enumerate(self.row):
            if cell.set_id:
                self.sets.setdefault(cell.set_id, []).append(i)

    def assign_sets(self) -> None:
        """为所有 set_id 为 0 的单元格分配当前行中未被使用的最小编号"""
        self.build_set_table()
        next_id = 1
        for i, cell in enumerate(self.row):
            if cell.set_id:
                continue
            while next_id in self.sets:
                next_id += 1
            cell.set_id = next_id
            self.sets[next_id] = [i]

    def union(self, left: int, right: int) -> None:
        """把 right 列所在集合并入 left 列所在集合"""
        target = self.row[left].set_id
        source = self.row[right].set_id
        if target == source:
            raise MazeInvariantError(f"列 {left} 与列 {right} 已属于同一集合 {target}，合并会形成回路")
        moved = self._members(source)
        members = self._members(target)
        del self.sets[source]
        for j in moved:
            self.row[j].set_id = target
        members.extend(moved)
        self.unions += 1

    def place_right_walls(self) -> None:
        """自左向右决定右墙，不放墙时合并两侧集合"""
        for i in range(len(self.row) - 1):
            # 同一集合必须隔开，否则会形成回路
            if self.row[i].set_id == self.row[i + 1].set_id:
                self.row[i].right_wall = True
                self.forced_walls += 1
                continue
            if wall_decision(self.config.orientation, True, self.rng):
                self.row[i].right_wall = True
            else:
                self.union(i, i + 1)

    def place_bottom_walls(self) -> None:
        """随机放置底墙，保证每个集合至少留下一个向下的出口"""
        open_cells = {set_id: list(members) for set_id, members in self.sets.items()}
        for i, cell in enumerate(self.row):
            if not wall_decision(self.config.orientation, False, self.rng):
                continue
            members = self._members(cell.set_id, open_cells)
            if len(members) > 1:
                cell.bottom_wall = True
                members.remove(i)

    def archive_row(self) -> None:
        self.finished_rows.append(tuple(MazeCell(c.right_wall, c.bottom_wall) for c in self.row))

    def prepare_next_row(self) -> None:
        """清除墙壁；有底墙的单元格脱离原集合"""
        for cell in self.row:
            cell.right_wall = False
            if cell.bottom_wall:
                cell.set_id = 0
                cell.bottom_wall = False
        self.row[-1].right_wall = True

    def close_last_row(self) -> None:
        """最后一行：全部加底墙，并打通所有不同集合之间的右墙"""
        for i in range(len(self.row) - 1):
            self.row[i].bottom_wall = True
            if self.row[i].set_id != self.row[i + 1].set_id:
                self.union(i, i + 1)
                self.row[i].right_wall = False
        self.row[-1].bottom_wall = True

    def generate(self) -> Maze:
        """生成完整迷宫"""
        width, height = self.config.width, self.config.height
        self._log(f"=== 开始生成迷宫 {width}x{height}，走向: {self.config.orientation.value} ===")

        self.row = [Cell() for _ in range(width)]
        self.row[-1].right_wall = True
        self.finished_rows = []
        self.unions = 0
        self.forced_walls = 0

        for index in range(height):
            self.assign_sets()
            self.place_right_walls()
            self.place_bottom_walls()
            self._log_row(index)
            if index < height - 1:
                self.archive_row()
                self.prepare_next_row()

        self.close_last_row()
        self.archive_row()
        if len(self.sets) != 1:
            raise MazeInvariantError(f"最后一行结束后仍有 {len(self.sets)} 个集合，迷宫不连通")

        self._log(f"迷宫生成完成，合并 {self.unions} 次，强制右墙 {self.forced_walls} 处")
        return Maze(tuple(self.finished_rows))


def generate_maze(width: int, height: int,
                  orientation: Orientation = Orientation.NORMAL,
                  seed: Optional[int] = None) -> Maze:
    """按给定尺寸生成迷宫的便捷函数"""
    return MazeGenerator(MazeConfig(width, height, orientation, seed)).generate()


def export_maze_layout(maze: Maze, config: MazeConfig, path: Path = LAYOUT_PATH) -> None:
    """将迷宫布局导出为JSON文件"""
    layout_data = maze.to_layout()
    layout_data["orientation"] = config.orientation.value
    layout_data["seed"] = config.seed

    # 保存到文件（不换行）
    with open(path, "w", encoding="utf8") as f:
        json.dump(layout_data, f, separators=(',', ':'))


def positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"无法解析为整数: {text!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"必须为正整数: {value}")
    return value


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(usage=USAGE, description="Eller 算法迷宫生成器")
    parser.add_argument("width", type=positive_int, help="迷宫列数")
    parser.add_argument("height", type=positive_int, help="迷宫行数")
    parser.add_argument("orientation", nargs="?", default="normal",
                        help="走向偏好: h[orizontal] / v[ertical] / n[ormal]")
    parser.add_argument("--seed", type=int, default=None, help="随机种子")
    parser.add_argument("--export", type=Path, default=None, metavar="PATH",
                        help="同时将布局导出为 JSON 文件")
    parser.add_argument("--verbose", action="store_true", help="在 stderr 输出生成过程")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    from render_maze import render_text

    args = parse_args(argv)
    orientation = Orientation.from_token(args.orientation)
    if orientation is None:
        print(f"无法识别走向参数 {args.orientation!r}，使用 normal", file=sys.stderr)
        orientation = Orientation.NORMAL

    config = MazeConfig(args.width, args.height, orientation, args.seed)
    maze = MazeGenerator(config, verbose=args.verbose).generate()
    print(render_text(maze))

    if args.export is not None:
        export_maze_layout(maze, config, args.export)
        print(f"迷宫布局已导出到 {args.export}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
