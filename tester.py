#!/usr/bin/env python3
"""Simple validator for the maze generator.

The script runs ``generator.py``'s :class:`MazeGenerator` with the provided
parameters and performs a series of sanity checks on the produced maze:

* Every cell is reachable from the top-left cell.
* The passage count equals ``width * height - 1`` (a spanning tree).
* The rightmost column always has a right wall and the last row is sealed.
* Every region built up to a non-final row keeps a passage downward.
"""

from __future__ import annotations

import argparse
import sys
from collections import deque
from typing import Dict, List, Sequence, Tuple

import generator
from generator import Maze


def count_reachable(maze: Maze, start: Tuple[int, int] = (0, 0)) -> int:
    neighbours: Dict[Tuple[int, int], List[Tuple[int, int]]] = {}
    for a, b in maze.passages():
        neighbours.setdefault(a, []).append(b)
        neighbours.setdefault(b, []).append(a)

    seen = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for nxt in neighbours.get(current, []):
            if nxt not in seen:
                seen.add(nxt)
                queue.append(nxt)
    return len(seen)


def count_passages(maze: Maze) -> int:
    return sum(1 for _ in maze.passages())


def boundary_errors(maze: Maze) -> List[str]:
    errors = []
    for r, row in enumerate(maze):
        if not row[-1].right_wall:
            errors.append(f"row {r}: rightmost cell has no right wall")
    for c, cell in enumerate(maze.rows[-1]):
        if not cell.bottom_wall:
            errors.append(f"last row, column {c}: no bottom wall")
    return errors


def downward_exit_errors(maze: Maze) -> List[str]:
    """Check that every region touching a non-final row continues below it.

    Regions are grown with a union-find over the passages of rows
    ``0..r``; a region present in row ``r`` must have at least one cell
    in that row without a bottom wall.
    """
    width = maze.width
    parent = list(range(width * maze.height))

    def find(x: int) -> int:
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    errors = []
    for r, row in enumerate(maze.rows):
        base = r * width
        for c, cell in enumerate(row):
            if c + 1 < width and not cell.right_wall:
                parent[find(base + c)] = find(base + c + 1)
            if r > 0 and not maze.rows[r - 1][c].bottom_wall:
                parent[find(base + c)] = find(base - width + c)
        if r == maze.height - 1:
            break
        exits: Dict[int, bool] = {}
        for c, cell in enumerate(row):
            root = find(base + c)
            exits[root] = exits.get(root, False) or not cell.bottom_wall
        for root, has_exit in exits.items():
            if not has_exit:
                errors.append(f"row {r}: region {root} has no passage downward")
    return errors


def validate(maze: Maze) -> List[str]:
    errors = boundary_errors(maze) + downward_exit_errors(maze)
    total = maze.width * maze.height
    reachable = count_reachable(maze)
    if reachable != total:
        errors.append(f"only {reachable} of {total} cells reachable")
    passages = count_passages(maze)
    if passages != total - 1:
        errors.append(f"expected {total - 1} passages, got {passages}")
    return errors


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate generated maze")
    parser.add_argument("width", type=generator.positive_int, help="Maze width in cells")
    parser.add_argument("height", type=generator.positive_int, help="Maze height in cells")
    parser.add_argument("orientation", nargs="?", default="normal",
                        help="h[orizontal] / v[ertical] / n[ormal]")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--runs", type=generator.positive_int, default=1, help="Number of mazes to check")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    orientation = generator.Orientation.from_token(args.orientation)
    if orientation is None:
        print(f"Unknown orientation {args.orientation!r}, assuming normal", file=sys.stderr)
        orientation = generator.Orientation.NORMAL

    for run in range(args.runs):
        seed = None if args.seed is None else args.seed + run
        config = generator.MazeConfig(args.width, args.height, orientation, seed)
        maze = generator.MazeGenerator(config).generate()
        errors = validate(maze)
        assert not errors, f"run {run} (seed {seed}): " + "; ".join(errors)

    print("All checks passed. Validated", args.runs, "maze(s) of", f"{args.width}x{args.height}.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
