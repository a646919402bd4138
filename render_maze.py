#!/usr/bin/env python3
"""迷宫渲染工具。

读取 `generator.py` 导出的 JSON 布局（或直接接收 :class:`Maze`），
输出 ASCII 文本，或使用 matplotlib 绘制俯视图用于快速预览。
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List

import matplotlib.pyplot as plt
import numpy as np

from generator import LAYOUT_PATH, Maze

# `generator.py` 输出的布局文件路径
JSON_PATH = LAYOUT_PATH


def render_lines(maze: Maze) -> List[str]:
    """按行返回迷宫的文本形式，共 2*高度+1 行。"""
    lines = [" ___" * maze.width]
    for row in maze:
        upper = ["|"]
        lower = ["|"]
        for cell in row:
            marker = "|" if cell.right_wall else " "
            upper.append("   " + marker)
            lower.append(("___" if cell.bottom_wall else "   ") + marker)
        lines.append("".join(upper))
        lines.append("".join(lower))
    return lines


def render_text(maze: Maze) -> str:
    return "\n".join(render_lines(maze))


def maze_to_grid(maze: Maze) -> np.ndarray:
    """把迷宫转换为 (2h+1, 2w+1) 的数组，1 表示墙，0 表示通道。

    单元格 (r, c) 位于数组的 (2r+1, 2c+1)，墙位于相邻的奇偶位置上。
    """
    h, w = maze.height, maze.width
    grid = np.ones((2 * h + 1, 2 * w + 1), dtype=np.uint8)
    for r, row in enumerate(maze):
        for c, cell in enumerate(row):
            y, x = 2 * r + 1, 2 * c + 1
            grid[y, x] = 0
            if not cell.right_wall:
                grid[y, x + 1] = 0
            if not cell.bottom_wall:
                grid[y + 1, x] = 0
    return grid


def load_maze(path: Path = JSON_PATH) -> Maze:
    return Maze.from_layout(json.loads(path.read_text(encoding="utf8")))


def render_plot_maze(path: Path = JSON_PATH) -> int:
    """读取 JSON 布局并用 matplotlib 绘制迷宫俯视图。

    Returns:
        0 表示成功，其他值表示错误
    """
    try:
        if not path.exists():
            print(f"错误：找不到文件 {path}")
            return 1

        maze = load_maze(path)
        grid = maze_to_grid(maze)

        fig, ax = plt.subplots(figsize=(8, 8 * grid.shape[0] / grid.shape[1]))
        ax.imshow(grid, cmap="binary", interpolation="nearest")
        ax.set_title(f"迷宫 {maze.width}x{maze.height}")
        ax.set_xticks([])
        ax.set_yticks([])

        print(f"\n=== 迷宫渲染统计 ===")
        print(f"尺寸: {maze.width}x{maze.height}")
        print(f"通道数: {sum(1 for _ in maze.passages())}")

        plt.tight_layout()
        plt.show()
        return 0

    except (OSError, ValueError, KeyError, TypeError) as e:
        print(f"渲染过程中发生错误: {e}")
        return 1


def render_ascii_maze(path: Path = JSON_PATH) -> int:
    """读取 JSON 布局并以 ASCII 形式输出迷宫。

    Returns:
        0 表示成功，其他值表示错误
    """
    try:
        if not path.exists():
            print(f"错误：找不到文件 {path}")
            return 1

        print(render_text(load_maze(path)))
        return 0

    except (OSError, ValueError, KeyError, TypeError) as e:
        print(f"ASCII渲染过程中发生错误: {e}")
        return 1


def main() -> int:
    """主函数：提供图形和ASCII两种渲染选项。

    Returns:
        0 表示成功，其他值表示错误
    """
    import sys

    if len(sys.argv) > 1:
        choice = sys.argv[1]
    else:
        if sys.stdin.isatty():
            print("=== 迷宫渲染工具 ===")
            print("1. 图形预览")
            print("2. ASCII文本 (推荐)")
            print("3. 两种都显示")

            try:
                choice = input("请选择渲染方式 (1/2/3，默认为2): ").strip()
                if not choice:
                    choice = "2"
            except (KeyboardInterrupt, EOFError):
                print("\n使用默认ASCII渲染")
                choice = "2"
        else:
            choice = "2"

    path = Path(sys.argv[2]) if len(sys.argv) > 2 else JSON_PATH

    try:
        if choice == "1":
            return render_plot_maze(path)
        elif choice == "2":
            return render_ascii_maze(path)
        elif choice == "3":
            result1 = render_ascii_maze(path)
            result2 = render_plot_maze(path)
            return max(result1, result2)
        else:
            print("无效选择，使用默认ASCII渲染")
            return render_ascii_maze(path)

    except KeyboardInterrupt:
        print("\n用户取消操作")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
