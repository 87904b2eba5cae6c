# Breadth-first path search and bounded open-space estimate over the duel board.
from __future__ import annotations

from collections import deque
from typing import AbstractSet

try:
    from .game_logic import DIRECTIONS, Cell, GridWorld
except ImportError:
    from game_logic import DIRECTIONS, Cell, GridWorld


def is_blocked(world: GridWorld, cell: Cell, obstacles: AbstractSet[Cell]) -> bool:
    """True for off-board cells and obstacle cells."""
    return not world.in_bounds(cell) or cell in obstacles


def find_path(
    world: GridWorld,
    start: Cell,
    goal: Cell,
    obstacles: AbstractSet[Cell],
) -> list[Cell] | None:
    """
    Shortest 4-neighbor path from ``start`` to a cell touching ``goal``.

    The returned list starts with ``start`` and ends at the first cell that
    touches ``goal`` (see ``GridWorld.touches``); its length minus one is the
    step count. Neighbors are expanded in ``DIRECTIONS`` order, so ties are
    broken the same way every call. Returns None if nothing reaches the goal.
    """
    if world.touches(start, goal):
        return [start]

    parents: dict[Cell, Cell] = {}
    visited = {start}
    frontier: deque[Cell] = deque([start])

    while frontier:
        cell = frontier.popleft()
        for direction in DIRECTIONS:
            nxt = world.step(cell, direction)
            if nxt in visited or is_blocked(world, nxt, obstacles):
                continue
            visited.add(nxt)
            parents[nxt] = cell
            # BFS discovers cells in distance order, so the first hit is shortest.
            if world.touches(nxt, goal):
                return _walk_back(parents, start, nxt)
            frontier.append(nxt)

    return None


def _walk_back(parents: dict[Cell, Cell], start: Cell, end: Cell) -> list[Cell]:
    path = [end]
    while path[-1] != start:
        path.append(parents[path[-1]])
    path.reverse()
    return path


def reachable_area(
    world: GridWorld,
    start: Cell,
    obstacles: AbstractSet[Cell],
    max_depth: int,
) -> int:
    """
    Count free cells within ``max_depth`` steps of ``start`` (start included).

    Returns 0 when ``start`` itself is blocked. One visited set is shared by
    the whole flood, so each cell is counted once.
    """
    if max_depth < 0:
        raise ValueError("max_depth must be >= 0")
    if is_blocked(world, start, obstacles):
        return 0

    visited = {start}
    frontier: deque[tuple[Cell, int]] = deque([(start, 0)])
    while frontier:
        cell, depth = frontier.popleft()
        if depth >= max_depth:
            continue
        for direction in DIRECTIONS:
            nxt = world.step(cell, direction)
            if nxt in visited or is_blocked(world, nxt, obstacles):
                continue
            visited.add(nxt)
            frontier.append((nxt, depth + 1))

    return len(visited)
