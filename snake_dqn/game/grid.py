"""
Grid helpers shared by the game engine and the feature extractor.

Cells are (x, y) tuples with x growing to the right and y growing down.
Every helper takes the set of blocked cells from the caller so a single
set can be reused across several queries.
"""

from collections import deque
from typing import AbstractSet, Set, Tuple

Cell = Tuple[int, int]

NEIGHBOR_OFFSETS = ((0, -1), (1, 0), (0, 1), (-1, 0))


def in_bounds(cell: Cell, grid_size: int) -> bool:
    x, y = cell
    return 0 <= x < grid_size and 0 <= y < grid_size


def is_blocked(cell: Cell, blocked: AbstractSet[Cell], grid_size: int) -> bool:
    """True if the cell is outside the grid or occupied."""
    return not in_bounds(cell, grid_size) or cell in blocked


def manhattan(a: Cell, b: Cell) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def flood_fill(start: Cell, blocked: AbstractSet[Cell], grid_size: int) -> Set[Cell]:
    """
    Breadth-first search over free cells.

    The start cell is expanded even when it is blocked (e.g. the snake's
    head) but only included in the result if it is free. An out-of-bounds
    start reaches nothing.

    Returns:
        Set of free cells reachable from start
    """
    if not in_bounds(start, grid_size):
        return set()

    visited = {start}
    queue = deque([start])
    while queue:
        x, y = queue.popleft()
        for dx, dy in NEIGHBOR_OFFSETS:
            nxt = (x + dx, y + dy)
            if nxt not in visited and not is_blocked(nxt, blocked, grid_size):
                visited.add(nxt)
                queue.append(nxt)

    if start in blocked:
        visited.discard(start)
    return visited


def reachable_count(start: Cell, blocked: AbstractSet[Cell], grid_size: int) -> int:
    """Number of free cells reachable from start."""
    return len(flood_fill(start, blocked, grid_size))


def can_reach(start: Cell, goal: Cell, blocked: AbstractSet[Cell], grid_size: int) -> bool:
    """True if goal is reachable from start through free cells (goal must be free)."""
    return goal in flood_fill(start, blocked, grid_size)


def ray_distance(start: Cell, direction: Cell, blocked: AbstractSet[Cell], grid_size: int) -> int:
    """
    Steps from start along direction until the first blocked cell.

    An obstacle directly adjacent gives 1.
    """
    dx, dy = direction
    x, y = start
    for steps in range(1, grid_size + 1):
        cell = (x + dx * steps, y + dy * steps)
        if is_blocked(cell, blocked, grid_size):
            return steps
    return grid_size
