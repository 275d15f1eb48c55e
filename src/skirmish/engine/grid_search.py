"""Grid pathfinding on the battle board.

Pure graph search over a bounded square grid, used for movement previews
and enemy approach paths. Never touches units or the board directly: the
caller supplies a blocking predicate.

This module provides:
- Bounded reachability (BFS with a movement budget)
- Shortest path (A* with the Manhattan heuristic)
- Path distance calculation

Both searches are total: an empty result or ``None`` signals that nothing
is reachable, they never raise.
"""

from __future__ import annotations

import heapq
import itertools
from collections import deque
from typing import Callable, Optional

from skirmish.models.grid import GridCoord

BlockingPredicate = Callable[[GridCoord], bool]


def manhattan(a: GridCoord, b: GridCoord) -> int:
    """Manhattan distance between two cells."""
    return a.distance_to(b)


def in_bounds(coord: GridCoord, width: int, height: int) -> bool:
    return coord.in_bounds(width, height)


def reachable_tiles(
    start: GridCoord,
    move_range: int,
    is_blocked: BlockingPredicate,
    width: int,
    height: int,
) -> dict[GridCoord, int]:
    """Find every cell reachable within a movement budget.

    Breadth-first search in the four cardinal directions. The start cell is
    always part of the result at distance 0, whatever the predicate says
    about it. Unit edge weights mean BFS assigns each cell its minimal
    step count regardless of direction order.

    Args:
        start: Origin cell.
        move_range: Maximum number of steps (inclusive).
        is_blocked: True for cells that cannot be entered.
        width: Board width.
        height: Board height.

    Returns:
        Dict of reachable cell -> step distance.
    """
    if move_range < 0:
        return {}

    distances: dict[GridCoord, int] = {start: 0}
    queue: deque[GridCoord] = deque([start])

    while queue:
        current = queue.popleft()
        distance = distances[current]
        # Cells at the boundary are accepted but not expanded
        if distance >= move_range:
            continue
        for neighbor in current.neighbors():
            if neighbor in distances:
                continue
            if not in_bounds(neighbor, width, height) or is_blocked(neighbor):
                continue
            distances[neighbor] = distance + 1
            queue.append(neighbor)

    return distances


def shortest_path(
    start: GridCoord,
    goal: GridCoord,
    is_blocked: BlockingPredicate,
    width: int,
    height: int,
) -> Optional[list[GridCoord]]:
    """Find a shortest four-directional path using A*.

    Ties between equal f-scores are broken by the lower heuristic value,
    then by insertion order, so the result is deterministic.

    Args:
        start: Origin cell (never checked against the predicate).
        goal: Destination cell; must pass the predicate to be reachable.
        is_blocked: True for cells that cannot be entered.
        width: Board width.
        height: Board height.

    Returns:
        List of cells from start to goal inclusive, or None if the goal
        cannot be reached.
    """
    if start == goal:
        return [start]
    if not in_bounds(goal, width, height):
        return None

    counter = itertools.count()
    open_heap: list[tuple[int, int, int, GridCoord]] = []
    heapq.heappush(open_heap, (manhattan(start, goal), manhattan(start, goal), next(counter), start))
    came_from: dict[GridCoord, GridCoord] = {}
    g_score: dict[GridCoord, int] = {start: 0}
    closed: set[GridCoord] = set()

    while open_heap:
        _, _, _, current = heapq.heappop(open_heap)
        if current == goal:
            return _reconstruct_path(came_from, current)
        if current in closed:
            continue
        closed.add(current)

        for neighbor in current.neighbors():
            if not in_bounds(neighbor, width, height) or is_blocked(neighbor):
                continue
            tentative_g = g_score[current] + 1
            if tentative_g < g_score.get(neighbor, tentative_g + 1):
                came_from[neighbor] = current
                g_score[neighbor] = tentative_g
                h = manhattan(neighbor, goal)
                heapq.heappush(open_heap, (tentative_g + h, h, next(counter), neighbor))

    return None


def path_distance(path: list[GridCoord]) -> int:
    """Return the number of steps in a path (len - 1)."""
    return max(0, len(path) - 1)


def _reconstruct_path(came_from: dict[GridCoord, GridCoord], current: GridCoord) -> list[GridCoord]:
    path = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return path
