"""Tests for bounded reachability and A* pathfinding."""

from __future__ import annotations

import random

import pytest

from skirmish.engine.grid_search import path_distance, reachable_tiles, shortest_path
from skirmish.models.grid import GridCoord


def _blocked_by(cells: set[GridCoord]):
    return lambda c: c in cells


def _random_obstacles(seed: int, width: int, height: int, start: GridCoord) -> set[GridCoord]:
    rng = random.Random(seed)
    cells = {
        GridCoord(x, y)
        for x in range(width) for y in range(height)
        if rng.random() < 0.3
    }
    cells.discard(start)
    return cells


class TestReachableTiles:
    def test_range_zero_is_start_only(self):
        start = GridCoord(2, 2)
        assert reachable_tiles(start, 0, lambda c: False, 5, 5) == {start: 0}

    def test_start_included_even_if_blocked(self):
        start = GridCoord(1, 1)
        result = reachable_tiles(start, 1, lambda c: c == start, 3, 3)
        assert result[start] == 0

    def test_open_board_diamond(self):
        # Range 2 in the open: 1 + 4 + 8 cells
        result = reachable_tiles(GridCoord(4, 4), 2, lambda c: False, 9, 9)
        assert len(result) == 13
        assert max(result.values()) == 2

    def test_boundary_cells_included(self):
        result = reachable_tiles(GridCoord(0, 0), 3, lambda c: False, 10, 10)
        assert result[GridCoord(3, 0)] == 3
        assert GridCoord(4, 0) not in result

    def test_board_edges_respected(self):
        result = reachable_tiles(GridCoord(0, 0), 2, lambda c: False, 2, 2)
        assert set(result) == {GridCoord(0, 0), GridCoord(1, 0), GridCoord(0, 1), GridCoord(1, 1)}

    def test_obstacle_forces_detour(self):
        # Wall at x=1 except the gap at y=2
        wall = {GridCoord(1, 0), GridCoord(1, 1)}
        result = reachable_tiles(GridCoord(0, 0), 4, _blocked_by(wall), 3, 3)
        assert GridCoord(1, 0) not in result
        # (2,0) needs 0,0 -> 0,1 -> 0,2 -> 1,2 -> 2,2 -> 2,1 -> 2,0: 6 steps
        assert GridCoord(2, 0) not in result
        assert result[GridCoord(2, 2)] == 4

    def test_never_includes_blocked_cells(self):
        start = GridCoord(3, 3)
        obstacles = _random_obstacles(11, 8, 8, start)
        result = reachable_tiles(start, 6, _blocked_by(obstacles), 8, 8)
        assert not (set(result) & obstacles)

    def test_negative_range_is_empty(self):
        assert reachable_tiles(GridCoord(0, 0), -1, lambda c: False, 3, 3) == {}


class TestShortestPath:
    def test_path_to_self(self):
        g = GridCoord(1, 1)
        assert shortest_path(g, g, lambda c: False, 3, 3) == [g]

    def test_straight_line(self):
        path = shortest_path(GridCoord(0, 0), GridCoord(3, 0), lambda c: False, 5, 5)
        assert path == [GridCoord(0, 0), GridCoord(1, 0), GridCoord(2, 0), GridCoord(3, 0)]

    def test_path_is_connected(self):
        obstacles = {GridCoord(2, y) for y in range(4)}
        path = shortest_path(GridCoord(0, 0), GridCoord(4, 0), _blocked_by(obstacles), 5, 5)
        assert path[0] == GridCoord(0, 0)
        assert path[-1] == GridCoord(4, 0)
        for a, b in zip(path, path[1:]):
            assert a.distance_to(b) == 1
        assert not (set(path) & obstacles)

    def test_unreachable_goal_returns_none(self):
        goal = GridCoord(4, 4)
        walls = {GridCoord(3, 4), GridCoord(4, 3)}
        assert shortest_path(GridCoord(0, 0), goal, _blocked_by(walls), 5, 5) is None

    def test_blocked_goal_returns_none(self):
        goal = GridCoord(2, 2)
        assert shortest_path(GridCoord(0, 0), goal, _blocked_by({goal}), 5, 5) is None

    def test_out_of_bounds_goal_returns_none(self):
        assert shortest_path(GridCoord(0, 0), GridCoord(9, 9), lambda c: False, 5, 5) is None

    def test_deterministic(self):
        args = (GridCoord(0, 0), GridCoord(4, 4), lambda c: False, 6, 6)
        assert shortest_path(*args) == shortest_path(*args)

    @pytest.mark.parametrize("seed", range(12))
    def test_length_matches_bfs_distance(self, seed):
        width, height = 9, 7
        start = GridCoord(0, 0)
        obstacles = _random_obstacles(seed, width, height, start)
        blocked = _blocked_by(obstacles)
        distances = reachable_tiles(start, width * height, blocked, width, height)
        for x in range(width):
            for y in range(height):
                goal = GridCoord(x, y)
                path = shortest_path(start, goal, blocked, width, height)
                if goal in distances:
                    assert path is not None
                    assert path_distance(path) == distances[goal]
                else:
                    assert path is None


class TestPathDistance:
    def test_empty_and_single(self):
        assert path_distance([]) == 0
        assert path_distance([GridCoord(0, 0)]) == 0

    def test_steps(self):
        assert path_distance([GridCoord(0, 0), GridCoord(1, 0), GridCoord(1, 1)]) == 2
