"""Tests for weighted A* pathfinding."""

import heapq
import math
import random

import pytest

from engine.behaviors import default_registry
from engine.pathfinding import (
    AgentPathfinder,
    PathfindingOptions,
    find_path,
    is_walkable,
    path_cost,
    spawn_position,
)
from models.game_state import GameState
from models.level import Level
from models.tiles import (
    BlockerTile,
    DoorTile,
    ExitTile,
    GridCoord,
    HazardTile,
    HoleTile,
    SlowTile,
    SpawnTile,
)


def _make_level(width: int = 5, height: int = 5, tiles: dict | None = None) -> Level:
    """Helper to create a level with the given gameplay tiles."""
    level = Level(width=width, height=height)
    for coord, props in (tiles or {}).items():
        level.set_gameplay_tile(coord, props)
    return level


def _search(level, start, goal, game_state=None, **kwargs):
    return find_path(start, goal, level, game_state or GameState(), default_registry(), **kwargs)


def _dijkstra(level: Level, start, goal, hazard_weight: float) -> float:
    """Exhaustive reference search using the same step costs."""
    registry = default_registry()
    gs = GameState()
    dist = {GridCoord(*start): 0.0}
    heap = [(0.0, GridCoord(*start))]
    while heap:
        d, current = heapq.heappop(heap)
        if current == goal:
            return d
        if d > dist.get(current, math.inf):
            continue
        for n in current.neighbors():
            if not is_walkable(n, level, gs, registry):
                continue
            tile = level.get_gameplay_tile(n)
            step = 1.0
            if tile is not None and tile.type == "slow":
                step = 2.5
            if tile is not None and tile.type == "hazard":
                step += hazard_weight
            if d + step < dist.get(n, math.inf):
                dist[n] = d + step
                heapq.heappush(heap, (d + step, n))
    return math.inf


class TestFindPath:
    """Tests for find_path() basics."""

    def test_straight_line(self):
        level = _make_level(5, 1)
        result = _search(level, (0, 0), (4, 0))
        assert result.found
        assert result.path == [GridCoord(x, 0) for x in range(5)]
        assert result.cost == 4.0

    def test_start_equals_goal(self):
        level = _make_level()
        result = _search(level, (2, 2), (2, 2))
        assert result.found
        assert result.path == [GridCoord(2, 2)]
        assert result.cost == 0.0

    def test_start_equals_goal_on_blocker(self):
        level = _make_level(tiles={(2, 2): BlockerTile()})
        result = _search(level, (2, 2), (2, 2))
        assert result.found
        assert result.path == [GridCoord(2, 2)]

    def test_path_starts_and_ends_correctly(self):
        level = _make_level()
        result = _search(level, (0, 4), (4, 0))
        assert result.path[0] == GridCoord(0, 4)
        assert result.path[-1] == GridCoord(4, 0)
        assert len(result.path) == 9

    def test_consecutive_steps_are_adjacent(self):
        level = _make_level(6, 6, {(2, y): BlockerTile() for y in range(5)})
        result = _search(level, (0, 0), (5, 0))
        assert result.found
        for a, b in zip(result.path, result.path[1:]):
            assert abs(a.x - b.x) + abs(a.y - b.y) == 1

    def test_goal_blocker_not_found(self):
        level = _make_level(tiles={(4, 4): BlockerTile()})
        result = _search(level, (0, 0), (4, 4))
        assert not result.found
        assert result.path == []
        assert math.isinf(result.cost)

    def test_goal_out_of_bounds(self):
        level = _make_level()
        assert not _search(level, (0, 0), (9, 9)).found

    def test_walled_off(self):
        level = _make_level(5, 5, {(2, y): BlockerTile() for y in range(5)})
        assert not _search(level, (0, 0), (4, 4)).found

    def test_iteration_cap(self):
        level = _make_level(20, 20)
        options = PathfindingOptions(max_iterations=3)
        assert not _search(level, (0, 0), (19, 19), options=options).found

    def test_path_through_hole_is_allowed(self):
        level = _make_level(3, 1, {(1, 0): HoleTile()})
        result = _search(level, (0, 0), (2, 0))
        assert result.found
        assert GridCoord(1, 0) in result.path


class TestWeightedCosts:
    """Tests for slow tiles, hazard avoidance and custom costs."""

    def test_slow_gap_in_wall(self):
        """The only way through a wall is a slow tile."""
        tiles = {(x, 3): BlockerTile() for x in range(8) if x != 3}
        tiles[(3, 3)] = SlowTile()
        tiles[(1, 5)] = SpawnTile()
        tiles[(6, 1)] = ExitTile()
        level = _make_level(8, 8, tiles)

        result = _search(level, (1, 5), (6, 1))
        assert result.found
        assert GridCoord(3, 3) in result.path
        assert len(result.path) == 10
        assert result.cost == pytest.approx(8 * 1.0 + 1 * 2.5)

    def test_slow_tile_taken_when_cheaper(self):
        level = _make_level(3, 3, {(1, 1): SlowTile()})
        result = _search(level, (0, 1), (2, 1))
        assert result.path == [GridCoord(0, 1), GridCoord(1, 1), GridCoord(2, 1)]
        assert result.cost == pytest.approx(3.5)

    def test_hazard_avoided_when_detour_exists(self):
        level = _make_level(3, 3, {(1, 1): HazardTile()})
        result = _search(level, (0, 1), (2, 1))
        assert GridCoord(1, 1) not in result.path
        assert result.cost == pytest.approx(4.0)

    def test_zero_hazard_weight_walks_through(self):
        level = _make_level(3, 3, {(1, 1): HazardTile()})
        options = PathfindingOptions(hazard_avoidance_weight=0)
        result = _search(level, (0, 1), (2, 1), options=options)
        assert GridCoord(1, 1) in result.path
        assert result.cost == pytest.approx(2.0)

    def test_hazard_taken_when_only_route(self):
        level = _make_level(3, 1, {(1, 0): HazardTile()})
        result = _search(level, (0, 0), (2, 0))
        assert result.found
        assert result.cost == pytest.approx(2.0 + 5.0)

    def test_cost_fn_overrides(self):
        level = _make_level(3, 3, {(1, 1): HazardTile()})
        result = _search(
            level, (0, 1), (2, 1),
            cost_fn=lambda coord, tile, base: 0.1 if tile.type == "hazard" else base,
        )
        assert GridCoord(1, 1) in result.path
        assert result.cost == pytest.approx(1.1)

    def test_infinite_cost_fn_blocks(self):
        level = _make_level(3, 1)
        result = _search(
            level, (0, 0), (2, 0),
            cost_fn=lambda coord, tile, base: math.inf if coord == (1, 0) else base,
        )
        assert not result.found

    @pytest.mark.parametrize("seed", [1, 7, 42, 99])
    def test_optimal_against_exhaustive_search(self, seed):
        rng = random.Random(seed)
        tiles = {}
        for y in range(10):
            for x in range(10):
                roll = rng.random()
                if roll < 0.2:
                    tiles[(x, y)] = BlockerTile()
                elif roll < 0.35:
                    tiles[(x, y)] = SlowTile()
                elif roll < 0.45:
                    tiles[(x, y)] = HazardTile()
        tiles.pop((0, 0), None)
        tiles.pop((9, 9), None)
        level = _make_level(10, 10, tiles)

        expected = _dijkstra(level, (0, 0), GridCoord(9, 9), hazard_weight=5.0)
        result = _search(level, (0, 0), (9, 9))
        if math.isinf(expected):
            assert not result.found
        else:
            assert result.found
            assert result.cost == pytest.approx(expected)


class TestBlockingAndDoors:
    """Tests for is_blocked and door state."""

    def test_is_blocked_excludes_tiles(self):
        level = _make_level(3, 3)
        result = _search(level, (0, 1), (2, 1), is_blocked=lambda c: c == (1, 1))
        assert result.found
        assert GridCoord(1, 1) not in result.path

    def test_is_blocked_applies_to_goal(self):
        level = _make_level(3, 3)
        result = _search(level, (0, 1), (2, 1), is_blocked=lambda c: c == (2, 1))
        assert not result.found

    def test_closed_door_blocks(self):
        level = _make_level(3, 1, {(1, 0): DoorTile(linked_id="A")})
        assert not _search(level, (0, 0), (2, 0)).found

    def test_open_door_passes(self):
        level = _make_level(3, 1, {(1, 0): DoorTile(linked_id="A")})
        gs = GameState()
        gs.toggle_door("A")
        result = _search(level, (0, 0), (2, 0), game_state=gs)
        assert result.found
        assert result.cost == 2.0


class TestSpawnPosition:
    """Tests for spawn_position()."""

    def test_prefers_spawn_tile(self):
        level = _make_level(tiles={(3, 2): SpawnTile()})
        assert spawn_position(level, GameState(), default_registry()) == GridCoord(3, 2)

    def test_falls_back_to_first_walkable(self):
        level = _make_level(3, 1, {(0, 0): BlockerTile(), (1, 0): DoorTile(linked_id="A")})
        assert spawn_position(level, GameState(), default_registry()) == GridCoord(2, 0)
        assert spawn_position(level, GameState(open_doors={"A"}), default_registry()) == GridCoord(1, 0)

    def test_is_blocked_skips_tiles(self):
        level = _make_level(3, 1, {(0, 0): HoleTile()})
        registry = default_registry()
        assert spawn_position(level, GameState(), registry) == GridCoord(0, 0)
        blocked = lambda c: c == GridCoord(0, 0)
        assert spawn_position(level, GameState(), registry, is_blocked=blocked) == GridCoord(1, 0)

    def test_nothing_walkable_is_origin(self):
        level = _make_level(2, 1, {(0, 0): BlockerTile(), (1, 0): BlockerTile()})
        assert spawn_position(level, GameState(), default_registry()) == GridCoord(0, 0)


class TestPathCost:
    """Tests for path_cost()."""

    def test_sums_entered_tiles(self):
        level = _make_level(4, 1, {(1, 0): SlowTile(), (2, 0): HazardTile()})
        path = [GridCoord(x, 0) for x in range(4)]
        assert path_cost(path, level, GameState(), default_registry()) == pytest.approx(4.5)

    def test_single_tile_path_is_free(self):
        level = _make_level()
        assert path_cost([GridCoord(0, 0)], level, GameState(), default_registry()) == 0


class TestAgentPathfinder:
    """Tests for AgentPathfinder."""

    def test_uses_configured_weight(self):
        level = _make_level(3, 3, {(1, 1): HazardTile()})
        brave = AgentPathfinder(default_registry(), hazard_avoidance_weight=0)
        result = brave.find_path((0, 1), (2, 1), level, GameState())
        assert GridCoord(1, 1) in result.path

    def test_options_override(self):
        level = _make_level(3, 3, {(1, 1): HazardTile()})
        pathfinder = AgentPathfinder(default_registry(), hazard_avoidance_weight=0)
        result = pathfinder.find_path(
            (0, 1), (2, 1), level, GameState(),
            PathfindingOptions(hazard_avoidance_weight=10),
        )
        assert GridCoord(1, 1) not in result.path

    def test_is_walkable_and_base_cost(self):
        level = _make_level(3, 1, {(1, 0): SlowTile(), (2, 0): BlockerTile()})
        pathfinder = AgentPathfinder(default_registry())
        gs = GameState()
        assert pathfinder.is_walkable((1, 0), level, gs)
        assert not pathfinder.is_walkable((2, 0), level, gs)
        assert not pathfinder.is_walkable((5, 0), level, gs)
        assert pathfinder.get_base_cost((1, 0), level, gs) == 2.5
