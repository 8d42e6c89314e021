"""Weighted A* over the gameplay grid.

One search routine serves every driver. Drivers specialise it through
``PathfindingOptions`` (hazard penalty, iteration cap) and the optional
``cost_fn`` / ``is_blocked`` hooks instead of carrying their own copy.
"""

from __future__ import annotations

import heapq
import logging
import math
from itertools import count
from typing import Callable

from pydantic import BaseModel, Field

from config import DEFAULT_HAZARD_AVOIDANCE_WEIGHT, DEFAULT_MAX_ITERATIONS
from engine.behaviors import TileBehaviorRegistry, context_for
from models.game_state import GameState
from models.level import Level
from models.tiles import FLOOR, GridCoord, TileProperties, TileType, manhattan

logger = logging.getLogger(__name__)

# (coord, tile, base_cost) -> cost to enter coord
CostFn = Callable[[GridCoord, TileProperties, float], float]
BlockedFn = Callable[[GridCoord], bool]


class PathfindingOptions(BaseModel):
    hazard_avoidance_weight: float = Field(default=DEFAULT_HAZARD_AVOIDANCE_WEIGHT, ge=0)
    max_iterations: int = Field(default=DEFAULT_MAX_ITERATIONS, ge=1)


class PathResult(BaseModel):
    """Outcome of a search. ``found=False`` always carries an empty path and infinite cost."""
    path: list[GridCoord] = []
    cost: float = math.inf
    found: bool = False

    @classmethod
    def not_found(cls) -> PathResult:
        return cls(path=[], cost=math.inf, found=False)


def tile_at(level: Level, coord: GridCoord) -> TileProperties:
    """Gameplay tile at coord, floor when nothing is placed."""
    return level.get_gameplay_tile(coord) or FLOOR


def is_walkable(
    coord: tuple[int, int],
    level: Level,
    game_state: GameState,
    registry: TileBehaviorRegistry,
) -> bool:
    """In bounds and walkable per the tile's behavior."""
    if not level.is_in_bounds(coord):
        return False
    coord = GridCoord(*coord)
    tile = tile_at(level, coord)
    return registry.get_for_tile(tile).is_walkable(context_for(coord, tile, game_state))


def spawn_position(
    level: Level,
    game_state: GameState,
    registry: TileBehaviorRegistry,
    is_blocked: Callable[[GridCoord], bool] | None = None,
) -> GridCoord:
    """The level's spawn tile, else its first walkable tile, else (0, 0)."""
    spawn = level.find_spawn_tile()
    if spawn is not None:
        return spawn
    walkable = level.find_first_walkable(
        lambda c: is_walkable(c, level, game_state, registry) and not (is_blocked and is_blocked(c))
    )
    return walkable or GridCoord(0, 0)


def movement_cost(
    coord: tuple[int, int],
    level: Level,
    game_state: GameState,
    registry: TileBehaviorRegistry,
) -> float:
    """The behavior's cost to enter coord (no avoidance penalties)."""
    coord = GridCoord(*coord)
    tile = tile_at(level, coord)
    return registry.get_for_tile(tile).movement_cost(context_for(coord, tile, game_state))


def _reconstruct(came_from: dict[GridCoord, GridCoord], current: GridCoord) -> list[GridCoord]:
    path = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return path


def find_path(
    start: tuple[int, int],
    goal: tuple[int, int],
    level: Level,
    game_state: GameState,
    registry: TileBehaviorRegistry,
    options: PathfindingOptions | None = None,
    *,
    cost_fn: CostFn | None = None,
    is_blocked: BlockedFn | None = None,
) -> PathResult:
    """Find the cheapest 4-connected path from start to goal.

    Entering a tile costs its behavior's movement cost, plus
    ``hazard_avoidance_weight`` on hazard tiles, unless ``cost_fn`` is
    given, in which case ``cost_fn(coord, tile, base_cost)`` decides.
    ``is_blocked`` marks extra tiles as impassable (e.g. occupied ones).

    Args:
        start: Starting coordinate. Its own tile is never evaluated.
        goal: Target coordinate.
        level: Level providing bounds and gameplay tiles.
        game_state: Door state and other context for behaviors.
        registry: Behavior lookup.
        options: Hazard penalty and iteration cap.

    Returns:
        A PathResult. Giving up (unreachable, iteration cap) is not an
        error: it returns found=False.
    """
    opts = options or PathfindingOptions()
    start = GridCoord(*start)
    goal = GridCoord(*goal)

    if start == goal:
        return PathResult(path=[start], cost=0.0, found=True)

    if not is_walkable(goal, level, game_state, registry):
        return PathResult.not_found()

    g_score: dict[GridCoord, float] = {start: 0.0}
    came_from: dict[GridCoord, GridCoord] = {}
    tie = count()
    open_heap: list[tuple[float, int, float, GridCoord]] = [
        (float(manhattan(start, goal)), next(tie), 0.0, start),
    ]

    iterations = 0
    while open_heap and iterations < opts.max_iterations:
        _, _, g, current = heapq.heappop(open_heap)
        if g > g_score.get(current, math.inf):
            continue  # stale entry
        iterations += 1

        if current == goal:
            return PathResult(path=_reconstruct(came_from, current), cost=g, found=True)

        for neighbor in current.neighbors():
            if not level.is_in_bounds(neighbor):
                continue
            if is_blocked is not None and is_blocked(neighbor):
                continue
            tile = tile_at(level, neighbor)
            behavior = registry.get_for_tile(tile)
            ctx = context_for(neighbor, tile, game_state)
            if not behavior.is_walkable(ctx):
                continue

            base = behavior.movement_cost(ctx)
            if cost_fn is not None:
                step = cost_fn(neighbor, tile, base)
            else:
                step = base
                if tile.type == TileType.HAZARD.value:
                    step += opts.hazard_avoidance_weight
            if not math.isfinite(step):
                continue

            tentative = g + step
            if tentative < g_score.get(neighbor, math.inf):
                g_score[neighbor] = tentative
                came_from[neighbor] = current
                f = tentative + manhattan(neighbor, goal)
                heapq.heappush(open_heap, (f, next(tie), tentative, neighbor))

    if open_heap:
        logger.debug(
            "Path search %s -> %s gave up after %d iterations", start, goal, iterations,
        )
    return PathResult.not_found()


def path_cost(
    path: list[GridCoord],
    level: Level,
    game_state: GameState,
    registry: TileBehaviorRegistry,
) -> float:
    """Sum of behavior costs for every tile entered along path."""
    return sum(movement_cost(c, level, game_state, registry) for c in path[1:])


class AgentPathfinder:
    """Find paths for an agent with a fixed hazard-avoidance weight."""

    def __init__(
        self,
        registry: TileBehaviorRegistry,
        hazard_avoidance_weight: float = DEFAULT_HAZARD_AVOIDANCE_WEIGHT,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> None:
        self.registry = registry
        self.options = PathfindingOptions(
            hazard_avoidance_weight=hazard_avoidance_weight,
            max_iterations=max_iterations,
        )

    def find_path(
        self,
        start: tuple[int, int],
        goal: tuple[int, int],
        level: Level,
        game_state: GameState,
        options: PathfindingOptions | None = None,
    ) -> PathResult:
        return find_path(start, goal, level, game_state, self.registry, options or self.options)

    def is_walkable(self, coord: tuple[int, int], level: Level, game_state: GameState) -> bool:
        return is_walkable(coord, level, game_state, self.registry)

    def get_base_cost(self, coord: tuple[int, int], level: Level, game_state: GameState) -> float:
        return movement_cost(coord, level, game_state, self.registry)
