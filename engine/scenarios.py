"""Built-in test maps used by the movement tester, simulator and personality tester."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from models.level import Level
from models.tiles import (
    BlockerTile,
    ConveyorTile,
    Direction,
    DoorTile,
    ExitTile,
    GridCoord,
    HazardTile,
    HoleTile,
    SlowTile,
    SpawnTile,
    TileProperties,
)

FLOOR_SPRITE = 0
BLOCKER_SPRITE = 60


@dataclass(frozen=True)
class Scenario:
    id: str
    name: str
    description: str
    phase: int
    build: Callable[[], Level]


def _base_level(name: str, width: int, height: int) -> Level:
    """A level with a floor terrain layer covering every tile."""
    level = Level.create_default(name, width, height)
    level.layers.append({
        "id": "terrain",
        "name": "Terrain",
        "zIndex": 0,
        "visible": True,
        "tiles": [
            {"tileId": FLOOR_SPRITE, "position": {"x": x, "y": y}}
            for y in range(height)
            for x in range(width)
        ],
    })
    return level


def _place(level: Level, coords: Iterable[tuple[int, int]], tile: TileProperties) -> None:
    for coord in coords:
        level.set_gameplay_tile(GridCoord(*coord), tile)


def _place_blockers(level: Level, coords: Iterable[tuple[int, int]]) -> None:
    coords = list(coords)
    _place(level, coords, BlockerTile())
    wall = {tuple(c) for c in coords}
    for tile in level.layers[0]["tiles"]:
        if (tile["position"]["x"], tile["position"]["y"]) in wall:
            tile["tileId"] = BLOCKER_SPRITE


def build_slow_path() -> Level:
    level = _base_level("Test Map 1: Slow Path", 8, 6)
    _place(level, [(1, 5)], SpawnTile())
    _place(level, [(6, 0)], ExitTile())
    _place_blockers(level, [(0, 3), (1, 3), (2, 3), (5, 3), (5, 1), (5, 0)])
    _place(level, [(1, 4), (2, 4), (3, 4), (4, 3), (4, 2), (5, 2), (6, 2), (6, 1)], SlowTile())
    return level


def build_hole_maze() -> Level:
    level = _base_level("Test Map 2: Hole Maze", 10, 8)
    _place(level, [(1, 7)], SpawnTile())
    _place(level, [(8, 1)], ExitTile())
    _place_blockers(level, [
        (0, 4), (1, 4), (2, 4), (3, 4),
        (6, 4), (7, 4), (8, 4), (9, 4),
        (4, 0), (4, 1), (4, 2), (4, 3),
    ])
    _place(level, [(2, 6), (3, 6), (4, 6), (6, 6), (6, 5), (6, 3), (7, 2), (5, 1)], HoleTile())
    return level


def build_conveyor_puzzle() -> Level:
    level = _base_level("Test Map 3: Conveyor Loop", 8, 8)
    _place(level, [(1, 6)], SpawnTile())
    _place(level, [(6, 1)], ExitTile())
    _place_blockers(level, [(3, 3), (3, 4), (4, 3), (4, 4), (2, 1), (5, 6)])
    _place(level, [(1, 5), (2, 5), (3, 5)], ConveyorTile(direction=Direction.EAST))
    _place(level, [(4, 5), (5, 5)], ConveyorTile(direction=Direction.NORTH))
    _place(level, [(5, 4), (5, 3), (5, 2)], ConveyorTile(direction=Direction.WEST))
    _place(level, [(4, 2), (3, 2)], ConveyorTile(direction=Direction.NORTH))
    _place(level, [(3, 1), (4, 1)], ConveyorTile(direction=Direction.EAST))
    return level


def build_hazard_run() -> Level:
    level = _base_level("Test Map 4: Hazard Run", 7, 10)
    _place(level, [(3, 9)], SpawnTile())
    _place(level, [(3, 0)], ExitTile())
    _place(level, [(3, 8)], DoorTile(linked_id="A"))
    _place_blockers(level, [(1, 5), (2, 5), (4, 5), (5, 5)])
    _place(level, [(3, y) for y in range(1, 8)], HazardTile(damage=1))
    _place(level, [(2, 7), (4, 7)], HoleTile())
    return level


def build_straight_shot() -> Level:
    level = _base_level("Test Map 5: Straight Shot", 10, 3)
    _place(level, [(1, 1)], SpawnTile())
    _place(level, [(8, 1)], ExitTile())
    return level


def build_obstacle_maze() -> Level:
    level = _base_level("Test Map 6: Obstacle Maze", 10, 8)
    _place(level, [(1, 6)], SpawnTile())
    _place(level, [(8, 1)], ExitTile())
    _place_blockers(level, [
        (3, 1), (3, 2), (3, 3), (3, 4),
        (5, 3), (6, 3), (7, 3), (7, 4),
        (2, 6), (4, 6), (6, 6), (7, 6),
    ])
    _place(level, [(5, 5), (5, 4), (5, 2)], SlowTile())
    return level


def build_hazard_shortcut() -> Level:
    level = _base_level("Test Map 7: Hazard Shortcut", 9, 7)
    _place(level, [(1, 5)], SpawnTile())
    _place(level, [(7, 1)], ExitTile())
    _place_blockers(level, [(3, 2), (3, 3), (3, 4), (5, 1), (5, 2), (5, 3), (5, 4), (5, 5)])
    _place(level, [(2, 5), (3, 5), (4, 5)], SlowTile())
    _place(level, [(4, 2), (4, 1), (6, 1), (6, 2)], HazardTile(damage=1))
    return level


SCENARIOS: tuple[Scenario, ...] = (
    Scenario("slow-path", "Test Map 1", "Simple path with slow tiles.", 1, build_slow_path),
    Scenario("hole-maze", "Test Map 2", "Maze featuring holes and blockers.", 1, build_hole_maze),
    Scenario(
        "conveyor-puzzle", "Test Map 3", "Conveyor loop that pushes the token around.", 1,
        build_conveyor_puzzle,
    ),
    Scenario("hazard-run", "Test Map 4", "Hazard gauntlet with a blocking door.", 1, build_hazard_run),
    Scenario(
        "straight-shot", "Test Map 5", "Straight line to the exit (basic pathfinding).", 2,
        build_straight_shot,
    ),
    Scenario(
        "obstacle-maze", "Test Map 6", "Maze that forces rerouting around blockers.", 2,
        build_obstacle_maze,
    ),
    Scenario(
        "hazard-shortcut", "Test Map 7", "Choose between safe detour or hazardous shortcut.", 2,
        build_hazard_shortcut,
    ),
)


def list_scenarios(phase: int | None = None) -> list[Scenario]:
    return [s for s in SCENARIOS if phase is None or s.phase == phase]


def get_scenario(scenario_id: str) -> Scenario:
    for scenario in SCENARIOS:
        if scenario.id == scenario_id:
            return scenario
    raise ValueError(f"Unknown scenario: {scenario_id}")


def build_scenario(scenario_id: str) -> Level:
    """Build a fresh level for a scenario id.

    Raises:
        ValueError: If the id is unknown.
    """
    return get_scenario(scenario_id).build()
