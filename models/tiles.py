"""Grid coordinates and gameplay tile property models."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, NamedTuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class GridCoord(NamedTuple):
    """A tile position on the logical grid."""
    x: int
    y: int

    def offset(self, dx: int, dy: int) -> GridCoord:
        return GridCoord(self.x + dx, self.y + dy)

    def neighbors(self) -> list[GridCoord]:
        """The four cardinal neighbors (east, west, south, north)."""
        return [
            GridCoord(self.x + 1, self.y),
            GridCoord(self.x - 1, self.y),
            GridCoord(self.x, self.y + 1),
            GridCoord(self.x, self.y - 1),
        ]


def manhattan(a: tuple[int, int], b: tuple[int, int]) -> int:
    """Manhattan distance |dx| + |dy| between two grid positions."""
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


class Direction(str, Enum):
    """Cardinal direction a conveyor pushes toward."""
    NORTH = "north"
    EAST = "east"
    SOUTH = "south"
    WEST = "west"


DIRECTION_VECTORS: dict[Direction, tuple[int, int]] = {
    Direction.NORTH: (0, -1),
    Direction.EAST: (1, 0),
    Direction.SOUTH: (0, 1),
    Direction.WEST: (-1, 0),
}


class TileType(str, Enum):
    """Gameplay tile tags."""
    FLOOR = "floor"                 # Default walkable
    BLOCKER = "blocker"             # Impassable wall
    SLOW = "slow"                   # Movement cost 2.5
    HOLE = "hole"                   # Instant death on entry
    CONVEYOR = "conveyor"           # Forced movement after entry
    HAZARD = "hazard"               # Deals damage on entry
    DOOR = "door"                   # Blocks until its id is opened
    EXIT = "exit"                   # Win condition trigger
    SPAWN = "spawn"                 # Initial placement marker


class _TileBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class FloorTile(_TileBase):
    type: Literal["floor"] = "floor"


class BlockerTile(_TileBase):
    type: Literal["blocker"] = "blocker"


class SlowTile(_TileBase):
    type: Literal["slow"] = "slow"


class HoleTile(_TileBase):
    type: Literal["hole"] = "hole"


class ConveyorTile(_TileBase):
    type: Literal["conveyor"] = "conveyor"
    direction: Direction = Direction.NORTH


class HazardTile(_TileBase):
    type: Literal["hazard"] = "hazard"
    damage: int = Field(default=1, ge=1)


class DoorTile(_TileBase):
    type: Literal["door"] = "door"
    linked_id: str = Field(default="default", alias="linkedId")


class ExitTile(_TileBase):
    type: Literal["exit"] = "exit"


class SpawnTile(_TileBase):
    type: Literal["spawn"] = "spawn"


TileProperties = Annotated[
    Union[
        FloorTile,
        BlockerTile,
        SlowTile,
        HoleTile,
        ConveyorTile,
        HazardTile,
        DoorTile,
        ExitTile,
        SpawnTile,
    ],
    Field(discriminator="type"),
]

FLOOR = FloorTile()

_tile_adapter: TypeAdapter = TypeAdapter(TileProperties)


def parse_tile_properties(data: dict) -> TileProperties:
    """Validate a raw dict (e.g. ``{"type": "hazard", "damage": 2}``).

    Raises:
        pydantic.ValidationError: If the tag is unknown or the payload is invalid.
    """
    return _tile_adapter.validate_python(data)

