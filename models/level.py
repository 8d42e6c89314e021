"""Level document schema and the runtime Level grid model."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Literal

from pydantic import BaseModel, ConfigDict, Field

from config import GRID_HEIGHT, GRID_WIDTH, MAX_GRID_SIZE, TILE_HEIGHT, TILE_WIDTH
from models.tiles import GridCoord, TileProperties, TileType


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Position(BaseModel):
    """A grid position as stored in level documents ({"x": .., "y": ..})."""
    x: int = Field(ge=0)
    y: int = Field(ge=0)


class GridConfig(BaseModel):
    """Grid dimensions and source tile size."""
    model_config = ConfigDict(populate_by_name=True)

    width: int = Field(default=GRID_WIDTH, ge=1, le=MAX_GRID_SIZE)
    height: int = Field(default=GRID_HEIGHT, ge=1, le=MAX_GRID_SIZE)
    tile_width: int = Field(default=TILE_WIDTH, ge=1, alias="tileWidth")
    tile_height: int = Field(default=TILE_HEIGHT, ge=1, alias="tileHeight")


class LevelMetadata(BaseModel):
    """Descriptive information about a level."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "Untitled Level"
    author: str | None = None
    created: str = Field(default_factory=_now)
    modified: str = Field(default_factory=_now)
    version: int = Field(default=1, ge=1)


class GameplayTilePlacement(BaseModel):
    """A gameplay tile placed at a specific position."""
    position: Position
    properties: TileProperties


class GameplayLayerData(BaseModel):
    tiles: list[GameplayTilePlacement] = []


class LevelData(BaseModel):
    """A level document as written by the editor.

    Version 1 documents carry no gameplay layer. Visual layers are kept
    as raw dicts and passed through untouched.
    """
    model_config = ConfigDict(populate_by_name=True)

    version: Literal[1, 2] = 2
    metadata: LevelMetadata = Field(default_factory=LevelMetadata)
    grid: GridConfig = Field(default_factory=GridConfig)
    layers: list[dict[str, Any]] = []
    gameplay_layer: GameplayLayerData | None = Field(default=None, alias="gameplayLayer")


class Level:
    """Runtime level: bounds plus a sparse gameplay layer.

    Coordinates with no entry are floor. Out-of-bounds coordinates have
    no tile at all.
    """

    def __init__(
        self,
        width: int = GRID_WIDTH,
        height: int = GRID_HEIGHT,
        metadata: LevelMetadata | None = None,
        grid: GridConfig | None = None,
        layers: list[dict[str, Any]] | None = None,
    ) -> None:
        self.grid = grid or GridConfig(width=width, height=height)
        self.metadata = metadata or LevelMetadata()
        self.layers: list[dict[str, Any]] = list(layers or [])
        self._gameplay: dict[GridCoord, TileProperties] = {}

    @property
    def width(self) -> int:
        return self.grid.width

    @property
    def height(self) -> int:
        return self.grid.height

    def is_in_bounds(self, coord: tuple[int, int]) -> bool:
        return 0 <= coord[0] < self.width and 0 <= coord[1] < self.height

    def get_gameplay_tile(self, coord: tuple[int, int]) -> TileProperties | None:
        """Explicit gameplay tile at coord, or None (floor / out of bounds)."""
        if not self.is_in_bounds(coord):
            return None
        return self._gameplay.get(GridCoord(*coord))

    def set_gameplay_tile(self, coord: tuple[int, int], properties: TileProperties) -> bool:
        """Place a gameplay tile. Setting floor clears the entry.

        Returns:
            False if coord is out of bounds, True otherwise.
        """
        if not self.is_in_bounds(coord):
            return False
        key = GridCoord(*coord)
        if properties.type == TileType.FLOOR.value:
            self._gameplay.pop(key, None)
        else:
            self._gameplay[key] = properties
        self._touch()
        return True

    def remove_gameplay_tile(self, coord: tuple[int, int]) -> bool:
        removed = self._gameplay.pop(GridCoord(*coord), None)
        if removed is not None:
            self._touch()
        return removed is not None

    def all_gameplay_tiles(self) -> Iterator[tuple[GridCoord, TileProperties]]:
        """Explicit tiles in row-major order."""
        for coord in sorted(self._gameplay, key=lambda c: (c.y, c.x)):
            yield coord, self._gameplay[coord]

    def _find_all(self, tile_type: TileType) -> list[GridCoord]:
        return [c for c, props in self.all_gameplay_tiles() if props.type == tile_type.value]

    def find_spawn_tile(self) -> GridCoord | None:
        spawns = self._find_all(TileType.SPAWN)
        return spawns[0] if spawns else None

    def find_spawn_tiles(self) -> list[GridCoord]:
        return self._find_all(TileType.SPAWN)

    def find_exit_tile(self) -> GridCoord | None:
        exits = self._find_all(TileType.EXIT)
        return exits[0] if exits else None

    def door_ids(self) -> list[str]:
        """Distinct linked ids of every door, in placement order."""
        ids: list[str] = []
        for _, props in self.all_gameplay_tiles():
            if props.type == TileType.DOOR.value and props.linked_id not in ids:
                ids.append(props.linked_id)
        return ids

    def find_first_walkable(self, is_walkable: Callable[[GridCoord], bool]) -> GridCoord | None:
        """First coordinate in row-major order accepted by ``is_walkable``."""
        for y in range(self.height):
            for x in range(self.width):
                if is_walkable(GridCoord(x, y)):
                    return GridCoord(x, y)
        return None

    def clone(self) -> Level:
        return Level.from_data(self.to_data())

    def _touch(self) -> None:
        self.metadata = self.metadata.model_copy(update={"modified": _now()})

    def to_data(self) -> LevelData:
        tiles = [
            GameplayTilePlacement(position=Position(x=c.x, y=c.y), properties=props)
            for c, props in self.all_gameplay_tiles()
        ]
        return LevelData(
            version=2,
            metadata=self.metadata,
            grid=self.grid,
            layers=[dict(layer) for layer in self.layers],
            gameplay_layer=GameplayLayerData(tiles=tiles),
        )

    @classmethod
    def from_data(cls, data: LevelData) -> Level:
        level = cls(metadata=data.metadata, grid=data.grid, layers=data.layers)
        if data.gameplay_layer is not None:
            for placement in data.gameplay_layer.tiles:
                coord = GridCoord(placement.position.x, placement.position.y)
                if level.is_in_bounds(coord) and placement.properties.type != TileType.FLOOR.value:
                    level._gameplay[coord] = placement.properties
        return level

    @classmethod
    def create_default(
        cls,
        name: str = "Untitled Level",
        width: int = GRID_WIDTH,
        height: int = GRID_HEIGHT,
    ) -> Level:
        return cls(width=width, height=height, metadata=LevelMetadata(name=name))
