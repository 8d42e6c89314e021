"""Gameplay tile behaviors and the registry that resolves them by tag."""

from __future__ import annotations

import math
from dataclasses import dataclass

from models.actors import ActorState, ActorStateType
from models.game_state import GameState
from models.tiles import DIRECTION_VECTORS, FLOOR, GridCoord, TileProperties, TileType


@dataclass(frozen=True)
class BehaviorContext:
    """Everything a behavior may look at. Behaviors hold no state of their own."""
    actor: ActorState | None
    tile: TileProperties
    coord: GridCoord
    game_state: GameState


class TileBehavior:
    """Default behavior: walkable, cost 1, no effects."""

    tile_type: TileType = TileType.FLOOR
    overlay_color: str = "rgba(0, 0, 0, 0)"
    icon: str | None = None

    def is_walkable(self, ctx: BehaviorContext) -> bool:
        return True

    def movement_cost(self, ctx: BehaviorContext) -> float:
        return 1.0

    def on_enter(self, ctx: BehaviorContext) -> ActorState | None:
        return ctx.actor

    def on_stay(self, ctx: BehaviorContext) -> ActorState | None:
        return ctx.actor

    def on_exit(self, ctx: BehaviorContext) -> ActorState | None:
        return ctx.actor


class FloorBehavior(TileBehavior):
    tile_type = TileType.FLOOR


class BlockerBehavior(TileBehavior):
    tile_type = TileType.BLOCKER
    overlay_color = "rgba(80, 80, 80, 0.8)"

    def is_walkable(self, ctx: BehaviorContext) -> bool:
        return False

    def movement_cost(self, ctx: BehaviorContext) -> float:
        return math.inf


class SlowBehavior(TileBehavior):
    tile_type = TileType.SLOW
    overlay_color = "rgba(139, 90, 43, 0.5)"

    def movement_cost(self, ctx: BehaviorContext) -> float:
        return 2.5


class HoleBehavior(TileBehavior):
    """Enterable, but entering kills."""
    tile_type = TileType.HOLE
    overlay_color = "rgba(0, 0, 0, 0.8)"
    icon = "hole"

    def on_enter(self, ctx: BehaviorContext) -> ActorState | None:
        if ctx.actor is None:
            return None
        return ctx.actor.model_copy(update={"hp": 0, "state": ActorStateType.DEAD})


class ConveyorBehavior(TileBehavior):
    """Queues a forced move one tile in the belt's direction."""
    tile_type = TileType.CONVEYOR
    overlay_color = "rgba(100, 149, 237, 0.5)"
    icon = "arrow"

    def on_enter(self, ctx: BehaviorContext) -> ActorState | None:
        if ctx.actor is None:
            return None
        dx, dy = DIRECTION_VECTORS[ctx.tile.direction]
        return ctx.actor.model_copy(update={"pending_forced_move": ctx.coord.offset(dx, dy)})


class HazardBehavior(TileBehavior):
    tile_type = TileType.HAZARD
    overlay_color = "rgba(255, 100, 50, 0.6)"
    icon = "flame"

    def on_enter(self, ctx: BehaviorContext) -> ActorState | None:
        if ctx.actor is None:
            return None
        hp = max(0, ctx.actor.hp - ctx.tile.damage)
        update: dict = {"hp": hp}
        if hp <= 0:
            update["state"] = ActorStateType.DEAD
        return ctx.actor.model_copy(update=update)


class DoorBehavior(TileBehavior):
    """Passable only while its linked id is in the open-door set."""
    tile_type = TileType.DOOR
    overlay_color = "rgba(139, 69, 19, 0.7)"
    icon = "door"

    def is_walkable(self, ctx: BehaviorContext) -> bool:
        return ctx.game_state.is_door_open(ctx.tile.linked_id)

    def movement_cost(self, ctx: BehaviorContext) -> float:
        return 1.0 if self.is_walkable(ctx) else math.inf


class ExitBehavior(TileBehavior):
    tile_type = TileType.EXIT
    overlay_color = "rgba(50, 205, 50, 0.6)"
    icon = "exit"

    def on_enter(self, ctx: BehaviorContext) -> ActorState | None:
        if ctx.actor is None:
            return None
        return ctx.actor.model_copy(update={"state": ActorStateType.WON})


class SpawnBehavior(TileBehavior):
    tile_type = TileType.SPAWN
    overlay_color = "rgba(255, 215, 0, 0.5)"
    icon = "spawn"


class TileBehaviorRegistry:
    """Maps tile tags to behaviors. Unknown or missing tags resolve to floor.

    Built once by whoever composes a simulation and shared read-only;
    ``register`` stays available for new tile types.
    """

    def __init__(self, behaviors: list[TileBehavior] | None = None) -> None:
        self._behaviors: dict[TileType, TileBehavior] = {}
        self._default = FloorBehavior()
        self.register(self._default)
        for behavior in behaviors or []:
            self.register(behavior)

    def register(self, behavior: TileBehavior) -> None:
        self._behaviors[behavior.tile_type] = behavior
        if behavior.tile_type == TileType.FLOOR:
            self._default = behavior

    def get(self, tag: str | TileType | None) -> TileBehavior:
        """Behavior for a tag. Never fails."""
        if tag is None:
            return self._default
        try:
            key = TileType(tag)
        except ValueError:
            return self._default
        return self._behaviors.get(key, self._default)

    def get_for_tile(self, tile: TileProperties | None) -> TileBehavior:
        if tile is None:
            return self._default
        return self.get(tile.type)

    def types(self) -> list[TileType]:
        return list(self._behaviors)


def default_registry() -> TileBehaviorRegistry:
    """A registry with the nine built-in behaviors."""
    return TileBehaviorRegistry([
        FloorBehavior(),
        BlockerBehavior(),
        SlowBehavior(),
        HoleBehavior(),
        ConveyorBehavior(),
        HazardBehavior(),
        DoorBehavior(),
        ExitBehavior(),
        SpawnBehavior(),
    ])


def context_for(
    coord: GridCoord,
    tile: TileProperties | None,
    game_state: GameState,
    actor: ActorState | None = None,
) -> BehaviorContext:
    """Build a context, treating a missing tile as floor."""
    return BehaviorContext(
        actor=actor if actor is not None else game_state.player,
        tile=tile if tile is not None else FLOOR,
        coord=coord,
        game_state=game_state,
    )
