"""Segment-by-segment movement along a computed path.

Every helper takes an ``ActorState`` and returns a new one; nothing here
mutates a snapshot in place.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable

from config import BASE_STEP_DURATION
from engine.behaviors import TileBehaviorRegistry, context_for
from engine.pathfinding import is_walkable, movement_cost, tile_at
from models.actors import ActorState, ActorStateType
from models.game_state import GameState
from models.level import Level
from models.tiles import GridCoord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnterResult:
    """What entering a tile did to an actor."""
    actor: ActorState
    coord: GridCoord
    cause: str
    damage: int = 0
    died: bool = False
    won: bool = False


@dataclass(frozen=True)
class MovementUpdate:
    """Result of advancing an actor by one time step."""
    actor: ActorState
    arrived: GridCoord | None = None
    effect: EnterResult | None = None
    forced: bool = False
    path_finished: bool = False


def begin_path(actor: ActorState, path: list[GridCoord] | tuple[GridCoord, ...]) -> ActorState:
    """Start following ``path`` (path[0] is the current position)."""
    path = tuple(GridCoord(*c) for c in path)
    return actor.model_copy(update={
        "current_path": path,
        "path_index": 0,
        "segment_progress": 0.0,
        "state": ActorStateType.MOVING if len(path) >= 2 else ActorStateType.IDLE,
    })


def clear_path(actor: ActorState, state: ActorStateType | None = None) -> ActorState:
    update: dict = {
        "current_path": (actor.position,),
        "path_index": 0,
        "segment_progress": 0.0,
    }
    if state is not None:
        update["state"] = state
    return actor.model_copy(update=update)


def arrive(actor: ActorState, coord: GridCoord) -> ActorState:
    """Snap onto the next path tile."""
    return actor.model_copy(update={
        "position": coord,
        "visual_position": (float(coord.x), float(coord.y)),
        "path_index": actor.path_index + 1,
        "segment_progress": 0.0,
        "turns_taken": actor.turns_taken + 1,
    })


def apply_tile_effect(
    actor: ActorState,
    coord: GridCoord,
    level: Level,
    game_state: GameState,
    registry: TileBehaviorRegistry,
) -> EnterResult:
    """Run the entered tile's ``on_enter`` once and describe the outcome."""
    tile = tile_at(level, coord)
    behavior = registry.get_for_tile(tile)
    after = behavior.on_enter(context_for(coord, tile, game_state, actor=actor)) or actor
    damage = max(0, actor.hp - after.hp)
    if damage:
        after = after.model_copy(update={"last_damage_source": tile.type})
    return EnterResult(
        actor=after,
        coord=coord,
        cause=tile.type,
        damage=damage,
        died=after.state == ActorStateType.DEAD and actor.state != ActorStateType.DEAD,
        won=after.state == ActorStateType.WON and actor.state != ActorStateType.WON,
    )


def resolve_forced_move(
    actor: ActorState,
    level: Level,
    game_state: GameState,
    registry: TileBehaviorRegistry,
    is_blocked: Callable[[GridCoord], bool] | None = None,
) -> tuple[ActorState, bool]:
    """Consume ``pending_forced_move``.

    A reachable target becomes a one-segment path from the current
    position. An off-grid, unwalkable or blocked target is dropped.

    Returns:
        (new actor, whether a forced segment was spliced in)
    """
    target = actor.pending_forced_move
    actor = actor.model_copy(update={"pending_forced_move": None})
    if target is None:
        return actor, False
    if not is_walkable(target, level, game_state, registry) or (
        is_blocked is not None and is_blocked(target)
    ):
        logger.debug("Dropping forced move %s -> %s", actor.position, target)
        return actor, False
    return begin_path(actor, [actor.position, target]), True


class MovementEngine:
    """Advances actors along their paths for one level."""

    def __init__(
        self,
        level: Level,
        registry: TileBehaviorRegistry,
        base_step_duration: float = BASE_STEP_DURATION,
    ) -> None:
        self.level = level
        self.registry = registry
        self.base_step_duration = base_step_duration

    def step_duration(self, coord: GridCoord, game_state: GameState, scale: float = 1.0) -> float:
        """Seconds to enter ``coord`` at speed x1: base x tile cost x scale."""
        cost = movement_cost(coord, self.level, game_state, self.registry)
        if not math.isfinite(cost) or cost <= 0:
            cost = 1.0
        return self.base_step_duration * cost * scale

    def update(
        self,
        actor: ActorState,
        dt: float,
        game_state: GameState,
        speed: float = 1.0,
        duration_scale: float = 1.0,
        is_blocked: Callable[[GridCoord], bool] | None = None,
    ) -> MovementUpdate:
        """Advance ``actor`` by ``dt`` seconds of game time.

        On completing a segment the actor snaps to the next tile and that
        tile's enter effect is applied exactly once. A queued forced move
        then replaces the remaining path unless the actor died or won.
        """
        if actor.is_terminal or actor.state != ActorStateType.MOVING:
            return MovementUpdate(actor)

        nxt = actor.next_coord
        if nxt is None:
            return MovementUpdate(clear_path(actor, ActorStateType.IDLE), path_finished=True)

        duration = self.step_duration(nxt, game_state, duration_scale)
        progress = actor.segment_progress + (dt * speed) / duration

        if progress < 1.0:
            cur = actor.current_path[actor.path_index]
            visual = (cur.x + (nxt.x - cur.x) * progress, cur.y + (nxt.y - cur.y) * progress)
            return MovementUpdate(
                actor.model_copy(update={"segment_progress": progress, "visual_position": visual}),
            )

        actor = arrive(actor, nxt)
        effect = apply_tile_effect(actor, nxt, self.level, game_state, self.registry)
        actor = effect.actor

        if actor.is_terminal:
            actor = actor.model_copy(update={
                "current_path": (), "path_index": 0, "pending_forced_move": None,
            })
            return MovementUpdate(actor, arrived=nxt, effect=effect, path_finished=True)

        forced = False
        if actor.pending_forced_move is not None:
            actor, forced = resolve_forced_move(
                actor, self.level, game_state, self.registry, is_blocked,
            )

        finished = not forced and actor.path_exhausted
        if finished:
            actor = clear_path(actor, ActorStateType.IDLE)
        return MovementUpdate(
            actor, arrived=nxt, effect=effect, forced=forced, path_finished=finished,
        )
