"""ClopAgent: an autonomous clop that walks to the exit one turn at a time."""

from __future__ import annotations

import logging
import math
from typing import Callable

from engine.behaviors import TileBehaviorRegistry
from engine.events import EventEmitter
from engine.movement import apply_tile_effect, resolve_forced_move
from engine.pathfinding import AgentPathfinder
from engine.state_machine import AgentStateMachine
from models.actors import ActorState, ActorStateType, AgentConfig, create_agent_state
from models.game_state import ActorEvent, GameState
from models.level import Level
from models.tiles import GridCoord

logger = logging.getLogger(__name__)


class ClopAgent:
    """One clop driven by discrete turns.

    ``take_turn`` moves the logical position a whole tile;
    ``update_visuals`` eases the rendered position after it and runs the
    timed hurt/scared states.
    """

    def __init__(self, registry: TileBehaviorRegistry, config: AgentConfig | None = None) -> None:
        self.config = config or AgentConfig()
        self.registry = registry
        self.pathfinder = AgentPathfinder(registry, self.config.hazard_avoidance_weight)
        self.state_machine = AgentStateMachine(ActorStateType.IDLE)
        self.events = EventEmitter()
        self._state = create_agent_state((0, 0), self.config)

    @property
    def id(self) -> str:
        return self.config.id

    @property
    def state(self) -> ActorState:
        return self._state

    def on(self, event: ActorEvent | str, listener: Callable[[dict], None]) -> Callable[[], None]:
        return self.events.on(event, listener)

    # -- lifecycle --

    def spawn(self, position: tuple[int, int]) -> None:
        self._state = create_agent_state(position, self.config)
        self.state_machine.force_state(ActorStateType.IDLE)
        self.events.emit(ActorEvent.STATE_CHANGED, {
            "agent_id": self.id, "old_state": ActorStateType.IDLE, "new_state": ActorStateType.IDLE,
        })

    def reset(self) -> None:
        old = self._state.state
        self._state = create_agent_state(self._state.spawn_position, self.config)
        self.state_machine.force_state(ActorStateType.IDLE)
        self.events.emit(ActorEvent.STATE_CHANGED, {
            "agent_id": self.id, "old_state": old, "new_state": ActorStateType.IDLE,
        })
        self.events.emit(ActorEvent.PATH_CLEARED, {"agent_id": self.id})

    # -- targeting --

    def set_target(self, position: tuple[int, int] | None) -> None:
        target = GridCoord(*position) if position is not None else None
        self._state = self._state.model_copy(update={"target_position": target})

    def is_at_target(self) -> bool:
        target = self._state.target_position
        return target is not None and self._state.position == target

    def compute_path(self, level: Level, game_state: GameState) -> list[GridCoord] | None:
        """Search from the current position to the target and adopt the result."""
        target = self._state.target_position
        if target is None:
            return None

        result = self.pathfinder.find_path(self._state.position, target, level, game_state)
        if result.found:
            self._state = self._state.model_copy(update={
                "current_path": tuple(result.path),
                "path_index": 0,
                "segment_progress": 0.0,
            })
            self.events.emit(ActorEvent.PATH_COMPUTED, {
                "agent_id": self.id, "path": list(result.path), "cost": result.cost,
            })
            return list(result.path)

        self._state = self._state.model_copy(update={"current_path": (), "path_index": 0})
        self.events.emit(ActorEvent.PATH_CLEARED, {"agent_id": self.id})
        return None

    # -- turns --

    def take_turn(self, level: Level, game_state: GameState) -> bool:
        """Advance one tile toward the target.

        Returns:
            True if the agent moved this turn.
        """
        if not self.can_act():
            return False

        if self._state.target_position is None:
            exit_tile = level.find_exit_tile()
            if exit_tile is None:
                return False
            self.set_target(exit_tile)

        if self._state.path_exhausted:
            self._transition(ActorStateType.PLANNING)
            path = self.compute_path(level, game_state)
            if not path or len(path) < 2:
                logger.debug("%s has no path to %s", self.id, self._state.target_position)
                self._transition(ActorStateType.IDLE)
                return False

        nxt = self._state.next_coord
        if nxt is None:
            self._transition(ActorStateType.IDLE)
            return False

        self._transition(ActorStateType.MOVING)
        old_position = self._state.position
        self._state = self._state.model_copy(update={
            "position": nxt,
            "path_index": self._state.path_index + 1,
            "segment_progress": 0.0,
            "turns_taken": self._state.turns_taken + 1,
        })
        self.events.emit(ActorEvent.POSITION_CHANGED, {
            "agent_id": self.id, "from": old_position, "to": nxt,
        })

        self._apply_tile_effect(nxt, level, game_state)

        if not self.state_machine.is_terminal():
            forced = False
            if self._state.pending_forced_move is not None:
                moved, forced = resolve_forced_move(self._state, level, game_state, self.registry)
                # begin_path sets a lifecycle state; the FSM stays authoritative
                self._state = moved.model_copy(update={"state": self.state_machine.state})
            if not forced and self._state.path_exhausted:
                self._transition(ActorStateType.IDLE)
                self._state = self._state.model_copy(update={"current_path": (), "path_index": 0})
                self.events.emit(ActorEvent.PATH_CLEARED, {"agent_id": self.id})

        self.events.emit(ActorEvent.TURN_COMPLETED, {
            "agent_id": self.id, "turn_number": self._state.turns_taken,
        })
        return True

    def _apply_tile_effect(self, coord: GridCoord, level: Level, game_state: GameState) -> None:
        effect = apply_tile_effect(self._state, coord, level, game_state, self.registry)
        if effect.actor.pending_forced_move is not None:
            self._state = self._state.model_copy(update={
                "pending_forced_move": effect.actor.pending_forced_move,
            })
        if effect.damage:
            self.take_damage(effect.damage, effect.cause)
        if effect.won:
            if self._transition(ActorStateType.WON):
                self.events.emit(ActorEvent.WON, {"agent_id": self.id})
        if effect.died and self._state.state != ActorStateType.DEAD:
            self._transition(ActorStateType.DEAD)
            self.events.emit(ActorEvent.DIED, {"agent_id": self.id, "cause": effect.cause})

    def take_damage(self, amount: int, source: str) -> None:
        """Lose HP. Reaching 0 kills the agent, anything else hurts it."""
        old_hp = self._state.hp
        new_hp = max(0, old_hp - amount)
        self._state = self._state.model_copy(update={"hp": new_hp, "last_damage_source": source})
        self.events.emit(ActorEvent.HP_CHANGED, {
            "agent_id": self.id, "old_hp": old_hp, "new_hp": new_hp,
            "damage": amount, "source": source,
        })
        if new_hp <= 0:
            self._transition(ActorStateType.DEAD)
            self.events.emit(ActorEvent.DIED, {"agent_id": self.id, "cause": source})
        else:
            self._transition(ActorStateType.HURT)

    # -- per-frame --

    def update_visuals(self, dt: float) -> None:
        nxt = self.state_machine.update(dt)
        if nxt is not None:
            if nxt == ActorStateType.MOVING and self._state.path_exhausted:
                nxt = ActorStateType.IDLE
            self._transition(nxt)

        tx, ty = self._state.position
        cx, cy = self._state.visual_position
        dx, dy = tx - cx, ty - cy
        dist = math.hypot(dx, dy)
        if dist > 0.01:
            step = min(self.config.move_speed * dt, dist)
            ratio = step / dist
            self._state = self._state.model_copy(update={
                "visual_position": (cx + dx * ratio, cy + dy * ratio),
                "segment_progress": min(1.0, self._state.segment_progress + step),
            })
        else:
            self._state = self._state.model_copy(update={
                "visual_position": (float(tx), float(ty)),
                "segment_progress": 1.0,
            })

    def _transition(self, to: ActorStateType) -> bool:
        old = self._state.state
        if old == to:
            return True
        if not self.state_machine.transition(to, self._state):
            return False
        self._state = self._state.model_copy(update={"state": to})
        self.events.emit(ActorEvent.STATE_CHANGED, {
            "agent_id": self.id, "old_state": old, "new_state": to,
        })
        return True

    def can_act(self) -> bool:
        return self.state_machine.can_act()

    def status(self) -> str:
        s = self._state
        return (
            f"[{self.id}] {s.state.value} HP:{s.hp}/{s.max_hp} "
            f"Pos:({s.position.x},{s.position.y}) Turn:{s.turns_taken}"
        )
