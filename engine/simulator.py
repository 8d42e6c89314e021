"""AISimulator: one ClopAgent walking to the exit, in auto or step mode."""

from __future__ import annotations

import logging
from typing import Callable

from config import DAMAGE_FLASH_SECONDS, SIMULATION_SPEEDS, TURN_DELAY_SECONDS
from engine.agent import ClopAgent
from engine.behaviors import TileBehaviorRegistry
from engine.events import EventEmitter
from engine.pathfinding import spawn_position
from models.actors import AgentConfig
from models.game_state import ActorEvent, GameState
from models.level import Level
from models.simulation import (
    SimulationMode,
    SimulationResult,
    SimulationResultType,
    SimulationState,
    SimulationStatus,
)
from models.tiles import GridCoord

logger = logging.getLogger(__name__)


class AISimulator:
    """Runs a single agent against a level and reports how it ended.

    In auto mode a turn is taken every ``turn_delay`` seconds of
    speed-scaled time while running. In step mode each ``advance_step``
    takes exactly one turn and leaves the simulation paused.
    """

    def __init__(
        self,
        level: Level,
        registry: TileBehaviorRegistry,
        agent_config: AgentConfig | None = None,
        mode: SimulationMode = SimulationMode.STEP,
        speed: int = 1,
        turn_delay: float = TURN_DELAY_SECONDS,
    ) -> None:
        self.registry = registry
        self.level = level
        self.agent_config = agent_config or AgentConfig()
        self.turn_delay = turn_delay
        self.events = EventEmitter()
        self.simulation = SimulationState(mode=mode, speed=speed)
        self.game_state = GameState()
        self.agent: ClopAgent | None = None
        self.result: SimulationResult | None = None
        self.turn_timer = 0.0
        self.damage_flash_timer = 0.0
        self.reset_simulation()

    def on(self, event: str, listener: Callable[[dict], None]) -> Callable[[], None]:
        return self.events.on(event, listener)

    def _update_simulation(self, **changes) -> None:
        self.simulation = self.simulation.model_copy(update=changes)

    # -- level --

    def set_level(self, level: Level) -> None:
        self.level = level
        self.reset_simulation()
        self.events.emit("level:changed", {"level": level})

    # -- controls --

    def play(self) -> None:
        if self.simulation.status == SimulationStatus.COMPLETE:
            self.reset_simulation()
        was_idle = self.simulation.status == SimulationStatus.IDLE
        self._update_simulation(status=SimulationStatus.RUNNING)
        self.turn_timer = 0.0
        self.events.emit("started" if was_idle else "resumed", {"state": self.simulation})

    def pause(self) -> None:
        if self.simulation.status == SimulationStatus.COMPLETE:
            return
        self._update_simulation(status=SimulationStatus.PAUSED)
        self.events.emit("paused", {"state": self.simulation})

    def reset_simulation(self) -> None:
        """New agent on the spawn tile, targeting the exit. Doors close."""
        if (
            self.agent is not None
            and self.simulation.turn_number > 0
            and self.simulation.status != SimulationStatus.COMPLETE
        ):
            self._complete(SimulationResultType.CANCELLED)

        self.game_state = GameState()
        spawn = spawn_position(self.level, self.game_state, self.registry)
        self.agent = ClopAgent(self.registry, self.agent_config)
        self.agent.spawn(spawn)
        exit_tile = self.level.find_exit_tile()
        if exit_tile is not None:
            self.agent.set_target(exit_tile)
        self._subscribe_agent(self.agent)

        self._update_simulation(status=SimulationStatus.IDLE, turn_number=0)
        self.result = None
        self.turn_timer = 0.0
        self.damage_flash_timer = 0.0
        logger.info("Simulation reset: spawn %s, exit %s", spawn, exit_tile)
        self.events.emit("reset", {"state": self.simulation})
        self.events.emit("agent:updated", {"agent": self.agent.state})

    def set_speed(self, speed: int) -> None:
        if speed not in SIMULATION_SPEEDS:
            raise ValueError(f"Speed must be one of {SIMULATION_SPEEDS}, got {speed}")
        self._update_simulation(speed=speed)
        self.events.emit("speed:changed", {"speed": speed})

    def set_mode(self, mode: SimulationMode) -> None:
        mode = SimulationMode(mode)
        self._update_simulation(mode=mode)
        self.events.emit("mode:changed", {"mode": mode})

    def set_show_path_preview(self, show: bool) -> None:
        self._update_simulation(show_path_preview=show)

    def advance_step(self) -> bool:
        """Take a single turn. Only valid in step mode.

        Returns:
            True if a turn was executed.
        """
        if self.simulation.mode != SimulationMode.STEP:
            return False
        if self.agent is None or not self.agent.can_act():
            return False
        if self.simulation.status == SimulationStatus.COMPLETE:
            return False
        self._execute_turn()
        return True

    # -- doors --

    def toggle_door(self, door_id: str) -> bool:
        return self.game_state.toggle_door(door_id)

    def is_door_open(self, door_id: str) -> bool:
        return self.game_state.is_door_open(door_id)

    def door_ids(self) -> list[str]:
        return self.level.door_ids()

    # -- loop --

    def update(self, dt: float) -> None:
        if self.damage_flash_timer > 0:
            self.damage_flash_timer = max(0.0, self.damage_flash_timer - dt)

        if self.agent is not None:
            self.agent.update_visuals(dt)

        if self.simulation.status != SimulationStatus.RUNNING:
            return
        if self.agent is None or not self.agent.can_act():
            return

        if self.simulation.mode == SimulationMode.AUTO:
            self.turn_timer += dt * self.simulation.speed
            if self.turn_timer >= self.turn_delay:
                self.turn_timer = 0.0
                self._execute_turn()

    def _execute_turn(self) -> None:
        agent = self.agent
        if agent is None or not agent.can_act():
            return

        self.events.emit("turn:started", {"turn_number": self.simulation.turn_number})
        moved = agent.take_turn(self.level, self.game_state)
        self._update_simulation(turn_number=self.simulation.turn_number + 1)
        self.events.emit("turn:completed", {"turn_number": self.simulation.turn_number})
        self.events.emit("agent:updated", {"agent": agent.state})

        if not moved and agent.can_act():
            if agent.is_at_target():
                # spawned on the exit, so no tile was ever entered
                self._complete(SimulationResultType.WON, "started on exit")
            elif agent.compute_path(self.level, self.game_state) is None:
                self._complete(SimulationResultType.STUCK, "no path to exit")

        if (
            self.simulation.mode == SimulationMode.STEP
            and self.simulation.status != SimulationStatus.COMPLETE
        ):
            self._update_simulation(status=SimulationStatus.PAUSED)
            self.events.emit("step:waiting", {"turn_number": self.simulation.turn_number})

    def _complete(self, result_type: SimulationResultType, cause: str | None = None) -> None:
        if self.simulation.status == SimulationStatus.COMPLETE:
            return
        self._update_simulation(status=SimulationStatus.COMPLETE)
        # a win or death is reported from inside the turn, before the turn counter moves
        agent_turns = self.agent.state.turns_taken if self.agent else 0
        self.result = SimulationResult(
            type=result_type,
            turns_taken=max(self.simulation.turn_number, agent_turns),
            final_hp=self.agent.state.hp if self.agent else 0,
            cause=cause,
        )
        logger.info(
            "Simulation complete: %s after %d turns (hp %d)",
            result_type.value, self.result.turns_taken, self.result.final_hp,
        )
        self.events.emit("complete", {"result": self.result})

    def _subscribe_agent(self, agent: ClopAgent) -> None:
        def on_hp(payload: dict) -> None:
            if payload.get("damage", 0) > 0:
                self.damage_flash_timer = DAMAGE_FLASH_SECONDS
            self.events.emit("agent:updated", {"agent": agent.state})

        agent.on(ActorEvent.HP_CHANGED, on_hp)
        agent.on(ActorEvent.STATE_CHANGED, lambda _: self.events.emit("agent:updated", {"agent": agent.state}))
        agent.on(ActorEvent.DIED, lambda p: self._complete(SimulationResultType.DIED, p.get("cause")))
        agent.on(ActorEvent.WON, lambda _: self._complete(SimulationResultType.WON))

    # -- views --

    def path_preview(self) -> list[GridCoord]:
        """Remaining path from the agent's current index, if preview is on."""
        if not self.simulation.show_path_preview or self.agent is None:
            return []
        state = self.agent.state
        if len(state.current_path) < 2:
            return []
        return list(state.current_path[state.path_index:])
