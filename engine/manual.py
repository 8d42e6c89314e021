"""MovementTester: click-to-move player for trying out tile behaviors by hand."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from config import DAMAGE_FLASH_SECONDS, PLAYER_MAX_HP, SIMULATION_SPEEDS
from engine.behaviors import TileBehaviorRegistry
from engine.events import EventEmitter
from engine.movement import MovementEngine, begin_path
from engine.pathfinding import PathfindingOptions, find_path, is_walkable, spawn_position, tile_at
from engine.state_machine import PLAYER_TRANSITIONS, AgentStateMachine
from models.actors import ActorState, ActorStateType, create_player_state
from models.game_state import GameState
from models.level import Level
from models.tiles import GridCoord, TileProperties

logger = logging.getLogger(__name__)


class ClickMode(str, Enum):
    MOVE = "move"                   # Clicking sets the player's destination
    EDIT = "edit"                   # Clicking selects a tile for editing


# Click-to-move walks true tile costs, with no extra hazard penalty.
MANUAL_PATH_OPTIONS = PathfindingOptions(hazard_avoidance_weight=0)


class MovementTester:
    """Manual movement sandbox for a single player on one level."""

    def __init__(
        self,
        level: Level,
        registry: TileBehaviorRegistry,
        max_hp: int = PLAYER_MAX_HP,
    ) -> None:
        self.registry = registry
        self.max_hp = max_hp
        self.events = EventEmitter()
        self.level = level
        self.engine = MovementEngine(level, registry)
        self.click_mode = ClickMode.MOVE
        self.selected: GridCoord | None = None
        self.speed = 1
        self.damage_flash_timer = 0.0
        self.game_state = GameState()
        self.fsm = AgentStateMachine(ActorStateType.IDLE, PLAYER_TRANSITIONS, timed_states={})
        self.reset_player()

    def on(self, event: str, listener: Callable[[dict], None]) -> Callable[[], None]:
        return self.events.on(event, listener)

    @property
    def player(self) -> ActorState:
        return self.game_state.player

    def _set_player(self, player: ActorState) -> None:
        """Store a new player snapshot. A disallowed state change keeps the old state."""
        if player.state != self.fsm.state and not self.fsm.transition(player.state, player):
            player = player.model_copy(update={"state": self.fsm.state})
        self.game_state.player = player

    # -- level and editing --

    def set_level(self, level: Level) -> None:
        self.level = level
        self.engine.level = level
        self.selected = None
        self.reset_player()
        self.events.emit("selection:changed", {"coord": None, "properties": None})
        self.events.emit("level:changed", {"level": level})

    def tile_properties(self, coord: tuple[int, int]) -> TileProperties:
        return tile_at(self.level, GridCoord(*coord))

    def set_click_mode(self, mode: ClickMode) -> None:
        mode = ClickMode(mode)
        if mode == self.click_mode:
            return
        self.click_mode = mode
        self.events.emit("mode:changed", {"mode": mode})

    def click(self, coord: tuple[int, int]) -> None:
        """Handle a grid click according to the current click mode."""
        if not self.level.is_in_bounds(coord):
            return
        if self.click_mode == ClickMode.EDIT:
            self.select(coord)
        else:
            self.move_player_to(coord)

    def select(self, coord: tuple[int, int] | None) -> None:
        self.selected = GridCoord(*coord) if coord is not None else None
        props = self.tile_properties(self.selected) if self.selected else None
        self.events.emit("selection:changed", {"coord": self.selected, "properties": props})

    def set_selected_properties(self, properties: TileProperties) -> None:
        if self.selected is None:
            return
        self.set_tile_properties(self.selected, properties)
        self.events.emit("selection:changed", {"coord": self.selected, "properties": properties})

    def set_tile_properties(self, coord: tuple[int, int], properties: TileProperties) -> bool:
        return self.level.set_gameplay_tile(coord, properties)

    # -- step mode --

    def set_step_mode(self, enabled: bool) -> None:
        self.game_state.is_step_mode = enabled
        if not enabled:
            self.game_state.waiting_for_step = False
        self.events.emit("gamestate:changed", {"game_state": self.game_state})

    def advance_step(self) -> None:
        if self.game_state.is_step_mode and self.game_state.waiting_for_step:
            self.game_state.waiting_for_step = False

    def set_speed(self, speed: int) -> None:
        if speed not in SIMULATION_SPEEDS:
            raise ValueError(f"Speed must be one of {SIMULATION_SPEEDS}, got {speed}")
        self.speed = speed

    # -- doors --

    def toggle_door(self, door_id: str) -> bool:
        is_open = self.game_state.toggle_door(door_id)
        self.events.emit("door:toggled", {"door_id": door_id, "is_open": is_open})
        self.events.emit("gamestate:changed", {"game_state": self.game_state})
        return is_open

    def is_door_open(self, door_id: str) -> bool:
        return self.game_state.is_door_open(door_id)

    def door_ids(self) -> list[str]:
        return self.level.door_ids()

    # -- player --

    def reset_player(self) -> None:
        """Fresh player on the spawn tile. Doors close; step mode is kept."""
        self.game_state = GameState(is_step_mode=self.game_state.is_step_mode)
        spawn = spawn_position(self.level, self.game_state, self.registry)
        self.fsm.reset()
        self._set_player(create_player_state(spawn, self.max_hp))
        self.damage_flash_timer = 0.0
        logger.info("Player reset at %s", spawn)
        self.events.emit("player:hp:changed", {"hp": self.player.hp, "max_hp": self.player.max_hp})
        self.events.emit("player:state:changed", {"state": self.player.state})
        self.events.emit("gamestate:changed", {"game_state": self.game_state})

    def move_player_to(self, target: tuple[int, int]) -> bool:
        """Path the player to ``target``.

        Returns:
            True if a path was found and movement started.
        """
        if not self.level.is_in_bounds(target):
            return False
        player = self.player
        if player.is_terminal:
            return False
        if not is_walkable(target, self.level, self.game_state, self.registry):
            self.events.emit("path:updated", {"has_path": False})
            return False

        result = find_path(
            player.position, target, self.level, self.game_state, self.registry,
            MANUAL_PATH_OPTIONS,
        )
        if not result.found:
            self._set_player(player.model_copy(update={"current_path": ()}))
            self.events.emit("path:updated", {"has_path": False})
            return False

        self._set_player(begin_path(player, result.path))
        self.events.emit("path:updated", {"has_path": len(result.path) > 1})
        if self.player.state != player.state:
            self.events.emit("player:state:changed", {"state": self.player.state})
        return True

    def update(self, dt: float) -> None:
        if self.damage_flash_timer > 0:
            self.damage_flash_timer = max(0.0, self.damage_flash_timer - dt)

        player = self.player
        if player.is_terminal:
            return
        if self.game_state.is_step_mode and self.game_state.waiting_for_step:
            return

        result = self.engine.update(player, dt, self.game_state, speed=self.speed)
        self._set_player(result.actor)
        if result.arrived is None:
            if result.path_finished:
                self.events.emit("player:state:changed", {"state": self.player.state})
                self.events.emit("path:updated", {"has_path": False})
            return

        effect = result.effect
        if effect is not None and effect.damage:
            self.damage_flash_timer = DAMAGE_FLASH_SECONDS
            self.events.emit("player:hp:changed", {
                "hp": result.actor.hp, "max_hp": result.actor.max_hp, "damage": effect.damage,
            })
        if effect is not None and effect.died:
            self.events.emit("player:state:changed", {"state": ActorStateType.DEAD})
            self.events.emit("player:died", {"cause": effect.cause})
        elif effect is not None and effect.won:
            self.events.emit("player:state:changed", {"state": ActorStateType.WON})
            self.events.emit("player:won", {})
        elif result.path_finished:
            self.events.emit("player:state:changed", {"state": ActorStateType.IDLE})
            self.events.emit("path:updated", {"has_path": False})

        if self.game_state.is_step_mode and not result.actor.is_terminal:
            self.game_state.turn_number += 1
            self.game_state.waiting_for_step = True
            self.events.emit("step:completed", {"turn_number": self.game_state.turn_number})
            self.events.emit("gamestate:changed", {"game_state": self.game_state})

    def hp(self) -> tuple[int, int]:
        return self.player.hp, self.player.max_hp
