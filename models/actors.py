"""Actor state models shared by the player, the simulated clop and personality clops."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from config import CLOP_MAX_HP, CLOP_MOVE_SPEED, DEFAULT_HAZARD_AVOIDANCE_WEIGHT, PLAYER_MAX_HP
from models.tiles import GridCoord


class ActorStateType(str, Enum):
    """Lifecycle state of an actor."""
    IDLE = "idle"                   # At rest, no path or path exhausted
    PLANNING = "planning"           # Computing a path
    MOVING = "moving"               # Advancing along current_path
    SCARED = "scared"               # Timed visual state
    HURT = "hurt"                   # Timed damage flash
    DEAD = "dead"                   # Terminal
    WON = "won"                     # Terminal, reached an exit


TERMINAL_STATES = frozenset({ActorStateType.DEAD, ActorStateType.WON})


class AgentType(str, Enum):
    CLOP = "clop"
    ENEMY = "enemy"


class ActorState(BaseModel):
    """Immutable snapshot of one actor.

    Never mutated in place: every change goes through ``model_copy(update=...)``
    so previous snapshots stay valid for observers.
    """
    model_config = ConfigDict(frozen=True)

    position: GridCoord
    visual_position: tuple[float, float]
    hp: int
    max_hp: int
    spawn_position: GridCoord
    target_position: GridCoord | None = None
    current_path: tuple[GridCoord, ...] = ()
    path_index: int = 0
    segment_progress: float = 0.0
    state: ActorStateType = ActorStateType.IDLE
    turns_taken: int = 0
    pending_forced_move: GridCoord | None = None
    last_damage_source: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def is_alive(self) -> bool:
        return self.state != ActorStateType.DEAD

    @property
    def next_coord(self) -> GridCoord | None:
        """The coordinate the actor is heading to, if any."""
        nxt = self.path_index + 1
        if nxt < len(self.current_path):
            return self.current_path[nxt]
        return None

    @property
    def path_exhausted(self) -> bool:
        return self.path_index >= len(self.current_path) - 1


class AgentConfig(BaseModel):
    """Per-agent tuning for a ClopAgent."""
    id: str = "clop-1"
    agent_type: AgentType = AgentType.CLOP
    max_hp: int = CLOP_MAX_HP
    move_speed: float = CLOP_MOVE_SPEED
    hazard_avoidance_weight: float = DEFAULT_HAZARD_AVOIDANCE_WEIGHT


def create_actor_state(spawn: tuple[int, int], max_hp: int) -> ActorState:
    """Fresh idle actor standing on its spawn tile at full HP."""
    pos = GridCoord(*spawn)
    return ActorState(
        position=pos,
        visual_position=(float(pos.x), float(pos.y)),
        hp=max_hp,
        max_hp=max_hp,
        spawn_position=pos,
    )


def create_player_state(spawn: tuple[int, int], max_hp: int = PLAYER_MAX_HP) -> ActorState:
    return create_actor_state(spawn, max_hp)


def create_agent_state(spawn: tuple[int, int], config: AgentConfig) -> ActorState:
    return create_actor_state(spawn, config.max_hp)
