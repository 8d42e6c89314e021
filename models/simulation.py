"""Simulation status, result and personality snapshot models."""

from enum import Enum

from pydantic import BaseModel

from models.tiles import GridCoord


class SimulationMode(str, Enum):
    AUTO = "auto"                   # Timer-driven turns
    STEP = "step"                   # One turn per explicit advance


class SimulationStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETE = "complete"


class SimulationState(BaseModel):
    """Playback state of the AI simulator."""
    mode: SimulationMode = SimulationMode.STEP
    speed: int = 1
    status: SimulationStatus = SimulationStatus.IDLE
    turn_number: int = 0
    show_path_preview: bool = True


class SimulationResultType(str, Enum):
    WON = "won"
    DIED = "died"
    STUCK = "stuck"
    CANCELLED = "cancelled"


class SimulationResult(BaseModel):
    """How a simulation run ended."""
    type: SimulationResultType
    turns_taken: int
    final_hp: int
    cause: str | None = None


class Personality(str, Enum):
    """Decision style of a personality-tester clop."""
    CURIOUS = "curious"             # Explores unvisited tiles before the exit
    COWARD = "coward"               # Avoids hazards at almost any cost
    HYPERACTIVE = "hyperactive"     # Fast, randomly detours


PERSONALITY_ORDER = (Personality.CURIOUS, Personality.COWARD, Personality.HYPERACTIVE)


class ClopStatus(str, Enum):
    ACTIVE = "active"
    FINISHED = "finished"           # Reached an exit
    STUCK = "stuck"                 # No path this turn, retried later
    DEAD = "dead"


class ClopSnapshot(BaseModel):
    """Read-only view of one personality clop for the UI/API."""
    id: int
    personality: Personality
    position: GridCoord
    spawn: GridCoord
    target: GridCoord | None = None
    status: ClopStatus
    hp: int
    path_length: int
    path_has_hazard: bool
    blocked: bool
