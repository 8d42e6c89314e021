"""Per-session game state and actor event names for the Clop Sandbox."""

from enum import Enum

from pydantic import BaseModel

from models.actors import ActorState


class ActorEvent(str, Enum):
    """Events emitted by actors and the turn engine."""
    STATE_CHANGED = "state:changed"
    HP_CHANGED = "hp:changed"
    POSITION_CHANGED = "position:changed"
    PATH_COMPUTED = "path:computed"
    PATH_CLEARED = "path:cleared"
    DIED = "died"
    WON = "won"
    TURN_COMPLETED = "turn:completed"


class GameState(BaseModel):
    """Mutable session aggregate read by behaviors and the pathfinder.

    ``open_doors`` is only changed by explicit toggle calls between
    updates, never during a path search.
    """
    open_doors: set[str] = set()
    turn_number: int = 0
    is_step_mode: bool = False
    waiting_for_step: bool = False
    player: ActorState | None = None

    def is_door_open(self, door_id: str) -> bool:
        return door_id in self.open_doors

    def toggle_door(self, door_id: str) -> bool:
        """Flip a door open/closed. Returns the new open state."""
        if door_id in self.open_doors:
            self.open_doors.discard(door_id)
            return False
        self.open_doors.add(door_id)
        return True
