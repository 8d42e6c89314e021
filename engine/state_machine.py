"""Finite state machine guarding actor lifecycle transitions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from config import HURT_DURATION, SCARED_DURATION
from models.actors import ActorState, ActorStateType, TERMINAL_STATES

logger = logging.getLogger(__name__)

S = ActorStateType
ANY = "*"


@dataclass(frozen=True)
class Transition:
    """Allowed move from one or more states (or ANY) to ``to``."""
    source: ActorStateType | tuple[ActorStateType, ...] | str
    to: ActorStateType
    condition: Callable[[ActorState], bool] | None = None

    def matches(self, current: ActorStateType, to: ActorStateType) -> bool:
        if self.to != to:
            return False
        if self.source == ANY:
            return True
        if isinstance(self.source, tuple):
            return current in self.source
        return self.source == current


CLOP_TRANSITIONS: tuple[Transition, ...] = (
    Transition(S.IDLE, S.PLANNING),
    Transition(S.PLANNING, S.MOVING),
    Transition(S.PLANNING, S.IDLE),          # no path
    Transition(S.MOVING, S.IDLE),            # destination reached
    # re-plan mid-route (blocked, retargeted, forced move resolved)
    Transition((S.MOVING, S.HURT, S.SCARED), S.PLANNING),
    Transition(S.MOVING, S.HURT),
    Transition(S.IDLE, S.HURT),
    Transition(S.HURT, S.MOVING),
    Transition(S.HURT, S.IDLE),
    Transition(S.HURT, S.DEAD, condition=lambda a: a.hp <= 0),
    Transition(S.MOVING, S.SCARED),
    Transition(S.SCARED, S.MOVING),
    Transition(S.SCARED, S.IDLE),
    Transition((S.IDLE, S.MOVING, S.SCARED), S.WON),
    Transition(ANY, S.DEAD),
)

PLAYER_TRANSITIONS: tuple[Transition, ...] = (
    Transition(S.IDLE, S.MOVING),
    Transition(S.MOVING, S.IDLE),
    Transition((S.IDLE, S.MOVING), S.WON),
    Transition(ANY, S.DEAD),
)

TIMED_STATES: dict[ActorStateType, tuple[float, ActorStateType]] = {
    S.HURT: (HURT_DURATION, S.MOVING),
    S.SCARED: (SCARED_DURATION, S.MOVING),
}


class AgentStateMachine:
    """Tracks one actor's lifecycle state and how long it has been in it."""

    def __init__(
        self,
        initial: ActorStateType = S.IDLE,
        transitions: Iterable[Transition] = CLOP_TRANSITIONS,
        timed_states: dict[ActorStateType, tuple[float, ActorStateType]] | None = None,
    ) -> None:
        self._state = initial
        self._transitions = tuple(transitions)
        self._timed = TIMED_STATES if timed_states is None else timed_states
        self.state_time = 0.0

    @property
    def state(self) -> ActorStateType:
        return self._state

    def can_transition(self, to: ActorStateType, actor: ActorState | None = None) -> bool:
        for t in self._transitions:
            if not t.matches(self._state, to):
                continue
            if t.condition is not None and actor is not None and not t.condition(actor):
                continue
            return True
        return False

    def transition(self, to: ActorStateType, actor: ActorState | None = None) -> bool:
        """Move to ``to`` if allowed. Invalid requests are logged and ignored.

        Returns:
            True if the machine is now in ``to``.
        """
        if self._state == to:
            return True
        if not self.can_transition(to, actor):
            logger.warning("Invalid state transition: %s -> %s", self._state.value, to.value)
            return False
        self._state = to
        self.state_time = 0.0
        return True

    def force_state(self, state: ActorStateType) -> None:
        """Set the state without validation (reset/spawn only)."""
        self._state = state
        self.state_time = 0.0

    def update(self, dt: float) -> ActorStateType | None:
        """Advance the state timer.

        Returns:
            The state to move to if a timed state has expired, else None.
        """
        self.state_time += dt
        timed = self._timed.get(self._state)
        if timed is not None and self.state_time >= timed[0]:
            return timed[1]
        return None

    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    def is_moving(self) -> bool:
        return self._state in (S.MOVING, S.SCARED)

    def can_act(self) -> bool:
        return not self.is_terminal()

    def reset(self) -> None:
        self.force_state(S.IDLE)

    def clone(self) -> AgentStateMachine:
        copy = AgentStateMachine(self._state, self._transitions, self._timed)
        copy.state_time = self.state_time
        return copy
