from enum import Enum
from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel

from packages.tiv_core.errors import CorruptedSession, IllegalTransition
from packages.tiv_core.logging import get_logger

logger = get_logger("tiv.session.state")


class SessionState(str, Enum):
    """
    Interview Session Status.
    PENDING waits for email verification, ACTIVE accepts answers,
    COMPLETED holds the final evaluation, LOCKED is an administrative stop.
    """
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    LOCKED = "locked"


ALLOWED_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.PENDING: frozenset({SessionState.ACTIVE, SessionState.LOCKED}),
    SessionState.ACTIVE: frozenset({SessionState.COMPLETED, SessionState.LOCKED}),
    SessionState.COMPLETED: frozenset({SessionState.LOCKED}),
    SessionState.LOCKED: frozenset(),
}


class TransitionCheck(BaseModel):
    from_state: SessionState
    to_state: SessionState
    allowed: bool
    reason: Optional[str] = None


def parse_state(value) -> SessionState:
    """Map a stored status string to a SessionState. Unknown values raise CorruptedSession."""
    if isinstance(value, SessionState):
        return value
    try:
        return SessionState(str(value).lower())
    except ValueError as e:
        logger.error(f"Unknown session status '{value}'")
        raise CorruptedSession("Session status is unreadable", detail={"status": str(value)}) from e


class SessionStateMachine:
    """
    Enforces legal session-status transitions.
    Capability queries are used as guards by the service and the API boundary.
    """

    def __init__(self, initial_state: SessionState = SessionState.PENDING):
        self._state = parse_state(initial_state)

    @property
    def state(self) -> SessionState:
        return self._state

    def can_transition(self, to: SessionState) -> TransitionCheck:
        to = parse_state(to)
        allowed = to in ALLOWED_TRANSITIONS[self._state]
        return TransitionCheck(
            from_state=self._state,
            to_state=to,
            allowed=allowed,
            reason=None if allowed else f"Cannot transition from {self._state.value} to {to.value}",
        )

    def transition(self, to: SessionState) -> SessionState:
        check = self.can_transition(to)
        if not check.allowed:
            raise IllegalTransition(check.from_state.value, check.to_state.value)
        logger.debug(f"Session state {self._state.value} -> {check.to_state.value}")
        self._state = check.to_state
        return self._state

    # State checks
    def is_pending(self) -> bool:
        return self._state == SessionState.PENDING

    def is_active(self) -> bool:
        return self._state == SessionState.ACTIVE

    def is_completed(self) -> bool:
        return self._state == SessionState.COMPLETED

    def is_locked(self) -> bool:
        return self._state == SessionState.LOCKED

    # Capabilities
    def can_start(self) -> bool:
        return self.is_pending()

    def can_answer(self) -> bool:
        return self.is_active()

    def can_complete(self) -> bool:
        return self.is_active()

    # Actions
    def start(self) -> SessionState:
        return self.transition(SessionState.ACTIVE)

    def complete(self) -> SessionState:
        return self.transition(SessionState.COMPLETED)

    def lock(self) -> SessionState:
        return self.transition(SessionState.LOCKED)


def validate_transition(from_state, to_state) -> bool:
    return SessionStateMachine(parse_state(from_state)).can_transition(parse_state(to_state)).allowed
