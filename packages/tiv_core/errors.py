from __future__ import annotations

from typing import Any


class TIVError(Exception):
    """Base exception for the TIV project.

    Every custom exception derives from this class so the HTTP boundary can
    render them uniformly.

    Attributes:
        message: human readable message.
        code: stable error identifier (e.g. ``SESSION_NOT_ACTIVE``).
        status_code: HTTP status the boundary maps this error to.
        detail: optional structured debugging information.
    """

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_SERVER_ERROR",
        status_code: int = 500,
        detail: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail


class ConfigurationError(TIVError):
    """Raised when settings fail to load or validate."""

    def __init__(self, message: str, detail: Any | None = None) -> None:
        super().__init__(message=message, code="CONFIGURATION_ERROR", status_code=500, detail=detail)


class ValidationError(TIVError):
    """Bad input shape or content. Never retried."""

    def __init__(self, message: str = "Invalid input", detail: Any | None = None) -> None:
        super().__init__(message=message, code="VALIDATION_ERROR", status_code=400, detail=detail)


class IllegalTransition(TIVError):
    """A session state change that is not in the transition table."""

    def __init__(self, from_state: str, to_state: str, message: str | None = None, code: str = "ILLEGAL_TRANSITION") -> None:
        self.from_state = str(from_state)
        self.to_state = str(to_state)
        super().__init__(
            message=message or f"Cannot transition from {self.from_state} to {self.to_state}",
            code=code,
            status_code=409,
            detail={"from": self.from_state, "to": self.to_state},
        )


class SessionNotActive(IllegalTransition):
    """A candidate action was attempted on a session that is not active."""

    def __init__(self, session_id: str, state: str, action: str = "answer") -> None:
        self.session_id = session_id
        super().__init__(
            from_state=state,
            to_state="active",
            message=f"Session {session_id} is {state}; cannot {action}",
            code="SESSION_NOT_ACTIVE",
        )


class NotFoundError(TIVError):
    """Unknown interview, session or evaluation id."""

    def __init__(self, message: str = "Resource not found", detail: Any | None = None) -> None:
        super().__init__(message=message, code="NOT_FOUND", status_code=404, detail=detail)


class Unauthorized(TIVError):
    """The admin gate rejected the caller."""

    def __init__(self, message: str = "Admin access required", detail: Any | None = None) -> None:
        super().__init__(message=message, code="UNAUTHORIZED", status_code=401, detail=detail)


class ConflictError(TIVError):
    """Duplicate session, stale conditional update or second evaluation."""

    def __init__(self, message: str = "Conflict occurred", detail: Any | None = None) -> None:
        super().__init__(message=message, code="CONFLICT", status_code=409, detail=detail)


class CapacityExceeded(TIVError):
    """The active-session cap has been reached."""

    def __init__(self, active: int, limit: int) -> None:
        super().__init__(
            message="Maximum interview capacity reached. Please try later.",
            code="CAPACITY_EXCEEDED",
            status_code=429,
            detail={"active": active, "limit": limit},
        )


class CorruptedSession(TIVError):
    """Persisted engine state is missing or unreadable."""

    def __init__(self, message: str = "Interview session is corrupted", detail: Any | None = None) -> None:
        super().__init__(message=message, code="CORRUPTED_SESSION", status_code=500, detail=detail)


class NoActiveQuestion(CorruptedSession):
    """The engine was asked to record an answer with no question outstanding."""

    def __init__(self) -> None:
        super().__init__(message="No active question to answer")
        self.code = "NO_ACTIVE_QUESTION"


class NotComplete(TIVError):
    """Evaluation requested before the last answer was recorded."""

    def __init__(self, current_step: int, max_questions: int) -> None:
        super().__init__(
            message="Interview not complete",
            code="NOT_COMPLETE",
            status_code=409,
            detail={"current_step": current_step, "max_questions": max_questions},
        )


class QuestionGenerationError(TIVError):
    """The question provider produced no usable question."""

    def __init__(self, message: str = "Failed to generate interview question. Please try again.", detail: Any | None = None) -> None:
        super().__init__(message=message, code="QUESTION_GENERATION_FAILED", status_code=503, detail=detail)


class EvaluationDegraded(TIVError):
    """Evaluation completed through a fallback path.

    Not a hard failure: the engine records it on the evaluation and logs it,
    it never reaches the caller as an exception.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(message=f"Evaluation degraded: {reason}", code="EVALUATION_DEGRADED", status_code=200)
        self.reason = reason
