from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from packages.tiv_session.dto import InterviewDefinition
from packages.tiv_session.state import SessionState

from .models import EvaluationRecord, InterviewRecord, SessionRecord

# Fields a session patch may touch
SESSION_PATCH_FIELDS = frozenset({
    "candidate_name",
    "status",
    "current_step",
    "responses",
    "engine_state",
    "final_evaluation",
    "resume_token",
    "verification_token",
    "verification_expires_at",
    "completed_at",
})


class InterviewStore(ABC):
    """
    Durable record of interview definitions, sessions and evaluations.
    Getters return None for unknown ids; the service layer maps that to NotFoundError.
    """

    # Interviews
    @abstractmethod
    def create_interview(self, definition: InterviewDefinition) -> str:
        pass

    @abstractmethod
    def get_interview(self, interview_id: str) -> Optional[InterviewRecord]:
        pass

    @abstractmethod
    def list_interviews(self) -> List[InterviewRecord]:
        """Newest first."""
        pass

    @abstractmethod
    def delete_interview(self, interview_id: str) -> bool:
        """
        Delete the interview with all of its sessions and evaluations.
        Returns False if the interview does not exist.
        """
        pass

    # Sessions
    @abstractmethod
    def create_session(self, session: SessionRecord) -> str:
        """Raises ConflictError if the interview already has a session for this email."""
        pass

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[SessionRecord]:
        pass

    @abstractmethod
    def update_session(
        self,
        session_id: str,
        patch: Dict[str, Any],
        expected_step: Optional[int] = None,
    ) -> SessionRecord:
        """
        Apply patch atomically.
        When expected_step is given the update only happens if the stored
        current_step still equals it; otherwise ConflictError is raised.
        """
        pass

    @abstractmethod
    def delete_session(self, session_id: str) -> bool:
        """Delete the session and its evaluation."""
        pass

    @abstractmethod
    def find_sessions(
        self,
        interview_id: Optional[str] = None,
        candidate_email: Optional[str] = None,
        status: Optional[SessionState] = None,
        resume_token: Optional[str] = None,
        verification_token: Optional[str] = None,
    ) -> List[SessionRecord]:
        """Sessions matching every given filter, newest first."""
        pass

    @abstractmethod
    def count_sessions(self, status: Optional[SessionState] = None, interview_id: Optional[str] = None) -> int:
        pass

    # Evaluations
    @abstractmethod
    def create_evaluation(self, evaluation: EvaluationRecord) -> str:
        """Raises ConflictError if the session already has an evaluation."""
        pass

    @abstractmethod
    def get_evaluation_by_session(self, session_id: str) -> Optional[EvaluationRecord]:
        pass

    @abstractmethod
    def list_evaluations(self) -> List[EvaluationRecord]:
        """Newest first."""
        pass


def check_patch(patch: Dict[str, Any]) -> None:
    unknown = set(patch) - SESSION_PATCH_FIELDS
    if unknown:
        raise ValueError(f"Unsupported session fields in patch: {sorted(unknown)}")
