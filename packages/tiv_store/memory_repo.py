import threading
from typing import Any, Dict, List, Optional

from packages.tiv_core.errors import ConflictError, NotFoundError
from packages.tiv_core.logging import get_logger
from packages.tiv_core.time import utc_now
from packages.tiv_session.dto import InterviewDefinition
from packages.tiv_session.state import SessionState

from .models import EvaluationRecord, InterviewRecord, SessionRecord
from .repository import InterviewStore, check_patch

logger = get_logger("tiv.store.memory")


class MemoryInterviewStore(InterviewStore):
    """
    In-Memory implementation of InterviewStore.
    Used for local development and testing. Records are copied on the way
    in and out so callers never share mutable state with the store.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._interviews: Dict[str, InterviewRecord] = {}
        self._sessions: Dict[str, SessionRecord] = {}
        self._evaluations: Dict[str, EvaluationRecord] = {}

    # Interviews
    def create_interview(self, definition: InterviewDefinition) -> str:
        record = InterviewRecord(definition=definition)
        with self._lock:
            self._interviews[record.id] = record
        return record.id

    def get_interview(self, interview_id: str) -> Optional[InterviewRecord]:
        with self._lock:
            record = self._interviews.get(interview_id)
            return record.model_copy(deep=True) if record else None

    def list_interviews(self) -> List[InterviewRecord]:
        with self._lock:
            records = [r.model_copy(deep=True) for r in self._interviews.values()]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def delete_interview(self, interview_id: str) -> bool:
        with self._lock:
            if interview_id not in self._interviews:
                return False
            session_ids = [s.id for s in self._sessions.values() if s.interview_id == interview_id]
            for sid in session_ids:
                self._sessions.pop(sid, None)
            self._evaluations = {
                k: v for k, v in self._evaluations.items()
                if v.session_id not in session_ids and v.interview_id != interview_id
            }
            del self._interviews[interview_id]
        logger.info(f"Deleted interview {interview_id} with {len(session_ids)} sessions")
        return True

    # Sessions
    def create_session(self, session: SessionRecord) -> str:
        with self._lock:
            for existing in self._sessions.values():
                if (
                    existing.interview_id == session.interview_id
                    and existing.candidate_email == session.candidate_email
                ):
                    raise ConflictError(
                        "A session already exists for this email",
                        detail={"session_id": existing.id, "status": existing.status.value},
                    )
            self._sessions[session.id] = session.model_copy(deep=True)
        return session.id

    def get_session(self, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            record = self._sessions.get(session_id)
            return record.model_copy(deep=True) if record else None

    def update_session(
        self,
        session_id: str,
        patch: Dict[str, Any],
        expected_step: Optional[int] = None,
    ) -> SessionRecord:
        check_patch(patch)
        with self._lock:
            current = self._sessions.get(session_id)
            if current is None:
                raise NotFoundError(f"Session {session_id} not found")
            if expected_step is not None and current.current_step != expected_step:
                raise ConflictError(
                    "Session was modified concurrently",
                    detail={"expected_step": expected_step, "current_step": current.current_step},
                )
            data = current.model_dump()
            data.update(patch)
            data["updated_at"] = utc_now()
            updated = SessionRecord.model_validate(data)
            self._sessions[session_id] = updated
            return updated.model_copy(deep=True)

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                return False
            self._evaluations = {
                k: v for k, v in self._evaluations.items() if v.session_id != session_id
            }
        return True

    def find_sessions(
        self,
        interview_id: Optional[str] = None,
        candidate_email: Optional[str] = None,
        status: Optional[SessionState] = None,
        resume_token: Optional[str] = None,
        verification_token: Optional[str] = None,
    ) -> List[SessionRecord]:
        with self._lock:
            results = []
            for s in self._sessions.values():
                if interview_id is not None and s.interview_id != interview_id:
                    continue
                if candidate_email is not None and s.candidate_email != candidate_email:
                    continue
                if status is not None and s.status != status:
                    continue
                if resume_token is not None and s.resume_token != resume_token:
                    continue
                if verification_token is not None and s.verification_token != verification_token:
                    continue
                results.append(s.model_copy(deep=True))
        return sorted(results, key=lambda r: r.created_at, reverse=True)

    def count_sessions(self, status: Optional[SessionState] = None, interview_id: Optional[str] = None) -> int:
        with self._lock:
            return len([
                s for s in self._sessions.values()
                if (status is None or s.status == status)
                and (interview_id is None or s.interview_id == interview_id)
            ])

    # Evaluations
    def create_evaluation(self, evaluation: EvaluationRecord) -> str:
        with self._lock:
            if any(e.session_id == evaluation.session_id for e in self._evaluations.values()):
                raise ConflictError(f"Session {evaluation.session_id} already has an evaluation")
            self._evaluations[evaluation.id] = evaluation.model_copy(deep=True)
        return evaluation.id

    def get_evaluation_by_session(self, session_id: str) -> Optional[EvaluationRecord]:
        with self._lock:
            for e in self._evaluations.values():
                if e.session_id == session_id:
                    return e.model_copy(deep=True)
        return None

    def list_evaluations(self) -> List[EvaluationRecord]:
        with self._lock:
            records = [e.model_copy(deep=True) for e in self._evaluations.values()]
        return sorted(records, key=lambda r: r.created_at, reverse=True)
