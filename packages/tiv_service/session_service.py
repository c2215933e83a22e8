import re
import secrets
from datetime import timedelta
from typing import Optional, Tuple

from packages.tiv_auth.gate import AdminGate, CallerContext
from packages.tiv_core.errors import (
    CapacityExceeded,
    ConflictError,
    CorruptedSession,
    NotFoundError,
    SessionNotActive,
    ValidationError,
)
from packages.tiv_core.logging import get_logger
from packages.tiv_core.time import as_utc, utc_now
from packages.tiv_eval.engine import Evaluator
from packages.tiv_eval.schema import FinalEvaluation
from packages.tiv_eval.scorer import AnswerScorer
from packages.tiv_notify.base import Notifier, build_verification_link
from packages.tiv_qbank.generator import QuestionGenerator
from packages.tiv_session.engine import InterviewEngine
from packages.tiv_session.state import SessionState, SessionStateMachine
from packages.tiv_store.models import EvaluationRecord, InterviewRecord, SessionRecord
from packages.tiv_store.repository import InterviewStore

from .concurrency import ConcurrencyManager
from .dto import AnswerResultDTO, SessionRequestDTO, SessionStartDTO, SessionViewDTO
from .mapper import SessionMapper

logger = get_logger("tiv.service.session")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_NAME_LENGTH = 2


def normalize_candidate(name: Optional[str], email: Optional[str]) -> Tuple[str, str]:
    """Trim the name, lower-case the email and validate both."""
    trimmed_name = (name or "").strip()
    trimmed_email = (email or "").strip().lower()
    if len(trimmed_name) < MIN_NAME_LENGTH:
        raise ValidationError("Name must be at least 2 characters")
    if not EMAIL_PATTERN.match(trimmed_email):
        raise ValidationError("Invalid email address")
    return trimmed_name, trimmed_email


class SessionService:
    """
    Application Service for candidate interview sessions.
    Responsible for:
    1. Transaction boundaries (loading/saving the session and engine snapshot)
    2. Concurrency control (per-session fail-fast lock + conditional update)
    3. Orchestrating InterviewEngine calls and session status transitions
    """

    def __init__(
        self,
        store: InterviewStore,
        question_generator: QuestionGenerator,
        scorer: AnswerScorer,
        notifier: Notifier,
        admin_gate: AdminGate,
        concurrency_manager: Optional[ConcurrencyManager] = None,
        evaluator: Optional[Evaluator] = None,
        max_questions: int = 5,
        max_active_sessions: int = 100,
        generation_attempts: int = 2,
        require_verification: bool = False,
        verification_ttl_hours: int = 24,
        base_url: str = "http://localhost:3000",
    ):
        self.store = store
        self.question_generator = question_generator
        self.scorer = scorer
        self.notifier = notifier
        self.admin_gate = admin_gate
        self.concurrency_manager = concurrency_manager or ConcurrencyManager()
        self.evaluator = evaluator or Evaluator()
        self.max_questions = max_questions
        self.max_active_sessions = max_active_sessions
        self.generation_attempts = generation_attempts
        self.require_verification = require_verification
        self.verification_ttl_hours = verification_ttl_hours
        self.base_url = base_url

    # Session creation
    def start_session(self, interview_id: str, candidate_name: str, candidate_email: str) -> SessionStartDTO:
        """
        Create an active session and issue the first question.
        Only available when the deployment does not require email verification.
        """
        if self.require_verification:
            raise ValidationError("Email verification is required; request a verification link instead")

        name, email = normalize_candidate(candidate_name, candidate_email)
        self._check_duplicates(interview_id, email)
        self._check_capacity()
        interview = self._load_interview(interview_id)

        engine = self._new_engine(interview)
        question = engine.start()

        state = SessionStateMachine(SessionState.PENDING)
        state.start()
        session = SessionRecord(
            interview_id=interview.id,
            candidate_name=name,
            candidate_email=email,
            status=state.state,
            current_step=0,
            responses=[],
            engine_state=engine.serialize(),
            resume_token=self._new_resume_token(),
        )
        try:
            self.store.create_session(session)
        except ConflictError:
            logger.warning(f"Concurrent start rejected for interview {interview.id}")
            raise
        logger.info(f"Session {session.id} started for interview {interview.id}")

        return SessionStartDTO(
            session_id=session.id,
            resume_token=session.resume_token,
            question=SessionMapper.to_question_dto(question),
            question_index=0,
            total_questions=engine.max_questions,
            progress=0.0,
        )

    def request_session(self, interview_id: str, candidate_name: str, candidate_email: str) -> SessionRequestDTO:
        """
        Create (or refresh) a pending session and send the verification link.
        A notification failure does not undo the session.
        """
        if not self.require_verification:
            raise ValidationError("Email verification is not enabled; start the session directly")

        name, email = normalize_candidate(candidate_name, candidate_email)
        pending = self._check_duplicates(interview_id, email)
        interview = self._load_interview(interview_id)

        token = secrets.token_hex(32)
        expires_at = utc_now() + timedelta(hours=self.verification_ttl_hours)

        if pending is not None:
            session_id = pending.id
            self.store.update_session(session_id, {
                "candidate_name": name,
                "verification_token": token,
                "verification_expires_at": expires_at,
            })
            logger.info(f"Refreshed verification token for pending session {session_id}")
        else:
            session = SessionRecord(
                interview_id=interview.id,
                candidate_name=name,
                candidate_email=email,
                status=SessionState.PENDING,
                verification_token=token,
                verification_expires_at=expires_at,
            )
            session_id = self.store.create_session(session)
            logger.info(f"Pending session {session_id} created for interview {interview.id}")

        link = build_verification_link(self.base_url, token, session_id)
        try:
            sent = self.notifier.send_verification(email, name, link)
        except Exception as e:
            logger.error(f"Notifier raised for session {session_id}: {e}")
            sent = False
        if not sent:
            logger.warning(f"Verification email for session {session_id} was not sent")

        return SessionRequestDTO(
            session_id=session_id,
            status=SessionState.PENDING.value,
            notification_sent=sent,
            message=(
                "Verification email sent. Please check your inbox."
                if sent else "Session created, but the verification email could not be sent."
            ),
        )

    def verify_session(self, token: str, session_id: Optional[str] = None) -> SessionStartDTO:
        """pending -> active once the verification token checks out."""
        if not token:
            raise ValidationError("Verification token required")

        matches = self.store.find_sessions(verification_token=token)
        if session_id:
            matches = [s for s in matches if s.id == session_id]
        if not matches:
            raise NotFoundError("Invalid or already used verification link")

        with self.concurrency_manager.acquire_lock(matches[0].id):
            session = self._load_session(matches[0].id)
            state = SessionStateMachine(session.status)
            if not state.can_start():
                raise SessionNotActive(session.id, session.status.value, action="verify")

            expires_at = session.verification_expires_at
            if expires_at is None or as_utc(expires_at) < utc_now():
                raise ValidationError("Verification link has expired", detail={"session_id": session.id})

            self._check_capacity()
            interview = self._load_interview(session.interview_id)
            engine = self._new_engine(interview)
            question = engine.start()
            state.start()

            updated = self.store.update_session(session.id, {
                "status": state.state,
                "current_step": 0,
                "responses": [],
                "engine_state": engine.serialize(),
                "verification_token": None,
                "verification_expires_at": None,
                "resume_token": self._new_resume_token(),
            }, expected_step=session.current_step)

        logger.info(f"Session {updated.id} verified and started")
        return SessionStartDTO(
            session_id=updated.id,
            resume_token=updated.resume_token,
            question=SessionMapper.to_question_dto(question),
            question_index=0,
            total_questions=engine.max_questions,
            progress=0.0,
        )

    # Reads
    def get_session(self, session_id: str) -> SessionViewDTO:
        """Read-Only operation. Bypasses Lock."""
        return self._view(self._load_session(session_id), include_resume_token=False)

    def resume_session(self, resume_token: str) -> SessionViewDTO:
        if not resume_token:
            raise ValidationError("Resume token required")
        matches = self.store.find_sessions(resume_token=resume_token)
        if not matches:
            raise NotFoundError("Session not found")
        return self._view(matches[0], include_resume_token=True)

    # Answers
    def submit_answer(self, session_id: str, answer: str) -> AnswerResultDTO:
        """
        Handles answer submission with Concurrency Control.
        On the final answer the session completes and its evaluation is stored once.
        """
        text = (answer or "").strip()
        if not text:
            raise ValidationError("Answer cannot be empty")

        with self.concurrency_manager.acquire_lock(session_id):
            session = self._load_session(session_id)
            state = SessionStateMachine(session.status)
            if not state.can_answer():
                raise SessionNotActive(session_id, session.status.value)

            engine = self._restore(session)
            if engine.current_step != session.current_step:
                raise CorruptedSession(
                    "Session step does not match its interview state",
                    detail={"session_step": session.current_step, "engine_step": engine.current_step},
                )

            expected_step = session.current_step
            result = engine.submit_answer(text)

            patch = {
                "current_step": engine.current_step,
                "responses": list(engine.responses),
                "engine_state": engine.serialize(),
            }
            evaluation: Optional[FinalEvaluation] = None
            if result.is_complete:
                state.complete()
                evaluation = engine.generate_evaluation()
                patch.update({
                    "status": state.state,
                    "final_evaluation": evaluation,
                    "completed_at": utc_now(),
                })

            updated = self.store.update_session(session_id, patch, expected_step=expected_step)
            if evaluation is not None:
                self._record_evaluation(updated, evaluation)

        logger.info(f"Session {session_id} answer {engine.current_step}/{engine.max_questions} recorded")
        return AnswerResultDTO(
            session_id=session_id,
            status=updated.status.value,
            is_complete=result.is_complete,
            next_question=SessionMapper.to_question_dto(result.next_question),
            question_index=engine.current_step,
            total_questions=engine.max_questions,
            progress=round(engine.progress, 1),
            needs_follow_up=result.needs_follow_up,
            evaluation=evaluation,
        )

    # Admin
    def lock_session(self, session_id: str, caller: CallerContext) -> SessionViewDTO:
        self.admin_gate.require_admin(caller)
        with self.concurrency_manager.acquire_lock(session_id):
            session = self._load_session(session_id)
            state = SessionStateMachine(session.status)
            state.lock()
            updated = self.store.update_session(session_id, {"status": state.state})
        logger.info(f"Session {session_id} locked by admin")
        return self._view(updated, include_resume_token=False)

    def delete_session(self, session_id: str, caller: CallerContext) -> None:
        self.admin_gate.require_admin(caller)
        if not self.store.delete_session(session_id):
            raise NotFoundError("Session not found")
        logger.info(f"Session {session_id} deleted")

    # Internals
    def _new_engine(self, interview: InterviewRecord) -> InterviewEngine:
        return InterviewEngine(
            interview.definition,
            self.question_generator,
            self.scorer,
            evaluator=self.evaluator,
            max_questions=self.max_questions,
            generation_attempts=self.generation_attempts,
        )

    def _restore(self, session: SessionRecord) -> InterviewEngine:
        return InterviewEngine.restore(
            session.engine_state,
            self.question_generator,
            self.scorer,
            evaluator=self.evaluator,
            generation_attempts=self.generation_attempts,
        )

    def _new_resume_token(self) -> str:
        return secrets.token_urlsafe(24)

    def _load_interview(self, interview_id: str) -> InterviewRecord:
        interview = self.store.get_interview(interview_id)
        if interview is None:
            raise NotFoundError("Interview not found")
        return interview

    def _load_session(self, session_id: str) -> SessionRecord:
        session = self.store.get_session(session_id)
        if session is None:
            raise NotFoundError("Session not found")
        return session

    def _check_duplicates(self, interview_id: str, email: str) -> Optional[SessionRecord]:
        """
        Reject a second session for the same interview and email.
        Returns the newest pending session, if any, so it can be reused.
        """
        pending = None
        for existing in self.store.find_sessions(interview_id=interview_id, candidate_email=email):
            if existing.status == SessionState.ACTIVE:
                raise ConflictError("An active interview session already exists for this email")
            if existing.status in (SessionState.COMPLETED, SessionState.LOCKED):
                raise ConflictError("You have already completed this interview")
            if existing.status == SessionState.PENDING and pending is None:
                pending = existing
        return pending

    def _check_capacity(self):
        active = self.store.count_sessions(status=SessionState.ACTIVE)
        logger.debug(f"Active sessions: {active}/{self.max_active_sessions}")
        if active >= self.max_active_sessions:
            logger.warning(f"Capacity reached: {active}/{self.max_active_sessions} active sessions")
            raise CapacityExceeded(active, self.max_active_sessions)

    def _record_evaluation(self, session: SessionRecord, evaluation: FinalEvaluation):
        if evaluation.degraded:
            logger.warning(f"Session {session.id} completed with a degraded evaluation")
        try:
            self.store.create_evaluation(EvaluationRecord(
                session_id=session.id,
                interview_id=session.interview_id,
                evaluation=evaluation,
            ))
        except ConflictError:
            logger.warning(f"Evaluation for session {session.id} already recorded")

    def _view(self, session: SessionRecord, include_resume_token: bool) -> SessionViewDTO:
        total = self.max_questions
        current_question = None

        if session.status == SessionState.ACTIVE:
            engine = self._restore(session)
            if engine.active_question is None:
                logger.error(f"Active session {session.id} has no current question")
                raise CorruptedSession(
                    "Interview session is corrupted. Please contact support.",
                    detail={"session_id": session.id},
                )
            current_question = engine.active_question
            total = engine.max_questions
        elif session.status == SessionState.COMPLETED and session.final_evaluation is None:
            stored = self.store.get_evaluation_by_session(session.id)
            if stored is not None:
                session = session.model_copy(update={"final_evaluation": stored.evaluation})

        return SessionMapper.to_view(
            session,
            total=total,
            current_question=current_question,
            include_resume_token=include_resume_token,
        )
