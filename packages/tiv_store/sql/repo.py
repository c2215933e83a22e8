from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import create_engine, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from packages.tiv_core.errors import ConflictError, NotFoundError
from packages.tiv_core.jsonfield import json_dumps, safe_json_loads
from packages.tiv_core.logging import get_logger
from packages.tiv_core.time import as_utc, utc_now
from packages.tiv_eval.schema import FinalEvaluation, Recommendation
from packages.tiv_session.dto import Difficulty, InterviewDefinition, Response, Tone
from packages.tiv_session.state import SessionState, parse_state
from packages.tiv_store.models import EvaluationRecord, InterviewRecord, SessionRecord, new_id
from packages.tiv_store.repository import InterviewStore, check_patch

from .orm import Base, EvaluationRow, InterviewRow, SessionRow

logger = get_logger("tiv.store.sql")


def _enum_or_default(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(f"Unknown {enum_cls.__name__} '{value}', using {default.value}")
        return default


def _opt_utc(value):
    return as_utc(value) if value is not None else None


class SqlInterviewStore(InterviewStore):
    """
    SQLAlchemy implementation of InterviewStore.
    Structured fields are stored as JSON text and read back through a safe
    loader; a broken field falls back to its empty default.
    """

    def __init__(self, database_url: str, echo: bool = False):
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self.engine = create_engine(database_url, echo=echo, future=True, connect_args=connect_args)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)

    def dispose(self):
        self.engine.dispose()

    # Interviews
    def create_interview(self, definition: InterviewDefinition) -> str:
        row = InterviewRow(
            id=new_id(),
            role=definition.role,
            skills=json_dumps(list(definition.skills)),
            difficulty=definition.difficulty.value,
            rubric=json_dumps(dict(definition.rubric)),
            red_flags=json_dumps(list(definition.red_flag_catalog)),
            tone=definition.tone.value,
            created_at=utc_now(),
        )
        with self.SessionLocal.begin() as db:
            db.add(row)
        return row.id

    def get_interview(self, interview_id: str) -> Optional[InterviewRecord]:
        with self.SessionLocal() as db:
            row = db.get(InterviewRow, interview_id)
            return self._to_interview(row) if row else None

    def list_interviews(self) -> List[InterviewRecord]:
        with self.SessionLocal() as db:
            rows = db.scalars(select(InterviewRow).order_by(InterviewRow.created_at.desc())).all()
            return [self._to_interview(r) for r in rows]

    def delete_interview(self, interview_id: str) -> bool:
        with self.SessionLocal.begin() as db:
            if db.get(InterviewRow, interview_id) is None:
                return False
            session_ids = select(SessionRow.id).where(SessionRow.interview_id == interview_id)
            db.execute(delete(EvaluationRow).where(EvaluationRow.session_id.in_(session_ids)))
            db.execute(delete(EvaluationRow).where(EvaluationRow.interview_id == interview_id))
            result = db.execute(delete(SessionRow).where(SessionRow.interview_id == interview_id))
            db.execute(delete(InterviewRow).where(InterviewRow.id == interview_id))
        logger.info(f"Deleted interview {interview_id} with {result.rowcount} sessions")
        return True

    # Sessions
    def create_session(self, session: SessionRecord) -> str:
        row = SessionRow(id=session.id, interview_id=session.interview_id)
        self._apply(row, session.model_dump(exclude={"id", "interview_id"}))
        try:
            with self.SessionLocal.begin() as db:
                db.add(row)
        except IntegrityError as e:
            raise ConflictError(
                "A session already exists for this email",
                detail={"interview_id": session.interview_id},
            ) from e
        return row.id

    def get_session(self, session_id: str) -> Optional[SessionRecord]:
        with self.SessionLocal() as db:
            row = db.get(SessionRow, session_id)
            return self._to_session(row) if row else None

    def update_session(
        self,
        session_id: str,
        patch: Dict[str, Any],
        expected_step: Optional[int] = None,
    ) -> SessionRecord:
        check_patch(patch)
        values = self._column_values(patch)
        values["updated_at"] = utc_now()

        with self.SessionLocal.begin() as db:
            stmt = update(SessionRow).where(SessionRow.id == session_id)
            if expected_step is not None:
                stmt = stmt.where(SessionRow.current_step == expected_step)
            result = db.execute(stmt.values(**values))
            if result.rowcount == 0:
                current = db.get(SessionRow, session_id)
                if current is None:
                    raise NotFoundError(f"Session {session_id} not found")
                raise ConflictError(
                    "Session was modified concurrently",
                    detail={"expected_step": expected_step, "current_step": current.current_step},
                )

        updated = self.get_session(session_id)
        if updated is None:
            raise NotFoundError(f"Session {session_id} not found")
        return updated

    def delete_session(self, session_id: str) -> bool:
        with self.SessionLocal.begin() as db:
            db.execute(delete(EvaluationRow).where(EvaluationRow.session_id == session_id))
            result = db.execute(delete(SessionRow).where(SessionRow.id == session_id))
            return result.rowcount > 0

    def find_sessions(
        self,
        interview_id: Optional[str] = None,
        candidate_email: Optional[str] = None,
        status: Optional[SessionState] = None,
        resume_token: Optional[str] = None,
        verification_token: Optional[str] = None,
    ) -> List[SessionRecord]:
        stmt = select(SessionRow)
        if interview_id is not None:
            stmt = stmt.where(SessionRow.interview_id == interview_id)
        if candidate_email is not None:
            stmt = stmt.where(SessionRow.candidate_email == candidate_email)
        if status is not None:
            stmt = stmt.where(SessionRow.status == parse_state(status).value)
        if resume_token is not None:
            stmt = stmt.where(SessionRow.resume_token == resume_token)
        if verification_token is not None:
            stmt = stmt.where(SessionRow.verification_token == verification_token)
        with self.SessionLocal() as db:
            rows = db.scalars(stmt.order_by(SessionRow.created_at.desc())).all()
            return [self._to_session(r) for r in rows]

    def count_sessions(self, status: Optional[SessionState] = None, interview_id: Optional[str] = None) -> int:
        stmt = select(func.count()).select_from(SessionRow)
        if status is not None:
            stmt = stmt.where(SessionRow.status == parse_state(status).value)
        if interview_id is not None:
            stmt = stmt.where(SessionRow.interview_id == interview_id)
        with self.SessionLocal() as db:
            return int(db.scalar(stmt) or 0)

    # Evaluations
    def create_evaluation(self, evaluation: EvaluationRecord) -> str:
        row = EvaluationRow(
            id=evaluation.id,
            session_id=evaluation.session_id,
            interview_id=evaluation.interview_id,
            overall_score=evaluation.evaluation.overall_score,
            recommendation=evaluation.evaluation.recommendation.value,
            payload=evaluation.evaluation.model_dump_json(),
            created_at=evaluation.created_at,
        )
        try:
            with self.SessionLocal.begin() as db:
                db.add(row)
        except IntegrityError as e:
            raise ConflictError(f"Session {evaluation.session_id} already has an evaluation") from e
        return row.id

    def get_evaluation_by_session(self, session_id: str) -> Optional[EvaluationRecord]:
        with self.SessionLocal() as db:
            row = db.scalar(select(EvaluationRow).where(EvaluationRow.session_id == session_id))
            return self._to_evaluation(row) if row else None

    def list_evaluations(self) -> List[EvaluationRecord]:
        with self.SessionLocal() as db:
            rows = db.scalars(select(EvaluationRow).order_by(EvaluationRow.created_at.desc())).all()
            return [self._to_evaluation(r) for r in rows]

    # Mapping
    def _column_values(self, data: Dict[str, Any]) -> Dict[str, Any]:
        values = {}
        for key, value in data.items():
            if key == "status":
                values[key] = parse_state(value).value
            elif key == "responses":
                values[key] = json_dumps([
                    r.model_dump(mode="json") if isinstance(r, Response) else r for r in (value or [])
                ])
            elif key == "final_evaluation":
                if value is None:
                    values[key] = None
                elif isinstance(value, FinalEvaluation):
                    values[key] = value.model_dump_json()
                else:
                    values[key] = json_dumps(value)
            else:
                values[key] = value
        return values

    def _apply(self, row: SessionRow, data: Dict[str, Any]):
        for key, value in self._column_values(data).items():
            setattr(row, key, value)

    def _to_interview(self, row: InterviewRow) -> InterviewRecord:
        skills = safe_json_loads(row.skills, list, field="interviews.skills")
        rubric = safe_json_loads(row.rubric, dict, field="interviews.rubric")
        red_flags = safe_json_loads(row.red_flags, list, field="interviews.red_flags")
        if not isinstance(skills, list):
            skills = []
        if not isinstance(rubric, dict):
            rubric = {}
        if not isinstance(red_flags, list):
            red_flags = []
        fields = dict(
            role=row.role,
            skills=[str(s) for s in skills],
            difficulty=_enum_or_default(Difficulty, row.difficulty, Difficulty.MID),
            rubric=rubric,
            red_flag_catalog=[str(f) for f in red_flags],
            tone=_enum_or_default(Tone, row.tone, Tone.NEUTRAL),
        )
        try:
            definition = InterviewDefinition(**fields)
        except PydanticValidationError as e:
            logger.warning(f"Stored interview {row.id} fails validation, loading as-is: {e.error_count()} errors")
            definition = InterviewDefinition.model_construct(**fields)
        return InterviewRecord.model_construct(id=row.id, definition=definition, created_at=as_utc(row.created_at))

    def _to_session(self, row: SessionRow) -> SessionRecord:
        responses = []
        for item in safe_json_loads(row.responses, list, field="interview_sessions.responses") or []:
            try:
                responses.append(Response.model_validate(item))
            except PydanticValidationError:
                logger.warning(f"Skipping unreadable response in session {row.id}")

        final_evaluation = None
        raw_eval = safe_json_loads(row.final_evaluation, lambda: None, field="interview_sessions.final_evaluation")
        if raw_eval is not None:
            try:
                final_evaluation = FinalEvaluation.model_validate(raw_eval)
            except PydanticValidationError:
                logger.warning(f"Unreadable final evaluation on session {row.id}")

        return SessionRecord(
            id=row.id,
            interview_id=row.interview_id,
            candidate_name=row.candidate_name,
            candidate_email=row.candidate_email,
            status=parse_state(row.status),
            current_step=row.current_step,
            responses=responses,
            engine_state=row.engine_state,
            final_evaluation=final_evaluation,
            resume_token=row.resume_token,
            verification_token=row.verification_token,
            verification_expires_at=_opt_utc(row.verification_expires_at),
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
            completed_at=_opt_utc(row.completed_at),
        )

    def _to_evaluation(self, row: EvaluationRow) -> EvaluationRecord:
        evaluation = None
        raw = safe_json_loads(row.payload, lambda: None, field="evaluations.payload")
        if raw is not None:
            try:
                evaluation = FinalEvaluation.model_validate(raw)
            except PydanticValidationError:
                logger.warning(f"Unreadable evaluation payload {row.id}")
        if evaluation is None:
            evaluation = FinalEvaluation(
                overall_score=min(100, max(0, row.overall_score)),
                recommendation=_enum_or_default(Recommendation, row.recommendation, Recommendation.REVIEW),
                summary="Stored evaluation details are unavailable.",
                confidence=0.0,
                red_flags=["Stored evaluation payload unreadable"],
                degraded=True,
            )
        return EvaluationRecord(
            id=row.id,
            session_id=row.session_id,
            interview_id=row.interview_id,
            evaluation=evaluation,
            created_at=as_utc(row.created_at),
        )
