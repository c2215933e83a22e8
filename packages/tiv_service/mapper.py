from typing import List, Optional

from packages.tiv_session.dto import InterviewQuestion
from packages.tiv_store.models import EvaluationRecord, InterviewRecord, SessionRecord

from .dto import (
    EvaluationDTO,
    InterviewDTO,
    InterviewOverviewDTO,
    QuestionDTO,
    SessionSummaryDTO,
    SessionViewDTO,
)


def progress_percent(current_step: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(min(current_step / total * 100, 100.0), 1)


class SessionMapper:
    """
    Explicit mapper from store records to DTOs.
    Ensures no store or engine objects leak into the API layer.
    """

    @staticmethod
    def to_question_dto(question: Optional[InterviewQuestion]) -> Optional[QuestionDTO]:
        if question is None:
            return None
        return QuestionDTO(
            id=question.id,
            text=question.text,
            skill=question.skill,
            sequence_number=question.step + 1,
        )

    @staticmethod
    def to_view(
        session: SessionRecord,
        total: int,
        current_question: Optional[InterviewQuestion] = None,
        include_resume_token: bool = False,
    ) -> SessionViewDTO:
        return SessionViewDTO(
            session_id=session.id,
            interview_id=session.interview_id,
            candidate_name=session.candidate_name,
            status=session.status.value,
            current_step=session.current_step,
            total_questions=total,
            progress=progress_percent(session.current_step, total),
            current_question=SessionMapper.to_question_dto(current_question),
            resume_token=session.resume_token if include_resume_token else None,
            final_evaluation=session.final_evaluation,
            created_at=session.created_at,
            completed_at=session.completed_at,
        )

    @staticmethod
    def to_summary(session: SessionRecord) -> SessionSummaryDTO:
        evaluation = session.final_evaluation
        return SessionSummaryDTO(
            id=session.id,
            candidate_name=session.candidate_name,
            candidate_email=session.candidate_email,
            status=session.status.value,
            current_step=session.current_step,
            overall_score=evaluation.overall_score if evaluation else None,
            recommendation=evaluation.recommendation.value if evaluation else None,
            created_at=session.created_at,
            completed_at=session.completed_at,
        )


class InterviewMapper:

    @staticmethod
    def to_dto(record: InterviewRecord, sessions: Optional[List[SessionRecord]] = None) -> InterviewDTO:
        d = record.definition
        return InterviewDTO(
            id=record.id,
            role=d.role,
            skills=list(d.skills),
            difficulty=d.difficulty.value,
            rubric=dict(d.rubric),
            red_flag_catalog=list(d.red_flag_catalog),
            tone=d.tone.value,
            created_at=record.created_at,
            sessions=[SessionMapper.to_summary(s) for s in sessions or []],
        )

    @staticmethod
    def to_overview(record: InterviewRecord) -> InterviewOverviewDTO:
        d = record.definition
        return InterviewOverviewDTO(
            id=record.id,
            role=d.role,
            skills=list(d.skills),
            difficulty=d.difficulty.value,
            tone=d.tone.value,
        )

    @staticmethod
    def to_evaluation_dto(
        record: EvaluationRecord,
        session: Optional[SessionRecord] = None,
        interview: Optional[InterviewRecord] = None,
    ) -> EvaluationDTO:
        return EvaluationDTO(
            id=record.id,
            session_id=record.session_id,
            interview_id=record.interview_id,
            candidate_name=session.candidate_name if session else None,
            candidate_email=session.candidate_email if session else None,
            role=interview.definition.role if interview else None,
            evaluation=record.evaluation,
            created_at=record.created_at,
        )
