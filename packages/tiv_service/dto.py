from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from packages.tiv_core.dto import BaseDTO
from packages.tiv_eval.schema import FinalEvaluation


class QuestionDTO(BaseDTO):
    id: str
    text: str
    skill: str
    sequence_number: int = Field(..., description="1-based position in the interview")


class SessionStartDTO(BaseDTO):
    session_id: str
    resume_token: str
    question: QuestionDTO
    question_index: int = 0
    total_questions: int
    progress: float = 0.0


class SessionRequestDTO(BaseDTO):
    session_id: str
    status: str
    notification_sent: bool
    message: str


class SessionViewDTO(BaseDTO):
    """Read view of a session. final_evaluation is set once the session is completed."""
    session_id: str
    interview_id: str
    candidate_name: str
    status: str
    current_step: int
    total_questions: int
    progress: float
    current_question: Optional[QuestionDTO] = None
    resume_token: Optional[str] = None
    final_evaluation: Optional[FinalEvaluation] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class AnswerResultDTO(BaseDTO):
    session_id: str
    status: str
    is_complete: bool
    next_question: Optional[QuestionDTO] = None
    question_index: int
    total_questions: int
    progress: float
    needs_follow_up: bool = False
    evaluation: Optional[FinalEvaluation] = None


class SessionSummaryDTO(BaseDTO):
    id: str
    candidate_name: str
    candidate_email: str
    status: str
    current_step: int
    overall_score: Optional[int] = None
    recommendation: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class InterviewDTO(BaseDTO):
    id: str
    role: str
    skills: List[str]
    difficulty: str
    rubric: Dict[str, float] = Field(default_factory=dict)
    red_flag_catalog: List[str] = Field(default_factory=list)
    tone: str
    created_at: datetime
    sessions: List[SessionSummaryDTO] = Field(default_factory=list)


class InterviewOverviewDTO(BaseDTO):
    """Candidate-facing view of an interview. Hides rubric and red flags."""
    id: str
    role: str
    skills: List[str]
    difficulty: str
    tone: str


class EvaluationDTO(BaseDTO):
    id: str
    session_id: str
    interview_id: str
    candidate_name: Optional[str] = None
    candidate_email: Optional[str] = None
    role: Optional[str] = None
    evaluation: FinalEvaluation
    created_at: datetime
