import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from packages.tiv_core.dto import BaseDTO
from packages.tiv_core.time import utc_now
from packages.tiv_eval.schema import FinalEvaluation
from packages.tiv_session.dto import InterviewDefinition, Response
from packages.tiv_session.state import SessionState


def new_id() -> str:
    return uuid.uuid4().hex


class InterviewRecord(BaseDTO):
    id: str = Field(default_factory=new_id)
    definition: InterviewDefinition
    created_at: datetime = Field(default_factory=utc_now)


class SessionRecord(BaseDTO):
    """
    One candidate's run through an interview definition.
    engine_state holds the serialized engine snapshot between requests.
    """
    id: str = Field(default_factory=new_id)
    interview_id: str
    candidate_name: str
    candidate_email: str
    status: SessionState = SessionState.PENDING
    current_step: int = 0
    responses: List[Response] = Field(default_factory=list)
    engine_state: Optional[str] = None
    final_evaluation: Optional[FinalEvaluation] = None
    resume_token: Optional[str] = None
    verification_token: Optional[str] = None
    verification_expires_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None


class EvaluationRecord(BaseDTO):
    id: str = Field(default_factory=new_id)
    session_id: str
    interview_id: str
    evaluation: FinalEvaluation
    created_at: datetime = Field(default_factory=utc_now)
