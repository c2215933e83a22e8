from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from packages.tiv_session.dto import Difficulty, Tone

# --- Request Schemas ---


class LoginRequest(BaseModel):
    password: str = ""


class InterviewCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    role: str
    skills: List[str]
    difficulty: Difficulty = Difficulty.MID
    rubric: Dict[str, float] = Field(default_factory=dict)
    red_flag_catalog: List[str] = Field(default_factory=list, alias="red_flags")
    tone: Tone = Field(default=Tone.NEUTRAL, alias="style")


class SessionCreateRequest(BaseModel):
    interview_id: str
    candidate_name: str
    candidate_email: str


class VerifyRequest(BaseModel):
    token: str
    session_id: Optional[str] = None


class AnswerSubmitRequest(BaseModel):
    answer: str = ""


# --- Response Schemas ---


class LoginResponse(BaseModel):
    success: bool
    token: str
    expires_at: datetime


class AuthCheckResponse(BaseModel):
    authenticated: bool


class SuccessResponse(BaseModel):
    success: bool = True
