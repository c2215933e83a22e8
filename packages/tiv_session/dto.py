from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from packages.tiv_core.dto import BaseDTO
from packages.tiv_core.time import utc_now


class Difficulty(str, Enum):
    JUNIOR = "Junior"
    MID = "Mid"
    SENIOR = "Senior"


class Tone(str, Enum):
    FRIENDLY = "friendly"
    NEUTRAL = "neutral"
    STRICT = "strict"


class InterviewDefinition(BaseDTO):
    """
    Admin-configured interview blueprint.
    Immutable once created.
    """
    model_config = ConfigDict(frozen=True)

    role: str = Field(..., min_length=2, description="Job role being interviewed for")
    skills: List[str] = Field(..., min_length=1, description="Ordered, distinct skill names")
    difficulty: Difficulty = Field(default=Difficulty.MID)
    rubric: Dict[str, float] = Field(default_factory=dict, description="skill -> weight")
    red_flag_catalog: List[str] = Field(default_factory=list, description="Disqualifying behaviours")
    tone: Tone = Field(default=Tone.NEUTRAL)

    @field_validator("skills")
    @classmethod
    def validate_skills(cls, v: List[str]) -> List[str]:
        cleaned = [s.strip() for s in v]
        if any(not s for s in cleaned):
            raise ValueError("Skill names must be non-empty")
        lowered = [s.lower() for s in cleaned]
        if len(set(lowered)) != len(lowered):
            raise ValueError("Skill names must be distinct")
        return cleaned

    @field_validator("red_flag_catalog")
    @classmethod
    def validate_red_flags(cls, v: List[str]) -> List[str]:
        return [s.strip() for s in v if s and s.strip()]

    @model_validator(mode="after")
    def validate_rubric(self) -> "InterviewDefinition":
        for skill, weight in self.rubric.items():
            if skill not in self.skills:
                raise ValueError(f"Rubric references unknown skill '{skill}'")
            if weight < 0:
                raise ValueError(f"Rubric weight for '{skill}' must be >= 0")
        return self


class InterviewQuestion(BaseDTO):
    """A question issued to the candidate. Ids are unique within one session."""
    id: str
    text: str
    skill: str
    step: int = 0
    expected_points: List[str] = Field(default_factory=list)
    follow_ups: List[str] = Field(default_factory=list)


class Response(BaseDTO):
    question_id: str
    answer: str
    timestamp: datetime = Field(default_factory=utc_now)


class EngineSnapshot(BaseDTO):
    """
    Serialized InterviewEngine state persisted between requests.
    Question history is required to map responses back to their questions.
    """
    snapshot_version: int = 1
    definition: InterviewDefinition
    max_questions: int
    current_step: int = 0
    responses: List[Response] = Field(default_factory=list)
    active_question: Optional[InterviewQuestion] = None
    question_history: List[InterviewQuestion] = Field(default_factory=list)
    is_complete: bool = False


class SubmitResult(BaseDTO):
    next_question: Optional[InterviewQuestion] = None
    is_complete: bool
    needs_follow_up: bool = False
