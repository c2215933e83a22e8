from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class Recommendation(str, Enum):
    PROCEED = "proceed"
    BORDERLINE = "borderline"
    REVIEW = "review"


class AnswerScore(BaseModel):
    """
    Score and evidence for a single answer.
    Produced by any AnswerScorer; the evaluator relies only on the shape and ranges.
    """
    score: int = Field(..., ge=0, le=100, description="Score 0-100")
    evidence: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    confidence: float = Field(..., ge=0.0, le=1.0)
    red_flags: List[str] = Field(default_factory=list)


class ScoredAnswer(BaseModel):
    question_id: str
    skill: str = Field(..., description="Skill the originating question targeted")
    result: AnswerScore


class SkillScore(BaseModel):
    skill: str
    score: int = Field(..., ge=0, le=100)
    evidence: List[str] = Field(default_factory=list)
    confidence: float = Field(..., ge=0.0, le=1.0)
    answer_count: int = Field(default=1, ge=0, description="Number of answers combined into this score")


class FinalEvaluation(BaseModel):
    """
    Final aggregated result of an interview.
    overall_score is the unweighted mean of skill scores and drives the recommendation.
    """
    overall_score: int = Field(..., ge=0, le=100)
    recommendation: Recommendation
    skill_breakdown: Dict[str, SkillScore] = Field(default_factory=dict)
    red_flags: List[str] = Field(default_factory=list)
    summary: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    weighted_score: Optional[float] = Field(None, description="Rubric-weighted score, informational only")
    degraded: bool = Field(default=False, description="True when a fallback path produced this evaluation")
