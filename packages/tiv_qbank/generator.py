from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import Field

from packages.tiv_core.dto import BaseDTO
from packages.tiv_session.dto import Difficulty, InterviewDefinition, InterviewQuestion, Response, Tone


class QuestionRequest(BaseDTO):
    """
    Typed request for one question.
    Replaces string-templated prompts so a model-backed provider and the
    built-in bank share one contract.
    """
    role: str
    skills: List[str]
    target_skill: str
    difficulty: Difficulty
    tone: Tone
    step: int
    prior_responses: List[Response] = Field(default_factory=list)

    @classmethod
    def for_step(cls, definition: InterviewDefinition, step: int, prior_responses: List[Response]) -> "QuestionRequest":
        skills = list(definition.skills) or ["General"]
        return cls(
            role=definition.role,
            skills=skills,
            target_skill=skills[step % len(skills)],
            difficulty=definition.difficulty,
            tone=definition.tone,
            step=step,
            prior_responses=list(prior_responses),
        )


class QuestionGenerationResult(BaseDTO):
    question: Optional[InterviewQuestion] = None
    success: bool
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def is_usable(self) -> bool:
        q = self.question
        return bool(self.success and q is not None and q.id and q.text and q.text.strip())


class QuestionGenerator(ABC):
    """
    Port for question generation.
    The built-in bank is deterministic; a language-model backed generator may not be.
    """

    @abstractmethod
    def generate_question(self, request: QuestionRequest) -> QuestionGenerationResult:
        """
        Generate the question for request.step.
        Must return success=False on failure, never raise exception.
        """
        pass

    def suggest_follow_up(self, question: InterviewQuestion, answer: str, tone: Tone) -> Optional[str]:
        """Return a follow-up prompt when the answer warrants one, else None."""
        return None
