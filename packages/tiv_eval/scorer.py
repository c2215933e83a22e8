from abc import ABC, abstractmethod
from typing import List

from pydantic import BaseModel, Field

from packages.tiv_core.logging import get_logger
from packages.tiv_session.dto import Difficulty, InterviewQuestion

from .rules import (
    calculate_difficulty_adjustment,
    calculate_length_bonus,
    extract_features,
    match_expected_points,
    match_red_flags,
)
from .schema import AnswerScore

logger = get_logger("tiv.eval.scorer")

MIN_SCORE = 15
MAX_SCORE = 100


class ScoringRequest(BaseModel):
    """
    Typed input for scoring one answer.
    A model-backed scorer receives the same request as the heuristic one.
    """
    answer: str
    question: InterviewQuestion
    difficulty: Difficulty = Difficulty.MID
    red_flag_catalog: List[str] = Field(default_factory=list)


class AnswerScorer(ABC):
    """
    Port for answer scoring.
    Implementations may perform I/O and raise; the engine degrades on failure.
    """

    @abstractmethod
    def score(self, request: ScoringRequest) -> AnswerScore:
        pass


def empty_answer_score(position: int) -> AnswerScore:
    """Automatic zero for a blank answer. position is 1-based."""
    return AnswerScore(
        score=0,
        evidence=["No answer provided"],
        strengths=[],
        weaknesses=["Question left unanswered"],
        confidence=1.0,
        red_flags=[f"Empty response (question {position})"],
    )


class HeuristicAnswerScorer(AnswerScorer):
    """
    Keyword/structure heuristic standing in for an evaluative model.
    Longer, specific, example-backed and structured answers score higher;
    random, repetitive or very short answers score low with low confidence.
    """

    def score(self, request: ScoringRequest) -> AnswerScore:
        answer = request.answer.strip()
        features = extract_features(answer)

        evidence: List[str] = []
        strengths: List[str] = []
        weaknesses: List[str] = []
        red_flags: List[str] = []

        catalog_hits = [f"Red flag: {entry}" for entry in match_red_flags(answer, request.red_flag_catalog)]

        if features.is_random or features.is_gibberish:
            return AnswerScore(
                score=20,
                evidence=["Unintelligible response"],
                strengths=[],
                weaknesses=["No coherent technical content"],
                confidence=0.3,
                red_flags=["Answer appears to be random or meaningless text"] + catalog_hits,
            )

        base = 50
        confidence = 0.7

        if features.is_repeated:
            base = 30
            confidence = 0.4
            red_flags.append("Repetitive content with low information density")
            weaknesses.append("Lacks variety in explanation")

        if features.is_too_short:
            base = min(base, 45)
            confidence = min(confidence, 0.5)
            weaknesses.append("Answer is too brief and lacks detail")
        else:
            base += calculate_length_bonus(features)

        if features.has_keywords:
            base += 15
            evidence.append("Used relevant technical terminology")
            strengths.append("Demonstrated technical vocabulary")
        else:
            base -= 10
            weaknesses.append("Missing technical terminology")

        if features.has_technical_depth:
            base += 12
            evidence.append("Provided structured explanation")
            strengths.append("Clear communication structure")
        else:
            weaknesses.append("Lacks depth in explanation")

        if features.has_examples:
            base += 10
            evidence.append("Referenced practical experience")
            strengths.append("Connected theory to practice")

        if features.has_structure:
            base += 8
            strengths.append("Well-organized response")

        if features.unique_ratio > 0.7 and features.word_count > 20:
            base += 5
            confidence += 0.05

        covered = match_expected_points(answer, request.question.expected_points)
        if covered:
            base += min(3 * len(covered), 9)
            evidence.append(f"Covered expected points: {', '.join(covered)}")

        base += calculate_difficulty_adjustment(features, request.difficulty.value)

        score = min(MAX_SCORE, max(MIN_SCORE, base))
        confidence = min(1.0, max(0.2, confidence))

        if score < 40:
            red_flags.append("Limited technical depth")
        red_flags.extend(catalog_hits)

        logger.debug(f"Scored answer to {request.question.id}: {score} (confidence {confidence:.2f})")
        return AnswerScore(
            score=score,
            evidence=evidence or ["Provided response to question"],
            strengths=strengths or ["Attempted to answer"],
            weaknesses=weaknesses or ["Could provide more depth"],
            confidence=round(confidence, 2),
            red_flags=red_flags,
        )
