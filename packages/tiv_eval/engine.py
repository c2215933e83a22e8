from typing import Dict, List

from packages.tiv_core.logging import get_logger
from packages.tiv_session.dto import InterviewDefinition, Response

from .schema import FinalEvaluation, Recommendation, ScoredAnswer, SkillScore
from .summary import build_summary
from .weights import (
    LOW_CONFIDENCE_THRESHOLD,
    LOW_SCORE_THRESHOLD,
    recommend,
    rubric_weighted_score,
)

logger = get_logger("tiv.eval.engine")

NO_DATA_FLAG = "No evaluation data available"
DEGRADED_CONFIDENCE_CAP = 0.3


def _dedupe(items: List[str]) -> List[str]:
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def _clamp_score(value: float) -> int:
    return int(min(100, max(0, round(value))))


def _clamp_confidence(value: float) -> float:
    return round(min(1.0, max(0.0, value)), 2)


class _SkillAccumulator:
    """Running mean of scores and confidences for one skill."""

    def __init__(self, skill: str):
        self.skill = skill
        self.count = 0
        self.score_mean = 0.0
        self.confidence_mean = 0.0
        self.evidence: List[str] = []

    def add(self, score: int, confidence: float, evidence: List[str]):
        self.count += 1
        self.score_mean += (score - self.score_mean) / self.count
        self.confidence_mean += (confidence - self.confidence_mean) / self.count
        self.evidence.extend(evidence)

    def to_skill_score(self) -> SkillScore:
        return SkillScore(
            skill=self.skill,
            score=_clamp_score(self.score_mean),
            evidence=_dedupe(self.evidence),
            confidence=_clamp_confidence(self.confidence_mean),
            answer_count=self.count,
        )


class Evaluator:
    """
    Aggregates per-answer scores into the final evaluation.
    Makes no assumption about how a score was produced, only its shape and ranges.
    """

    def finalize(
        self,
        definition: InterviewDefinition,
        responses: List[Response],
        scores: List[ScoredAnswer],
    ) -> FinalEvaluation:
        if not scores:
            logger.warning(f"No scores to aggregate for {definition.role} ({len(responses)} responses)")
            return self.empty_evaluation()

        breakdown = self._build_breakdown(scores)
        skill_scores = [item.score for item in breakdown.values()]
        overall = _clamp_score(sum(skill_scores) / len(skill_scores))
        confidence = _clamp_confidence(
            sum(item.confidence for item in breakdown.values()) / len(breakdown)
        )
        recommendation = recommend(overall)

        red_flags: List[str] = []
        if overall < LOW_SCORE_THRESHOLD:
            red_flags.append("Below expected performance level")
        if confidence < LOW_CONFIDENCE_THRESHOLD:
            red_flags.append("Inconsistent answer quality")
        for s in scores:
            red_flags.extend(s.result.red_flags)
        red_flags = _dedupe(red_flags)

        strengths = _dedupe([x for s in scores for x in s.result.strengths])
        weaknesses = _dedupe([x for s in scores for x in s.result.weaknesses])

        result = FinalEvaluation(
            overall_score=overall,
            recommendation=recommendation,
            skill_breakdown=breakdown,
            red_flags=red_flags,
            summary=build_summary(overall, breakdown, strengths, weaknesses, red_flags),
            confidence=confidence,
            weighted_score=rubric_weighted_score(definition.rubric, breakdown),
        )
        logger.info(
            f"Final evaluation for {definition.role}: overall={overall} "
            f"recommendation={recommendation.value} confidence={confidence}"
        )
        return result

    def degraded(
        self,
        definition: InterviewDefinition,
        scores: List[ScoredAnswer],
        reason: str,
    ) -> FinalEvaluation:
        """
        Fallback evaluation: plain average of whatever scores are available,
        low confidence and a red flag naming the failure.
        """
        flag = f"Evaluation degraded: {reason}"
        if not scores:
            fallback = self.empty_evaluation()
            fallback.red_flags = _dedupe(fallback.red_flags + [flag])
            return fallback

        breakdown: Dict[str, SkillScore] = {}
        try:
            breakdown = self._build_breakdown(scores)
        except Exception as e:
            logger.error(f"Skill breakdown unavailable in degraded evaluation: {e}")

        overall = _clamp_score(sum(s.result.score for s in scores) / len(scores))
        confidence = min(
            DEGRADED_CONFIDENCE_CAP,
            _clamp_confidence(sum(s.result.confidence for s in scores) / len(scores)),
        )
        red_flags = _dedupe([flag] + [x for s in scores for x in s.result.red_flags])
        skills = ", ".join(breakdown.keys()) or ", ".join(definition.skills)
        return FinalEvaluation(
            overall_score=overall,
            recommendation=recommend(overall),
            skill_breakdown=breakdown,
            red_flags=red_flags,
            summary=(
                f"Provisional result of {overall}/100 across {len(scores)} scored answers "
                f"({skills}). Automated evaluation was incomplete and should be reviewed manually."
            ),
            confidence=confidence,
            weighted_score=None,
            degraded=True,
        )

    def empty_evaluation(self) -> FinalEvaluation:
        return FinalEvaluation(
            overall_score=0,
            recommendation=Recommendation.REVIEW,
            skill_breakdown={},
            red_flags=[NO_DATA_FLAG],
            summary="Unable to evaluate: no scored answers were available.",
            confidence=DEGRADED_CONFIDENCE_CAP,
            weighted_score=None,
            degraded=True,
        )

    def _build_breakdown(self, scores: List[ScoredAnswer]) -> Dict[str, SkillScore]:
        accumulators: Dict[str, _SkillAccumulator] = {}
        for s in scores:
            skill = s.skill or "General"
            acc = accumulators.get(skill)
            if acc is None:
                acc = _SkillAccumulator(skill)
                accumulators[skill] = acc
            acc.add(s.result.score, s.result.confidence, s.result.evidence)
        return {skill: acc.to_skill_score() for skill, acc in accumulators.items()}
