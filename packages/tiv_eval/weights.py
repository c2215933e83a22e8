from typing import Dict, Mapping, Optional

from .schema import Recommendation, SkillScore

PROCEED_THRESHOLD = 75
BORDERLINE_THRESHOLD = 60

# Derived red-flag thresholds
LOW_SCORE_THRESHOLD = 50
LOW_CONFIDENCE_THRESHOLD = 0.6


def recommend(overall_score: int) -> Recommendation:
    """
    Three-band scheme: proceed >= 75, borderline >= 60, review below.
    """
    if overall_score >= PROCEED_THRESHOLD:
        return Recommendation.PROCEED
    if overall_score >= BORDERLINE_THRESHOLD:
        return Recommendation.BORDERLINE
    return Recommendation.REVIEW


def rubric_weighted_score(rubric: Mapping[str, float], breakdown: Dict[str, SkillScore]) -> Optional[float]:
    """
    Weighted mean of skill scores using rubric weights.
    Returns None when no scored skill carries a positive weight.
    """
    lowered = {k.lower(): w for k, w in rubric.items()}
    total_weight = 0.0
    total = 0.0
    for skill, item in breakdown.items():
        weight = lowered.get(skill.lower(), 0.0)
        if weight <= 0:
            continue
        total_weight += weight
        total += item.score * weight

    if total_weight <= 0:
        return None
    return round(total / total_weight, 1)
