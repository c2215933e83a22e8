from typing import Dict, List

from .schema import SkillScore


def _join(items: List[str]) -> str:
    return " and ".join(items)


def build_summary(
    overall_score: int,
    breakdown: Dict[str, SkillScore],
    strengths: List[str],
    weaknesses: List[str],
    red_flags: List[str],
) -> str:
    """
    Templated summary selected by overall-score band.
    Always ends with the per-skill scores so it reflects the computed data.
    """
    skills = list(breakdown.keys())
    scores = [item.score for item in breakdown.values()]
    high = len([s for s in scores if s >= 75])
    low = len([s for s in scores if s < 60])

    if overall_score >= 85:
        text = f"Exceptional performance with {overall_score}/100 overall. "
        if high == len(skills):
            text += f"Demonstrated strong expertise across all evaluated skills: {', '.join(skills)}. "
        else:
            text += f"Strong technical depth in {_join(skills[:2])}. "
        if strengths:
            text += f"Key strengths include {_join(strengths[:2]).lower()}. "
    elif overall_score >= 75:
        text = f"Solid performance with {overall_score}/100 overall. "
        text += f"Good understanding of {', '.join(skills)} with practical knowledge. "
        if weaknesses:
            text += f"Minor improvements needed: {weaknesses[0].lower()}. "
        else:
            text += "Ready for next interview stage. "
    elif overall_score >= 60:
        text = f"Moderate performance with {overall_score}/100 overall. "
        if low > 0:
            text += f"Gaps identified in {low} skill area{'s' if low > 1 else ''}. "
        if weaknesses:
            text += f"Needs improvement: {_join(weaknesses[:2]).lower()}. "
        else:
            text += "Additional technical depth required. "
    elif overall_score >= 40:
        text = f"Below expectations with {overall_score}/100 overall. "
        text += f"Significant gaps in {', '.join(skills)}. "
        if red_flags:
            text += f"Concerns: {red_flags[0].lower()}. "
        else:
            text += "Fundamental concepts not clearly demonstrated. "
    else:
        text = f"Poor performance with {overall_score}/100 overall. "
        text += "Lacks basic understanding of required skills. "
        if red_flags:
            text += f"Critical issues: {', '.join(red_flags[:2]).lower()}. "
        else:
            text += "Not recommended for this role. "

    per_skill = ", ".join(f"{item.skill} {item.score}" for item in breakdown.values())
    if per_skill:
        text += f"Skill scores: {per_skill}."
    return text.strip()
