import hashlib
from typing import Optional

from packages.tiv_core.logging import get_logger
from packages.tiv_session.dto import InterviewQuestion, Tone

from .catalog import (
    DEFAULT_EXPECTED_POINTS,
    DIFFICULTY_SUFFIX,
    EXPECTED_POINTS,
    FOLLOW_UP_TEMPLATES,
    GENERIC_TEMPLATES,
    TONE_PREFIX,
    find_catalog_skill,
    questions_for,
)
from .generator import QuestionGenerationResult, QuestionGenerator, QuestionRequest

logger = get_logger("tiv.qbank")

# Answers shorter than this get a follow-up suggestion
FOLLOW_UP_MIN_CHARS = 50


def make_question_id(request: QuestionRequest) -> str:
    """
    Deterministic question id.
    Includes the step index so ids never collide within one session,
    and the prior answers so a restored engine issues the same ids.
    """
    h = hashlib.sha1()
    h.update(request.role.encode("utf-8"))
    h.update(b"\x00")
    h.update(request.target_skill.encode("utf-8"))
    h.update(b"\x00")
    h.update(str(request.step).encode("utf-8"))
    for r in request.prior_responses:
        h.update(b"\x00")
        h.update(r.question_id.encode("utf-8"))
        h.update(b"\x01")
        h.update(r.answer.encode("utf-8"))
    return f"q-{request.step}-{h.hexdigest()[:12]}"


class HeuristicQuestionBank(QuestionGenerator):
    """
    Built-in question bank.
    Uses the role/skill catalog when the skill is known and generic
    templates otherwise. Deterministic given identical requests.
    """

    def generate_question(self, request: QuestionRequest) -> QuestionGenerationResult:
        try:
            skill = request.target_skill.strip()
            if not skill:
                return QuestionGenerationResult(success=False, error="Empty target skill")

            catalog_skill = find_catalog_skill(request.role, skill)
            if catalog_skill:
                pool = questions_for(catalog_skill)
                text = pool[request.step % len(pool)]
                expected = list(EXPECTED_POINTS.get(catalog_skill, DEFAULT_EXPECTED_POINTS))
                origin = "CATALOG"
            else:
                template = GENERIC_TEMPLATES[request.step % len(GENERIC_TEMPLATES)]
                text = template.format(skill=skill, role=request.role)
                expected = list(DEFAULT_EXPECTED_POINTS)
                origin = "TEMPLATE"

            prefix = TONE_PREFIX.get(request.tone.value, "").format(skill=skill)
            suffix = DIFFICULTY_SUFFIX.get(request.difficulty.value, "")
            question = InterviewQuestion(
                id=make_question_id(request),
                text=f"{prefix}{text}{suffix}",
                skill=skill,
                step=request.step,
                expected_points=expected,
                follow_ups=list(FOLLOW_UP_TEMPLATES),
            )
            return QuestionGenerationResult(
                question=question,
                success=True,
                metadata={"origin_type": origin, "catalog_skill": catalog_skill},
            )
        except Exception as e:
            logger.error(f"Question generation failed for step {request.step}: {e}")
            return QuestionGenerationResult(success=False, error=str(e))

    def suggest_follow_up(self, question: InterviewQuestion, answer: str, tone: Tone) -> Optional[str]:
        if not question.follow_ups:
            return None
        if len(answer.strip()) >= FOLLOW_UP_MIN_CHARS:
            return None
        prompt = question.follow_ups[0]
        if tone == Tone.FRIENDLY:
            return f"No worries, let's dig a little deeper. {prompt}"
        return prompt
