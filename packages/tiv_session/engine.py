from typing import List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from packages.tiv_core.errors import (
    CorruptedSession,
    EvaluationDegraded,
    IllegalTransition,
    NoActiveQuestion,
    NotComplete,
    QuestionGenerationError,
)
from packages.tiv_core.logging import get_logger
from packages.tiv_eval.engine import Evaluator
from packages.tiv_eval.schema import FinalEvaluation, ScoredAnswer
from packages.tiv_eval.scorer import AnswerScorer, ScoringRequest, empty_answer_score
from packages.tiv_qbank.generator import QuestionGenerator, QuestionRequest

from .dto import EngineSnapshot, InterviewDefinition, InterviewQuestion, Response, SubmitResult

logger = get_logger("tiv.session.engine")

DEFAULT_MAX_QUESTIONS = 5


class InterviewEngine:
    """
    Per-session interview progression.
    Selects questions, records answers, detects completion and produces the
    final evaluation. State survives between requests through serialize/restore.
    """

    def __init__(
        self,
        definition: InterviewDefinition,
        question_generator: QuestionGenerator,
        scorer: AnswerScorer,
        evaluator: Optional[Evaluator] = None,
        max_questions: int = DEFAULT_MAX_QUESTIONS,
        generation_attempts: int = 2,
    ):
        if max_questions < 1:
            raise ValueError("max_questions must be >= 1")
        self.definition = definition
        self.question_generator = question_generator
        self.scorer = scorer
        self.evaluator = evaluator or Evaluator()
        self.max_questions = max_questions
        self.generation_attempts = max(1, generation_attempts)

        self.current_step = 0
        self.responses: List[Response] = []
        self.active_question: Optional[InterviewQuestion] = None
        self.question_history: List[InterviewQuestion] = []
        self.is_complete = False

    @property
    def progress(self) -> float:
        return min(self.current_step / self.max_questions * 100, 100.0)

    def start(self) -> InterviewQuestion:
        """Reset progression and issue question 0."""
        question = self._generate(0, [], [])
        self.current_step = 0
        self.responses = []
        self.question_history = [question]
        self.active_question = question
        self.is_complete = False
        logger.info(f"Interview started for {self.definition.role}: first skill {question.skill}")
        return question

    def submit_answer(self, raw_text: str) -> SubmitResult:
        """
        Record an answer to the active question.
        The next question is generated before any state changes, so a
        generation failure leaves the engine untouched.
        """
        if self.is_complete:
            raise IllegalTransition(
                "completed", "active",
                message="Interview is already complete",
                code="SESSION_NOT_ACTIVE",
            )
        if self.active_question is None:
            raise NoActiveQuestion()

        question = self.active_question
        text = (raw_text or "").strip()
        response = Response(question_id=question.id, answer=text)
        next_step = self.current_step + 1
        needs_follow_up = self._needs_follow_up(question, text)

        next_question = None
        if next_step < self.max_questions:
            next_question = self._generate(next_step, self.responses + [response], self.question_history)

        self.responses.append(response)
        self.current_step = next_step
        if next_question is None:
            self.is_complete = True
            self.active_question = None
            logger.info(f"Interview complete after {self.current_step} answers")
        else:
            self.question_history.append(next_question)
            self.active_question = next_question

        return SubmitResult(
            next_question=next_question,
            is_complete=self.is_complete,
            needs_follow_up=needs_follow_up,
        )

    def generate_evaluation(self) -> FinalEvaluation:
        """
        Score every response against its originating question and aggregate.
        Scoring or aggregation failures degrade the result instead of raising.
        """
        if not self.is_complete:
            raise NotComplete(self.current_step, self.max_questions)

        history = {q.id: q for q in self.question_history}
        scores: List[ScoredAnswer] = []
        failures: List[str] = []

        for position, response in enumerate(self.responses, start=1):
            question = history.get(response.question_id)
            if question is None:
                failures.append(f"unknown question {response.question_id}")
                continue

            if not response.answer.strip():
                scores.append(ScoredAnswer(
                    question_id=question.id,
                    skill=question.skill,
                    result=empty_answer_score(position),
                ))
                continue

            try:
                result = self.scorer.score(ScoringRequest(
                    answer=response.answer,
                    question=question,
                    difficulty=self.definition.difficulty,
                    red_flag_catalog=list(self.definition.red_flag_catalog),
                ))
                scored = ScoredAnswer(question_id=question.id, skill=question.skill, result=result)
            except Exception as e:
                logger.warning(f"Scoring failed for question {position}: {e}")
                failures.append(f"scoring failed for question {position}")
                continue
            scores.append(scored)

        if failures:
            return self._degrade(scores, "; ".join(failures))

        try:
            return self.evaluator.finalize(self.definition, self.responses, scores)
        except Exception as e:
            logger.error(f"Aggregation failed: {e}", exc_info=True)
            return self._degrade(scores, "aggregation failed")

    # Snapshot
    def to_snapshot(self) -> EngineSnapshot:
        return EngineSnapshot(
            definition=self.definition,
            max_questions=self.max_questions,
            current_step=self.current_step,
            responses=list(self.responses),
            active_question=self.active_question,
            question_history=list(self.question_history),
            is_complete=self.is_complete,
        )

    def serialize(self) -> str:
        return self.to_snapshot().model_dump_json()

    @classmethod
    def restore(
        cls,
        data: Union[str, dict, EngineSnapshot],
        question_generator: QuestionGenerator,
        scorer: AnswerScorer,
        evaluator: Optional[Evaluator] = None,
        generation_attempts: int = 2,
    ) -> "InterviewEngine":
        """Rebuild an engine from serialize() output. Unreadable state raises CorruptedSession."""
        if data is None or data == "":
            raise CorruptedSession("Interview state is missing")
        try:
            if isinstance(data, EngineSnapshot):
                snapshot = data
            elif isinstance(data, dict):
                snapshot = EngineSnapshot.model_validate(data)
            else:
                snapshot = EngineSnapshot.model_validate_json(data)
        except (PydanticValidationError, ValueError, TypeError) as e:
            logger.error(f"Failed to restore interview state: {e}")
            raise CorruptedSession("Interview state could not be read") from e

        if (
            snapshot.max_questions < 1
            or len(snapshot.responses) != snapshot.current_step
            or snapshot.current_step > snapshot.max_questions
        ):
            raise CorruptedSession(
                "Interview state is inconsistent",
                detail={
                    "current_step": snapshot.current_step,
                    "responses": len(snapshot.responses),
                    "max_questions": snapshot.max_questions,
                },
            )

        engine = cls(
            snapshot.definition,
            question_generator,
            scorer,
            evaluator=evaluator,
            max_questions=snapshot.max_questions,
            generation_attempts=generation_attempts,
        )
        engine.current_step = snapshot.current_step
        engine.responses = list(snapshot.responses)
        engine.active_question = snapshot.active_question
        engine.question_history = list(snapshot.question_history)
        engine.is_complete = snapshot.is_complete
        return engine

    # Internals
    def _generate(
        self,
        step: int,
        prior_responses: List[Response],
        history: List[InterviewQuestion],
    ) -> InterviewQuestion:
        request = QuestionRequest.for_step(self.definition, step, prior_responses)
        last_error = None
        for attempt in range(1, self.generation_attempts + 1):
            try:
                result = self.question_generator.generate_question(request)
            except Exception as e:
                last_error = str(e)
                logger.warning(f"Question provider raised on step {step} (attempt {attempt}): {e}")
                continue
            if result.is_usable():
                return self._ensure_unique(result.question, step, history)
            last_error = result.error or "no usable question text"
            logger.warning(f"Unusable question on step {step} (attempt {attempt}): {last_error}")

        logger.error(f"Question generation failed on step {step} after {self.generation_attempts} attempts")
        raise QuestionGenerationError(detail={"step": step, "error": last_error})

    def _ensure_unique(self, question: InterviewQuestion, step: int, history: List[InterviewQuestion]) -> InterviewQuestion:
        updates = {}
        if question.step != step:
            updates["step"] = step
        if any(q.id == question.id for q in history):
            updates["id"] = f"{question.id}-s{step}"
        return question.model_copy(update=updates) if updates else question

    def _needs_follow_up(self, question: InterviewQuestion, text: str) -> bool:
        try:
            return self.question_generator.suggest_follow_up(question, text, self.definition.tone) is not None
        except Exception as e:
            logger.warning(f"Follow-up suggestion failed: {e}")
            return False

    def _degrade(self, scores: List[ScoredAnswer], reason: str) -> FinalEvaluation:
        warning = EvaluationDegraded(reason)
        logger.warning(warning.message)
        return self.evaluator.degraded(self.definition, scores, warning.reason)
