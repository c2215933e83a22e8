import os
import sys
import tempfile
import unittest
from datetime import timedelta

from sqlalchemy import text

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.tiv_core.errors import ConflictError, CorruptedSession, NotFoundError
from packages.tiv_core.time import utc_now
from packages.tiv_eval.schema import FinalEvaluation, Recommendation
from packages.tiv_session.dto import Difficulty, InterviewDefinition, Response, Tone
from packages.tiv_session.state import SessionState
from packages.tiv_store.memory_repo import MemoryInterviewStore
from packages.tiv_store.models import EvaluationRecord, SessionRecord
from packages.tiv_store.sql.repo import SqlInterviewStore

DEFINITION = InterviewDefinition(
    role="Backend Engineer",
    skills=["API Design", "Databases"],
    difficulty=Difficulty.SENIOR,
    rubric={"API Design": 60, "Databases": 40},
    red_flag_catalog=["Cannot explain trade-offs"],
    tone=Tone.STRICT,
)

EVALUATION = FinalEvaluation(
    overall_score=72,
    recommendation=Recommendation.BORDERLINE,
    summary="Moderate performance with 72/100 overall.",
    confidence=0.7,
)


class StoreContract:
    """Behaviour shared by every InterviewStore implementation."""

    def make_store(self):
        raise NotImplementedError

    def setUp(self):
        self.store = self.make_store()
        self.interview_id = self.store.create_interview(DEFINITION)

    def _session(self, email="jane@example.com", status=SessionState.ACTIVE, **kwargs):
        record = SessionRecord(
            interview_id=self.interview_id,
            candidate_name="Jane Doe",
            candidate_email=email,
            status=status,
            **kwargs,
        )
        self.store.create_session(record)
        return record.id

    def test_interview_round_trip(self):
        record = self.store.get_interview(self.interview_id)
        self.assertEqual(record.definition, DEFINITION)
        self.assertEqual([r.id for r in self.store.list_interviews()], [self.interview_id])
        self.assertIsNone(self.store.get_interview("missing"))

    def test_session_round_trip_and_find(self):
        sid = self._session(resume_token="resume-1")
        self._session(email="other@example.com", status=SessionState.PENDING, verification_token="verify-1")

        session = self.store.get_session(sid)
        self.assertEqual(session.status, SessionState.ACTIVE)
        self.assertEqual(session.candidate_email, "jane@example.com")

        self.assertEqual([s.id for s in self.store.find_sessions(resume_token="resume-1")], [sid])
        self.assertEqual(len(self.store.find_sessions(interview_id=self.interview_id)), 2)
        self.assertEqual(len(self.store.find_sessions(verification_token="verify-1")), 1)
        self.assertEqual(
            len(self.store.find_sessions(interview_id=self.interview_id, candidate_email="jane@example.com")), 1
        )
        self.assertEqual(self.store.count_sessions(status=SessionState.ACTIVE), 1)
        self.assertEqual(self.store.count_sessions(interview_id=self.interview_id), 2)
        self.assertIsNone(self.store.get_session("missing"))

    def test_update_session(self):
        sid = self._session()
        responses = [Response(question_id="q-0-abc", answer="My answer")]
        updated = self.store.update_session(sid, {
            "current_step": 1,
            "responses": responses,
            "engine_state": '{"current_step": 1}',
            "status": SessionState.COMPLETED,
            "final_evaluation": EVALUATION,
            "completed_at": utc_now(),
        }, expected_step=0)

        self.assertEqual(updated.current_step, 1)
        self.assertEqual(updated.status, SessionState.COMPLETED)
        self.assertEqual(updated.responses[0].answer, "My answer")
        self.assertEqual(updated.final_evaluation.overall_score, 72)
        self.assertIsNotNone(updated.completed_at)
        self.assertEqual(self.store.get_session(sid).current_step, 1)

    def test_conditional_update_conflict(self):
        sid = self._session()
        self.store.update_session(sid, {"current_step": 1}, expected_step=0)
        with self.assertRaises(ConflictError):
            self.store.update_session(sid, {"current_step": 2}, expected_step=0)
        self.assertEqual(self.store.get_session(sid).current_step, 1)

    def test_update_unknown_session(self):
        with self.assertRaises(NotFoundError):
            self.store.update_session("missing", {"current_step": 1})

    def test_update_rejects_unknown_fields(self):
        sid = self._session()
        with self.assertRaises(ValueError):
            self.store.update_session(sid, {"interview_id": "other"})

    def test_evaluation_created_once(self):
        sid = self._session(status=SessionState.COMPLETED)
        self.store.create_evaluation(EvaluationRecord(session_id=sid, interview_id=self.interview_id, evaluation=EVALUATION))
        with self.assertRaises(ConflictError):
            self.store.create_evaluation(
                EvaluationRecord(session_id=sid, interview_id=self.interview_id, evaluation=EVALUATION)
            )
        stored = self.store.get_evaluation_by_session(sid)
        self.assertEqual(stored.evaluation, EVALUATION)
        self.assertEqual(len(self.store.list_evaluations()), 1)

    def test_delete_session_removes_evaluation(self):
        sid = self._session(status=SessionState.COMPLETED)
        self.store.create_evaluation(EvaluationRecord(session_id=sid, interview_id=self.interview_id, evaluation=EVALUATION))
        self.assertTrue(self.store.delete_session(sid))
        self.assertIsNone(self.store.get_session(sid))
        self.assertIsNone(self.store.get_evaluation_by_session(sid))
        self.assertFalse(self.store.delete_session(sid))

    def test_delete_interview_cascades(self):
        sid = self._session(status=SessionState.COMPLETED)
        self._session(email="other@example.com")
        self.store.create_evaluation(EvaluationRecord(session_id=sid, interview_id=self.interview_id, evaluation=EVALUATION))

        self.assertTrue(self.store.delete_interview(self.interview_id))
        self.assertIsNone(self.store.get_interview(self.interview_id))
        self.assertEqual(self.store.find_sessions(interview_id=self.interview_id), [])
        self.assertEqual(self.store.list_evaluations(), [])
        self.assertFalse(self.store.delete_interview(self.interview_id))

    def test_verification_expiry_round_trip(self):
        expires = utc_now() + timedelta(hours=24)
        sid = self._session(status=SessionState.PENDING, verification_token="tok", verification_expires_at=expires)
        stored = self.store.get_session(sid).verification_expires_at
        self.assertLess(abs((stored - expires).total_seconds()), 1)

    def test_one_session_per_candidate_email(self):
        self._session()
        with self.assertRaises(ConflictError):
            self._session(status=SessionState.PENDING)
        self.assertEqual(len(self.store.find_sessions(candidate_email="jane@example.com")), 1)

        self._session(email="other@example.com")
        other_interview = self.store.create_interview(DEFINITION)
        self.store.create_session(SessionRecord(
            interview_id=other_interview,
            candidate_name="Jane Doe",
            candidate_email="jane@example.com",
            status=SessionState.ACTIVE,
        ))
        self.assertEqual(self.store.count_sessions(status=SessionState.ACTIVE), 3)


class TestMemoryInterviewStore(StoreContract, unittest.TestCase):

    def make_store(self):
        return MemoryInterviewStore()

    def test_returned_records_are_copies(self):
        sid = self._session()
        session = self.store.get_session(sid)
        session.responses.append(Response(question_id="q", answer="a"))
        self.assertEqual(self.store.get_session(sid).responses, [])


class TestSqlInterviewStore(StoreContract, unittest.TestCase):

    def make_store(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        url = f"sqlite:///{os.path.join(self.tmpdir.name, 'test.db')}"
        return SqlInterviewStore(url)

    def tearDown(self):
        self.store.dispose()
        self.tmpdir.cleanup()

    def test_corrupted_interview_fields_fall_back(self):
        """Broken JSON in one column does not break reading the record."""
        with self.store.engine.begin() as conn:
            conn.execute(
                text("UPDATE interviews SET rubric = :bad, red_flags = :bad WHERE id = :id"),
                {"bad": "{not json", "id": self.interview_id},
            )
        record = self.store.get_interview(self.interview_id)
        self.assertEqual(record.definition.skills, ["API Design", "Databases"])
        self.assertEqual(record.definition.rubric, {})
        self.assertEqual(record.definition.red_flag_catalog, [])

    def test_corrupted_skills_still_readable(self):
        with self.store.engine.begin() as conn:
            conn.execute(text("UPDATE interviews SET skills = 'oops' WHERE id = :id"), {"id": self.interview_id})
        record = self.store.get_interview(self.interview_id)
        self.assertEqual(record.definition.skills, [])
        self.assertEqual(record.definition.role, "Backend Engineer")

    def test_corrupted_session_fields_fall_back(self):
        sid = self._session()
        with self.store.engine.begin() as conn:
            conn.execute(
                text("UPDATE interview_sessions SET responses = '[{', final_evaluation = 'nope' WHERE id = :id"),
                {"id": sid},
            )
        session = self.store.get_session(sid)
        self.assertEqual(session.responses, [])
        self.assertIsNone(session.final_evaluation)

    def test_unknown_status_is_corrupted(self):
        sid = self._session()
        with self.store.engine.begin() as conn:
            conn.execute(text("UPDATE interview_sessions SET status = 'bogus' WHERE id = :id"), {"id": sid})
        with self.assertRaises(CorruptedSession):
            self.store.get_session(sid)

    def test_corrupted_evaluation_payload(self):
        sid = self._session(status=SessionState.COMPLETED)
        self.store.create_evaluation(EvaluationRecord(session_id=sid, interview_id=self.interview_id, evaluation=EVALUATION))
        with self.store.engine.begin() as conn:
            conn.execute(text("UPDATE evaluations SET payload = 'garbage' WHERE session_id = :id"), {"id": sid})
        stored = self.store.get_evaluation_by_session(sid)
        self.assertEqual(stored.evaluation.overall_score, 72)
        self.assertEqual(stored.evaluation.recommendation, Recommendation.BORDERLINE)
        self.assertTrue(stored.evaluation.degraded)


if __name__ == "__main__":
    unittest.main()
