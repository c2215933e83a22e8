import os
import sys
import unittest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.tiv_eval.rules import extract_features, match_expected_points, match_red_flags
from packages.tiv_eval.scorer import HeuristicAnswerScorer, ScoringRequest, empty_answer_score
from packages.tiv_session.dto import Difficulty, InterviewQuestion

LONG_ANSWER = (
    "First, I would design the API around clear resource boundaries so each service owns its data. "
    "Then I would add an index on the columns used by the most frequent queries and measure latency "
    "before and after the change. For example, on a recent project we built an order service that "
    "handled ten thousand requests per minute; we implemented read replicas and a write-through cache, "
    "which reduced p95 latency from 800 milliseconds to about 120. However, caching introduces "
    "consistency trade-offs, so we used short expiry windows together with explicit invalidation "
    "whenever an order changed state. Finally, I would ensure observability with structured logs, "
    "tracing and alerting, because scaling decisions should be driven by real measurements rather "
    "than guesses. Additionally, load tests in a staging environment helped us validate the approach "
    "before rollout and exposed a connection pool limit that we tuned."
)


def make_question(expected_points=None):
    return InterviewQuestion(
        id="q-0-abc",
        text="How would you optimize a slow database query?",
        skill="Database",
        step=0,
        expected_points=expected_points or [],
    )


class TestAnswerFeatures(unittest.TestCase):

    def test_long_answer_features(self):
        f = extract_features(LONG_ANSWER)
        self.assertTrue(f.has_keywords)
        self.assertTrue(f.has_technical_depth)
        self.assertTrue(f.has_examples)
        self.assertTrue(f.has_structure)
        self.assertFalse(f.is_random)
        self.assertFalse(f.is_too_short)

    def test_random_letters(self):
        self.assertTrue(extract_features("asdfghjklqwertyuiopzxcvbnm").is_random)
        self.assertTrue(extract_features("a b c d e f").is_random)

    def test_repeated_words(self):
        self.assertTrue(extract_features(" ".join(["cache"] * 12)).is_repeated)

    def test_match_helpers(self):
        covered = match_expected_points(
            "I would check the query plan and add a covering index",
            ["Index usage", "Query plan", "Sharding"],
        )
        self.assertEqual(covered, ["Index usage", "Query plan"])
        self.assertEqual(
            match_red_flags("honestly I CANNOT explain trade-offs", ["Cannot explain trade-offs", "No examples"]),
            ["Cannot explain trade-offs"],
        )


class TestHeuristicAnswerScorer(unittest.TestCase):
    def setUp(self):
        self.scorer = HeuristicAnswerScorer()

    def _score(self, answer, difficulty=Difficulty.MID, catalog=None, expected_points=None):
        return self.scorer.score(ScoringRequest(
            answer=answer,
            question=make_question(expected_points),
            difficulty=difficulty,
            red_flag_catalog=catalog or [],
        ))

    def test_detailed_answer_beats_idk(self):
        strong = self._score(LONG_ANSWER)
        weak = self._score("idk")
        self.assertGreater(strong.score, weak.score)
        self.assertGreaterEqual(strong.score, 75)
        self.assertEqual(weak.score, 35)
        self.assertIn("Limited technical depth", weak.red_flags)

    def test_gibberish_scores_low_with_low_confidence(self):
        result = self._score("asdfghjklqwertyuiopzxcvbnm")
        self.assertEqual(result.score, 20)
        self.assertEqual(result.confidence, 0.3)
        self.assertIn("Answer appears to be random or meaningless text", result.red_flags)

    def test_repetitive_answer(self):
        result = self._score(" ".join(["cache"] * 12))
        self.assertLessEqual(result.score, 30)
        self.assertLessEqual(result.confidence, 0.4)
        self.assertIn("Repetitive content with low information density", result.red_flags)

    def test_short_answer(self):
        result = self._score("I would use an index")
        self.assertEqual(result.score, 60)
        self.assertLessEqual(result.confidence, 0.5)
        self.assertIn("Answer is too brief and lacks detail", result.weaknesses)

    def test_difficulty_adjustment(self):
        junior = self._score("I would use an index", difficulty=Difficulty.JUNIOR).score
        mid = self._score("I would use an index", difficulty=Difficulty.MID).score
        senior = self._score("I would use an index", difficulty=Difficulty.SENIOR).score
        self.assertEqual((junior, mid, senior), (65, 60, 55))

    def test_catalog_red_flag(self):
        answer = "Honestly I cannot explain trade-offs here, but I would design the API first."
        result = self._score(answer, catalog=["Cannot explain trade-offs", "No real-world examples"])
        self.assertIn("Red flag: Cannot explain trade-offs", result.red_flags)
        self.assertNotIn("Red flag: No real-world examples", result.red_flags)

    def test_expected_points_evidence(self):
        result = self._score(
            "I would read the query plan, then add an index to avoid the full scan on large tables.",
            expected_points=["Query optimization", "Sharding"],
        )
        self.assertIn("Covered expected points: Query optimization", result.evidence)

    def test_ranges(self):
        answers = ["idk", "no", "?", LONG_ANSWER, "x " * 300, "I use Redis for caching sessions."]
        for answer in answers:
            result = self._score(answer)
            self.assertTrue(0 <= result.score <= 100)
            self.assertTrue(0.0 <= result.confidence <= 1.0)
            self.assertTrue(result.evidence)

    def test_empty_answer_score(self):
        result = empty_answer_score(3)
        self.assertEqual(result.score, 0)
        self.assertEqual(result.confidence, 1.0)
        self.assertEqual(result.red_flags, ["Empty response (question 3)"])


if __name__ == "__main__":
    unittest.main()
