import os
import sys
import unittest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.tiv_store.memory_repo import MemoryInterviewStore
from TIV.seed import SAMPLE_INTERVIEWS, seed


class TestSeed(unittest.TestCase):

    def test_seed_once(self):
        store = MemoryInterviewStore()
        ids = seed(store)
        self.assertEqual(len(ids), len(SAMPLE_INTERVIEWS))
        self.assertEqual(seed(store), [])
        self.assertEqual(len(store.list_interviews()), len(SAMPLE_INTERVIEWS))

    def test_force(self):
        store = MemoryInterviewStore()
        seed(store)
        seed(store, force=True)
        self.assertEqual(len(store.list_interviews()), 2 * len(SAMPLE_INTERVIEWS))

    def test_rubrics_reference_skills(self):
        for definition in SAMPLE_INTERVIEWS:
            self.assertTrue(set(definition.rubric) <= set(definition.skills))


if __name__ == "__main__":
    unittest.main()
