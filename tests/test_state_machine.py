import os
import sys
import unittest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.tiv_core.errors import CorruptedSession, IllegalTransition
from packages.tiv_session.state import (
    SessionState,
    SessionStateMachine,
    parse_state,
    validate_transition,
)

ALLOWED = {
    (SessionState.PENDING, SessionState.ACTIVE),
    (SessionState.PENDING, SessionState.LOCKED),
    (SessionState.ACTIVE, SessionState.COMPLETED),
    (SessionState.ACTIVE, SessionState.LOCKED),
    (SessionState.COMPLETED, SessionState.LOCKED),
}


class TestSessionStateMachine(unittest.TestCase):

    def test_initial_state_is_pending(self):
        self.assertEqual(SessionStateMachine().state, SessionState.PENDING)

    def test_transition_table(self):
        """Every pair outside the table raises IllegalTransition with the attempted pair."""
        for src in SessionState:
            for dst in SessionState:
                sm = SessionStateMachine(src)
                if (src, dst) in ALLOWED:
                    self.assertEqual(sm.transition(dst), dst)
                    self.assertEqual(sm.state, dst)
                else:
                    with self.assertRaises(IllegalTransition) as ctx:
                        sm.transition(dst)
                    self.assertEqual(ctx.exception.from_state, src.value)
                    self.assertEqual(ctx.exception.to_state, dst.value)
                    self.assertEqual(sm.state, src)

    def test_completed_to_active_rejected(self):
        sm = SessionStateMachine(SessionState.COMPLETED)
        with self.assertRaises(IllegalTransition):
            sm.transition(SessionState.ACTIVE)

    def test_nothing_leaves_locked(self):
        sm = SessionStateMachine(SessionState.LOCKED)
        for dst in SessionState:
            self.assertFalse(sm.can_transition(dst).allowed)

    def test_capabilities(self):
        pending = SessionStateMachine(SessionState.PENDING)
        self.assertTrue(pending.can_start())
        self.assertFalse(pending.can_answer())

        active = SessionStateMachine(SessionState.ACTIVE)
        self.assertFalse(active.can_start())
        self.assertTrue(active.can_answer())
        self.assertTrue(active.can_complete())

        for terminal in (SessionState.COMPLETED, SessionState.LOCKED):
            sm = SessionStateMachine(terminal)
            self.assertFalse(sm.can_start())
            self.assertFalse(sm.can_answer())
            self.assertFalse(sm.can_complete())

    def test_actions(self):
        sm = SessionStateMachine()
        sm.start()
        self.assertTrue(sm.is_active())
        sm.complete()
        self.assertTrue(sm.is_completed())
        sm.lock()
        self.assertTrue(sm.is_locked())

    def test_can_transition_reason(self):
        check = SessionStateMachine(SessionState.COMPLETED).can_transition(SessionState.ACTIVE)
        self.assertFalse(check.allowed)
        self.assertIn("completed", check.reason)

    def test_parse_state(self):
        self.assertEqual(parse_state("ACTIVE"), SessionState.ACTIVE)
        self.assertEqual(parse_state(SessionState.LOCKED), SessionState.LOCKED)
        with self.assertRaises(CorruptedSession):
            parse_state("bogus")

    def test_validate_transition(self):
        self.assertTrue(validate_transition("pending", "active"))
        self.assertFalse(validate_transition("completed", "active"))


if __name__ == "__main__":
    unittest.main()
