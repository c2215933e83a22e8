import os
import sys
import unittest
from datetime import datetime, timedelta, timezone

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.tiv_auth.gate import CallerContext, TokenAdminGate
from packages.tiv_auth.security import hash_password, new_token, token_expiry, verify_password
from packages.tiv_core.errors import Unauthorized, ValidationError


class TestSecurity(unittest.TestCase):

    def test_hash_and_verify(self):
        hashed = hash_password("s3cret")
        self.assertNotEqual(hashed, "s3cret")
        self.assertTrue(verify_password("s3cret", hashed))
        self.assertFalse(verify_password("wrong", hashed))

    def test_malformed_hash(self):
        self.assertFalse(verify_password("s3cret", "not-a-hash"))

    def test_tokens(self):
        self.assertEqual(len(new_token()), 64)
        self.assertNotEqual(new_token(), new_token())
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.assertEqual(token_expiry(30, now), now + timedelta(minutes=30))


class TestTokenAdminGate(unittest.TestCase):
    def setUp(self):
        self.gate = TokenAdminGate("admin-pass")

    def test_login_and_is_admin(self):
        token, expires_at = self.gate.login("admin-pass")
        self.assertTrue(self.gate.is_admin(CallerContext(token=token)))
        self.assertGreater(expires_at, datetime.now(timezone.utc))
        self.gate.require_admin(CallerContext(token=token))

    def test_rejects(self):
        with self.assertRaises(Unauthorized):
            self.gate.login("nope")
        with self.assertRaises(ValidationError):
            self.gate.login("")
        self.assertFalse(self.gate.is_admin(CallerContext()))
        self.assertFalse(self.gate.is_admin(CallerContext(token="forged")))
        with self.assertRaises(Unauthorized):
            self.gate.require_admin(CallerContext(token="forged"))

    def test_logout(self):
        token, _ = self.gate.login("admin-pass")
        self.assertTrue(self.gate.logout(token))
        self.assertFalse(self.gate.is_admin(CallerContext(token=token)))
        self.assertFalse(self.gate.logout(token))
        self.assertFalse(self.gate.logout(None))

    def test_expired_token(self):
        gate = TokenAdminGate("admin-pass", token_ttl_minutes=0)
        token, _ = gate.login("admin-pass")
        self.assertFalse(gate.is_admin(CallerContext(token=token)))

    def test_preset_password_hash(self):
        gate = TokenAdminGate("ignored", password_hash=hash_password("from-hash"))
        token, _ = gate.login("from-hash")
        self.assertTrue(gate.is_admin(CallerContext(token=token)))
        with self.assertRaises(Unauthorized):
            gate.login("ignored")


if __name__ == "__main__":
    unittest.main()
