import logging
import os
import sys
import unittest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.tiv_core.config import TIVConfig
from packages.tiv_core.errors import (
    ConfigurationError,
    IllegalTransition,
    NoActiveQuestion,
    SessionNotActive,
    TIVError,
)
from packages.tiv_core.jsonfield import json_dumps, safe_json_loads
from packages.tiv_core.logging import RequestIdFilter, get_logger
from packages.tiv_core.logging.config import build_logging_config


class TestConfig(unittest.TestCase):

    def test_overrides(self):
        config = TIVConfig.load(MAX_QUESTIONS=3, STORE_BACKEND="memory")
        self.assertEqual(config.MAX_QUESTIONS, 3)
        self.assertEqual(config.STORE_BACKEND, "memory")

    def test_invalid_value(self):
        with self.assertRaises(ConfigurationError):
            TIVConfig.load(MAX_QUESTIONS="many")


class TestErrors(unittest.TestCase):

    def test_session_not_active_is_illegal_transition(self):
        err = SessionNotActive("abc", "locked")
        self.assertIsInstance(err, IllegalTransition)
        self.assertEqual(err.status_code, 409)
        self.assertEqual(err.code, "SESSION_NOT_ACTIVE")
        self.assertEqual(err.detail, {"from": "locked", "to": "active"})

    def test_no_active_question(self):
        err = NoActiveQuestion()
        self.assertIsInstance(err, TIVError)
        self.assertEqual(err.status_code, 500)
        self.assertEqual(err.code, "NO_ACTIVE_QUESTION")


class TestJsonField(unittest.TestCase):

    def test_fallbacks(self):
        self.assertEqual(safe_json_loads(None, list), [])
        self.assertEqual(safe_json_loads("", dict), {})
        self.assertEqual(safe_json_loads("{broken", dict, field="x"), {})
        self.assertEqual(safe_json_loads('["a"]', list), ["a"])

    def test_dumps_keeps_unicode(self):
        self.assertEqual(json_dumps({"name": "José"}), '{"name": "José"}')


class TestLogging(unittest.TestCase):

    def test_logger_namespace(self):
        self.assertEqual(get_logger("store").name, "tiv.store")
        self.assertEqual(get_logger("tiv.eval").name, "tiv.eval")

    def test_request_id_filter_default(self):
        record = logging.LogRecord("tiv", logging.INFO, __file__, 1, "msg", None, None)
        self.assertTrue(RequestIdFilter().filter(record))
        self.assertEqual(record.request_id, "-")

    def test_console_only_config(self):
        config = build_logging_config("unused", to_file=False)
        self.assertEqual(list(config["handlers"]), ["console"])
        self.assertEqual(config["loggers"]["tiv"]["handlers"], ["console"])


if __name__ == "__main__":
    unittest.main()
