import logging
import logging.config
import os

from packages.tiv_core.request_id import get_request_id

LOG_FORMAT = (
    "[%(asctime)s] [%(levelname)s] [%(request_id)s] "
    "%(name)s:%(funcName)s:%(lineno)d - %(message)s"
)


class RequestIdFilter(logging.Filter):
    """Injects the current request id into each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


def build_logging_config(log_dir: str, level: str = "INFO", to_file: bool = True) -> dict:
    handlers = {
        "console": {
            "level": level,
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "filters": ["request_id"],
        },
    }

    if to_file:
        os.makedirs(log_dir, exist_ok=True)
        handlers["file_app"] = {
            "level": "DEBUG",
            "class": "logging.handlers.TimedRotatingFileHandler",
            "filename": os.path.join(log_dir, "app.log"),
            "when": "midnight",
            "interval": 1,
            "backupCount": 30,
            "encoding": "utf-8",
            "formatter": "standard",
            "filters": ["request_id"],
        }
        handlers["file_error"] = {
            "level": "ERROR",
            "class": "logging.handlers.TimedRotatingFileHandler",
            "filename": os.path.join(log_dir, "error.log"),
            "when": "midnight",
            "interval": 1,
            "backupCount": 30,
            "encoding": "utf-8",
            "formatter": "standard",
            "filters": ["request_id"],
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_id": {"()": RequestIdFilter},
        },
        "formatters": {
            "standard": {
                "format": LOG_FORMAT,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": handlers,
        "loggers": {
            "tiv": {
                "handlers": list(handlers.keys()),
                "level": "DEBUG",
                "propagate": False,
            },
        },
    }


def setup_logging(log_dir: str = "logs", level: str = "INFO", to_file: bool = True):
    """Apply the logging configuration for the ``tiv`` logger tree."""
    logging.config.dictConfig(build_logging_config(log_dir, level, to_file))


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``tiv`` namespace."""
    if not name.startswith("tiv"):
        name = f"tiv.{name}"
    return logging.getLogger(name)
