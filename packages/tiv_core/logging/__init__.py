from .config import get_logger, setup_logging, RequestIdFilter

__all__ = ["get_logger", "setup_logging", "RequestIdFilter"]
