import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Optional, Tuple

from packages.tiv_core.dto import BaseDTO
from packages.tiv_core.errors import Unauthorized, ValidationError
from packages.tiv_core.logging import get_logger
from packages.tiv_core.time import utc_now

from .security import hash_password, new_token, token_expiry, verify_password

logger = get_logger("tiv.auth.gate")


class CallerContext(BaseDTO):
    """What the HTTP boundary knows about the caller."""
    token: Optional[str] = None


class AdminGate(ABC):
    """Authorization predicate for admin-only operations."""

    @abstractmethod
    def is_admin(self, caller: CallerContext) -> bool:
        pass

    def require_admin(self, caller: CallerContext) -> None:
        if not self.is_admin(caller):
            raise Unauthorized()


class TokenAdminGate(AdminGate):
    """
    Single shared admin password, random bearer tokens with expiry.
    Tokens live in process memory.
    """

    def __init__(self, admin_secret: str, password_hash: Optional[str] = None, token_ttl_minutes: int = 60 * 24 * 7):
        self._password_hash = password_hash or hash_password(admin_secret)
        self.token_ttl_minutes = token_ttl_minutes
        self._tokens: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def login(self, password: str) -> Tuple[str, datetime]:
        if not password:
            raise ValidationError("Password required")
        if not verify_password(password, self._password_hash):
            logger.warning("Admin login rejected")
            raise Unauthorized("Invalid password")

        token = new_token()
        expires_at = token_expiry(self.token_ttl_minutes)
        with self._lock:
            self._purge_expired()
            self._tokens[token] = expires_at
        logger.info("Admin login succeeded")
        return token, expires_at

    def logout(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with self._lock:
            return self._tokens.pop(token, None) is not None

    def is_admin(self, caller: CallerContext) -> bool:
        if not caller.token:
            return False
        with self._lock:
            expires_at = self._tokens.get(caller.token)
            if expires_at is None:
                return False
            if expires_at <= utc_now():
                del self._tokens[caller.token]
                return False
            return True

    def _purge_expired(self):
        now = utc_now()
        for token in [t for t, exp in self._tokens.items() if exp <= now]:
            del self._tokens[token]
