from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from packages.tiv_auth.gate import AdminGate, CallerContext, TokenAdminGate
from packages.tiv_core.config import TIVConfig
from packages.tiv_eval.engine import Evaluator
from packages.tiv_eval.scorer import AnswerScorer, HeuristicAnswerScorer
from packages.tiv_notify.base import Notifier
from packages.tiv_notify.smtp import SmtpNotifier
from packages.tiv_qbank.generator import QuestionGenerator
from packages.tiv_qbank.service import HeuristicQuestionBank
from packages.tiv_service.admin_service import AdminService
from packages.tiv_service.concurrency import ConcurrencyManager
from packages.tiv_service.session_service import SessionService
from packages.tiv_store.memory_repo import MemoryInterviewStore
from packages.tiv_store.repository import InterviewStore
from packages.tiv_store.sql.repo import SqlInterviewStore

AUTH_COOKIE = "auth_token"

bearer: HTTPBearer = HTTPBearer(auto_error=False)


@lru_cache
def get_config() -> TIVConfig:
    return TIVConfig.load()


# --- Providers (External Adapters) ---

@lru_cache
def get_question_generator() -> QuestionGenerator:
    """
    Singleton Question Generator (built-in heuristic bank).
    """
    return HeuristicQuestionBank()


@lru_cache
def get_answer_scorer() -> AnswerScorer:
    return HeuristicAnswerScorer()


@lru_cache
def get_evaluator() -> Evaluator:
    return Evaluator()


@lru_cache
def get_notifier() -> Notifier:
    config = get_config()
    return SmtpNotifier(
        host=config.SMTP_HOST,
        port=config.SMTP_PORT,
        user=config.SMTP_USER,
        password=config.SMTP_PASSWORD,
        sender=config.MAIL_FROM,
        ttl_hours=config.VERIFICATION_TTL_HOURS,
    )


@lru_cache
def get_admin_gate() -> AdminGate:
    config = get_config()
    return TokenAdminGate(
        admin_secret=config.ADMIN_SECRET,
        password_hash=config.ADMIN_PASSWORD_HASH,
        token_ttl_minutes=config.TOKEN_TTL_MINUTES,
    )


# --- Repositories (Persistence) ---

@lru_cache
def get_store() -> InterviewStore:
    """
    Singleton Store. Must be shared across requests.
    """
    config = get_config()
    if config.STORE_BACKEND == "memory":
        return MemoryInterviewStore()
    return SqlInterviewStore(config.DATABASE_URL)


@lru_cache
def get_concurrency_manager() -> ConcurrencyManager:
    config = get_config()
    return ConcurrencyManager(lock_dir=config.LOCK_DIR, stale_seconds=config.LOCK_STALE_SECONDS)


# --- Domain Services (Application Logic) ---

def get_session_service(
    config: TIVConfig = Depends(get_config),
    store: InterviewStore = Depends(get_store),
    question_generator: QuestionGenerator = Depends(get_question_generator),
    scorer: AnswerScorer = Depends(get_answer_scorer),
    evaluator: Evaluator = Depends(get_evaluator),
    notifier: Notifier = Depends(get_notifier),
    admin_gate: AdminGate = Depends(get_admin_gate),
    concurrency_manager: ConcurrencyManager = Depends(get_concurrency_manager),
) -> SessionService:
    """
    Transient Session Service.
    Injected with Singleton Repositories and Providers.
    """
    return SessionService(
        store=store,
        question_generator=question_generator,
        scorer=scorer,
        notifier=notifier,
        admin_gate=admin_gate,
        concurrency_manager=concurrency_manager,
        evaluator=evaluator,
        max_questions=config.MAX_QUESTIONS,
        max_active_sessions=config.MAX_ACTIVE_SESSIONS,
        generation_attempts=config.QUESTION_GENERATION_ATTEMPTS,
        require_verification=config.REQUIRE_EMAIL_VERIFICATION,
        verification_ttl_hours=config.VERIFICATION_TTL_HOURS,
        base_url=config.BASE_URL,
    )


def get_admin_service(
    store: InterviewStore = Depends(get_store),
    admin_gate: AdminGate = Depends(get_admin_gate),
) -> AdminService:
    return AdminService(store=store, admin_gate=admin_gate)


# --- Caller ---

def get_caller(
    request: Request,
    cred: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> CallerContext:
    """Admin token from the Authorization header, falling back to the auth cookie."""
    token = cred.credentials if cred is not None else request.cookies.get(AUTH_COOKIE)
    return CallerContext(token=token)
