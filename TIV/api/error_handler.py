from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from packages.tiv_core.errors import TIVError
from packages.tiv_core.logging import get_logger
from packages.tiv_core.request_id import get_request_id
from packages.tiv_core.time import utc_now

logger = get_logger("tiv.api.error_handler")


def _error_body(code: str, message: str, detail: Any = None) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "detail": detail,
        },
        "request_id": get_request_id(),
        "timestamp": utc_now().isoformat(),
    }


async def tiv_exception_handler(request: Request, exc: TIVError) -> JSONResponse:
    """Render a TIVError as the standard error response."""
    if exc.status_code >= 500:
        logger.error(f"Unhandled TIVError: {exc.message}", exc_info=exc)
    else:
        logger.warning(f"TIVError ({exc.code}): {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.detail),
    )


async def lock_exception_handler(request: Request, exc: BlockingIOError) -> JSONResponse:
    """FAIL-FAST: another request holds the session lock."""
    logger.warning(f"Resource locked: {exc}")
    return JSONResponse(
        status_code=423,
        content=_error_body("RESOURCE_LOCKED", str(exc) or "Resource is locked"),
    )
