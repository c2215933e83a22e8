from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from packages.tiv_core.config import TIVConfig
from packages.tiv_core.errors import TIVError
from packages.tiv_core.logging import get_logger, setup_logging
from packages.tiv_core.request_id import RequestIdMiddleware

from TIV.api.auth import router as auth_router
from TIV.api.dependencies import get_config
from TIV.api.error_handler import lock_exception_handler, tiv_exception_handler
from TIV.api.evaluations import router as evaluations_router
from TIV.api.health import router as health_router
from TIV.api.interviews import router as interviews_router
from TIV.api.sessions import router as sessions_router

logger = get_logger("tiv.main")

API_PREFIX = "/api/v1"


def create_app(config: Optional[TIVConfig] = None) -> FastAPI:
    config = config or get_config()
    setup_logging(log_dir=config.LOG_DIR, level=config.LOG_LEVEL, to_file=config.LOG_TO_FILE)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info(
            f"Starting {config.PROJECT_NAME} v{config.VERSION} "
            f"(store={config.STORE_BACKEND}, verification={config.REQUIRE_EMAIL_VERIFICATION})"
        )

        yield

        # Shutdown
        logger.info("Server shutting down...")

    app = FastAPI(
        title=config.PROJECT_NAME,
        version=config.VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url=None,
    )

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    # Errors
    app.add_exception_handler(TIVError, tiv_exception_handler)
    app.add_exception_handler(BlockingIOError, lock_exception_handler)

    # Routers
    app.include_router(health_router, prefix=API_PREFIX, tags=["Status"])
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(interviews_router, prefix=API_PREFIX)
    app.include_router(sessions_router, prefix=API_PREFIX)
    app.include_router(evaluations_router, prefix=API_PREFIX)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("TIV.main:app", host="0.0.0.0", port=8000, reload=True)
