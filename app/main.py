"""FastAPI application entrypoint. No business logic; only wiring, lifecycle and error mapping."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from app.api.v1 import router as v1_router
from app.api.v1.auth import SessionRejectedError
from app.core.config import Settings, get_settings
from app.core.cookies import clear_session_cookie
from app.core.database import build_engine, build_session_factory
from app.services.auth import Clock, system_clock
from app.services.session_cleanup import SessionSweeper
from app.services.stores import StoreUnavailableError

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )


def create_app(
    settings: Settings | None = None,
    engine: Engine | None = None,
    clock: Clock = system_clock,
) -> FastAPI:
    """
    Build the ASGI app.

    The store handle (engine + session factory) is opened in the lifespan and released
    on shutdown. Pass an engine to share one owned by the caller (tests); it is then
    left open.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned_engine = engine is None
        db_engine = build_engine(settings) if owned_engine else engine
        app.state.session_factory = build_session_factory(db_engine)
        sweeper: SessionSweeper | None = None
        if settings.cleanup_scheduled:
            sweeper = SessionSweeper(app.state.session_factory, settings, clock)
            sweeper.start()
        try:
            yield
        finally:
            if sweeper is not None:
                await sweeper.stop()
            if owned_engine:
                db_engine.dispose()

    app = FastAPI(
        title="Croquet Portal API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.clock = clock

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SessionRejectedError)
    async def session_rejected_handler(request: Request, exc: SessionRejectedError) -> JSONResponse:
        response = JSONResponse(status_code=401, content={"detail": exc.message})
        if exc.clear_cookie:
            clear_session_cookie(response, settings)
        return response

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc.cause or exc,
        )
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    app.include_router(v1_router, prefix=settings.API_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Croquet Portal API"}

    return app


app = create_app()
