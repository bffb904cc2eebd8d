"""
FastAPI application factory + lifespan.

This is the **data engine** behind the dashboard editor:
- REST API for the dashboard, widgets, parameters and refresh cycles.
- AI assistant endpoints when a chat-model API key is configured.
- One ReportSession per process, attached to ``app.state``.
- Snapshot restored at startup and saved at shutdown.
- CORS configured for the browser front end.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from report_app import __version__
from report_app.api.v1 import api_router
from report_app.core.config import Settings, get_settings
from report_app.core.errors import (
    ChatModelError,
    ConfigError,
    EntityNotFoundError,
    SourceError,
)
from report_app.services.dashboard import SnapshotStore, TemplateCatalog
from report_app.services.session import ReportSession

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=settings.LOG_FORMAT)
    # One line per request is too chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: restore the last saved snapshot, if any.
    Shutdown: save the current session.
    """
    session: ReportSession = app.state.session
    store: SnapshotStore = app.state.store
    logger.info(f"[App] Starting {app.title} …")

    blob = store.load()
    if blob is not None:
        session.restore(blob)
        logger.info(
            f"[App] Restored snapshot: {len(session.aggregate.widgets)} widgets, "
            f"{len(session.aggregate.parameters)} parameters"
        )

    yield

    logger.info("[App] Shutting down …")
    try:
        store.save(session.snapshot())
    except OSError as exc:
        logger.error(f"[App] Could not save snapshot: {exc}")


# ── Exception handlers ───────────────────────────────────────────

async def _not_found_handler(request: Request, exc: EntityNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _config_error_handler(request: Request, exc: ConfigError):
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "mode": exc.mode},
    )


async def _source_error_handler(request: Request, exc: SourceError):
    return JSONResponse(
        status_code=502,
        content={"detail": exc.message, "mode": exc.mode, "status": exc.status},
    )


async def _chat_model_error_handler(request: Request, exc: ChatModelError):
    return JSONResponse(status_code=502, content={"detail": str(exc)})


def create_fastapi_app(
    settings: Optional[Settings] = None,
    session: Optional[ReportSession] = None,
    catalog: Optional[TemplateCatalog] = None,
    store: Optional[SnapshotStore] = None,
) -> FastAPI:
    """Application factory for FastAPI."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Parameter-driven data refresh for dashboards",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
    )

    app.state.settings = settings
    app.state.session = session or ReportSession.from_settings(settings)
    app.state.catalog = catalog or TemplateCatalog(settings.TEMPLATES_PATH)
    app.state.store = store or SnapshotStore(settings.SNAPSHOT_PATH)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(EntityNotFoundError, _not_found_handler)
    app.add_exception_handler(ConfigError, _config_error_handler)
    app.add_exception_handler(SourceError, _source_error_handler)
    app.add_exception_handler(ChatModelError, _chat_model_error_handler)

    app.include_router(api_router)

    @app.get("/")
    async def root():
        return {
            "app": settings.APP_NAME,
            "version": __version__,
            "status": "running",
            "docs": "/api/docs" if settings.DEBUG else "disabled",
        }

    return app


# Module-level instance for ``uvicorn report_app.main:app``
app = create_fastapi_app()
