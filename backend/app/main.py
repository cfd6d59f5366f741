import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from app.api.routes import api_router
from app.core.config import get_settings
from app.core.logging_config import configure_logging
from app.db.session import SessionLocal
from app.services.config_store import UnknownConfigKey
from app.services.errors import InvalidMilestoneOwner, ReservedSubtaskName, TrackerEntityNotFound
from app.services.snapshot_loader import SnapshotStore, install_change_listener, session_loader

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(TrackerEntityNotFound)
    async def not_found_handler(request: Request, exc: TrackerEntityNotFound):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(UnknownConfigKey)
    async def unknown_config_handler(request: Request, exc: UnknownConfigKey):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": f"Unknown config key: {exc.args[0]}"},
        )

    @app.exception_handler(ReservedSubtaskName)
    @app.exception_handler(InvalidMilestoneOwner)
    async def invalid_write_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)}
        )

    @app.exception_handler(ValidationError)
    async def config_validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.errors(include_url=False, include_context=False)},
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        message = str(getattr(exc, "orig", None) or exc)
        logger.warning(f"Integrity error on {request.url.path}: {message}")
        if "unique" in message.lower():
            return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": "Already exists"})
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": "Integrity error"}
        )


def create_app(session_factory: sessionmaker = SessionLocal) -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = SnapshotStore(
            session_loader(session_factory),
            debounce_seconds=settings.snapshot_refresh_debounce_seconds,
        )
        store.bind(asyncio.get_running_loop())
        install_change_listener(session_factory, store)
        app.state.snapshot_store = store
        logger.info(f"Tracker API started ({settings.environment})")
        try:
            yield
        finally:
            await store.close()

    app = FastAPI(
        lifespan=lifespan,
        docs_url="/docs" if settings.environment == "development" else None,
        redoc_url="/redoc" if settings.environment == "development" else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
