"""FastAPI application factory for the build API."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from forgeline import __version__
from forgeline.api.dependencies import EngineDetector
from forgeline.api.routes import describe_validation_error, error_response, router
from forgeline.config import ForgelineSettings
from forgeline.core.build_manager import (
    BuildConflictError,
    BuildManager,
    BuildValidationError,
)
from forgeline.discovery.engine_detector import detect_engine_installs
from forgeline.store.config_store import ConfigStore, default_config_path

logger = logging.getLogger(__name__)


def create_app(
    settings: ForgelineSettings | None = None,
    *,
    build_manager: BuildManager | None = None,
    config_store: ConfigStore | None = None,
    engine_detector: EngineDetector = detect_engine_installs,
) -> FastAPI:
    """Create and configure the FastAPI application.

    :param settings: Runtime settings; defaults are read from the environment.
    :param build_manager: Job registry; a new one is created if omitted.
    :param config_store: User config store; defaults to the platform location.
    :param engine_detector: Callable returning detected engine installs.
    :return: Configured FastAPI application.
    """
    settings = settings or ForgelineSettings()
    manager = build_manager or BuildManager(settings)
    store = config_store or ConfigStore(default_config_path(settings.config_dir))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Forgeline API ready (config: %s)", store.path)
        yield
        # Do not leave an orphaned build tool behind on shutdown
        manager.shutdown()

    app = FastAPI(
        title="Forgeline",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.build_manager = manager
    app.state.config_store = store
    app.state.engine_detector = engine_detector

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(RequestValidationError)
    async def _request_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(HTTPStatus.BAD_REQUEST, describe_validation_error(exc))

    @app.exception_handler(BuildValidationError)
    async def _validation_error(request: Request, exc: BuildValidationError) -> JSONResponse:
        return error_response(HTTPStatus.BAD_REQUEST, str(exc))

    @app.exception_handler(BuildConflictError)
    async def _conflict_error(request: Request, exc: BuildConflictError) -> JSONResponse:
        return error_response(HTTPStatus.CONFLICT, str(exc))

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
        return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal server error.")

    app.include_router(router, prefix="/api")
    return app
