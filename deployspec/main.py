from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from deployspec.config import get_config
from deployspec.http.problem import (
    handle_export_error,
    handle_http_exception,
    handle_path_resolution_error,
    handle_request_validation_error,
    handle_unexpected_error,
)
from deployspec.http.request_id import RequestIdMiddleware
from deployspec.logging_setup import configure_logging
from deployspec.logic.export_pipeline import ExportError
from deployspec.logic.inmemory_state import DOCUMENT_STORE
from deployspec.logic.paths import PathResolutionError
from deployspec.middleware.cors import apply_cors
from deployspec.routes import api_router
from deployspec.routes.test_support import router as test_support_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    # Configure global logging before app instantiation so all modules emit
    configure_logging()
    config = get_config()
    app = FastAPI(title="Deployment Specification Authoring")

    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(PathResolutionError, handle_path_resolution_error)
    app.add_exception_handler(ExportError, handle_export_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    apply_cors(app, origins=config.cors.origins)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router, prefix="/api/v1")
    # Test-support router (no prefix) exposes '/__test__/reset-state' and '/__test__/events'
    app.include_router(test_support_router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "snapshot_version": DOCUMENT_STORE.version}

    logger.info("app.created origins=%s", config.cors.origins)
    return app


# Intentionally do not instantiate the app at import time to prevent side effects.
