"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type and the handler callables that turn HTTP,
validation, path-resolution, export and unexpected errors into
application/problem+json responses.
"""

from __future__ import annotations

import logging
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from deployspec.logic.export_pipeline import ExportError
from deployspec.logic.paths import PathResolutionError, format_path
from deployspec.logic.problem_factory import (
    problem_export_failed,
    problem_path_resolution_failed,
)

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def problem_response(problem: dict, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        problem,
        status_code=int(problem.get("status", 500) or 500),
        media_type=PROBLEM_MEDIA_TYPE,
        headers=headers or None,
    )


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    status_code = int(getattr(exc, "status_code", 500) or 500)
    if isinstance(exc.detail, dict):
        detail = dict(exc.detail)
        detail.setdefault("status", status_code)
    else:
        detail = {"title": "Error", "status": status_code, "detail": str(exc.detail or "")}
    # Preserve upstream headers such as ETag on 412
    headers = {str(k): str(v) for k, v in (exc.headers or {}).items()}
    return problem_response(detail, headers)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    problem = {
        "title": "Invalid Request",
        "status": 422,
        "detail": "Request validation failed",
        "code": "VALUE_INVALID",
        "errors": [
            {k: v for k, v in err.items() if k in ("loc", "msg", "type")}
            for err in exc.errors()
        ],
    }
    return problem_response(problem)


async def handle_path_resolution_error(request: Request, exc: PathResolutionError) -> JSONResponse:  # noqa: D401
    logger.info("path_resolution_failed path=%s depth=%s", format_path(exc.path), exc.depth)
    return problem_response(problem_path_resolution_failed(str(exc), format_path(exc.path) or None))


async def handle_export_error(request: Request, exc: ExportError) -> JSONResponse:  # noqa: D401
    logger.error("export_failed", exc_info=exc)
    return problem_response(problem_export_failed(str(exc)))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error", exc_info=exc)
    return problem_response({"title": "Internal Server Error", "status": 500})


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem_response",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_path_resolution_error",
    "handle_export_error",
    "handle_unexpected_error",
]
