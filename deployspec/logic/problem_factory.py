"""Centralised construction of problem+json payloads.

Route and handler modules build their error bodies here so codes and titles
are not scattered as string literals.
"""

from __future__ import annotations

from typing import Dict, Optional
import logging


logger = logging.getLogger(__name__)


def _problem(title: str, status: int, detail: str, code: str, **extra: object) -> Dict[str, object]:
    problem: Dict[str, object] = {
        "title": title,
        "status": status,
        "detail": detail,
        "message": detail,
        "code": code,
    }
    problem.update({k: v for k, v in extra.items() if v is not None})
    logger.info("error_handler.handle", extra={"code": code})
    return problem


def problem_path_resolution_failed(detail: str, path: Optional[str] = None) -> Dict[str, object]:
    """404: a path segment names a missing field or an out-of-range position."""
    return _problem("Not Found", 404, detail, "PATH_RESOLUTION_FAILED", path=path)


def problem_value_invalid(detail: str, path: Optional[str] = None, errors: Optional[list] = None) -> Dict[str, object]:
    """422: the supplied value does not fit the field or record it targets."""
    return _problem("Unprocessable Entity", 422, detail, "VALUE_INVALID", path=path, errors=errors)


def problem_pre_if_match_mismatch(current_etag: str) -> Dict[str, object]:
    """412: If-Match names a snapshot other than the installed one."""
    return _problem(
        "Precondition Failed",
        412,
        "If-Match does not match the current document snapshot",
        "PRE_IF_MATCH_ETAG_MISMATCH",
        current_etag=current_etag,
    )


def problem_export_failed(detail: str) -> Dict[str, object]:
    """500: rendering or serialization failed; no partial file is returned."""
    return _problem("Export Failed", 500, detail, "EXPORT_FAILED")


__all__ = [
    "problem_path_resolution_failed",
    "problem_value_invalid",
    "problem_pre_if_match_mismatch",
    "problem_export_failed",
]
