"""Export endpoint: renders the current snapshot to a DOCX download."""

from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Response

from deployspec.config import get_config
from deployspec.logic.etag import snapshot_etag
from deployspec.logic.export_pipeline import export_document
from deployspec.logic.image_fetch import ImageFetcher
from deployspec.logic.inmemory_state import get_engine
from deployspec.logic.mutation_engine import MutationEngine


router = APIRouter()
logger = logging.getLogger(__name__)


def get_image_fetcher() -> ImageFetcher:
    """FastAPI dependency; tests override it with a MockTransport-backed fetcher."""
    return ImageFetcher(get_config().image)


def content_disposition(filename: str) -> str:
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "_").replace("?", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@router.post("/export", summary="Export the current document as DOCX")
async def export_current(
    engine: MutationEngine = Depends(get_engine),
    fetcher: ImageFetcher = Depends(get_image_fetcher),
) -> Response:
    # Pin the snapshot and its version before the first suspension point
    snapshot = engine.current()
    version = engine.store.version
    result = await export_document(snapshot, fetcher=fetcher, config=get_config().export)
    logger.info("export.response filename=%s version=%s", result.filename, version)
    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={
            "Content-Disposition": content_disposition(result.filename),
            "ETag": snapshot_etag(version),
        },
    )


__all__ = ["router", "get_image_fetcher", "content_disposition"]
