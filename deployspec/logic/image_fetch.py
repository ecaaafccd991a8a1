"""Cover image acquisition for the export pipeline.

Fetches an image over HTTP(S) and checks that python-docx can embed it.
Failures are reported as a :class:`FetchOutcome` with an error string; the
public :meth:`ImageFetcher.fetch_as_embeddable` maps any failure to ``None``
and never raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from docx.image.exceptions import (
    InvalidImageStreamError,
    UnexpectedEndOfFileError,
    UnrecognizedImageError,
)
from docx.image.image import Image as DocxImage

from deployspec.config import ImageFetchConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchOutcome:
    content: Optional[bytes] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.content is not None and self.error is None


class ImageFetcher:
    """Async image fetcher.

    ``transport`` is passed straight to :class:`httpx.AsyncClient`, which lets
    tests plug in :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        config: Optional[ImageFetchConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config or ImageFetchConfig()
        self.transport = transport

    async def fetch(self, url: str) -> FetchOutcome:
        target = (url or "").strip()
        if not target:
            return FetchOutcome(error="no url")
        try:
            async with httpx.AsyncClient(
                transport=self.transport,
                timeout=self.config.timeout_seconds,
                follow_redirects=True,
            ) as client:
                async with client.stream("GET", target) as response:
                    if not response.is_success:
                        return FetchOutcome(error=f"status {response.status_code}")
                    chunks: list[bytes] = []
                    received = 0
                    async for chunk in response.aiter_bytes():
                        received += len(chunk)
                        if received > self.config.max_bytes:
                            return FetchOutcome(error=f"body exceeds {self.config.max_bytes} bytes")
                        chunks.append(chunk)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return FetchOutcome(error=f"{type(exc).__name__}: {exc}")
        content = b"".join(chunks)
        return self._decode(content)

    @staticmethod
    def _decode(content: bytes) -> FetchOutcome:
        if not content:
            return FetchOutcome(error="empty body")
        try:
            DocxImage.from_blob(content)
        except (UnrecognizedImageError, InvalidImageStreamError, UnexpectedEndOfFileError) as exc:
            return FetchOutcome(error=f"undecodable image: {type(exc).__name__}")
        except Exception as exc:  # header parsers raise assorted errors on corrupt input
            return FetchOutcome(error=f"undecodable image: {exc!r}")
        return FetchOutcome(content=content)

    async def fetch_as_embeddable(self, url: str) -> Optional[bytes]:
        outcome = await self.fetch(url)
        if outcome.ok:
            logger.info("image_fetch.ok url=%s bytes=%s", url, len(outcome.content or b""))
            return outcome.content
        if (url or "").strip():
            logger.warning("image_fetch.failed url=%s reason=%s", url, outcome.error)
        return None


__all__ = ["FetchOutcome", "ImageFetcher"]
