"""Snapshot holder and clone service.

A snapshot is one :class:`~deployspec.models.document.Document` instance. The
store never edits the installed snapshot; writers clone it, change the clone
and hand the clone back to :meth:`SnapshotStore.install`.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from deployspec.models.document import Document

logger = logging.getLogger(__name__)


def clone_document(doc: Document) -> Document:
    """Return an independent deep copy of ``doc`` (no shared substructure)."""
    return doc.model_copy(deep=True)


class SnapshotStore:
    """Holds the current snapshot and a monotonic snapshot version."""

    def __init__(self, seed_factory: Callable[[], Document]) -> None:
        self._seed_factory = seed_factory
        self._current: Document = seed_factory()
        self._version = 1

    @property
    def version(self) -> int:
        return self._version

    def current(self) -> Document:
        return self._current

    def clone(self) -> Document:
        return clone_document(self._current)

    def install(self, snapshot: Document, *, expected_version: Optional[int] = None) -> int:
        """Make ``snapshot`` current and return the new version.

        ``expected_version`` guards against installing a clone taken from an
        older snapshot.
        """
        if expected_version is not None and expected_version != self._version:
            raise RuntimeError(
                f"snapshot version moved from {expected_version} to {self._version} during mutation"
            )
        if snapshot is self._current:
            raise ValueError("refusing to install the current snapshot in place")
        self._current = snapshot
        self._version += 1
        logger.debug("snapshot.install version=%s", self._version)
        return self._version

    def reset(self) -> int:
        """Reinstall a fresh seed snapshot."""
        return self.install(self._seed_factory())


__all__ = ["clone_document", "SnapshotStore"]
