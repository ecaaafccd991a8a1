"""Path-addressed mutation engine.

Every write follows the same sequence: clone the current snapshot, walk the
path on the clone, change the clone, install it. A failure anywhere before the
install leaves the current snapshot untouched, so readers only ever see whole
snapshots. Incoming values are copied before they are stored, so a
caller keeps no handle into an installed snapshot. The engine does not validate values against the model schema and
does not guard against reentrant calls.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import MutableSequence
from typing import Any, Callable, Iterable, Optional

from pydantic import BaseModel

from deployspec.logic import events
from deployspec.logic.paths import (
    Index,
    Key,
    Path,
    PathResolutionError,
    format_path,
    parse_path,
    resolve,
    resolve_parent,
    assign,
    step,
)
from deployspec.logic.snapshot import SnapshotStore
from deployspec.models.document import Document

logger = logging.getLogger(__name__)


def detached(value: Any) -> Any:
    """Copy of ``value`` that shares nothing with the caller's object."""
    if isinstance(value, BaseModel):
        return value.model_copy(deep=True)
    return copy.deepcopy(value)


class MutationEngine:
    def __init__(self, store: SnapshotStore) -> None:
        self.store = store

    # ----------------------
    # Reads
    # ----------------------

    def current(self) -> Document:
        return self.store.current()

    def get(self, path: Iterable[Any]) -> Any:
        return resolve(self.store.current(), path)

    def locate(self, path: Iterable[Any], field: str, value: Any) -> Optional[int]:
        """Return the current position of the entry whose ``field`` equals ``value``.

        Callers that keep a "selected" entry must re-resolve it this way after a
        removal; the engine never rewrites indices held outside the snapshot.
        """
        items = self._require_list(self.store.current(), parse_path(path))
        for position, item in enumerate(items):
            if isinstance(item, dict):
                candidate = item.get(field)
            else:
                candidate = getattr(item, field, None)
            if candidate == value:
                return position
        return None

    # ----------------------
    # Writes
    # ----------------------

    def set_field(self, section: str, field: str, value: Any) -> Document:
        """Replace a top-level field of a record section."""
        def change(doc: Document) -> Path:
            path = parse_path([section, field])
            container = step(doc, path[0], path, 0)
            if isinstance(container, MutableSequence):
                raise PathResolutionError(
                    f"section '{section}' is a list; address its entries with a path",
                    path=path,
                    depth=0,
                )
            assign(container, path[1], detached(value), path)
            return path

        return self._apply("set_field", change)

    def set_by_path(self, path: Iterable[Any], value: Any) -> Document:
        """Replace the value at ``path``."""
        def change(doc: Document) -> Path:
            parent, last, parsed = resolve_parent(doc, path)
            assign(parent, last, detached(value), parsed)
            return parsed

        return self._apply("set_by_path", change)

    def append(self, path: Iterable[Any], record: Any) -> int:
        """Push ``record`` onto the list at ``path`` and return its index."""
        positions: list[int] = []

        def change(doc: Document) -> Path:
            parsed = parse_path(path)
            items = self._require_list(doc, parsed)
            items.append(detached(record))
            positions.append(len(items) - 1)
            return parsed

        self._apply("append", change)
        return positions[0]

    def remove(self, path: Iterable[Any], index: int) -> Any:
        """Delete the entry at ``index`` from the list at ``path``.

        Later entries shift down by one. An index outside the list is a
        :class:`PathResolutionError`; nothing is installed in that case.
        """
        removed: list[Any] = []

        def change(doc: Document) -> Path:
            parsed = parse_path(path)
            items = self._require_list(doc, parsed)
            target = parse_path([index])[0]
            full = parsed + (target,)
            # Range check with the same message as a read
            step(items, target, full, len(parsed))
            removed.append(items.pop(target.position))
            return full

        self._apply("remove", change)
        return removed[0]

    # ----------------------
    # Internals
    # ----------------------

    @staticmethod
    def _require_list(doc: Document, parsed: Path) -> MutableSequence:
        target = resolve(doc, parsed)
        if not isinstance(target, MutableSequence):
            raise PathResolutionError(
                f"'{format_path(parsed)}' does not address a list",
                path=parsed,
                depth=max(len(parsed) - 1, 0),
            )
        return target

    def _apply(self, operation: str, change: Callable[[Document], Path]) -> Document:
        base_version = self.store.version
        draft = self.store.clone()
        try:
            touched = change(draft)
        except PathResolutionError as exc:
            logger.warning("mutation.%s.rejected reason=%s", operation, exc)
            raise
        version = self.store.install(draft, expected_version=base_version)
        logger.info("mutation.%s path=%s version=%s", operation, format_path(touched), version)
        events.publish(
            events.DOCUMENT_MUTATED,
            {"operation": operation, "path": [str(seg) for seg in touched], "version": version},
        )
        return draft


__all__ = ["MutationEngine", "detached", "PathResolutionError", "Key", "Index"]
