"""Central in-memory state holders for the authoring session.

Defines the single source of truth for the session's document snapshot used
by routes. The snapshot lives for the lifetime of the process; nothing is
persisted.
"""

from __future__ import annotations

from deployspec.logic.mutation_engine import MutationEngine
from deployspec.logic.seed import build_seed_document
from deployspec.logic.snapshot import SnapshotStore

# Current snapshot plus its version counter
DOCUMENT_STORE: SnapshotStore = SnapshotStore(build_seed_document)

# Engine bound to the session store; routes go through this for every write
ENGINE: MutationEngine = MutationEngine(DOCUMENT_STORE)


def get_engine() -> MutationEngine:
    """FastAPI dependency returning the session engine."""
    return ENGINE


__all__ = ["DOCUMENT_STORE", "ENGINE", "get_engine"]
