"""Snapshot ETag helpers.

Each installed snapshot has a version; the weak ETag ``W/"snapshot-v<n>"``
lets clients detect that list positions they hold may have shifted.
"""

from __future__ import annotations

import re
from typing import Optional

_TOKEN_RE = re.compile(r'^(?:W/)?"snapshot-v(\d+)"$')


def snapshot_etag(version: int) -> str:
    return f'W/"snapshot-v{int(version)}"'


def parse_if_match(header: Optional[str]) -> list[str]:
    """Split an If-Match header into its raw tokens."""
    if not header:
        return []
    return [tok.strip() for tok in header.split(",") if tok.strip()]


def if_match_satisfied(header: Optional[str], version: int) -> bool:
    """Return True when ``header`` is absent, ``*`` or names ``version``.

    Weak and strong forms of the same token both match.
    """
    tokens = parse_if_match(header)
    if not tokens:
        return True
    for token in tokens:
        if token == "*":
            return True
        m = _TOKEN_RE.match(token)
        if m and int(m.group(1)) == int(version):
            return True
    return False


__all__ = ["snapshot_etag", "parse_if_match", "if_match_satisfied"]
