"""Pydantic models for document write payloads.

Declared apart from the route module so payload shapes can be imported by
tests without pulling in the router. Paths are either a dotted string
(``"integration_flows.0.senders"``) or a list of segments.
"""

from __future__ import annotations

from typing import Any, List, Union

from pydantic import BaseModel, StrictInt

RawPath = Union[str, List[Union[StrictInt, str]]]


class FieldValue(BaseModel):
    value: Any


class PathValue(BaseModel):
    path: RawPath
    value: Any


class AppendRecord(BaseModel):
    path: RawPath
    record: Any


__all__ = ["RawPath", "FieldValue", "PathValue", "AppendRecord"]
