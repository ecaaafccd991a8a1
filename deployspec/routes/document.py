"""Document authoring endpoints.

Reads return the current snapshot (or a value inside it) with the snapshot
ETag. Writes coerce the incoming value to the declared type of its target,
check an optional If-Match against the snapshot ETag and then delegate to the
mutation engine. Handlers are ``async def`` so writes run one at a time on
the event loop.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response
from fastapi.encoders import jsonable_encoder
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from deployspec.logic.etag import if_match_satisfied, snapshot_etag
from deployspec.logic.inmemory_state import get_engine
from deployspec.logic.mutation_engine import MutationEngine
from deployspec.logic.paths import expected_type, format_path, list_item_type, parse_path
from deployspec.logic.problem_factory import problem_pre_if_match_mismatch, problem_value_invalid
from deployspec.models.document import Document
from deployspec.models.mutation import AppendRecord, FieldValue, PathValue, RawPath


router = APIRouter()
logger = logging.getLogger(__name__)


def split_path(raw: RawPath) -> list:
    """Dotted strings split on '.'; an empty string addresses the root."""
    if isinstance(raw, str):
        return raw.split(".") if raw else []
    return list(raw)


def _coerce(target_type: Any, value: Any, path: list) -> Any:
    if target_type is Any:
        return value
    try:
        return TypeAdapter(target_type).validate_python(value)
    except PydanticValidationError as exc:
        errors = [{k: e[k] for k in ("loc", "msg", "type") if k in e} for e in exc.errors()]
        text = format_path(parse_path(path))
        logger.info("value_invalid path=%s errors=%s", text, len(errors))
        raise HTTPException(
            status_code=422,
            detail=problem_value_invalid(f"value does not fit '{text}'", text, jsonable_encoder(errors)),
        ) from exc


def _require_current(engine: MutationEngine, if_match: Optional[str]) -> None:
    version = engine.store.version
    if not if_match_satisfied(if_match, version):
        current = snapshot_etag(version)
        logger.info("if_match_mismatch supplied=%s current=%s", if_match, current)
        raise HTTPException(
            status_code=412,
            detail=problem_pre_if_match_mismatch(current),
            headers={"ETag": current},
        )


def _stamp(response: Response, engine: MutationEngine) -> int:
    version = engine.store.version
    response.headers["ETag"] = snapshot_etag(version)
    return version


@router.get("/document", summary="Current document snapshot")
async def get_document(response: Response, engine: MutationEngine = Depends(get_engine)) -> dict:
    doc = engine.current()
    _stamp(response, engine)
    return doc.model_dump(mode="json")


@router.get("/document/value", summary="Value at a path")
async def get_value(
    response: Response,
    path: str = Query("", description="Dotted path, e.g. integration_flows.0.name"),
    engine: MutationEngine = Depends(get_engine),
) -> dict:
    segments = split_path(path)
    value = engine.get(segments)
    _stamp(response, engine)
    return {"path": format_path(parse_path(segments)), "value": jsonable_encoder(value)}


@router.get("/document/locate", summary="Current position of a list entry by field value")
async def locate_item(
    response: Response,
    path: str = Query(...),
    field: str = Query("id"),
    value: str = Query(...),
    engine: MutationEngine = Depends(get_engine),
) -> dict:
    segments = split_path(path)
    wanted = _coerce(expected_type(Document, segments + [0, field]), value, segments + [0, field])
    index = engine.locate(segments, field, wanted)
    _stamp(response, engine)
    return {"path": format_path(parse_path(segments)), "field": field, "value": value, "index": index}


@router.patch("/document/sections/{section}/fields/{field}", summary="Set a top-level field of a section")
async def patch_section_field(
    section: str,
    field: str,
    body: FieldValue,
    response: Response,
    if_match: Optional[str] = Header(None, alias="If-Match"),
    engine: MutationEngine = Depends(get_engine),
) -> dict:
    _require_current(engine, if_match)
    value = _coerce(expected_type(Document, [section, field]), body.value, [section, field])
    engine.set_field(section, field, value)
    version = _stamp(response, engine)
    return {
        "path": f"{section}.{field}",
        "value": jsonable_encoder(engine.get([section, field])),
        "version": version,
    }


@router.put("/document/value", summary="Replace the value at a path")
async def put_value(
    body: PathValue,
    response: Response,
    if_match: Optional[str] = Header(None, alias="If-Match"),
    engine: MutationEngine = Depends(get_engine),
) -> dict:
    _require_current(engine, if_match)
    segments = split_path(body.path)
    value = _coerce(expected_type(Document, segments), body.value, segments)
    engine.set_by_path(segments, value)
    version = _stamp(response, engine)
    return {
        "path": format_path(parse_path(segments)),
        "value": jsonable_encoder(engine.get(segments)),
        "version": version,
    }


@router.post("/document/items", status_code=201, summary="Append a record to a list")
async def append_item(
    body: AppendRecord,
    response: Response,
    if_match: Optional[str] = Header(None, alias="If-Match"),
    engine: MutationEngine = Depends(get_engine),
) -> dict:
    _require_current(engine, if_match)
    segments = split_path(body.path)
    record = _coerce(list_item_type(Document, segments), body.record, segments)
    index = engine.append(segments, record)
    version = _stamp(response, engine)
    return {"path": format_path(parse_path(segments)), "index": index, "version": version}


@router.delete("/document/items", summary="Remove a list entry by position")
async def remove_item(
    response: Response,
    path: str = Query(...),
    index: int = Query(...),
    if_match: Optional[str] = Header(None, alias="If-Match"),
    engine: MutationEngine = Depends(get_engine),
) -> dict:
    _require_current(engine, if_match)
    segments = split_path(path)
    removed = engine.remove(segments, index)
    version = _stamp(response, engine)
    return {
        "path": format_path(parse_path(segments)),
        "index": index,
        "removed": jsonable_encoder(removed),
        "version": version,
    }


__all__ = ["router", "split_path"]
