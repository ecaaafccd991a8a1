"""Path addressing over the document entity graph.

A path is a tuple of tagged segments: :class:`Key` addresses a model field or
mapping key, :class:`Index` addresses a list position. Containers are pydantic
models, mappings and lists; anything else is a leaf. No FastAPI imports here.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping, MutableSequence
from dataclasses import dataclass
from typing import Any, Iterable, Tuple, Union, get_args, get_origin

from pydantic import BaseModel


class PathResolutionError(LookupError):
    """Raised when a path does not resolve against the current snapshot."""

    def __init__(self, message: str, path: Iterable[Any] = (), depth: int | None = None) -> None:
        super().__init__(message)
        self.path = tuple(path)
        self.depth = depth


@dataclass(frozen=True)
class Key:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Index:
    position: int

    def __str__(self) -> str:
        return str(self.position)


PathSegment = Union[Key, Index]
Path = Tuple[PathSegment, ...]


def parse_segment(raw: Any) -> PathSegment:
    """Convert one raw segment into a tagged segment.

    Integers and strings of decimal digits become :class:`Index`; any other
    non-empty string becomes :class:`Key`.
    """
    if isinstance(raw, (Key, Index)):
        return raw
    if isinstance(raw, bool):
        raise PathResolutionError(f"invalid path segment {raw!r}")
    if isinstance(raw, int):
        if raw < 0:
            raise PathResolutionError(f"negative index {raw} is not addressable")
        return Index(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            raise PathResolutionError("empty path segment")
        if text.isdigit():
            return Index(int(text))
        return Key(text)
    raise PathResolutionError(f"invalid path segment {raw!r}")


def parse_path(raw: Iterable[Any]) -> Path:
    return tuple(parse_segment(seg) for seg in raw)


def format_path(path: Iterable[Any]) -> str:
    return ".".join(str(seg) for seg in path) or "<root>"


def is_container(value: Any) -> bool:
    return isinstance(value, (BaseModel, Mapping, MutableSequence))


def _fail(reason: str, path: Path, depth: int) -> PathResolutionError:
    return PathResolutionError(
        f"{reason} at segment {depth} of '{format_path(path)}'",
        path=path,
        depth=depth,
    )


def step(container: Any, segment: PathSegment, path: Path = (), depth: int = 0) -> Any:
    """Return the child of ``container`` addressed by ``segment``."""
    if isinstance(container, BaseModel):
        if isinstance(segment, Key) and segment.name in type(container).model_fields:
            return getattr(container, segment.name)
        raise _fail(f"no field '{segment}' on {type(container).__name__}", path, depth)
    if isinstance(container, Mapping):
        name = str(segment)
        if name not in container:
            raise _fail(f"missing key '{name}'", path, depth)
        return container[name]
    if isinstance(container, MutableSequence):
        if not isinstance(segment, Index):
            raise _fail(f"list cannot be addressed by key '{segment}'", path, depth)
        if segment.position >= len(container):
            raise _fail(f"index {segment.position} out of range (length {len(container)})", path, depth)
        return container[segment.position]
    raise _fail(f"cannot descend into leaf value of type {type(container).__name__}", path, depth)


def resolve(root: Any, path: Iterable[Any]) -> Any:
    """Walk ``path`` from ``root`` and return the addressed value."""
    parsed = parse_path(path)
    current = root
    for depth, segment in enumerate(parsed):
        current = step(current, segment, parsed, depth)
    return current


def resolve_parent(root: Any, path: Iterable[Any]) -> Tuple[Any, PathSegment, Path]:
    """Return ``(parent container, final segment, parsed path)`` for ``path``."""
    parsed = parse_path(path)
    if not parsed:
        raise PathResolutionError("path must contain at least one segment")
    parent = root
    for depth, segment in enumerate(parsed[:-1]):
        parent = step(parent, segment, parsed, depth)
    if not is_container(parent):
        raise _fail(f"cannot descend into leaf value of type {type(parent).__name__}", parsed, len(parsed) - 1)
    return parent, parsed[-1], parsed


def assign(parent: Any, segment: PathSegment, value: Any, path: Path = ()) -> None:
    """Replace the existing child of ``parent`` at ``segment`` with ``value``."""
    depth = max(len(path) - 1, 0)
    # Existence check shares the read-side error messages
    step(parent, segment, path, depth)
    if isinstance(parent, BaseModel):
        setattr(parent, str(segment), value)
    elif isinstance(parent, MutableMapping):
        parent[str(segment)] = value
    elif isinstance(parent, MutableSequence) and isinstance(segment, Index):
        parent[segment.position] = value
    else:
        raise _fail(f"{type(parent).__name__} is read-only", path, depth)


def expected_type(model: type, path: Iterable[Any]) -> Any:
    """Return the declared type at ``path`` of ``model``, or ``Any`` if undeclared.

    Used by callers that want to coerce raw values before handing them to the
    mutation engine; the engine itself never validates.
    """
    current: Any = model
    for segment in parse_path(path):
        if isinstance(current, type) and issubclass(current, BaseModel):
            field = current.model_fields.get(str(segment)) if isinstance(segment, Key) else None
            if field is None:
                return Any
            current = field.annotation
            continue
        if get_origin(current) is list and isinstance(segment, Index):
            args = get_args(current)
            current = args[0] if args else Any
            continue
        return Any
    return current


def list_item_type(model: type, path: Iterable[Any]) -> Any:
    """Return the element type of the list declared at ``path``, or ``Any``."""
    declared = expected_type(model, path)
    if get_origin(declared) is list:
        args = get_args(declared)
        return args[0] if args else Any
    return Any


__all__ = [
    "PathResolutionError",
    "Key",
    "Index",
    "PathSegment",
    "Path",
    "parse_segment",
    "parse_path",
    "format_path",
    "is_container",
    "step",
    "resolve",
    "resolve_parent",
    "assign",
    "expected_type",
    "list_item_type",
]
