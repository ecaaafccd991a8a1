"""Functional test fixtures.

Engine-level tests build their own store from a fixed-date seed so they do not
share state with the process-wide session. API tests go through the FastAPI
app with the session reset before each test and the image fetcher swapped for
one backed by ``httpx.MockTransport``.
"""

from __future__ import annotations

import base64
import json
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict

import httpx
import pytest
from fastapi.testclient import TestClient
from jsonschema import Draft202012Validator

from deployspec.logic.image_fetch import ImageFetcher
from deployspec.logic.mutation_engine import MutationEngine
from deployspec.logic.seed import build_seed_document
from deployspec.logic.snapshot import SnapshotStore


PROJECT_ROOT = Path(__file__).resolve().parents[2]
SCHEMAS_DIR = PROJECT_ROOT / "schemas"
SEED_DATE = date(2024, 1, 15)
LOGO_URL = "https://assets.example.test/logo.png"
UNREACHABLE_URL = "https://unreachable.example.test/logo.png"

# 1x1 transparent PNG
PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def _image_handler(request: httpx.Request) -> httpx.Response:
    url = str(request.url)
    if url == LOGO_URL:
        return httpx.Response(200, content=PNG_1X1, headers={"Content-Type": "image/png"})
    if url.startswith("https://unreachable."):
        raise httpx.ConnectError("connection refused", request=request)
    if url.endswith("/not-an-image"):
        return httpx.Response(200, content=b"<html>nope</html>", headers={"Content-Type": "text/html"})
    return httpx.Response(404, content=b"missing")


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_1X1


@pytest.fixture
def mock_transport() -> httpx.MockTransport:
    return httpx.MockTransport(_image_handler)


@pytest.fixture
def fetcher(mock_transport: httpx.MockTransport) -> ImageFetcher:
    return ImageFetcher(transport=mock_transport)


@pytest.fixture
def seed_factory() -> Callable:
    return lambda: build_seed_document(SEED_DATE)


@pytest.fixture
def store(seed_factory) -> SnapshotStore:
    return SnapshotStore(seed_factory)


@pytest.fixture
def engine(store: SnapshotStore) -> MutationEngine:
    return MutationEngine(store)


@pytest.fixture
def client(fetcher: ImageFetcher):
    from deployspec.main import create_app
    from deployspec.routes.export import get_image_fetcher

    app = create_app()
    app.dependency_overrides[get_image_fetcher] = lambda: fetcher
    with TestClient(app) as test_client:
        reset = test_client.post("/__test__/reset-state")
        assert reset.status_code == 204
        yield test_client
    app.dependency_overrides.clear()


def load_schema(name: str) -> Dict[str, Any]:
    return json.loads((SCHEMAS_DIR / name).read_text(encoding="utf-8"))


def validate(instance: Any, schema_name: str) -> None:
    """Validate ``instance`` against a schema under ``schemas/``; fail with every error listed."""
    validator = Draft202012Validator(load_schema(schema_name))
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    if errors:
        pytest.fail("; ".join(f"{list(e.path)}: {e.message}" for e in errors))
