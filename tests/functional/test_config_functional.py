"""Functional tests for configuration loading and precedence."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from deployspec.config import ExportConfig, load_config


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for key in (
        "EXPORT_FILENAME_PREFIX",
        "EXPORT_EXTENSION",
        "EXPORT_PAGE_MARGIN_INCHES",
        "EXPORT_TABLE_WIDTH_INCHES",
        "EXPORT_LOGO_WIDTH_INCHES",
        "IMAGE_FETCH_TIMEOUT_SECONDS",
        "IMAGE_FETCH_MAX_BYTES",
        "CORS_ORIGINS",
    ):
        monkeypatch.delenv(key, raising=False)
    return tmp_path


def test_defaults_without_any_source():
    cfg = load_config()
    assert cfg.export.filename_prefix == "SAP_CPI_Deployment"
    assert cfg.export.extension == "docx"
    assert cfg.export.page_margin_inches == 1.0
    assert cfg.image.timeout_seconds == 10.0
    assert cfg.image.max_bytes == 5 * 1024 * 1024
    assert cfg.cors.origins == ["*"]


def test_json_file_then_config_dir_then_env(isolated_cwd, monkeypatch):
    (isolated_cwd / "deployspec_config.json").write_text(
        json.dumps({"export": {"filename_prefix": "FromJson", "extension": "docx"}, "cors": {"origins": ["https://a.test"]}}),
        encoding="utf-8",
    )
    assert load_config().export.filename_prefix == "FromJson"
    assert load_config().cors.origins == ["https://a.test"]

    (isolated_cwd / "config").mkdir()
    (isolated_cwd / "config" / "export.filename_prefix").write_text("FromFile\n", encoding="utf-8")
    assert load_config().export.filename_prefix == "FromFile"

    monkeypatch.setenv("EXPORT_FILENAME_PREFIX", "FromEnv")
    assert load_config().export.filename_prefix == "FromEnv"


def test_env_values_are_coerced(monkeypatch):
    monkeypatch.setenv("EXPORT_PAGE_MARGIN_INCHES", "0.5")
    monkeypatch.setenv("IMAGE_FETCH_MAX_BYTES", "1024")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.test, https://b.test")

    cfg = load_config()
    assert cfg.export.page_margin_inches == 0.5
    assert cfg.image.max_bytes == 1024
    assert cfg.cors.origins == ["https://a.test", "https://b.test"]


def test_invalid_value_raises_after_logging(monkeypatch, caplog):
    monkeypatch.setenv("EXPORT_PAGE_MARGIN_INCHES", "-2")
    with pytest.raises(ValidationError):
        load_config()
    assert any("Invalid application configuration" in r.getMessage() for r in caplog.records)


def test_extension_leading_dot_is_stripped():
    assert ExportConfig(extension=".docx").extension == "docx"
    with pytest.raises(ValidationError):
        ExportConfig(filename_prefix="  ")
