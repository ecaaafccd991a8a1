"""Configuration utilities for the authoring service.

This module loads application configuration with the following rules:
- Primary source: `deployspec_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("deployspec_config.json")
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        # Recoverable: log and ignore unreadable override
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class ExportConfig(BaseModel):
    filename_prefix: str = "SAP_CPI_Deployment"
    extension: str = "docx"
    page_margin_inches: float = Field(default=1.0, gt=0, le=3)
    table_width_inches: float = Field(default=6.5, gt=0)
    logo_width_inches: float = Field(default=2.0, gt=0)

    @field_validator("filename_prefix", "extension")
    @classmethod
    def must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("export filename parts must be non-empty strings")
        return v.strip().lstrip(".")


class ImageFetchConfig(BaseModel):
    timeout_seconds: float = Field(default=10.0, gt=0)
    max_bytes: int = Field(default=5 * 1024 * 1024, gt=0)


class CorsConfig(BaseModel):
    origins: List[str] = Field(default_factory=lambda: ["*"])


class AppConfig(BaseModel):
    export: ExportConfig = Field(default_factory=ExportConfig)
    image: ImageFetchConfig = Field(default_factory=ImageFetchConfig)
    cors: CorsConfig = Field(default_factory=CorsConfig)


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) deployspec_config.json at project root
    4) Defaults declared on the models
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        if isinstance(cur, list):
            return ",".join(str(item) for item in cur)
        return str(cur) if cur is not None else default

    def _setting(env_key: str, file_key: str, base_key: str) -> Optional[str]:
        return _env(env_key) or _read_config_file(file_key) or _base(base_key)

    export_fields = {
        "filename_prefix": _setting("EXPORT_FILENAME_PREFIX", "export.filename_prefix", "export.filename_prefix"),
        "extension": _setting("EXPORT_EXTENSION", "export.extension", "export.extension"),
        "page_margin_inches": _setting("EXPORT_PAGE_MARGIN_INCHES", "export.page_margin_inches", "export.page_margin_inches"),
        "table_width_inches": _setting("EXPORT_TABLE_WIDTH_INCHES", "export.table_width_inches", "export.table_width_inches"),
        "logo_width_inches": _setting("EXPORT_LOGO_WIDTH_INCHES", "export.logo_width_inches", "export.logo_width_inches"),
    }
    image_fields = {
        "timeout_seconds": _setting("IMAGE_FETCH_TIMEOUT_SECONDS", "image.timeout_seconds", "image.timeout_seconds"),
        "max_bytes": _setting("IMAGE_FETCH_MAX_BYTES", "image.max_bytes", "image.max_bytes"),
    }
    origins_text = _setting("CORS_ORIGINS", "cors.origins", "cors.origins")

    try:
        cfg = AppConfig(
            # Unset values fall back to the model defaults
            export=ExportConfig(**{k: v for k, v in export_fields.items() if v is not None}),
            image=ImageFetchConfig(**{k: v for k, v in image_fields.items() if v is not None}),
            cors=CorsConfig(
                origins=[o.strip() for o in origins_text.split(",") if o.strip()] if origins_text else ["*"]
            ),
        )
        return cfg
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Process-wide configuration, loaded once."""
    return load_config()


__all__ = [
    "AppConfig",
    "ExportConfig",
    "ImageFetchConfig",
    "CorsConfig",
    "load_config",
    "get_config",
]
