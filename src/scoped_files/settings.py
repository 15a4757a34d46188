"""Configuration for the file access service."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_TEXT_EXTENSIONS = (
    "txt", "md", "js", "jsx", "ts", "tsx", "html", "css", "json",
    "csv", "xml", "py", "java", "c", "cpp", "h", "rb",
)


def _normalize_extensions(values: list[str]) -> list[str]:
    return [value.strip().lstrip(".").lower() for value in values if value.strip()]


class AccessSettings(BaseModel):
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, gt=0)
    allowed_extensions: Optional[list[str]] = None  # None allows every extension
    text_extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_TEXT_EXTENSIONS))
    store_path: Optional[str] = None
    debug: bool = False

    @field_validator("allowed_extensions")
    @classmethod
    def _normalize_allowed(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return None
        return _normalize_extensions(value)

    @field_validator("text_extensions")
    @classmethod
    def _normalize_text(cls, value: list[str]) -> list[str]:
        return _normalize_extensions(value)


def load_settings(path: Path) -> AccessSettings:
    if not path.exists():
        logger.debug("No settings file at %s, using defaults", path)
        return AccessSettings()
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        return AccessSettings()
    if not isinstance(raw, dict):
        raise ValueError(f"Settings file {path} must contain a mapping.")
    return AccessSettings.model_validate(raw)
