# services/importer/config_loader.py
"""
Loads the importer settings from ``configs/importer.yaml`` and validates them
with a Pydantic model.  The file can contain a top‑level ``importer`` key or
just the flat mapping of settings.  A missing file means "use the defaults".

Public API:
* ``get_settings()`` – returns the cached, validated ``ImporterSettings``.
* ``load_settings(path)`` – read and validate a specific file (no caching).
* ``load_content_model(path)`` – read a JSON/YAML content model from disk.
"""

import os
from pathlib import Path
from typing import List

import yaml
from loguru import logger
from pydantic import BaseModel, Field

from models.content_model import ContentModel
from models.model_factory import content_model_from_payload


class ImporterSettings(BaseModel):
    """Engine-wide knobs.  Model-specific values live in the content model."""

    user_agent: str = "Content Importer/1.0"
    document_accept: str = "text/html"
    document_timeout: float = Field(default=20.0, gt=0)
    document_retries: int = Field(default=3, ge=1)
    document_retry_wait: float = Field(default=1.0, ge=0)
    fetch_timeout: float = Field(default=20.0, gt=0)
    default_alt: str = "Immagine"
    media_directory: str = "aicontent"
    field_prefix: str = "field_"
    image_field_names: List[str] = Field(
        default_factory=lambda: ["image", "images", "screenshot", "gallery", "media"]
    )


# ----------------------------------------------------------------------
# Internal helpers & caching
# ----------------------------------------------------------------------
# Resolve the path relative to this file (two levels up → project root)
CONFIG_PATH = (
    Path(__file__).resolve().parents[2] / "configs" / "importer.yaml"
)
CONFIG_ENV_VAR = "CONTENT_IMPORTER_CONFIG"

# Simple in‑process cache so the YAML is read/validated only once per process
_cached_settings: ImporterSettings | None = None


def _config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override) if override else CONFIG_PATH


def _load_yaml(path: Path) -> dict:
    """Read the YAML file and return the inner ``importer`` mapping."""
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
        return raw.get("importer", raw)


def load_settings(path: Path | str | None = None) -> ImporterSettings:
    """
    Validate the settings file at ``path`` (default: the configured location).
    Any validation problem raises ``ValidationError``.
    """
    path = Path(path) if path is not None else _config_path()
    if not path.is_file():
        logger.debug(f"No importer settings at {path}; using defaults")
        return ImporterSettings()
    return ImporterSettings(**_load_yaml(path))


def get_settings() -> ImporterSettings:
    global _cached_settings
    if _cached_settings is None:
        _cached_settings = load_settings()
    return _cached_settings


def reset_settings_cache() -> None:
    """Forget the cached settings (tests, or after changing the env var)."""
    global _cached_settings
    _cached_settings = None


# ----------------------------------------------------------------------
# Content models stored on disk
# ----------------------------------------------------------------------
def load_content_model(path: Path | str) -> ContentModel:
    """
    Read a content model from a ``.json``/``.yaml`` file.  YAML is a superset
    of JSON, so both go through ``yaml.safe_load``.
    """
    with Path(path).open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return content_model_from_payload(data)
