# models/model_factory.py
from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from loguru import logger
from pydantic import ValidationError

from .content_model import ContentModel

_SECTION_KEYS = (
    "content_types",
    "contentTypes",
    "taxonomies",
    "media_bundles",
    "mediaBundles",
)


def _looks_like_model(data: Any) -> bool:
    return isinstance(data, Mapping) and any(k in data for k in _SECTION_KEYS)


def _unwrap(decoded: Any) -> Optional[Mapping[str, Any]]:
    """
    Find the model inside a decoded payload.

    Accepted shapes:
    • a flat model ``{"content_types": [...], ...}``
    • a wrapper ``{"action": "...", "model": {...}}``
    • a list whose first element is either of the above
    """
    if _looks_like_model(decoded):
        return decoded
    if isinstance(decoded, Mapping) and isinstance(decoded.get("model"), Mapping):
        return decoded["model"]
    if isinstance(decoded, list) and decoded:
        first = decoded[0]
        if isinstance(first, Mapping) and isinstance(first.get("model"), Mapping):
            return first["model"]
        if _looks_like_model(first):
            return first
    return None


def content_model_from_payload(raw: Any) -> ContentModel:
    """
    Build a :class:`models.content_model.ContentModel` from whatever the
    caller has at hand: a ``dict``, a JSON string/bytes, a wrapper object, or
    an already validated model.

    Never raises: unreadable payloads produce an empty model and a warning,
    so the import degrades to "nothing to do" instead of crashing.

    Example
    -------
    >>> model = content_model_from_payload('{"model": {"content_types": [{"type": "page"}]}}')
    >>> model.primary_content_type().type
    'page'
    """
    if isinstance(raw, ContentModel):
        return raw

    decoded: Any = raw
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        text = raw.lstrip("\ufeff").strip()
        if not text:
            return ContentModel()
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning(f"Content model is not valid JSON: {exc}")
            return ContentModel()

    data = _unwrap(decoded)
    if data is None:
        if decoded:
            logger.warning("Payload does not contain a recognisable content model")
        return ContentModel()

    try:
        return ContentModel.model_validate(dict(data))
    except ValidationError as exc:
        logger.warning(f"Content model failed validation: {exc}")
        return ContentModel()
