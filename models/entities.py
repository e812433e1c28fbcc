# models/entities.py
"""
Entities produced (or consulted) during a single import run.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ----------------------------------------------------------------------
#  Field classification – resolved once per field, then dispatched on
# ----------------------------------------------------------------------
class FieldKind(str, Enum):
    SCALAR = "scalar"
    IMAGE_REFERENCE = "image_reference"          # raw image storage (file + alt/title)
    MEDIA_REFERENCE = "media_reference"          # reference to a media entity
    TAXONOMY_REFERENCE = "taxonomy_reference"


# ----------------------------------------------------------------------
#  Fallback rules – recorded so tests and callers can see which one fired
# ----------------------------------------------------------------------
class UrlRule(str, Enum):
    ABSOLUTE = "absolute"            # already has a network or file scheme
    JOINED_URL = "joined_url"        # joined against a network base URL
    LOCAL_FILE = "local_file"        # joined against a base dir and found on disk
    UNRESOLVED = "unresolved"        # passed through unchanged


class AltRule(str, Enum):
    ITEM_ALT = "item_alt"
    PAGE_TITLE = "page_title"
    MODEL_DEFAULT = "model_default"
    HARD_DEFAULT = "hard_default"


class VocabularyRule(str, Enum):
    EXPLICIT = "explicit"
    EXACT_NAME = "exact_name"
    SINGLE_TAXONOMY = "single_taxonomy"
    TAGS_SPECIAL_CASE = "tags_special_case"
    CONTAINS_FIELD_NAME = "contains_field_name"


class RuleTrace(BaseModel):
    """Which fallback rule produced a value for a given subject (URL, field…)."""
    subject: str
    rule: str
    value: Optional[str] = None


# ----------------------------------------------------------------------
#  Store-side descriptions and produced entities
# ----------------------------------------------------------------------
class FieldDefinition(BaseModel):
    """Storage description of a field as the target store knows it."""
    storage_type: str
    target_type: Optional[str] = None


class Asset(BaseModel):
    id: str
    source_resource_id: str
    alt_text: str
    bundle: str = "image"
    url: str = ""


class Term(BaseModel):
    id: str
    vocabulary: str
    name: str


class ContentRecord(BaseModel):
    """The mapped record: a title slot plus machine-name → value pairs."""

    type: str
    title: Optional[str] = None
    values: Dict[str, Any] = Field(default_factory=dict)

    def field_values(self) -> Dict[str, Any]:
        """Flatten into the payload handed to ``ContentStore.create_record``."""
        payload: Dict[str, Any] = {}
        if self.title is not None:
            payload["title"] = self.title
        payload.update(self.values)
        return payload


class ImportResult(BaseModel):
    """
    Outcome of a run.  ``record_id`` is ``None`` when nothing was created
    (no usable content type, a failed document download, or a dry run).
    """

    record_id: Optional[str] = None
    record: Optional[ContentRecord] = None
    assets: List[Asset] = Field(default_factory=list)
    terms: List[Term] = Field(default_factory=list)
    rules: List[RuleTrace] = Field(default_factory=list)
    dry_run: bool = False

    @property
    def succeeded(self) -> bool:
        return self.record_id is not None

    def rules_for(self, subject: str) -> List[RuleTrace]:
        return [trace for trace in self.rules if trace.subject == subject]
