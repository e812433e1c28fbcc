# models/content_model.py
"""
Pydantic schema for the declarative *content model* that drives an import.

A model describes which content type to build from a page, the selectors
for each of its fields, the taxonomies (and seed terms) the page may use,
and the media bundles whose items should be downloaded up front.

Model authors write keys in two flavours, so every field accepts both:
the snake_case form (``content_types``, ``media_bundles``, ``xpaths``,
``default_alt``) and the camelCase form (``contentTypes``, ``mediaBundles``,
``selectors``, ``defaultAlt``).  Missing keys fall back to empty lists or
defaults; unknown keys are ignored.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# Cardinality value used for "as many values as the page provides"
UNLIMITED = -1


def _as_list(value: Any) -> list:
    """``None`` → ``[]``, a lone scalar → ``[scalar]``, lists untouched."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class _ModelPart(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ----------------------------------------------------------------------
#  Fields & content types
# ----------------------------------------------------------------------
class FieldSpec(_ModelPart):
    """One field of a content type together with its extraction rules."""

    name: str = ""
    label: str = ""
    json_type: str = Field(
        default="string",
        validation_alias=AliasChoices("jsonType", "json_type", "type"),
    )
    selectors: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("selectors", "xpaths"),
    )
    cardinality: int = 1
    required: bool = False
    vocabulary: Optional[str] = None

    @field_validator("name", "label", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("json_type", mode="before")
    @classmethod
    def _default_json_type(cls, value: Any) -> str:
        return str(value) if value else "string"

    @field_validator("selectors", mode="before")
    @classmethod
    def _selector_list(cls, value: Any) -> List[str]:
        return [str(s) for s in _as_list(value) if s]

    @field_validator("cardinality", mode="before")
    @classmethod
    def _normalise_cardinality(cls, value: Any) -> int:
        """
        Accept ``1``, ``"3"``, ``-1`` and ``"unlimited"``.  Anything below 1
        means unlimited, a missing or unreadable value means single-valued.
        """
        if value is None or value == "":
            return 1
        if isinstance(value, str):
            text = value.strip().lower()
            if text == "unlimited":
                return UNLIMITED
            value = text
        try:
            number = int(float(value))
        except (TypeError, ValueError):
            return 1
        return UNLIMITED if number < 1 else number

    @property
    def is_unlimited(self) -> bool:
        return self.cardinality == UNLIMITED


class ContentTypeSpec(_ModelPart):
    """A target bundle (e.g. ``article``) and its fields."""

    type: str = ""
    label: str = ""
    description: str = ""
    fields: List[FieldSpec] = Field(default_factory=list)

    @field_validator("type", "label", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("fields", mode="before")
    @classmethod
    def _field_list(cls, value: Any) -> list:
        return _as_list(value)

    def field(self, name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None


# ----------------------------------------------------------------------
#  Taxonomies
# ----------------------------------------------------------------------
class TaxonomySpec(_ModelPart):
    """A vocabulary with an optional label and seed terms."""

    vocabulary: str = ""
    label: str = ""
    terms: List[str] = Field(default_factory=list)

    @field_validator("vocabulary", "label", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("terms", mode="before")
    @classmethod
    def _term_list(cls, value: Any) -> List[str]:
        return [str(t) for t in _as_list(value) if t is not None]


# ----------------------------------------------------------------------
#  Media bundles
# ----------------------------------------------------------------------
class MediaItem(_ModelPart):
    url: str = ""
    alt: Optional[str] = None

    @field_validator("url", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)


class MediaBundleSpec(_ModelPart):
    """Items to download into a media bundle before fields are mapped."""

    bundle: str = "image"
    items: List[MediaItem] = Field(default_factory=list)

    @field_validator("bundle", mode="before")
    @classmethod
    def _default_bundle(cls, value: Any) -> str:
        return "image" if value is None else str(value)

    @field_validator("items", mode="before")
    @classmethod
    def _item_list(cls, value: Any) -> list:
        # Bare strings are shorthand for {"url": ...}
        return [{"url": v} if isinstance(v, str) else v for v in _as_list(value)]


# ----------------------------------------------------------------------
#  Root model
# ----------------------------------------------------------------------
class ContentModel(_ModelPart):
    """Root configuration for one import run.  Treated as read-only."""

    content_types: List[ContentTypeSpec] = Field(
        default_factory=list,
        validation_alias=AliasChoices("contentTypes", "content_types"),
    )
    taxonomies: List[TaxonomySpec] = Field(default_factory=list)
    media_bundles: List[MediaBundleSpec] = Field(
        default_factory=list,
        validation_alias=AliasChoices("mediaBundles", "media_bundles"),
    )
    default_alt: str = Field(
        default="",
        validation_alias=AliasChoices("defaultAlt", "default_alt"),
    )

    @field_validator("content_types", "taxonomies", "media_bundles", mode="before")
    @classmethod
    def _section_list(cls, value: Any) -> list:
        return _as_list(value)

    @field_validator("default_alt", mode="before")
    @classmethod
    def _strip_default_alt(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    # ------------------------------------------------------------------
    def primary_content_type(self) -> Optional[ContentTypeSpec]:
        """The first content type with a non-empty ``type``; one per run."""
        for content_type in self.content_types:
            if content_type.type:
                return content_type
        return None

    def taxonomy(self, vocabulary: str) -> Optional[TaxonomySpec]:
        for taxonomy in self.taxonomies:
            if taxonomy.vocabulary == vocabulary:
                return taxonomy
        return None

    def is_empty(self) -> bool:
        return not (self.content_types or self.taxonomies or self.media_bundles)

    def summary(self) -> str:
        """Short plain-text overview of the model, e.g. for confirmation prompts."""
        fields = [f for ct in self.content_types for f in ct.fields]
        required = sum(1 for f in fields if f.required)
        return (
            f"{len(self.content_types)} content type(s), "
            f"{len(fields)} field(s) ({required} required), "
            f"{len(self.taxonomies)} taxonomie(s), "
            f"{len(self.media_bundles)} media bundle(s)."
        )
