# services/importer/field_mapper.py
"""
Map the fields of one content type onto values for a ``ContentRecord``.

Each field is classified once into a ``FieldKind`` and then handled by the
branch for that kind:

* image / media references → ``MediaAssetBuilder``
* taxonomy references      → ``TaxonomyResolver``
* everything else          → first selector match, coerced per ``json_type``
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from loguru import logger

from models.content_model import ContentTypeSpec, FieldSpec
from models.entities import Asset, ContentRecord, FieldDefinition, FieldKind, RuleTrace, VocabularyRule
from .config_loader import ImporterSettings
from .document import SelectorResolver
from .fetcher import is_network_url
from .media import DEFAULT_BUNDLE, MediaAssetBuilder
from .taxonomy import TaxonomyResolver

TITLE_FIELD = "title"
INTEGER_PATTERN = re.compile(r"-?\d+")

# Storage kinds as reported by the content store
IMAGE_STORAGE = "image"
REFERENCE_STORAGE = "entity_reference"
MEDIA_TARGET = "media"
TERM_TARGET = "taxonomy_term"

Scalar = Union[int, str]


# ----------------------------------------------------------------------
#  Pure helpers
# ----------------------------------------------------------------------
def classify_field(
    name: str,
    definition: Optional[FieldDefinition],
    image_field_names: Sequence[str] = (),
) -> FieldKind:
    if name == TITLE_FIELD or definition is None:
        return FieldKind.SCALAR
    if definition.storage_type == IMAGE_STORAGE:
        return FieldKind.IMAGE_REFERENCE
    if definition.storage_type == REFERENCE_STORAGE:
        if definition.target_type == MEDIA_TARGET and name.lower() in {n.lower() for n in image_field_names}:
            return FieldKind.MEDIA_REFERENCE
        if definition.target_type == TERM_TARGET:
            return FieldKind.TAXONOMY_REFERENCE
    return FieldKind.SCALAR


def clean_int(value: Any) -> Optional[int]:
    """First signed integer inside ``value`` (``"Price: -12 EUR"`` → ``-12``)."""
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    match = INTEGER_PATTERN.search(str(value))
    return int(match.group(0)) if match else None


def coerce_scalar(value: str, json_type: str) -> Optional[Scalar]:
    if json_type == "integer":
        return clean_int(value)
    return str(value).strip()


def collection_limit(cardinality: int) -> Optional[int]:
    """How many values to collect: ``None`` means no limit."""
    return cardinality if cardinality >= 1 else None


def apply_cardinality(items: List[Any], cardinality: int) -> Any:
    """
    Single-valued fields keep the first item; multi-valued fields keep the
    list, truncated to the cardinality but never padded.  ``None`` when empty.
    """
    if not items:
        return None
    if cardinality == 1:
        return items[0]
    limit = collection_limit(cardinality)
    return items[:limit] if limit else list(items)


# ----------------------------------------------------------------------
#  Mapper
# ----------------------------------------------------------------------
class FieldMapper:
    """Turns one ``ContentTypeSpec`` into a ``ContentRecord``."""

    def __init__(
        self,
        resolver: SelectorResolver,
        media: MediaAssetBuilder,
        taxonomy: TaxonomyResolver,
        definitions: Mapping[str, FieldDefinition],
        settings: ImporterSettings,
    ):
        self._resolver = resolver
        self._media = media
        self._taxonomy = taxonomy
        self._definitions = definitions
        self._settings = settings

    def machine_name(self, name: str) -> str:
        return TITLE_FIELD if name == TITLE_FIELD else f"{self._settings.field_prefix}{name}"

    def map_content_type(self, content_type: ContentTypeSpec) -> ContentRecord:
        record = ContentRecord(type=content_type.type)
        for spec in content_type.fields:
            if not spec.name:
                continue
            machine = self.machine_name(spec.name)
            definition = self._definitions.get(machine)
            if spec.name != TITLE_FIELD and definition is None:
                logger.debug(f"Field {machine} does not exist on '{content_type.type}', skipping")
                continue

            kind = classify_field(spec.name, definition, self._settings.image_field_names)
            value = self.map_field(spec, kind)
            if value is None:
                logger.debug(f"Field {machine} ({kind.value}) produced no value")
                continue

            if spec.name == TITLE_FIELD:
                record.title = str(value)
            else:
                record.values[machine] = value
        return record

    def map_field(self, spec: FieldSpec, kind: FieldKind) -> Any:
        if kind in (FieldKind.IMAGE_REFERENCE, FieldKind.MEDIA_REFERENCE):
            return self._map_media(spec, kind)
        if kind is FieldKind.TAXONOMY_REFERENCE:
            return self._map_taxonomy(spec)
        if kind is FieldKind.SCALAR:
            return self._map_scalar(spec)
        raise ValueError(f"Unhandled field kind {kind!r}")

    # ------------------------------------------------------------------
    #  Branches
    # ------------------------------------------------------------------
    def _candidate_urls(self, spec: FieldSpec) -> List[str]:
        urls = self._resolver.resolve_all(spec.selectors)
        if not urls:
            # Same selectors as resolve_all, so this never matches today; kept
            # so single-value lookups stay the fallback if resolve_all filters more.
            maybe_url = self._resolver.resolve_first(spec.selectors)
            if maybe_url and is_network_url(maybe_url):
                urls = [maybe_url]
        return urls

    @staticmethod
    def _media_value(asset: Asset, kind: FieldKind) -> Dict[str, str]:
        if kind is FieldKind.IMAGE_REFERENCE:
            return {"target_id": asset.source_resource_id, "alt": asset.alt_text, "title": asset.alt_text}
        return {"target_id": asset.id}

    def _map_media(self, spec: FieldSpec, kind: FieldKind) -> Any:
        urls = self._candidate_urls(spec)
        if not urls:
            fallback = self._media.first_in_bundle(DEFAULT_BUNDLE)
            if fallback is None:
                return None
            logger.debug(f"Field '{spec.name}' falls back to asset {fallback.id}")
            return apply_cardinality([self._media_value(fallback, kind)], spec.cardinality)

        limit = collection_limit(spec.cardinality)
        items: List[Dict[str, str]] = []
        for url in urls:
            url = url.strip()
            if not url:
                continue
            asset = self._media.ensure_asset(url)
            if asset is not None:
                items.append(self._media_value(asset, kind))
            if limit is not None and len(items) >= limit:
                break
        return apply_cardinality(items, spec.cardinality)

    def _map_taxonomy(self, spec: FieldSpec) -> Any:
        if spec.vocabulary:
            vocabulary = spec.vocabulary
            self._taxonomy.rules.append(
                RuleTrace(subject=spec.name, rule=VocabularyRule.EXPLICIT.value, value=vocabulary)
            )
        else:
            match = self._taxonomy.infer_vocabulary(spec.name)
            if match is None:
                return None
            vocabulary = match.vocabulary

        labels = self._resolver.resolve_all(spec.selectors) or self._taxonomy.seed_terms(vocabulary)
        limit = collection_limit(spec.cardinality)
        refs: List[Dict[str, str]] = []
        for label in labels:
            term_id = self._taxonomy.ensure_term(vocabulary, label)
            if term_id is None:
                continue
            refs.append({"target_id": term_id})
            if limit is not None and len(refs) >= limit:
                break
        return apply_cardinality(refs, spec.cardinality)

    def _map_scalar(self, spec: FieldSpec) -> Optional[Scalar]:
        value = self._resolver.resolve_first(spec.selectors)
        if value is None:
            return None
        return coerce_scalar(value, spec.json_type)
