# services/importer/store.py
"""
The content store collaborator and an in‑memory implementation of it.

The importer never talks to a concrete CMS; anything that implements
``ContentStore`` can receive the entity graph.  ``MemoryStore`` keeps
everything in dictionaries (optionally writing media bytes to a directory)
and is what the test-suite and dry inspections use.
"""

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

from loguru import logger

from models.entities import FieldDefinition, Term


class ContentStore(Protocol):
    def write_bytes(self, data: bytes, suggested_path: str) -> str:
        ...

    def create_asset(self, bundle: str, resource_id: str, alt_text: str) -> str:
        ...

    def create_term(self, vocabulary: str, name: str) -> str:
        ...

    def terms_by_vocabulary(self, vocabulary: str) -> List[Term]:
        ...

    def create_record(self, content_type: str, field_values: Mapping[str, Any]) -> str:
        ...

    def field_definitions(self, content_type: str) -> Mapping[str, FieldDefinition]:
        ...

    def has_bundle(self, bundle: str) -> bool:
        ...


@dataclass
class StoredFile:
    id: str
    path: str
    size: int


@dataclass
class StoredAsset:
    id: str
    bundle: str
    resource_id: str
    alt_text: str


@dataclass
class StoredRecord:
    id: str
    type: str
    values: Dict[str, Any] = field(default_factory=dict)


class MemoryStore:
    """
    Dictionary-backed ``ContentStore``.

    Parameters
    ----------
    field_definitions:
        ``{content_type: {machine_name: FieldDefinition}}``.
    bundles:
        Media bundles that exist in the store.
    terms:
        Pre-existing terms, ``{vocabulary: [name, ...]}``.
    media_root:
        When set, written bytes are also saved under this directory.
    """

    def __init__(
        self,
        field_definitions: Optional[Mapping[str, Mapping[str, FieldDefinition]]] = None,
        bundles: Iterable[str] = ("image",),
        terms: Optional[Mapping[str, Iterable[str]]] = None,
        media_root: Optional[Path] = None,
    ):
        self._definitions = {ct: dict(defs) for ct, defs in (field_definitions or {}).items()}
        self.bundles = set(bundles)
        self.media_root = Path(media_root) if media_root else None

        self.files: Dict[str, StoredFile] = {}
        self.assets: Dict[str, StoredAsset] = {}
        self.terms: Dict[str, Term] = {}
        self.records: Dict[str, StoredRecord] = {}
        self._next_id = 0

        for vocabulary, names in (terms or {}).items():
            for name in names:
                self.create_term(vocabulary, name)

    def _new_id(self) -> str:
        self._next_id += 1
        return str(self._next_id)

    # ------------------------------------------------------------------
    #  Files & media
    # ------------------------------------------------------------------
    def _unique_path(self, suggested_path: str) -> str:
        """Rename on collision: ``a.png`` → ``a_0.png`` → ``a_1.png`` …"""
        taken = {f.path for f in self.files.values()}
        if suggested_path not in taken:
            return suggested_path
        path = PurePosixPath(suggested_path)
        index = 0
        while True:
            candidate = str(path.with_name(f"{path.stem}_{index}{path.suffix}"))
            if candidate not in taken:
                return candidate
            index += 1

    def write_bytes(self, data: bytes, suggested_path: str) -> str:
        path = self._unique_path(suggested_path)
        if self.media_root is not None:
            destination = self.media_root / path
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(data)
        stored = StoredFile(id=self._new_id(), path=path, size=len(data))
        self.files[stored.id] = stored
        return stored.id

    def create_asset(self, bundle: str, resource_id: str, alt_text: str) -> str:
        if bundle not in self.bundles:
            raise KeyError(f"Unknown media bundle '{bundle}'")
        if resource_id not in self.files:
            raise KeyError(f"Unknown file '{resource_id}'")
        asset = StoredAsset(id=self._new_id(), bundle=bundle, resource_id=resource_id, alt_text=alt_text)
        self.assets[asset.id] = asset
        return asset.id

    def has_bundle(self, bundle: str) -> bool:
        return bundle in self.bundles

    # ------------------------------------------------------------------
    #  Taxonomy
    # ------------------------------------------------------------------
    def create_term(self, vocabulary: str, name: str) -> str:
        term = Term(id=self._new_id(), vocabulary=vocabulary, name=name)
        self.terms[term.id] = term
        return term.id

    def terms_by_vocabulary(self, vocabulary: str) -> List[Term]:
        return [t for t in self.terms.values() if t.vocabulary == vocabulary]

    # ------------------------------------------------------------------
    #  Records
    # ------------------------------------------------------------------
    def field_definitions(self, content_type: str) -> Mapping[str, FieldDefinition]:
        return self._definitions.get(content_type, {})

    def create_record(self, content_type: str, field_values: Mapping[str, Any]) -> str:
        record = StoredRecord(id=self._new_id(), type=content_type, values=dict(field_values))
        self.records[record.id] = record
        logger.debug(f"Stored {content_type} record {record.id}")
        return record.id
