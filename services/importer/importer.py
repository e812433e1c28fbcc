# services/importer/importer.py
"""
Import one HTML document into a content store, driven by a content model.

Order of operations (fixed; later phases read the caches of earlier ones):
 1) media   – download the model's media bundles into assets
 2) taxonomy – seed declared terms and build the term lookup
 3) content – map the first content type's fields and create the record
"""

from pathlib import Path
from typing import Any, Optional, Tuple, Union

from loguru import logger

from models.entities import ImportResult
from models.model_factory import content_model_from_payload
from .config_loader import ImporterSettings, get_settings
from .document import DocumentIndex, SelectorResolver, infer_page_title
from .exceptions import DocumentFetchError, RecordCreationError
from .fetcher import FetchClient, HttpxFetchClient, ResourceFetcher, fetch_document
from .field_mapper import FieldMapper
from .media import MediaAssetBuilder
from .metrics import IMPORT_DURATION, RECORD_FAILURES, RECORDS_CREATED
from .store import ContentStore
from .taxonomy import TaxonomyResolver

Source = Union[str, bytes, Path]

# Longer strings are always treated as markup, never probed as paths
_MAX_PATH_LENGTH = 4096


def load_source(source: Source) -> Tuple[Union[str, bytes], Optional[str]]:
    """
    Return ``(markup, base_dir)`` for raw markup or a path to a local file.
    For a file, its resolved parent directory becomes the base for relative URLs.
    """
    path: Optional[Path] = None
    if isinstance(source, Path):
        path = source
    elif isinstance(source, str) and "<" not in source and 0 < len(source) < _MAX_PATH_LENGTH:
        try:
            if Path(source).is_file():
                path = Path(source)
        except (OSError, ValueError):
            path = None

    if path is None:
        return source, None
    try:
        markup = path.read_bytes()
    except OSError as exc:
        logger.warning(f"Cannot read HTML file {path}: {exc}")
        markup = b""
    return markup, str(path.resolve().parent)


class ContentImporter:
    """
    Entry point for callers.  Holds only long-lived collaborators; every
    call builds fresh run-scoped caches, so one instance can be reused.
    """

    def __init__(
        self,
        store: ContentStore,
        client: Optional[FetchClient] = None,
        settings: Optional[ImporterSettings] = None,
    ):
        self.store = store
        self._owns_client = client is None
        self.client = client if client is not None else HttpxFetchClient()
        self.settings = settings or get_settings()

    def close(self) -> None:
        """Close the fetch client, but only the one this importer created itself."""
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "ContentImporter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    def import_from_url(self, url: str, model: Any, dry_run: bool = False) -> ImportResult:
        """Download ``url`` and import it; relative media URLs resolve against it."""
        try:
            html = fetch_document(self.client, url, self.settings)
        except DocumentFetchError as exc:
            logger.error(f"Failed to fetch HTML for {url}: {exc}")
            return ImportResult(dry_run=dry_run)
        return self.import_content(html, model, dry_run=dry_run, base=url)

    def import_content(
        self,
        source: Source,
        model: Any,
        dry_run: bool = False,
        base: Optional[str] = None,
    ) -> ImportResult:
        """
        Import a single document (markup or file path) using ``model``.

        Raises
        ------
        RecordCreationError
            When the store fails to create the final record.  Every other
            failure is logged and only shrinks the result.
        """
        with IMPORT_DURATION.time():
            return self._run(source, model, dry_run, base)

    # ------------------------------------------------------------------
    def _run(self, source: Source, model: Any, dry_run: bool, base: Optional[str]) -> ImportResult:
        content_model = content_model_from_payload(model)
        markup, base_dir = load_source(source)
        if not markup or not markup.strip():
            logger.warning("Empty HTML content provided to the importer")

        resolver = SelectorResolver(DocumentIndex(markup))
        fetcher = ResourceFetcher(self.client, base or base_dir, self.settings)
        page_title = infer_page_title(resolver, content_model)

        # 1️⃣ Media
        media = MediaAssetBuilder(
            self.store,
            fetcher,
            page_title=page_title,
            model_default_alt=content_model.default_alt,
            hard_default_alt=self.settings.default_alt,
            media_directory=self.settings.media_directory,
        )
        media.build_from_bundles(content_model.media_bundles)

        # 2️⃣ Taxonomy
        taxonomy = TaxonomyResolver(self.store)
        taxonomy.seed(content_model.taxonomies)

        result = ImportResult(dry_run=dry_run)

        # 3️⃣ Content – one record per run, from the first typed content type
        content_type = content_model.primary_content_type()
        if content_type is None:
            logger.warning("Content model has no content type with a 'type'; nothing to create")
        else:
            mapper = FieldMapper(
                resolver,
                media,
                taxonomy,
                self._field_definitions(content_type.type),
                self.settings,
            )
            record = mapper.map_content_type(content_type)
            result.record = record
            if dry_run:
                logger.info(f"Dry run: '{content_type.type}' record mapped, not created")
            else:
                result.record_id = self._create_record(content_type.type, record.field_values())

        result.assets = list(media.created)
        result.terms = list(taxonomy.created)
        result.rules = media.rules + taxonomy.rules
        return result

    def _field_definitions(self, content_type: str):
        try:
            return self.store.field_definitions(content_type)
        except Exception as exc:  # pylint: disable=broad-except
            logger.error(f"Could not load field definitions for '{content_type}': {exc}")
            return {}

    def _create_record(self, content_type: str, values: dict) -> str:
        try:
            record_id = str(self.store.create_record(content_type, values))
        except Exception as exc:  # pylint: disable=broad-except
            RECORD_FAILURES.inc()
            logger.error(f"Creating '{content_type}' record failed: {exc}")
            raise RecordCreationError(content_type, str(exc)) from exc
        RECORDS_CREATED.inc()
        logger.info(f"{record_id} correctly imported as '{content_type}'")
        return record_id
