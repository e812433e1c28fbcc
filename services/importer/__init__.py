from .config_loader import ImporterSettings, get_settings, load_content_model, reset_settings_cache
from .document import DocumentIndex, SelectorResolver, infer_page_title
from .exceptions import DocumentFetchError, ImporterError, RecordCreationError
from .fetcher import HttpxFetchClient, ResourceFetcher, fetch_document, resolve_url
from .field_mapper import FieldMapper, classify_field
from .importer import ContentImporter
from .media import MediaAssetBuilder, choose_alt_text
from .store import ContentStore, MemoryStore
from .taxonomy import TaxonomyResolver, infer_vocabulary

__all__ = [
    'ImporterSettings', 'get_settings', 'load_content_model', 'reset_settings_cache',
    'DocumentIndex', 'SelectorResolver', 'infer_page_title',
    'DocumentFetchError', 'ImporterError', 'RecordCreationError',
    'HttpxFetchClient', 'ResourceFetcher', 'fetch_document', 'resolve_url',
    'FieldMapper', 'classify_field',
    'ContentImporter',
    'MediaAssetBuilder', 'choose_alt_text',
    'ContentStore', 'MemoryStore',
    'TaxonomyResolver', 'infer_vocabulary',
]
