from .content_model import (
    ContentModel,
    ContentTypeSpec,
    FieldSpec,
    MediaBundleSpec,
    MediaItem,
    TaxonomySpec,
    UNLIMITED,
)
from .entities import (
    AltRule,
    Asset,
    ContentRecord,
    FieldDefinition,
    FieldKind,
    ImportResult,
    RuleTrace,
    Term,
    UrlRule,
    VocabularyRule,
)
from .model_factory import content_model_from_payload  # makes `from models import content_model_from_payload` work too

__all__ = [
    'ContentModel', 'ContentTypeSpec', 'FieldSpec', 'MediaBundleSpec', 'MediaItem',
    'TaxonomySpec', 'UNLIMITED',
    'AltRule', 'Asset', 'ContentRecord', 'FieldDefinition', 'FieldKind',
    'ImportResult', 'RuleTrace', 'Term', 'UrlRule', 'VocabularyRule',
    'content_model_from_payload',
]
