# tests/conftest.py
from typing import Dict

import pytest

from models.entities import FieldDefinition
from services.importer.config_loader import ImporterSettings
from services.importer.store import MemoryStore

from helpers import FakeClient


@pytest.fixture
def settings() -> ImporterSettings:
    return ImporterSettings(document_retry_wait=0)


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def article_definitions() -> Dict[str, Dict[str, FieldDefinition]]:
    return {
        "article": {
            "field_body": FieldDefinition(storage_type="text_long"),
            "field_year": FieldDefinition(storage_type="integer"),
            "field_gallery": FieldDefinition(storage_type="entity_reference", target_type="media"),
            "field_images": FieldDefinition(storage_type="entity_reference", target_type="media"),
            "field_cover": FieldDefinition(storage_type="image"),
            "field_tags": FieldDefinition(storage_type="entity_reference", target_type="taxonomy_term"),
            "field_city": FieldDefinition(storage_type="entity_reference", target_type="taxonomy_term"),
        }
    }


@pytest.fixture
def store(article_definitions) -> MemoryStore:
    return MemoryStore(field_definitions=article_definitions)
