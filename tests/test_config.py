"""
Tests for StoreConfig validation and the backend factory.
"""

from unittest.mock import MagicMock, patch

import pytest

from pgdocs.config import Settings, StoreConfig, public_settings
from pgdocs.errors import ConfigurationError
from pgdocs.vector_store import get_store_handle, get_vector_store
from pgdocs.vector_store.memory_handle import InMemoryStoreHandle
from pgdocs.vector_store.postgres_handle import PostgresStoreHandle


def test_defaults():
    config = StoreConfig()
    assert config.table_name == "documents"
    assert config.embedding_dim == 1536
    assert config.chunk_size == 200
    config.validate()


@pytest.mark.parametrize("table", ["", "1documents", "docs-table", "a.b.c", "x; drop"])
def test_invalid_table_identifiers(table):
    with pytest.raises(ConfigurationError):
        StoreConfig(table_name=table).validate()


def test_schema_qualified_table_is_accepted():
    assert StoreConfig().resolve_table("rag.documents") == "rag.documents"


@pytest.mark.parametrize("field", ["embedding_dim", "chunk_size"])
@pytest.mark.parametrize("value", [0, -5, None, True])
def test_non_positive_sizes_are_rejected(field, value):
    with pytest.raises(ConfigurationError):
        StoreConfig(**{field: value}).validate()


def test_from_settings():
    source = Settings(VECTOR_TABLE_NAME="notes", EMBEDDING_DIM=768, UPSERT_CHUNK_SIZE=50)
    config = StoreConfig.from_settings(source)

    assert (config.table_name, config.embedding_dim, config.chunk_size) == ("notes", 768, 50)


def test_public_settings_hides_secrets():
    exposed = public_settings()
    assert "database_url" not in exposed
    assert "openai_api_key" not in exposed


def test_factory_memory_backend():
    assert isinstance(get_store_handle("memory"), InMemoryStoreHandle)


def test_factory_postgres_backend_with_supplied_connection():
    conn = MagicMock()
    handle = get_store_handle("postgres", connection=conn)

    assert isinstance(handle, PostgresStoreHandle)
    assert handle.connection is conn


def test_factory_postgres_backend_without_url():
    with pytest.raises(ConfigurationError):
        get_store_handle("postgres", source=Settings(DATABASE_URL=None))


def test_factory_unknown_backend():
    with pytest.raises(ConfigurationError):
        get_store_handle("chroma")


def test_get_vector_store_wires_config(embeddings):
    source = Settings(VECTOR_TABLE_NAME="notes", EMBEDDING_DIM=3)
    store = get_vector_store(embeddings, backend="memory", source=source)

    assert store.table_name == "notes"
    assert store.embeddings is embeddings


def test_default_embeddings_client_follows_settings():
    source = Settings(EMBEDDING_DIM=768, EMBEDDING_MODEL_NAME="text-embedding-3-large")

    with patch("pgdocs.vector_store.EmbeddingsClient") as client_cls:
        store = get_vector_store(backend="memory", source=source)

    client_cls.assert_called_once_with(model="text-embedding-3-large", dimensions=768)
    assert store.embeddings is client_cls.return_value
    assert store.config.embedding_dim == 768
