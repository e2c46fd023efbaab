"""
Vector store abstractions and factories.
"""

from __future__ import annotations

import logging

from pgdocs.config import Settings, StoreConfig, public_settings, settings
from pgdocs.embeddings.client import EmbeddingsClient
from pgdocs.errors import ConfigurationError
from pgdocs.vector_store.base import Document, EmbeddingProvider, ScoredResult, StoreHandle
from pgdocs.vector_store.memory_handle import InMemoryStoreHandle
from pgdocs.vector_store.postgres_handle import PostgresStoreHandle, connect
from pgdocs.vector_store.postgres_store import PostgresVectorStore
from pgdocs.vector_store.searcher import SimilaritySearcher
from pgdocs.vector_store.upserter import BatchUpserter, UpsertSummary

logger = logging.getLogger(__name__)


def get_store_handle(backend: str | None = None, connection=None, source: Settings | None = None) -> StoreHandle:
    """
    Factory to obtain a StoreHandle for the configured backend.
    Supports "postgres" (psycopg2 + pgvector) and "memory".
    """
    source = source or settings
    backend = (backend or source.vector_store_backend).lower()
    if backend == "postgres":
        if connection is None:
            if not source.database_url:
                raise ConfigurationError("DATABASE_URL is not set")
            connection = connect(source.database_url.get_secret_value())
        return PostgresStoreHandle(connection)
    if backend == "memory":
        return InMemoryStoreHandle(dimension=source.embedding_dim)
    raise ConfigurationError(f"Unsupported vector store backend: {backend}")


def get_vector_store(
    embeddings: EmbeddingProvider | None = None,
    backend: str | None = None,
    connection=None,
    source: Settings | None = None,
) -> PostgresVectorStore:
    """
    Factory to obtain a configured PostgresVectorStore attached to an existing table.
    The default embeddings client is sized to ``EMBEDDING_DIM`` so its vectors fit the table.
    """
    source = source or settings
    logger.info("Building vector store: %s", public_settings(source))
    if embeddings is None:
        embeddings = EmbeddingsClient(model=source.embedding_model_name, dimensions=source.embedding_dim)
    handle = get_store_handle(backend, connection=connection, source=source)
    return PostgresVectorStore.from_existing_index(embeddings, handle, StoreConfig.from_settings(source))


__all__ = [
    "get_store_handle",
    "get_vector_store",
    "BatchUpserter",
    "Document",
    "InMemoryStoreHandle",
    "PostgresStoreHandle",
    "PostgresVectorStore",
    "ScoredResult",
    "SimilaritySearcher",
    "UpsertSummary",
]
