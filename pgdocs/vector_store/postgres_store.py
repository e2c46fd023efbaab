"""
Document store facade over a StoreHandle: add documents, search by text or vector.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

from pgdocs.config import StoreConfig
from pgdocs.vector_store.base import Document, EmbeddingProvider, ScoredResult, StoreHandle
from pgdocs.vector_store.searcher import SimilaritySearcher
from pgdocs.vector_store.upserter import BatchUpserter, UpsertSummary

logger = logging.getLogger(__name__)

DEFAULT_K = 4


class PostgresVectorStore:
    def __init__(
        self,
        embeddings: EmbeddingProvider,
        store: StoreHandle,
        config: StoreConfig | None = None,
    ) -> None:
        self.embeddings = embeddings
        self.store = store
        self.config = config or StoreConfig()
        self.config.validate()
        self.upserter = BatchUpserter(store, embeddings, self.config)
        self.searcher = SimilaritySearcher(store, self.config)
        logger.info(
            "PostgresVectorStore initialised",
            extra={"table": self.config.table_name, "embedding_dim": self.config.embedding_dim},
        )

    @property
    def table_name(self) -> str:
        return self.config.table_name

    def add_documents(self, documents: Sequence[Document]) -> UpsertSummary:
        return self.upserter.upsert(documents)

    def add_vectors(self, vectors: Sequence[Sequence[float]], documents: Sequence[Document]) -> UpsertSummary:
        return self.upserter.upsert_vectors(vectors, documents)

    def similarity_search_vector_with_score(self, query_vector: Sequence[float], k: int) -> List[ScoredResult]:
        return self.searcher.search(query_vector, k)

    def similarity_search_with_score(self, query: str, k: int = DEFAULT_K) -> List[ScoredResult]:
        return self.similarity_search_vector_with_score(self.embeddings.embed_query(query), k)

    def similarity_search(self, query: str, k: int = DEFAULT_K) -> List[Document]:
        return [result.document for result in self.similarity_search_with_score(query, k)]

    @classmethod
    def from_texts(
        cls,
        texts: Sequence[str],
        metadatas: Sequence[Mapping[str, Any]] | Mapping[str, Any] | None,
        embeddings: EmbeddingProvider,
        store: StoreHandle,
        config: StoreConfig | None = None,
    ) -> "PostgresVectorStore":
        """
        Build documents from raw texts and upsert them.

        ``metadatas`` is either one mapping shared by every text or a sequence
        aligned with ``texts``.
        """
        if metadatas is None or isinstance(metadatas, Mapping):
            shared: Dict[str, Any] = dict(metadatas or {})
            documents = [Document(content=text, metadata=dict(shared)) for text in texts]
        else:
            if len(metadatas) != len(texts):
                raise ValueError(f"Got {len(metadatas)} metadatas for {len(texts)} texts")
            documents = [Document(content=text, metadata=dict(meta)) for text, meta in zip(texts, metadatas)]
        return cls.from_documents(documents, embeddings, store, config)

    @classmethod
    def from_documents(
        cls,
        documents: Sequence[Document],
        embeddings: EmbeddingProvider,
        store: StoreHandle,
        config: StoreConfig | None = None,
    ) -> "PostgresVectorStore":
        instance = cls(embeddings, store, config)
        instance.add_documents(documents)
        return instance

    @classmethod
    def from_existing_index(
        cls,
        embeddings: EmbeddingProvider,
        store: StoreHandle,
        config: StoreConfig | None = None,
    ) -> "PostgresVectorStore":
        return cls(embeddings, store, config)


__all__ = ["PostgresVectorStore", "DEFAULT_K"]
