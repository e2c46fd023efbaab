"""
Shared fixtures: a deterministic embedding provider and a store handle that records writes.
"""

from typing import List, Sequence

import pytest

from pgdocs.config import StoreConfig
from pgdocs.vector_store.memory_handle import InMemoryStoreHandle


class FakeEmbeddings:
    """Maps text to a small vector; `overrides` pins specific texts to specific vectors."""

    def __init__(self, dimension: int = 3):
        self.dimension = dimension
        self.overrides = {}
        self.document_calls: List[List[str]] = []
        self.query_calls: List[str] = []

    def _vector(self, text: str) -> List[float]:
        if text in self.overrides:
            return list(self.overrides[text])
        seed = sum(ord(c) for c in text) or 1
        return [float((seed * (i + 1)) % 7 + 1) for i in range(self.dimension)]

    def embed_documents(self, texts: Sequence[str]) -> List[List[float]]:
        self.document_calls.append(list(texts))
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> List[float]:
        self.query_calls.append(text)
        return self._vector(text)


class RecordingStoreHandle(InMemoryStoreHandle):
    """In-memory handle that records every call and can fail on a given merge call."""

    def __init__(self, fail_on_merge: int | None = None):
        super().__init__()
        self.fail_on_merge = fail_on_merge
        self.merge_calls = []
        self.search_calls = []

    def merge_rows(self, table, rows):
        self.merge_calls.append((table, list(rows)))
        if self.fail_on_merge is not None and len(self.merge_calls) == self.fail_on_merge:
            raise RuntimeError("connection reset")
        super().merge_rows(table, rows)

    def similarity_rows(self, table, query_vector, limit):
        self.search_calls.append((table, list(query_vector), limit))
        return super().similarity_rows(table, query_vector, limit)


@pytest.fixture
def embeddings():
    return FakeEmbeddings()


@pytest.fixture
def handle():
    return RecordingStoreHandle()


@pytest.fixture
def config():
    return StoreConfig(table_name="documents", embedding_dim=3)
