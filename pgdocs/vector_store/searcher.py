"""
Similarity searcher: top-k cosine query and reconstruction of scored documents.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from pgdocs.config import StoreConfig
from pgdocs.errors import SearchError
from pgdocs.vector_store.base import Document, ScoredResult, StoreHandle

logger = logging.getLogger(__name__)


class SimilaritySearcher:
    def __init__(self, store: StoreHandle, config: StoreConfig | None = None) -> None:
        self.store = store
        self.config = config or StoreConfig()

    def search(self, query_vector: Sequence[float], k: int, table: str | None = None) -> List[ScoredResult]:
        """
        Return the ``k`` rows most similar to ``query_vector``.

        Scores are ``1 - cosine_distance``, highest first; equal scores come
        back in ascending row id. ``k == 0`` never reaches the store.
        """
        if isinstance(k, bool) or not isinstance(k, int) or k < 0:
            raise ValueError(f"k must be a non-negative integer, got {k!r}")
        self.config.validate()
        table_name = self.config.resolve_table(table)
        if k == 0:
            return []

        try:
            rows = self.store.similarity_rows(table_name, query_vector, k)
        except Exception as exc:
            logger.exception("Similarity search failed", extra={"table": table_name, "k": k})
            raise SearchError(table=table_name, cause=exc) from exc

        ordered = sorted(rows, key=lambda row: (-row.similarity, row.id))[:k]
        results = [
            ScoredResult(
                document=Document(content=row.content, metadata=dict(row.metadata or {})),
                similarity=row.similarity,
            )
            for row in ordered
        ]
        logger.debug("Similarity search", extra={"table": table_name, "k": k, "returned": len(results)})
        return results


__all__ = ["SimilaritySearcher"]
