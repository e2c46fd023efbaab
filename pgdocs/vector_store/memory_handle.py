"""
In-process StoreHandle with cosine similarity.

Mirrors the Postgres handle's contract (natural-key merge, generated ids,
``1 - cosine_distance`` scores) so the upserter and searcher can run without a
database.
"""

from __future__ import annotations

import copy
import logging
import math
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from pgdocs.vector_store.base import SearchRow, StoreHandle, StoreRow, canonical_metadata

logger = logging.getLogger(__name__)


@dataclass
class _StoredRow:
    id: int
    content: str
    metadata: Dict[str, Any]
    embedding: List[float]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryStoreHandle(StoreHandle):
    def __init__(self, dimension: int | None = None) -> None:
        self.dimension = dimension
        self._tables: Dict[str, Dict[Tuple[str, str], _StoredRow]] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def merge_rows(self, table: str, rows: Sequence[StoreRow]) -> None:
        if not rows:
            return
        for row in rows:
            self._check_dimension(row.embedding)

        with self._lock:
            stored = self._tables.setdefault(table, {})
            for row in rows:
                key = (row.content, canonical_metadata(row.metadata))
                existing = stored.get(key)
                if existing is not None:
                    existing.embedding = list(row.embedding)
                    continue
                stored[key] = _StoredRow(
                    id=self._next_id,
                    content=row.content,
                    metadata=copy.deepcopy(dict(row.metadata)),
                    embedding=list(row.embedding),
                )
                self._next_id += 1
        logger.debug("Merged rows in memory", extra={"table": table, "count": len(rows)})

    def similarity_rows(self, table: str, query_vector: Sequence[float], limit: int) -> List[SearchRow]:
        self._check_dimension(query_vector)
        with self._lock:
            stored = list(self._tables.get(table, {}).values())

        scored = [
            SearchRow(
                id=row.id,
                content=row.content,
                metadata=copy.deepcopy(row.metadata),
                similarity=cosine_similarity(query_vector, row.embedding),
            )
            for row in stored
        ]
        scored.sort(key=lambda r: (-r.similarity, r.id))
        return scored[:limit]

    def rows(self, table: str) -> List[_StoredRow]:
        """Snapshot of a table's rows in id order."""
        with self._lock:
            return sorted(self._tables.get(table, {}).values(), key=lambda r: r.id)

    def _check_dimension(self, vector: Sequence[float]) -> None:
        if self.dimension is not None and len(vector) != self.dimension:
            raise ValueError(f"expected {self.dimension} dimensions, not {len(vector)}")


__all__ = ["InMemoryStoreHandle", "cosine_similarity"]
