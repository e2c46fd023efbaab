"""
Vector store interface and shared types.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol, Sequence, Tuple


@dataclass(frozen=True)
class Document:
    """
    Text content plus metadata. ``metadata`` is kept as a read-only deep copy
    of the mapping passed in; later changes to the caller's mapping do not
    reach the document. Nested lists and dicts inside it are not frozen.
    """

    content: str
    metadata: Mapping[str, Any] = field(default_factory=dict)
    id: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(copy.deepcopy(dict(self.metadata or {}))))

    def __hash__(self) -> int:
        return hash((self.content, canonical_metadata(self.metadata), self.id))

    def natural_key(self) -> Tuple[str, str]:
        """(content, metadata) as a hashable pair; metadata is compared as canonical JSON."""
        return self.content, canonical_metadata(self.metadata)


@dataclass(frozen=True)
class ScoredResult:
    document: Document
    similarity: float

    def __iter__(self) -> Iterator[Any]:
        # allows `doc, score = result`
        yield self.document
        yield self.similarity


@dataclass(frozen=True)
class StoreRow:
    """One (content, metadata, embedding) triple to merge into a table."""

    content: str
    metadata: Dict[str, Any]
    embedding: List[float]


@dataclass(frozen=True)
class SearchRow:
    """Raw similarity row as returned by a store handle."""

    id: int
    content: str
    metadata: Dict[str, Any]
    similarity: float


class EmbeddingProvider(Protocol):
    def embed_documents(self, texts: Sequence[str]) -> List[List[float]]:
        ...

    def embed_query(self, text: str) -> List[float]:
        ...


class StoreHandle(Protocol):
    def merge_rows(self, table: str, rows: Sequence[StoreRow]) -> None:
        """Atomically update-if-matched / insert-if-not-matched on (content, metadata)."""
        ...

    def similarity_rows(self, table: str, query_vector: Sequence[float], limit: int) -> List[SearchRow]:
        """Return up to ``limit`` rows, most similar first."""
        ...


def _normalise_json(value: Any) -> Any:
    # jsonb compares numbers by value, so 1 and 1.0 must produce the same key
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, Mapping):
        return {k: _normalise_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalise_json(v) for v in value]
    return value


def canonical_metadata(metadata: Mapping[str, Any] | None) -> str:
    """
    Serialise metadata to a key matching jsonb equality.

    Raises TypeError for values that are not JSON and ValueError for NaN or infinity.
    """
    return json.dumps(
        _normalise_json(dict(metadata or {})),
        sort_keys=True,
        separators=(",", ":"),
        allow_nan=False,
    )


__all__ = [
    "Document",
    "ScoredResult",
    "StoreRow",
    "SearchRow",
    "EmbeddingProvider",
    "StoreHandle",
    "canonical_metadata",
]
