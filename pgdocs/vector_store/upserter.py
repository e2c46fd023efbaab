"""
Batch upserter: embed documents and merge them into a table in fixed-size chunks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from tqdm import tqdm

from pgdocs.config import StoreConfig
from pgdocs.errors import EmbeddingMismatchError, WriteError
from pgdocs.vector_store.base import Document, EmbeddingProvider, StoreHandle, StoreRow

logger = logging.getLogger(__name__)


@dataclass
class UpsertSummary:
    """
    Progress of one upsert call.

    ``documents_written`` counts input documents in committed chunks;
    ``rows_written`` counts the rows merged after duplicate keys inside a
    chunk were collapsed, so it can be smaller.
    """

    table: str
    chunks_written: int = 0
    documents_written: int = 0
    rows_written: int = 0


def collapse_duplicate_keys(rows: Sequence[Tuple[Document, Sequence[float]]]) -> List[StoreRow]:
    """
    Collapse pairs sharing a (content, metadata) key, keeping the last vector.

    Rows keep the position of the key's first occurrence.
    """
    merged: Dict[Tuple[str, str], StoreRow] = {}
    for document, vector in rows:
        merged[document.natural_key()] = StoreRow(
            content=document.content,
            metadata=dict(document.metadata),
            embedding=list(vector),
        )
    return list(merged.values())


class BatchUpserter:
    def __init__(
        self,
        store: StoreHandle,
        embeddings: EmbeddingProvider,
        config: StoreConfig | None = None,
    ) -> None:
        self.store = store
        self.embeddings = embeddings
        self.config = config or StoreConfig()

    def upsert(self, documents: Sequence[Document], table: str | None = None) -> UpsertSummary:
        """
        Embed ``documents`` in one provider call and merge them chunk by chunk.

        Raises EmbeddingMismatchError before any write if the provider returns
        the wrong number of vectors, and WriteError on the first failing chunk.
        Chunks committed before a WriteError stay committed.
        """
        self.config.validate()
        table_name = self.config.resolve_table(table)
        if not documents:
            return UpsertSummary(table=table_name)

        texts = [doc.content for doc in documents]
        vectors = self.embeddings.embed_documents(texts)
        return self.upsert_vectors(vectors, documents, table=table_name)

    def upsert_vectors(
        self,
        vectors: Sequence[Sequence[float]],
        documents: Sequence[Document],
        table: str | None = None,
    ) -> UpsertSummary:
        """Merge pre-computed vectors; ``vectors[i]`` belongs to ``documents[i]``."""
        self.config.validate()
        table_name = self.config.resolve_table(table)
        if len(vectors) != len(documents):
            logger.error(
                "Embedding count mismatch",
                extra={"table": table_name, "requested": len(documents), "returned": len(vectors)},
            )
            raise EmbeddingMismatchError(requested=len(documents), returned=len(vectors))

        summary = UpsertSummary(table=table_name)
        if not documents:
            return summary

        pairs = list(zip(documents, vectors))
        chunk_size = self.config.chunk_size
        # collapse every chunk up front so metadata that is not JSON fails before any write
        chunks = []
        for offset in range(0, len(pairs), chunk_size):
            chunk = pairs[offset : offset + chunk_size]
            chunks.append((offset, len(chunk), collapse_duplicate_keys(chunk)))
        if self.config.show_progress:
            chunks = tqdm(chunks, desc="Upserting", unit="chunks")

        for offset, document_count, rows in chunks:
            try:
                self.store.merge_rows(table_name, rows)
            except Exception as exc:
                logger.error(
                    "Chunk write failed",
                    extra={
                        "table": table_name,
                        "offset": offset,
                        "chunks_committed": summary.chunks_written,
                        "documents_committed": summary.documents_written,
                        "rows_committed": summary.rows_written,
                    },
                )
                raise WriteError(
                    table=table_name,
                    offset=offset,
                    cause=exc,
                    documents_committed=summary.documents_written,
                    rows_committed=summary.rows_written,
                    chunks_committed=summary.chunks_written,
                ) from exc
            summary.chunks_written += 1
            summary.documents_written += document_count
            summary.rows_written += len(rows)

        logger.info(
            "Upserted documents",
            extra={"table": table_name, "count": len(documents), "chunks": summary.chunks_written},
        )
        return summary


__all__ = ["BatchUpserter", "UpsertSummary", "collapse_duplicate_keys"]
