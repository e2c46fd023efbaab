"""
Error taxonomy for the upsert and search paths.
"""

from __future__ import annotations


class VectorStoreError(Exception):
    """Base class for every error raised by pgdocs."""


class ConfigurationError(VectorStoreError):
    """Table identifier, vector dimension or backend is invalid or unset."""


class EmbeddingMismatchError(VectorStoreError):
    """The embedding provider returned a different number of vectors than requested."""

    def __init__(self, requested: int, returned: int) -> None:
        self.requested = requested
        self.returned = returned
        super().__init__(f"Requested embeddings for {requested} documents, got {returned} vectors")


class WriteError(VectorStoreError):
    """
    A chunk's merge statement failed.

    Chunks before ``offset`` are already committed and stay committed.
    ``documents_committed`` counts input documents in those chunks (always
    equal to ``offset``), ``rows_committed`` the rows merged after in-chunk
    duplicate keys were collapsed. The caller can resubmit
    ``documents[offset:]``.
    """

    def __init__(
        self,
        table: str,
        offset: int,
        cause: BaseException,
        documents_committed: int = 0,
        rows_committed: int = 0,
        chunks_committed: int = 0,
    ) -> None:
        self.table = table
        self.offset = offset
        self.cause = cause
        self.documents_committed = documents_committed
        self.rows_committed = rows_committed
        self.chunks_committed = chunks_committed
        super().__init__(
            f"Failed writing chunk at offset {offset} into {table!r} "
            f"({chunks_committed} chunks / {documents_committed} documents already committed): {cause}"
        )


class SearchError(VectorStoreError):
    """The similarity query failed; no partial results are returned."""

    def __init__(self, table: str, cause: BaseException) -> None:
        self.table = table
        self.cause = cause
        super().__init__(f"Error searching for documents in {table!r}: {cause}")


__all__ = [
    "VectorStoreError",
    "ConfigurationError",
    "EmbeddingMismatchError",
    "WriteError",
    "SearchError",
]
