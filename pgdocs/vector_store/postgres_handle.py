"""
PostgreSQL + pgvector store handle.

Issues exactly two statement shapes against a caller-owned psycopg2
connection: a batched ``MERGE`` keyed on (content, metadata) and a cosine
similarity ``SELECT``. Table names are composed as quoted identifiers; every
value travels as a bound parameter.
"""

from __future__ import annotations

import logging
from typing import Any, List, Sequence

import psycopg2
from psycopg2 import sql
from psycopg2.extras import Json, RealDictCursor, execute_values

from pgdocs.vector_store.base import SearchRow, StoreHandle, StoreRow

logger = logging.getLogger(__name__)

MERGE_TEMPLATE = "(%s, %s::jsonb, %s::vector)"


def vector_literal(vector: Sequence[float]) -> str:
    """Render a vector in pgvector's text input format, e.g. ``[0.1,0.2]``."""
    return "[" + ",".join(str(float(x)) for x in vector) + "]"


def table_identifier(table: str) -> sql.Identifier:
    return sql.Identifier(*table.split("."))


def build_merge_query(table: str) -> sql.Composed:
    return sql.SQL(
        """
        MERGE INTO {table} AS d
        USING (VALUES %s) AS v(content, metadata, embedding)
        ON d.content = v.content AND d.metadata = v.metadata
        WHEN MATCHED THEN
          UPDATE SET embedding = v.embedding
        WHEN NOT MATCHED THEN
          INSERT (content, metadata, embedding) VALUES (v.content, v.metadata, v.embedding)
        """
    ).format(table=table_identifier(table))


def build_similarity_query(table: str) -> sql.Composed:
    return sql.SQL(
        """
        SELECT id, content, metadata, 1 - (embedding <=> %(query)s::vector) AS similarity
        FROM {table}
        ORDER BY embedding <=> %(query)s::vector, id
        LIMIT %(limit)s
        """
    ).format(table=table_identifier(table))


def connect(dsn: str, **kwargs: Any):
    """Open a psycopg2 connection; the caller owns and closes it."""
    try:
        return psycopg2.connect(dsn, **kwargs)
    except psycopg2.Error:
        logger.exception("Failed to connect to PostgreSQL")
        raise


class PostgresStoreHandle(StoreHandle):
    def __init__(self, connection) -> None:
        self.connection = connection

    def merge_rows(self, table: str, rows: Sequence[StoreRow]) -> None:
        if not rows:
            return

        query = build_merge_query(table)
        values = [(row.content, Json(row.metadata), vector_literal(row.embedding)) for row in rows]

        # one transaction per call; page_size keeps the whole batch in a single statement
        with self.connection, self.connection.cursor() as cur:
            execute_values(cur, query, values, template=MERGE_TEMPLATE, page_size=len(values))
        logger.debug("Merged rows", extra={"table": table, "count": len(values)})

    def similarity_rows(self, table: str, query_vector: Sequence[float], limit: int) -> List[SearchRow]:
        query = build_similarity_query(table)
        params = {"query": vector_literal(query_vector), "limit": int(limit)}

        with self.connection, self.connection.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(query, params)
            records = cur.fetchall()

        return [
            SearchRow(
                id=record["id"],
                content=record["content"],
                metadata=record["metadata"] or {},
                similarity=float(record["similarity"]),
            )
            for record in records
        ]


__all__ = [
    "PostgresStoreHandle",
    "build_merge_query",
    "build_similarity_query",
    "connect",
    "vector_literal",
    "MERGE_TEMPLATE",
]
