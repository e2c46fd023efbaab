"""
Tests for the psycopg2 handle against a mocked connection: statement shape and parameters.
"""

from unittest.mock import MagicMock, patch

from psycopg2 import sql
from psycopg2.extras import Json

from pgdocs.vector_store.base import StoreRow
from pgdocs.vector_store.postgres_handle import (
    MERGE_TEMPLATE,
    PostgresStoreHandle,
    build_merge_query,
    build_similarity_query,
    vector_literal,
)


def _sql_text(composed):
    return "".join(part.string for part in composed.seq if isinstance(part, sql.SQL))


def _identifiers(composed):
    return [part.strings for part in composed.seq if isinstance(part, sql.Identifier)]


def _mock_connection(cursor):
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    return conn


def test_vector_literal_format():
    assert vector_literal([1, 0.5, -2.25]) == "[1.0,0.5,-2.25]"


def test_merge_query_quotes_table_as_identifier():
    query = build_merge_query("rag.documents")

    assert _identifiers(query) == [("rag", "documents")]
    text = _sql_text(query)
    assert "MERGE INTO" in text
    assert "ON d.content = v.content AND d.metadata = v.metadata" in text
    assert "UPDATE SET embedding = v.embedding" in text
    assert "VALUES %s" in text


def test_similarity_query_binds_vector_and_limit():
    query = build_similarity_query("documents")
    text = _sql_text(query)

    assert _identifiers(query) == [("documents",)]
    assert "1 - (embedding <=> %(query)s::vector) AS similarity" in text
    assert "ORDER BY embedding <=> %(query)s::vector, id" in text
    assert "LIMIT %(limit)s" in text


def test_merge_rows_sends_one_statement_per_call():
    cursor = MagicMock()
    conn = _mock_connection(cursor)
    handle = PostgresStoreHandle(conn)
    rows = [StoreRow(content=f"t{i}", metadata={"i": i}, embedding=[0.1, 0.2]) for i in range(250)]

    with patch("pgdocs.vector_store.postgres_handle.execute_values") as execute_values:
        handle.merge_rows("documents", rows)

    execute_values.assert_called_once()
    args, kwargs = execute_values.call_args
    assert args[0] is cursor
    assert _identifiers(args[1]) == [("documents",)]
    values = args[2]
    assert len(values) == 250
    content, metadata, embedding = values[0]
    assert content == "t0"
    assert isinstance(metadata, Json) and metadata.adapted == {"i": 0}
    assert embedding == "[0.1,0.2]"
    assert kwargs == {"template": MERGE_TEMPLATE, "page_size": 250}
    # transaction scope: the connection context manager was entered and exited
    conn.__enter__.assert_called_once()
    conn.__exit__.assert_called_once()


def test_merge_rows_with_no_rows_skips_the_database():
    conn = MagicMock()
    PostgresStoreHandle(conn).merge_rows("documents", [])
    conn.cursor.assert_not_called()


def test_similarity_rows_maps_records():
    cursor = MagicMock()
    cursor.fetchall.return_value = [
        {"id": 1, "content": "a", "metadata": {"k": "v"}, "similarity": 0.9},
        {"id": 2, "content": "b", "metadata": None, "similarity": 0.4},
    ]
    conn = _mock_connection(cursor)

    rows = PostgresStoreHandle(conn).similarity_rows("documents", [1.0, 0.0], 2)

    query, params = cursor.execute.call_args[0]
    assert _identifiers(query) == [("documents",)]
    assert params == {"query": "[1.0,0.0]", "limit": 2}
    assert [(r.id, r.content, r.metadata, r.similarity) for r in rows] == [
        (1, "a", {"k": "v"}, 0.9),
        (2, "b", {}, 0.4),
    ]
