"""
Configuration: environment-backed settings and the explicit per-store config.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from pgdocs.errors import ConfigurationError

DEFAULT_TABLE_NAME = "documents"
DEFAULT_EMBEDDING_DIM = 1536
DEFAULT_CHUNK_SIZE = 200

# plain or schema-qualified identifier, e.g. "documents" or "rag.documents"
_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*(\.[A-Za-z_][A-Za-z0-9_$]*)?$")


class Settings(BaseSettings):
    """Centralised environment settings."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: SecretStr | None = Field(default=None, alias="DATABASE_URL")
    vector_store_backend: str = Field(default="postgres", alias="VECTOR_STORE_BACKEND")
    vector_table_name: str = Field(default=DEFAULT_TABLE_NAME, alias="VECTOR_TABLE_NAME")
    embedding_dim: int = Field(default=DEFAULT_EMBEDDING_DIM, alias="EMBEDDING_DIM")
    upsert_chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, alias="UPSERT_CHUNK_SIZE")
    show_progress: bool = Field(default=False, alias="SHOW_PROGRESS")

    openai_api_key: SecretStr | None = Field(default=None, alias="OPENAI_API_KEY")
    embedding_model_name: str = Field(default="text-embedding-3-small", alias="EMBEDDING_MODEL_NAME")


settings = Settings()


@dataclass(frozen=True)
class StoreConfig:
    """
    Explicit configuration handed to the upserter, searcher and store facade.

    Nothing in the core reads process-wide settings; build one of these
    (directly or via ``from_settings``) and pass it in.
    """

    table_name: str = DEFAULT_TABLE_NAME
    embedding_dim: int = DEFAULT_EMBEDDING_DIM
    chunk_size: int = DEFAULT_CHUNK_SIZE
    show_progress: bool = False

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "StoreConfig":
        source = source or settings
        return cls(
            table_name=source.vector_table_name,
            embedding_dim=source.embedding_dim,
            chunk_size=source.upsert_chunk_size,
            show_progress=source.show_progress,
        )

    def resolve_table(self, table: str | None = None) -> str:
        """Return the table to operate on, validating it as an identifier."""
        name = table if table is not None else self.table_name
        if not name or not isinstance(name, str):
            raise ConfigurationError("Table identifier is not set")
        if not _TABLE_NAME_RE.match(name):
            raise ConfigurationError(f"Invalid table identifier: {name!r}")
        return name

    def validate(self) -> None:
        self.resolve_table()
        if isinstance(self.embedding_dim, bool) or not isinstance(self.embedding_dim, int) or self.embedding_dim <= 0:
            raise ConfigurationError(f"Embedding dimension must be a positive integer, got {self.embedding_dim!r}")
        if isinstance(self.chunk_size, bool) or not isinstance(self.chunk_size, int) or self.chunk_size <= 0:
            raise ConfigurationError(f"Chunk size must be a positive integer, got {self.chunk_size!r}")


def public_settings(source: Settings | None = None) -> Dict[str, Any]:
    """
    Return settings without secrets for safe logging/inspection.
    """
    return (source or settings).model_dump(
        exclude={"openai_api_key", "database_url"},
        exclude_none=True,
    )


__all__ = [
    "Settings",
    "settings",
    "StoreConfig",
    "DEFAULT_TABLE_NAME",
    "DEFAULT_EMBEDDING_DIM",
    "DEFAULT_CHUNK_SIZE",
    "public_settings",
]
