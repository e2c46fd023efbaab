"""
OpenAI embeddings client.
"""

from __future__ import annotations

from typing import List, Sequence

from openai import OpenAI

from pgdocs.config import settings

DEFAULT_EMBEDDING_MODEL = settings.embedding_model_name
DEFAULT_EMBED_BATCH_SIZE = 64


class EmbeddingsClient:
    def __init__(
        self,
        model: str = DEFAULT_EMBEDDING_MODEL,
        batch_size: int = DEFAULT_EMBED_BATCH_SIZE,
        dimensions: int | None = None,
        client: OpenAI | None = None,
    ) -> None:
        self.model = model
        self.batch_size = batch_size
        self.dimensions = dimensions
        api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
        self.client = client or OpenAI(api_key=api_key)

    def embed_documents(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []

        kwargs = {"model": self.model}
        if self.dimensions:
            kwargs["dimensions"] = self.dimensions

        embeddings: List[List[float]] = []
        for i in range(0, len(texts), self.batch_size):
            batch = list(texts[i : i + self.batch_size])
            response = self.client.embeddings.create(input=batch, **kwargs)
            # the API may return items out of order; `index` is authoritative
            items = sorted(response.data, key=lambda item: item.index)
            embeddings.extend([item.embedding for item in items])
        return embeddings

    def embed_query(self, text: str) -> List[float]:
        vectors = self.embed_documents([text])
        return vectors[0] if vectors else []


__all__ = ["EmbeddingsClient", "DEFAULT_EMBEDDING_MODEL", "DEFAULT_EMBED_BATCH_SIZE"]
