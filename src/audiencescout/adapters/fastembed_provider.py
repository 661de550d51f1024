"""Adapter: FastEmbed-based EmbeddingProvider."""

from __future__ import annotations

from fastembed import TextEmbedding


class FastEmbedProvider:
    """Concrete EmbeddingProvider backed by fastembed; the model loads on first use."""

    def __init__(self, model_id: str) -> None:
        self._model_id = model_id
        self._model: TextEmbedding | None = None

    def _get_model(self) -> TextEmbedding:
        if self._model is None:
            self._model = TextEmbedding(model_name=self._model_id)
        return self._model

    def embed(self, text: str) -> list[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return [[float(x) for x in vector] for vector in self._get_model().embed(texts)]
