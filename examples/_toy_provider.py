"""Tiny deterministic embedding provider shared by the example scripts."""

from __future__ import annotations

import hashlib
import re
from typing import Sequence

from mini_vectorstore import EmbeddingModelMetadata


class HashingEmbeddingProvider:
    """Hashes each word into one of `dimensions` buckets (the hashing trick)."""

    def __init__(self, dimensions: int = 64, *, model: str = "hashing-v1") -> None:
        self.dimensions = dimensions
        self.model = model

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        return [self._vector(text) for text in texts]

    def get_model_metadata(self) -> EmbeddingModelMetadata:
        return EmbeddingModelMetadata(provider="toy", model=self.model, dimensions=self.dimensions)

    def _vector(self, text: str) -> list[float]:
        vector = [0.0] * self.dimensions
        for word in re.findall(r"\w+", text.lower()):
            bucket = int(hashlib.md5(word.encode("utf-8")).hexdigest(), 16) % self.dimensions
            vector[bucket] += 1.0
        return vector
