"""Embedding request batching: policy object and a batching provider wrapper."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .._async_utils import _maybe_await, _sleep_ms
from ..constants import EMBEDDING_BATCH_DEFAULT_DELAY_MS, EMBEDDING_BATCH_DEFAULT_SIZE
from ..contracts import AsyncEmbeddingProviderPort, BatchPolicyPort, EmbeddingProviderPort
from ..errors import EmbeddingError
from ..types import Embedding, EmbeddingModelMetadata, to_embedding

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class BatchPolicy:
    """Batch size, inter-batch delay, and deduplication switch for embedding calls."""

    batch_size: int = EMBEDDING_BATCH_DEFAULT_SIZE
    delay_ms: int = EMBEDDING_BATCH_DEFAULT_DELAY_MS
    deduplicate: bool = True

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        if self.delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")

    def get_batch_size(self) -> int:
        return self.batch_size

    def get_delay_ms(self) -> int:
        return self.delay_ms

    def should_deduplicate(self) -> bool:
        return self.deduplicate


async def embed_in_batches(
    provider: EmbeddingProviderPort | AsyncEmbeddingProviderPort,
    texts: Sequence[str],
    batch: Optional[BatchPolicyPort] = None,
    *,
    on_progress: Optional[ProgressCallback] = None,
) -> list[Embedding]:
    """Embed `texts` in sequential chunks and return one vector per input text.

    Without a batch policy every text goes out in a single call. With one, the
    texts are chunked by `get_batch_size()`, chunks are requested one after
    another with `get_delay_ms()` between them (never before the first), and
    repeated texts are embedded once when `should_deduplicate()` is true.

    Raises:
        EmbeddingError: The provider returned a different number of vectors
            than texts requested.
    """

    if not texts:
        return []

    if batch is not None and batch.should_deduplicate():
        unique = list(dict.fromkeys(texts))
    else:
        unique = list(texts)

    batch_size = batch.get_batch_size() if batch is not None else len(unique)
    delay_ms = batch.get_delay_ms() if batch is not None else 0
    batch_size = max(1, batch_size)

    vectors: list[Embedding] = []
    for start in range(0, len(unique), batch_size):
        if start > 0:
            await _sleep_ms(delay_ms)
        chunk = unique[start : start + batch_size]
        logger.debug("Embedding chunk of %d texts (%d/%d)", len(chunk), start, len(unique))
        result = await _maybe_await(provider.embed(chunk))
        if len(result) != len(chunk):
            raise EmbeddingError(
                f"Embedding provider returned {len(result)} vectors for {len(chunk)} texts"
            )
        vectors.extend(to_embedding(item) for item in result)
        if on_progress is not None:
            on_progress(len(vectors), len(unique))

    if len(unique) == len(texts):
        return vectors
    by_text = dict(zip(unique, vectors))
    return [by_text[text] for text in texts]


class BatchedEmbeddingProvider:
    """Embedding provider wrapper that applies a `BatchPolicy` to every `embed()`."""

    def __init__(
        self,
        provider: EmbeddingProviderPort | AsyncEmbeddingProviderPort,
        policy: BatchPolicyPort | None = None,
    ) -> None:
        self.provider = provider
        self.policy = policy or BatchPolicy()

    async def embed(self, texts: Sequence[str]) -> list[Embedding]:
        return await embed_in_batches(self.provider, list(texts), self.policy)

    def get_model_metadata(self) -> EmbeddingModelMetadata:
        return EmbeddingModelMetadata.coerce(self.provider.get_model_metadata())
