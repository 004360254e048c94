"""Vector similarity functions, metric normalization, and similarity adapters."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

import numpy as np

from ..errors import DimensionMismatchError
from ..types import Embedding, EmbeddingInput

SimilarityFn = Callable[[EmbeddingInput, EmbeddingInput], float]


class SimilarityMetric(str, Enum):
    """Supported similarity metric names."""

    COSINE = "cosine"
    DOT = "dot"
    EUCLIDEAN = "euclidean"


SimilarityMetricInput = str | SimilarityMetric

DEFAULT_METRIC_ALIASES: dict[str, SimilarityMetric] = {
    "l2": SimilarityMetric.EUCLIDEAN,
    "dot_product": SimilarityMetric.DOT,
    "inner_product": SimilarityMetric.DOT,
}


def normalize_similarity_metric(
    metric: SimilarityMetricInput,
    *,
    supported: Iterable[SimilarityMetric] | None = None,
    aliases: Mapping[str, SimilarityMetric] | None = None,
) -> SimilarityMetric:
    """Normalize user metric input into a `SimilarityMetric` value."""

    alias_map = {key.lower(): value for key, value in DEFAULT_METRIC_ALIASES.items()}
    alias_map.update({key.lower(): value for key, value in (aliases or {}).items()})

    if isinstance(metric, SimilarityMetric):
        normalized = metric
    elif isinstance(metric, str):
        key = metric.strip().lower()
        if key in SimilarityMetric._value2member_map_:
            normalized = SimilarityMetric(key)
        elif key in alias_map:
            normalized = alias_map[key]
        else:
            allowed = sorted(
                set(SimilarityMetric._value2member_map_.keys()) | set(alias_map.keys())
            )
            raise ValueError(f"Unsupported metric: {metric}. Supported: {allowed}")
    else:
        raise ValueError(f"Unsupported metric type: {type(metric).__name__}")

    if supported is not None:
        supported_set = set(supported)
        if normalized not in supported_set:
            allowed = sorted(item.value for item in supported_set)
            raise ValueError(
                f"Unsupported metric: {normalized.value}. Supported: {allowed}"
            )

    return normalized


def _pair(left: EmbeddingInput, right: EmbeddingInput) -> tuple[np.ndarray, np.ndarray]:
    a = np.asarray(left, dtype=np.float64)
    b = np.asarray(right, dtype=np.float64)
    if a.shape[0] != b.shape[0]:
        raise DimensionMismatchError(a.shape[0], b.shape[0])
    return a, b


def cosine_similarity(left: EmbeddingInput, right: EmbeddingInput) -> float:
    """Cosine of the angle between two vectors; 0.0 when either has zero length."""

    a, b = _pair(left, right)
    magnitude_product = float(np.linalg.norm(a)) * float(np.linalg.norm(b))
    if magnitude_product == 0.0:
        return 0.0
    return float(np.dot(a, b)) / magnitude_product


def dot_product_similarity(left: EmbeddingInput, right: EmbeddingInput) -> float:
    """Unbounded sum of elementwise products."""

    a, b = _pair(left, right)
    return float(np.dot(a, b))


def euclidean_similarity(left: EmbeddingInput, right: EmbeddingInput) -> float:
    """Map L2 distance to `1 / (1 + distance)`; identical vectors score 1.0."""

    a, b = _pair(left, right)
    distance = float(np.linalg.norm(a - b))
    return 1.0 / (1.0 + distance)


def magnitude(vector: EmbeddingInput) -> float:
    values = np.asarray(vector, dtype=np.float64)
    return math.sqrt(float(np.dot(values, values)))


def normalize_vector(vector: Embedding) -> Embedding:
    """Scale to unit length. A zero vector is returned as the same object."""

    length = magnitude(vector)
    if length == 0.0:
        return vector
    return (np.asarray(vector, dtype=np.float64) / length).astype(np.float32)


def dimensions_match(left: EmbeddingInput, right: EmbeddingInput) -> bool:
    return len(left) == len(right)


_METRIC_FUNCTIONS: dict[SimilarityMetric, SimilarityFn] = {
    SimilarityMetric.COSINE: cosine_similarity,
    SimilarityMetric.DOT: dot_product_similarity,
    SimilarityMetric.EUCLIDEAN: euclidean_similarity,
}


@dataclass(frozen=True)
class _MetricSimilarity:
    metric: SimilarityMetric

    @property
    def name(self) -> str:
        return self.metric.value

    def compute(self, left: EmbeddingInput, right: EmbeddingInput) -> float:
        return _METRIC_FUNCTIONS[self.metric](left, right)


class CosineSimilarity(_MetricSimilarity):
    def __init__(self) -> None:
        super().__init__(SimilarityMetric.COSINE)


class DotSimilarity(_MetricSimilarity):
    def __init__(self) -> None:
        super().__init__(SimilarityMetric.DOT)


class EuclideanSimilarity(_MetricSimilarity):
    def __init__(self) -> None:
        super().__init__(SimilarityMetric.EUCLIDEAN)


def resolve_similarity(similarity: Any = None) -> SimilarityFn:
    """Turn a metric name, adapter object, or plain callable into a scoring function.

    Args:
        similarity: `None` (cosine), a `SimilarityMetric` or metric name, an
            object exposing `compute(a, b)`, or a two-argument callable.
    """

    if similarity is None:
        return cosine_similarity
    if isinstance(similarity, (str, SimilarityMetric)):
        return _METRIC_FUNCTIONS[normalize_similarity_metric(similarity)]
    compute = getattr(similarity, "compute", None)
    if callable(compute):
        return compute
    if callable(similarity):
        return similarity
    raise ValueError(f"Unsupported similarity type: {type(similarity).__name__}")
