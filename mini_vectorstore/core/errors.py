"""Exceptions raised by the vector store engine and its adapters."""

from __future__ import annotations

from enum import Enum


class VectorStoreErrorCode(str, Enum):
    """Error codes carried by `VectorStoreError.code`."""

    EMBEDDING_FAILED = "EMBEDDING_FAILED"
    MODEL_MISMATCH = "MODEL_MISMATCH"
    DIMENSION_MISMATCH = "DIMENSION_MISMATCH"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    LOAD_FAILED = "LOAD_FAILED"
    SAVE_FAILED = "SAVE_FAILED"
    INVALID_DOCUMENT = "INVALID_DOCUMENT"
    INVALID_SNAPSHOT = "INVALID_SNAPSHOT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class VectorStoreError(Exception):
    """Base exception for vector store failures."""

    def __init__(
        self,
        message: str,
        code: VectorStoreErrorCode = VectorStoreErrorCode.UNKNOWN_ERROR,
    ) -> None:
        super().__init__(message)
        self.code = code


class ModelMismatchError(VectorStoreError):
    """Persisted or imported embeddings were produced by another model.

    Raised by `VectorStore.load()` and `VectorStore.import_store()` when the
    stored model id differs from the live provider's, unless the caller asked
    to ignore the mismatch. In-memory documents are left untouched.
    """

    def __init__(self, *, expected: str, actual: str, source: str) -> None:
        super().__init__(
            f"Model mismatch: {source} embeddings use '{actual}' but current "
            f"adapter uses '{expected}'",
            VectorStoreErrorCode.MODEL_MISMATCH,
        )
        self.expected = expected
        self.actual = actual


class DimensionMismatchError(VectorStoreError, ValueError):
    """Two vectors of different length were compared."""

    def __init__(self, left: int, right: int) -> None:
        super().__init__(
            f"Dimension mismatch: {left} != {right}",
            VectorStoreErrorCode.DIMENSION_MISMATCH,
        )
        self.left = left
        self.right = right


class EmbeddingError(VectorStoreError):
    """The embedding provider returned an unusable response."""

    def __init__(self, message: str) -> None:
        super().__init__(message, VectorStoreErrorCode.EMBEDDING_FAILED)


class PersistenceError(VectorStoreError):
    """A persistence adapter could not read or write its backing storage."""

    def __init__(
        self,
        message: str,
        code: VectorStoreErrorCode = VectorStoreErrorCode.PERSISTENCE_FAILED,
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, code)
        self.status_code = status_code


def is_vector_store_error(
    error: BaseException,
    code: VectorStoreErrorCode | str | None = None,
) -> bool:
    """Return True when `error` is a `VectorStoreError` (optionally with `code`)."""

    if not isinstance(error, VectorStoreError):
        return False
    if code is None:
        return True
    return error.code == VectorStoreErrorCode(code)
