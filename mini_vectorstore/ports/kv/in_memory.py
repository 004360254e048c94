"""Dict-backed key-value store for the persistent embedding cache."""

from __future__ import annotations

import copy
from typing import Any, Iterable, Optional, Tuple


class InMemoryKeyValueStore:
    """Process-local key-value store; values are deep-copied on the way in and out."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def items(self) -> Iterable[Tuple[str, Any]]:
        return [(key, copy.deepcopy(value)) for key, value in self._data.items()]

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
