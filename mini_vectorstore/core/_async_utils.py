"""Internal async helpers shared by async modules."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Sequence, TypeVar

T = TypeVar("T")


async def _maybe_await(value: Any) -> Any:
    """Await awaitables and return non-awaitable values unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def _sleep_ms(delay_ms: int) -> None:
    if delay_ms > 0:
        await asyncio.sleep(delay_ms / 1000)


def _as_list(value: T | Sequence[T], single: type) -> list[T]:
    """Wrap one item of type `single` into a list, or copy a sequence of items."""
    if isinstance(value, single):
        return [value]  # type: ignore[list-item]
    return list(value)  # type: ignore[arg-type]
