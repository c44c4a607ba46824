"""Settle-all fan-out over a thread pool.

``p_map_settled`` runs ``mapper`` over every item concurrently and
returns results in input order. A mapper failure never propagates and never
cancels sibling calls: it is handed to ``fallback`` together with the input
item and the fallback's return value takes that item's slot.

Intended for independent, I/O-bound lookups (one upstream call per record).
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

InT = TypeVar("InT")
OutT = TypeVar("OutT")


def p_map_settled(
    items: Sequence[InT],
    mapper: Callable[[InT], OutT],
    *,
    fallback: Callable[[InT, Exception], OutT],
    concurrency: int | None = None,
) -> list[OutT]:
    """Map ``items`` concurrently; failed items are replaced by ``fallback(item, exc)``.

    Every call is submitted up front and, unless ``concurrency`` caps the
    pool, every call runs at once. The function returns once all calls have
    finished. ``concurrency=None`` sizes the pool to ``len(items)``.
    """

    if concurrency is not None and (
        isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1
    ):
        raise ValueError("concurrency must be a positive integer or None")
    if not items:
        return []

    def _settle(item: InT) -> OutT:
        try:
            return mapper(item)
        except Exception as e:  # noqa: BLE001 - isolation is the contract
            return fallback(item, e)

    with ThreadPoolExecutor(max_workers=min(concurrency or len(items), len(items))) as pool:
        # Executor.map yields in submission order regardless of completion order.
        return list(pool.map(_settle, items))


__all__ = ["p_map_settled"]
