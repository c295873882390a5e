"""Fan-out/fan-in over a thread pool."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

from . import config

T = TypeVar("T")
R = TypeVar("R")


def fan_out(
    func: Callable[[T], R],
    items: Sequence[T],
    fallback: Callable[[T, Exception], R],
    max_workers: Optional[int] = None,
) -> List[R]:
    """Run ``func`` on every item concurrently and wait for all of them.

    Results come back in the order of ``items``. A task that raises is
    replaced by ``fallback(item, exc)``; sibling tasks keep running.
    """
    if not items:
        return []
    workers = max(1, min(len(items), int(max_workers or config.MAX_WORKERS)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(func, item) for item in items]
        results: List[R] = []
        for item, future in zip(items, futures):
            try:
                results.append(future.result())
            except Exception as exc:
                results.append(fallback(item, exc))
    return results
