"""Order-preserving bounded parallel map over a thread pool.

Classification of an import batch has no cross-record dependencies, so large
batches can be fanned out. ``p_map`` keeps at most ``concurrency`` mapper
calls in flight, returns results in input order and fails fast: the first
mapper exception cancels work that has not started and is re-raised.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TypeVar

InT = TypeVar("InT")
OutT = TypeVar("OutT")


def p_map(
    iterable: Iterable[InT],
    mapper: Callable[[InT], OutT],
    *,
    concurrency: int,
) -> list[OutT]:
    """Map ``iterable`` through ``mapper`` with bounded concurrency.

    ``concurrency == 1`` runs inline without a pool.
    """

    if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    if concurrency == 1:
        return [mapper(item) for item in iterable]

    it = enumerate(iterable)
    results: dict[int, OutT] = {}
    future_to_idx: dict[Future[OutT], int] = {}

    with ThreadPoolExecutor(max_workers=concurrency) as pool:

        def _submit() -> Future[OutT] | None:
            try:
                idx, item = next(it)
            except StopIteration:
                return None
            fut = pool.submit(mapper, item)
            future_to_idx[fut] = idx
            return fut

        active: set[Future[OutT]] = set()
        for _ in range(concurrency):
            fut = _submit()
            if fut is None:
                break
            active.add(fut)

        while active:
            done, active = wait(active, return_when=FIRST_COMPLETED)
            for fut in done:
                idx = future_to_idx.pop(fut)
                try:
                    results[idx] = fut.result()
                except Exception:
                    pool.shutdown(wait=False, cancel_futures=True)
                    raise
            for _ in range(len(done)):
                fut = _submit()
                if fut is None:
                    break
                active.add(fut)

    return [results[i] for i in range(len(results))]


__all__ = ["p_map"]
