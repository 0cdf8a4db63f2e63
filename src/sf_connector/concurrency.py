from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

T = TypeVar("T")


def run_with_concurrency(
    limit: int,
    calls: Iterable[Callable[[], T]],
    task_callback: Callable[[T], Any] | None = None,
) -> list[T]:
    """Runs the provided calls with maximum `limit` running at once.

    Results come back in submission order. The first exception raised by a
    call propagates once the pool has shut down.
    """
    if limit < 1:
        raise ValueError(f"Concurrency limit must be at least 1, got {limit}")

    results: list[T] = []
    with ThreadPoolExecutor(max_workers=limit) as executor:
        futures = [executor.submit(call) for call in calls]
        try:
            for future in futures:
                result = future.result()
                if task_callback:
                    task_callback(result)
                results.append(result)
        except BaseException:
            for future in futures:
                future.cancel()
            raise
    return results
