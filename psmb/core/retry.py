"""Bounded retry for blocking external calls.

Registry lookups, `gh` reads and module installs all share this loop:
a fixed number of attempts with a fixed delay between them, no jitter.
"""

from __future__ import annotations

from collections.abc import Callable
from time import sleep

from .result import Err, Ok, Result

__all__ = ["with_retry", "always"]


def always(error: object) -> bool:
    del error
    return True


def with_retry[T, E](
    operation: Callable[[], Result[T, E]],
    *,
    attempts: int,
    delay: float,
    retry_if: Callable[[E], bool] = always,
    on_retry: Callable[[int, E], None] | None = None,
) -> Result[T, E]:
    """Run ``operation`` until it returns Ok or attempts are exhausted.

    Args:
        operation: Zero-argument callable returning a Result.
        attempts: Total number of calls allowed (at least one is made).
        delay: Seconds to sleep between attempts.
        retry_if: Predicate deciding whether an error is worth another try.
            Errors it rejects are returned immediately.
        on_retry: Optional callback(attempt_number, error) before sleeping.

    Returns:
        The first Ok, or the last Err.
    """
    total = max(1, attempts)
    attempt = 1
    while True:
        result = operation()
        if isinstance(result, Ok):
            return result

        error = result.error
        if attempt >= total or not retry_if(error):
            return Err(error)

        if on_retry is not None:
            on_retry(attempt, error)
        sleep(delay)
        attempt += 1
