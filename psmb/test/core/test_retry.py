from __future__ import annotations

import pytest

from psmb.core import retry as retry_mod
from psmb.core.result import Err, Ok, Result
from psmb.core.retry import with_retry


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    calls: list[float] = []
    monkeypatch.setattr(retry_mod, "sleep", calls.append)
    return calls


def _sequence(*results: Result[str, str]):
    queue = list(results)
    calls: list[int] = []

    def op() -> Result[str, str]:
        calls.append(1)
        return queue.pop(0)

    return op, calls


def test_returns_first_ok_without_sleeping(sleeps: list[float]) -> None:
    op, calls = _sequence(Ok("done"))
    assert with_retry(op, attempts=5, delay=10.0) == Ok("done")
    assert len(calls) == 1
    assert sleeps == []


def test_retries_until_ok_with_fixed_delay(sleeps: list[float]) -> None:
    op, calls = _sequence(Err("a"), Err("b"), Ok("done"))
    assert with_retry(op, attempts=5, delay=10.0) == Ok("done")
    assert len(calls) == 3
    assert sleeps == [10.0, 10.0]


def test_returns_last_error_when_attempts_exhausted(sleeps: list[float]) -> None:
    op, calls = _sequence(Err("a"), Err("b"), Err("c"))
    assert with_retry(op, attempts=3, delay=1.0) == Err("c")
    assert len(calls) == 3
    assert len(sleeps) == 2


def test_non_retryable_error_returns_immediately(sleeps: list[float]) -> None:
    op, calls = _sequence(Err("fatal"), Ok("never"))
    result = with_retry(op, attempts=5, delay=1.0, retry_if=lambda e: e != "fatal")
    assert result == Err("fatal")
    assert len(calls) == 1
    assert sleeps == []


def test_zero_attempts_still_calls_once(sleeps: list[float]) -> None:
    op, calls = _sequence(Err("x"))
    assert with_retry(op, attempts=0, delay=1.0) == Err("x")
    assert len(calls) == 1


def test_on_retry_receives_attempt_numbers(sleeps: list[float]) -> None:
    op, _ = _sequence(Err("a"), Err("b"), Ok("ok"))
    seen: list[tuple[int, str]] = []
    with_retry(op, attempts=5, delay=0.0, on_retry=lambda n, e: seen.append((n, e)))
    assert seen == [(1, "a"), (2, "b")]
