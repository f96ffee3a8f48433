"""
Tests for bounded retry with fixed delay and idempotency-key collapsing.
"""

from __future__ import annotations

import asyncio
import logging

import pytest

from bookflow.application.exceptions import BookingConflictError, TransientServiceError
from bookflow.application.use_cases.retry_executor import RetryExecutor


class FlakyOperation:
    def __init__(self, failures: int, result: str = "ok", error: Exception | None = None) -> None:
        self.failures = failures
        self.result = result
        self.error = error
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        await asyncio.sleep(0)
        if self.calls <= self.failures:
            raise self.error or TransientServiceError("database")
        return self.result


def recording_sleep():
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    return delays, _sleep


@pytest.mark.asyncio
async def test_returns_first_success_without_retrying():
    delays, sleep = recording_sleep()
    executor = RetryExecutor(sleep=sleep)
    operation = FlakyOperation(failures=0)

    assert await executor.execute("k", operation) == "ok"
    assert operation.calls == 1
    assert delays == []


@pytest.mark.asyncio
async def test_retries_transient_errors_with_fixed_delay():
    delays, sleep = recording_sleep()
    executor = RetryExecutor(max_attempts=2, base_delay_ms=1000, sleep=sleep)
    operation = FlakyOperation(failures=2)

    assert await executor.execute("k", operation) == "ok"
    assert operation.calls == 3
    assert delays == [1.0, 1.0]


@pytest.mark.asyncio
async def test_raises_last_error_unchanged_after_budget_is_spent():
    _, sleep = recording_sleep()
    executor = RetryExecutor(max_attempts=2, sleep=sleep)
    errors = [TransientServiceError("database", f"failure {i}") for i in range(3)]

    calls = 0

    async def operation() -> str:
        nonlocal calls
        error = errors[calls]
        calls += 1
        raise error

    with pytest.raises(TransientServiceError) as exc_info:
        await executor.execute("k", operation)

    assert calls == 3
    assert exc_info.value is errors[-1]


@pytest.mark.asyncio
async def test_per_call_budget_overrides_default():
    _, sleep = recording_sleep()
    executor = RetryExecutor(max_attempts=2, sleep=sleep)
    operation = FlakyOperation(failures=10)

    with pytest.raises(TransientServiceError):
        await executor.execute("k", operation, max_attempts=0)

    assert operation.calls == 1


@pytest.mark.asyncio
async def test_negative_budget_still_makes_one_attempt(caplog):
    delays, sleep = recording_sleep()
    executor = RetryExecutor(max_attempts=-1, sleep=sleep)
    operation = FlakyOperation(failures=10)

    with caplog.at_level(logging.ERROR, logger="bookflow.application.use_cases.retry_executor"):
        with pytest.raises(TransientServiceError):
            await executor.execute("k", operation)

    assert operation.calls == 1
    assert delays == []
    assert [record.attempt for record in caplog.records] == [1]


@pytest.mark.asyncio
async def test_conflicts_are_never_retried():
    _, sleep = recording_sleep()
    executor = RetryExecutor(sleep=sleep)
    operation = FlakyOperation(failures=5, error=BookingConflictError())

    with pytest.raises(BookingConflictError):
        await executor.execute("k", operation)

    assert operation.calls == 1


@pytest.mark.asyncio
async def test_non_retryable_service_errors_escape_immediately():
    _, sleep = recording_sleep()
    executor = RetryExecutor(sleep=sleep)
    operation = FlakyOperation(failures=5, error=TransientServiceError("database", retryable=False))

    with pytest.raises(TransientServiceError):
        await executor.execute("k", operation)

    assert operation.calls == 1


@pytest.mark.asyncio
async def test_concurrent_calls_with_same_key_collapse():
    executor = RetryExecutor()
    release = asyncio.Event()
    calls = 0

    async def operation() -> str:
        nonlocal calls
        calls += 1
        await release.wait()
        return f"result-{calls}"

    first = asyncio.create_task(executor.execute("booking:1", operation))
    second = asyncio.create_task(executor.execute("booking:1", operation))
    await asyncio.sleep(0)
    assert executor.is_in_flight("booking:1")

    release.set()
    results = await asyncio.gather(first, second)

    assert calls == 1
    assert results == ["result-1", "result-1"]
    assert not executor.is_in_flight("booking:1")


@pytest.mark.asyncio
async def test_different_keys_do_not_collapse():
    executor = RetryExecutor()
    calls = 0

    async def operation() -> int:
        nonlocal calls
        calls += 1
        await asyncio.sleep(0)
        return calls

    await asyncio.gather(executor.execute("a", operation), executor.execute("b", operation))

    assert calls == 2


@pytest.mark.asyncio
async def test_key_is_released_once_the_call_settles():
    executor = RetryExecutor()
    operation = FlakyOperation(failures=0)

    await executor.execute("k", operation)
    await executor.execute("k", operation)

    assert operation.calls == 2


@pytest.mark.asyncio
async def test_abandoned_caller_does_not_cancel_in_flight_attempt():
    executor = RetryExecutor()
    release = asyncio.Event()
    finished = asyncio.Event()

    async def operation() -> str:
        await release.wait()
        finished.set()
        return "done"

    caller = asyncio.create_task(executor.execute("k", operation))
    await asyncio.sleep(0)
    caller.cancel()
    with pytest.raises(asyncio.CancelledError):
        await caller

    release.set()
    await asyncio.wait_for(finished.wait(), timeout=1)
    for _ in range(3):
        await asyncio.sleep(0)
    assert finished.is_set()
    assert not executor.is_in_flight("k")
