from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from bookflow.application.exceptions import TransientServiceError

T = TypeVar("T")


class RetryExecutor:
    """
    Bounded retry with a fixed delay between attempts.

    Calls sharing an idempotency key while one is in flight join that call
    instead of issuing a duplicate request. A caller that stops waiting does
    not cancel the shared attempt; it runs to completion and its result is
    simply not observed by that caller.
    """

    def __init__(
        self,
        max_attempts: int = 2,
        base_delay_ms: int = 1000,
        retry_on: tuple[type[BaseException], ...] = (TransientServiceError,),
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._max_attempts = max_attempts
        self._base_delay_ms = base_delay_ms
        self._retry_on = retry_on
        self._sleep = sleep
        self._in_flight: dict[str, asyncio.Future[Any]] = {}
        self._logger = logging.getLogger(__name__)

    def is_in_flight(self, key: str) -> bool:
        return key in self._in_flight

    async def execute(
        self,
        key: str,
        operation: Callable[[], Awaitable[T]],
        max_attempts: int | None = None,
        base_delay_ms: int | None = None,
    ) -> T:
        """
        Run operation up to max_attempts + 1 times. On final failure the last
        error is raised unchanged. Errors outside retry_on are raised at once.
        """
        existing = self._in_flight.get(key)
        if existing is not None:
            self._logger.debug("Joining in-flight operation", extra={"key": key})
            return await asyncio.shield(existing)

        retries = self._max_attempts if max_attempts is None else max_attempts
        delay_ms = self._base_delay_ms if base_delay_ms is None else base_delay_ms

        task = asyncio.ensure_future(self._run(key, operation, retries, delay_ms))
        self._in_flight[key] = task
        task.add_done_callback(lambda done: self._release(key, done))
        return await asyncio.shield(task)

    async def _run(
        self,
        key: str,
        operation: Callable[[], Awaitable[T]],
        retries: int,
        delay_ms: int,
    ) -> T:
        total = max(retries, 0) + 1
        attempt = 0

        while True:
            attempt += 1
            try:
                return await operation()
            except self._retry_on as e:
                if getattr(e, "retryable", True) is False:
                    raise
                if attempt >= total:
                    self._logger.error(
                        "Operation failed after retries",
                        extra={"key": key, "attempt": attempt, "error": str(e)},
                    )
                    raise
                self._logger.warning(
                    "Operation failed, retrying",
                    extra={"key": key, "attempt": attempt, "error": str(e)},
                )
                await self._sleep(delay_ms / 1000)

    def _release(self, key: str, done: asyncio.Future[Any]) -> None:
        if self._in_flight.get(key) is done:
            del self._in_flight[key]
        # mark the outcome as observed even if every caller walked away
        if not done.cancelled():
            done.exception()
