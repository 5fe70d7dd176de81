"""Concurrency control utilities for async operations."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from h2obot.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class ConcurrencyLimiter:
    """Semaphore-backed slot limiter."""

    def __init__(self, max_concurrent: int) -> None:
        self.max_concurrent = max_concurrent
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def __aenter__(self) -> ConcurrencyLimiter:
        await self._semaphore.acquire()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self._semaphore.release()


class TaskPool:
    """Bounded fan-out over independent items.

    Every item gets its own task and its own result slot; a failing, cancelled or
    timed-out task leaves ``None`` in its slot and never affects the others.
    """

    def __init__(self, max_concurrent: int = 8) -> None:
        """Initialize task pool.

        Args:
            max_concurrent: Maximum concurrent tasks.
        """
        self._max_concurrent = max_concurrent

    async def map(
        self,
        func: Callable[[T], Awaitable[R]],
        items: Sequence[T],
        *,
        timeout: float | None = None,
    ) -> list[R | None]:
        """Run ``func`` over ``items`` concurrently.

        Args:
            func: Coroutine function applied to each item.
            items: Inputs, one task each.
            timeout: Wall-clock budget for the whole batch; unfinished tasks are cancelled.

        Returns:
            Results in input order, ``None`` where a task failed or did not finish.
        """

        if not items:
            return []

        limiter = ConcurrencyLimiter(self._max_concurrent)

        async def _wrapped(item: T) -> R:
            async with limiter:
                return await func(item)

        tasks = [asyncio.create_task(_wrapped(item)) for item in items]
        done, pending = await asyncio.wait(tasks, timeout=timeout)

        if pending:
            logger.warning(
                "Task pool budget exhausted",
                extra={"pending": len(pending), "done": len(done), "timeout_s": timeout},
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        results: list[R | None] = []
        for item, task in zip(items, tasks):
            if task not in done or task.cancelled():
                results.append(None)
                continue
            exc = task.exception()
            if exc is not None:
                logger.error("Task failed", exc_info=exc, extra={"item": repr(item)})
                results.append(None)
                continue
            results.append(task.result())
        return results
