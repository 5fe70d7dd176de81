"""Tests for bounded fan-out."""

from __future__ import annotations

import asyncio

from h2obot.core.concurrency import TaskPool


def test_task_pool_keeps_order_and_isolates_failures() -> None:
    """It should return results in input order with None for failed items."""

    async def work(n: int) -> int:
        await asyncio.sleep(0.01 * (5 - n))
        if n == 2:
            raise ValueError("boom")
        return n * 10

    results = asyncio.run(TaskPool(max_concurrent=2).map(work, [1, 2, 3, 4]))
    assert results == [10, None, 30, 40]


def test_task_pool_limits_concurrency() -> None:
    """It should never run more than max_concurrent items at once."""

    running = 0
    peak = 0

    async def work(n: int) -> int:
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return n

    asyncio.run(TaskPool(max_concurrent=3).map(work, list(range(10))))
    assert peak == 3


def test_task_pool_timeout_cancels_stragglers() -> None:
    """It should give unfinished items None when the overall budget runs out."""

    async def work(n: int) -> int:
        if n == 1:
            await asyncio.sleep(10)
        return n

    results = asyncio.run(TaskPool(max_concurrent=4).map(work, [0, 1, 2], timeout=0.2))
    assert results == [0, None, 2]


def test_task_pool_empty() -> None:
    """It should return an empty list without scheduling anything."""

    async def work(n: int) -> int:
        return n

    assert asyncio.run(TaskPool().map(work, [])) == []
