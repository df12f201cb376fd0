"""Helpers for running blocking store calls concurrently without short-circuiting."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, List, TypeVar, Union

ItemT = TypeVar("ItemT")
ResultT = TypeVar("ResultT")

Outcome = Union[ResultT, Exception]


async def gather_settled(awaitables: Iterable[Awaitable[ResultT]]) -> List[Outcome[ResultT]]:
    """Await every awaitable and return results or exceptions in input order.

    A failing awaitable never cancels its siblings. Non-``Exception`` errors such as
    ``CancelledError`` or ``KeyboardInterrupt`` are re-raised once all tasks have settled.
    """

    outcomes = await asyncio.gather(*awaitables, return_exceptions=True)
    for outcome in outcomes:
        if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
            raise outcome
    return list(outcomes)


async def settle_in_threads(
    func: Callable[[ItemT], ResultT],
    items: Iterable[ItemT],
    *,
    limit: int,
) -> List[Outcome[ResultT]]:
    """Run ``func`` for every item in worker threads, at most ``limit`` at a time."""

    semaphore = asyncio.Semaphore(max(1, limit))

    async def _run(item: ItemT) -> ResultT:
        async with semaphore:
            return await asyncio.to_thread(func, item)

    return await gather_settled(_run(item) for item in items)


__all__ = ["Outcome", "gather_settled", "settle_in_threads"]
