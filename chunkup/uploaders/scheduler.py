"""Bounded-concurrency scheduling for chunk uploads.

Workers run as asyncio tasks gated by a semaphore, so at most
``max_parallel`` are outstanding at any instant. A waiting task is woken when
a permit is released; there is no polling.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Optional, TypeVar

from chunkup.core.exceptions import ConfigurationError, UploadAbortedError

if TYPE_CHECKING:
    from chunkup.uploaders.cancellation import CancellationToken

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class _Skipped(Exception):
    """Item never dispatched because an earlier item already failed."""


async def _cancel_all(tasks: Iterable[asyncio.Future]) -> None:
    tasks = list(tasks)
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


def _abort_error(done: Iterable[asyncio.Future]) -> Optional[UploadAbortedError]:
    for task in done:
        if task.cancelled():
            continue
        exc = task.exception()
        if isinstance(exc, UploadAbortedError):
            return exc
    return None


async def run_bounded(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    *,
    max_parallel: int,
    token: Optional[CancellationToken] = None,
    label: str = "task",
) -> list[R]:
    """Run ``worker`` over ``items`` with at most ``max_parallel`` in flight.

    Args:
        items: Work items; consumed once.
        worker: Coroutine function applied to each item.
        max_parallel: Maximum concurrent worker invocations.
        token: Cancellation token. Items that acquire a permit after it trips
            are not started.
        label: Label for log messages.

    Returns:
        Worker results in input order, regardless of completion order.

    Raises:
        UploadAbortedError: As soon as any worker aborts. Outstanding tasks are
            cancelled and awaited first.
        Exception: If workers fail with ordinary errors, the error of the
            lowest-indexed failed item, raised once every dispatched worker
            has settled. Items still waiting for a permit are not started.
    """
    if max_parallel < 1:
        raise ConfigurationError(
            "max_parallel must be at least 1",
            field="max_parallel",
            value=max_parallel,
        )

    items = list(items)
    if not items:
        return []

    permits = asyncio.Semaphore(max_parallel)
    failed = False

    async def _run(item: T) -> R:
        nonlocal failed
        async with permits:
            if token is not None:
                token.raise_if_cancelled()
            if failed:
                raise _Skipped()
            try:
                return await worker(item)
            except UploadAbortedError:
                raise
            except Exception:
                failed = True
                raise

    tasks = [asyncio.ensure_future(_run(item)) for item in items]

    try:
        pending: set[asyncio.Future] = set(tasks)
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
            abort = _abort_error(done)
            if abort is not None:
                logger.info("%s: aborting %d outstanding item(s)", label, len(pending))
                await _cancel_all(pending)
                raise abort
    except asyncio.CancelledError:
        await _cancel_all(tasks)
        raise

    failures = [
        (i, task.exception())
        for i, task in enumerate(tasks)
        if task.exception() is not None and not isinstance(task.exception(), _Skipped)
    ]
    skipped = sum(isinstance(task.exception(), _Skipped) for task in tasks)
    if failures:
        if skipped:
            logger.info("%s: %d item(s) not started after failure", label, skipped)
        logger.warning(
            "%s: %d of %d item(s) failed; first failure at position %d",
            label,
            len(failures),
            len(tasks),
            failures[0][0] + 1,
        )
        raise failures[0][1]  # type: ignore[misc]

    return [task.result() for task in tasks]
