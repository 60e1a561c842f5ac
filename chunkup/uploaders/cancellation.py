"""Cooperative cancellation for upload jobs.

A ``CancellationToken`` is owned by the caller and shared by every chunk of
a job. Once cancelled it stays cancelled. The scheduler, the retry policy and
the transport all observe it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

from chunkup.core.exceptions import UploadAbortedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """Set-once cancellation flag with callbacks and an awaitable event."""

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: Optional[str] = None
        self._callbacks: list[Callable[[], None]] = []
        self._event: Optional[asyncio.Event] = None
        self._event_loop: Optional[asyncio.AbstractEventLoop] = None

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled}, reason={self._reason!r})"

    @property
    def cancelled(self) -> bool:
        """Check if cancellation has been requested."""
        return self._cancelled

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def _get_event(self) -> asyncio.Event:
        # Events bind to the first loop that waits on them.
        loop = asyncio.get_running_loop()
        if self._event is None or self._event_loop is not loop:
            self._event = asyncio.Event()
            self._event_loop = loop
            if self._cancelled:
                self._event.set()
        return self._event

    def cancel(self, reason: str = "Upload aborted") -> None:
        """Request cancellation. Repeated calls are ignored.

        Must be called from the event loop thread (or with no loop running).
        Use ``cancel_threadsafe`` from signal handlers in other threads.
        """
        if self._cancelled:
            return

        self._cancelled = True
        self._reason = reason
        logger.info("Cancellation requested: %s", reason)

        if self._event is not None:
            self._event.set()

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Cancellation callback failed")

    def cancel_threadsafe(
        self,
        loop: asyncio.AbstractEventLoop,
        reason: str = "Upload aborted",
    ) -> None:
        """Request cancellation from a thread other than the loop's."""
        loop.call_soon_threadsafe(self.cancel, reason)

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback to run once on cancellation.

        Runs immediately if the token is already cancelled.

        Returns:
            A function that unregisters the callback.
        """
        if self._cancelled:
            callback()
            return lambda: None

        self._callbacks.append(callback)

        def remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return remove

    def raise_if_cancelled(self) -> None:
        """Raise UploadAbortedError if the token is cancelled."""
        if self._cancelled:
            raise UploadAbortedError(reason=self._reason)

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._get_event().wait()

    async def sleep(self, seconds: float) -> bool:
        """Sleep for ``seconds`` or until cancelled, whichever comes first.

        Returns:
            True if the sleep was cut short by cancellation.
        """
        if self._cancelled:
            return True
        try:
            await asyncio.wait_for(self._get_event().wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token trips first.

        On cancellation the underlying task is cancelled and awaited so no
        work is left running.

        Raises:
            UploadAbortedError: If the token is (or becomes) cancelled.
        """
        if self._cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise UploadAbortedError(reason=self._reason)

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise
        finally:
            waiter.cancel()

        if task.done():
            return task.result()

        task.cancel()
        (outcome,) = await asyncio.gather(task, return_exceptions=True)
        if isinstance(outcome, Exception):
            logger.debug("Cancelled transfer raised while stopping: %s", outcome)
        raise UploadAbortedError(reason=self._reason)
