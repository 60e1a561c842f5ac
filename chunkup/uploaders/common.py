"""Common utilities for uploader modules."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Optional, TypeVar

from chunkup.core.exceptions import ConfigurationError, UploadAbortedError
from chunkup.models.chunk import ChunkDescriptor

if TYPE_CHECKING:
    from chunkup.uploaders.cancellation import CancellationToken

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors that are never worth another attempt
ALWAYS_FATAL = (UploadAbortedError, ConfigurationError)


def total_chunk_count(object_size: int, chunk_size: int) -> int:
    """Number of chunks needed for an object.

    An empty object still needs one (empty) chunk.

    Raises:
        ConfigurationError: If chunk_size is not positive or object_size is negative.
    """
    if chunk_size <= 0:
        raise ConfigurationError(
            "Chunk size must be a positive number of bytes",
            field="chunk_size",
            value=chunk_size,
        )
    if object_size < 0:
        raise ConfigurationError(
            "Object size must be non-negative",
            field="object_size",
            value=object_size,
        )
    return max(1, -(-object_size // chunk_size))


def plan_chunks(object_size: int, chunk_size: int) -> list[ChunkDescriptor]:
    """Split an object into ordered chunk descriptors.

    Args:
        object_size: Size of the object in bytes.
        chunk_size: Maximum bytes per chunk.

    Returns:
        Descriptors in ascending 1-based index order. Their ranges partition
        ``[0, object_size)`` with no gaps or overlaps.

    Raises:
        ConfigurationError: If chunk_size is not positive.
    """
    total = total_chunk_count(object_size, chunk_size)

    chunks: list[ChunkDescriptor] = []
    for index in range(1, total + 1):
        start = (index - 1) * chunk_size
        end = min(index * chunk_size, object_size)
        chunks.append(ChunkDescriptor(index=index, start=start, end=end, total=total))

    return chunks


async def upload_with_retry(
    action: Callable[[], Awaitable[T]],
    *,
    max_retries: int,
    retry_delay: float,
    is_fatal: Optional[Callable[[BaseException], bool]] = None,
    fatal_exceptions: tuple[type[BaseException], ...] = (),
    token: Optional[CancellationToken] = None,
    label: str = "upload",
    on_retry: Optional[Callable[[int, Exception], None]] = None,
) -> T:
    """Run an upload coroutine with a fixed delay between attempts.

    Args:
        action: Zero-argument callable returning a fresh coroutine per attempt.
                Will be called multiple times on retry - must be idempotent.
        max_retries: Retries after the first attempt.
        retry_delay: Seconds to wait between attempts (fixed, no backoff).
        is_fatal: Optional predicate; errors it accepts are raised immediately.
        fatal_exceptions: Exception types raised immediately without retry.
        token: Cancellation token checked before each retry and during the delay.
        label: Label for log messages.
        on_retry: Called with (next attempt number, error) before each retry.

    Returns:
        The result of the first successful attempt.

    Raises:
        UploadAbortedError: If cancelled; never retried.
        Exception: The last error once all retries are exhausted.
    """
    if max_retries < 0:
        raise ConfigurationError(
            "max_retries must be non-negative",
            field="max_retries",
            value=max_retries,
        )

    fatal_types = ALWAYS_FATAL + tuple(fatal_exceptions)
    attempts = max_retries + 1

    for attempt in range(1, attempts + 1):
        try:
            return await action()
        except Exception as e:
            if isinstance(e, fatal_types) or (is_fatal is not None and is_fatal(e)):
                raise
            if attempt >= attempts:
                raise

            logger.warning(
                "%s: %s on attempt %d/%d, retrying in %.1fs",
                label,
                e,
                attempt,
                attempts,
                retry_delay,
            )
            if on_retry is not None:
                on_retry(attempt + 1, e)

            if token is not None:
                await token.sleep(retry_delay)
                token.raise_if_cancelled()
            else:
                await asyncio.sleep(retry_delay)

    # range() above always returns or raises
    raise AssertionError(f"{label}: retry loop exited without a result")
