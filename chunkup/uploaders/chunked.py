"""Single-shot and chunked transfer of one upload job.

This module drives the transport for a job that the orchestrator has already
validated and planned. Use ``UploadService`` from ``chunkup.services.uploads``
as the public API.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Optional

from chunkup.core.exceptions import ChunkupError, TransferError, UploadAbortedError
from chunkup.models.chunk import ChunkDescriptor, ChunkStatus
from chunkup.models.progress import ChunkResult
from chunkup.uploaders.common import upload_with_retry
from chunkup.uploaders.progress import ProgressAggregator, bytes_percent
from chunkup.uploaders.scheduler import run_bounded
from chunkup.uploaders.transport import TransferRequest, TransferResponse, Transport

if TYPE_CHECKING:
    from chunkup.models.upload import UploadJob
    from chunkup.uploaders.cancellation import CancellationToken

logger = logging.getLogger(__name__)


# =============================================================================
# Request Building
# =============================================================================


def build_single_request(job: UploadJob) -> TransferRequest:
    """Request carrying the whole object in the payload field only."""
    source = job.source
    options = job.options
    return TransferRequest(
        url=job.url,
        method=options.method.value,
        payload=source.read_range(0, source.size),
        file_name=source.name,
        payload_field=options.payload_fields.chunk,
        headers=dict(options.headers),
        timeout=options.timeout,
    )


def build_chunk_request(job: UploadJob, chunk: ChunkDescriptor) -> TransferRequest:
    """Request carrying one chunk plus its name/index/count metadata."""
    source = job.source
    options = job.options
    names = options.payload_fields
    return TransferRequest(
        url=job.url,
        method=options.method.value,
        payload=source.read_range(chunk.start, chunk.end),
        file_name=source.name,
        payload_field=names.chunk,
        fields={
            names.file_name: source.name,
            names.current_chunk: str(chunk.index),
            names.total_chunk: str(chunk.total),
        },
        headers=dict(options.headers),
        timeout=options.timeout,
    )


# =============================================================================
# Upload Functions
# =============================================================================


async def upload_single(
    job: UploadJob,
    transport: Transport,
    aggregator: ProgressAggregator,
    token: Optional[CancellationToken] = None,
) -> TransferResponse:
    """Send the whole object in one transport call, without retry.

    Byte-level progress is forwarded to the aggregator unchanged.
    """
    request = build_single_request(job)

    def on_progress(loaded: int, total: int) -> None:
        aggregator.emit(bytes_percent(loaded, total))

    response = await transport.send(request, on_progress=on_progress, token=token)
    aggregator.emit(100.0)
    return response


async def upload_chunk(
    job: UploadJob,
    chunk: ChunkDescriptor,
    transport: Transport,
    aggregator: ProgressAggregator,
    token: Optional[CancellationToken] = None,
) -> ChunkResult:
    """Upload one chunk with the job's retry policy.

    Returns:
        ChunkResult for the successful attempt.

    Raises:
        UploadAbortedError: If the token trips; never retried.
        TransferError: Once the retry budget is exhausted.
    """
    options = job.options
    state = job.chunk_states[chunk.index]
    label = f"chunk {chunk.index}/{chunk.total}"
    request = build_chunk_request(job, chunk)
    start_time = time.time()

    async def _attempt() -> TransferResponse:
        state.start_attempt()
        logger.debug("%s: attempt %d (%d bytes)", label, state.attempts, chunk.length)

        def on_progress(loaded: int, total: int) -> None:
            state.progress = bytes_percent(loaded, total)
            aggregator.update(chunk.index, state.progress)

        return await transport.send(request, on_progress=on_progress, token=token)

    try:
        response = await upload_with_retry(
            _attempt,
            max_retries=options.max_retries,
            retry_delay=options.retry_delay,
            token=token,
            label=label,
        )
    except (UploadAbortedError, asyncio.CancelledError):
        state.mark(ChunkStatus.ABORTED)
        raise
    except TransferError as e:
        state.mark(ChunkStatus.FAILED, str(e))
        raise TransferError(
            f"{label} failed: {e.message}",
            status_code=e.status_code,
            chunk_index=chunk.index,
            attempts=state.attempts,
        ) from e
    except ChunkupError as e:
        state.mark(ChunkStatus.FAILED, str(e))
        raise
    except Exception as e:
        state.mark(ChunkStatus.FAILED, str(e))
        raise TransferError(
            f"{label} failed: {e}",
            chunk_index=chunk.index,
            attempts=state.attempts,
        ) from e

    state.mark(ChunkStatus.SUCCEEDED)
    state.progress = 100.0
    aggregator.update(chunk.index, 100.0)
    logger.debug("%s: uploaded after %d attempt(s)", label, state.attempts)

    return ChunkResult(
        index=chunk.index,
        status_code=response.status_code,
        response=response.body,
        attempts=state.attempts,
        size=chunk.length,
        duration=time.time() - start_time,
        etag=response.etag,
    )


async def upload_chunks(
    job: UploadJob,
    transport: Transport,
    aggregator: ProgressAggregator,
    token: Optional[CancellationToken] = None,
) -> list[ChunkResult]:
    """Upload every planned chunk of ``job`` under its concurrency cap.

    Returns:
        Chunk results ordered by chunk index.
    """

    async def _worker(chunk: ChunkDescriptor) -> ChunkResult:
        return await upload_chunk(job, chunk, transport, aggregator, token)

    try:
        return await run_bounded(
            job.chunks,
            _worker,
            max_parallel=job.options.max_parallel,
            token=token,
            label=f"job {job.job_id}",
        )
    except (UploadAbortedError, asyncio.CancelledError):
        for state in job.chunk_states.values():
            if not state.status.is_terminal:
                state.mark(ChunkStatus.ABORTED)
        raise
