"""Upload service: the public entry point for single-shot and chunked uploads."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, BinaryIO, Optional, Union

from chunkup.core.exceptions import UploadAbortedError, VerificationError
from chunkup.core.logging import log_job
from chunkup.core.validation import validate_upload_url
from chunkup.models.progress import UploadResult
from chunkup.models.upload import JobState, UploadJob, UploadMode, UploadOptions
from chunkup.uploaders.cancellation import CancellationToken
from chunkup.uploaders.chunked import upload_chunks, upload_single
from chunkup.uploaders.common import plan_chunks
from chunkup.uploaders.progress import ProgressAggregator, ProgressCallback
from chunkup.uploaders.sources import UploadSource, open_source
from chunkup.uploaders.transport import HttpxTransport, Transport

logger = logging.getLogger(__name__)

UploadObject = Union[UploadSource, bytes, bytearray, memoryview, str, Path, BinaryIO]
Verifier = Callable[[UploadResult], Union[bool, None, Awaitable[Optional[bool]]]]


class UploadService:
    """Upload objects to an HTTP endpoint, whole or in chunks.

    The service holds configuration only. Each ``upload()`` call builds its
    own ``UploadJob``, so one service can run several uploads concurrently.

    Example:
        service = UploadService(UploadOptions.create(chunk_size=8 * 1024 * 1024))
        result = await service.upload(Path("video.mp4"), "https://example.org/upload")
    """

    def __init__(
        self,
        options: Optional[UploadOptions] = None,
        *,
        transport: Optional[Transport] = None,
        token: Optional[CancellationToken] = None,
        verifier: Optional[Verifier] = None,
        verify_ssl: bool = True,
    ) -> None:
        """Initialize the service.

        Args:
            options: Upload settings; defaults apply when omitted.
            transport: Transport used for every transfer. When omitted, an
                HttpxTransport is opened for each upload and closed afterwards.
            token: Default cancellation token for uploads that don't pass one.
            verifier: Optional final check run after every chunk succeeded.
                Returning False or raising fails the upload.
            verify_ssl: SSL verification for the default transport.
        """
        self.options = options or UploadOptions()
        self.transport = transport
        self.token = token
        self.verifier = verifier
        self.verify_ssl = verify_ssl

    @asynccontextmanager
    async def _open_transport(self) -> AsyncIterator[Transport]:
        if self.transport is not None:
            yield self.transport
            return
        transport = HttpxTransport(timeout=self.options.timeout, verify_ssl=self.verify_ssl)
        async with transport:
            yield transport

    # =========================================================================
    # Upload
    # =========================================================================

    async def upload(
        self,
        obj: UploadObject,
        url: str,
        *,
        on_progress: Optional[ProgressCallback] = None,
        token: Optional[CancellationToken] = None,
        name: Optional[str] = None,
    ) -> UploadResult:
        """Upload an object to ``url``.

        Args:
            obj: Bytes, a file path, a seekable binary stream, or an UploadSource.
            url: Destination URL.
            on_progress: Called with overall progress in [0, 100]; receives 0
                first, and 0 again if the upload fails.
            token: Cancellation token; falls back to the service default.
            name: Object name sent to the server (defaults to the file name).

        Returns:
            UploadResult. In chunked mode ``response`` is the body returned
            for the final chunk.

        Raises:
            ConfigurationError: If the options are invalid for this object.
            ValidationError: If the URL or object is invalid.
            UploadAbortedError: If the upload was cancelled.
            TransferError: If a transfer failed after exhausting retries.
            VerificationError: If the verifier rejected the upload.
        """
        token = token or self.token
        aggregator = ProgressAggregator(1, on_progress)
        aggregator.emit(0.0)

        try:
            url = validate_upload_url(url)
            source = open_source(obj, name=name)
        except Exception:
            aggregator.reset()
            raise

        job = UploadJob(source=source, url=url, options=self.options)

        if token is not None and token.cancelled:
            job.transition(JobState.ABORTED)
            aggregator.reset()
            raise UploadAbortedError("Upload aborted before start", reason=token.reason)

        with log_job(
            logger,
            job.job_id,
            mode=job.mode.value,
            size=source.size,
            url=url,
        ) as timer:
            try:
                result = await self._run_job(job, aggregator, token)
                result.duration = timer.elapsed
                await self._verify(job, result)
            except UploadAbortedError:
                self._settle(job, JobState.ABORTED, aggregator)
                raise
            except asyncio.CancelledError as e:
                self._settle(job, JobState.ABORTED, aggregator)
                if token is not None and token.cancelled:
                    raise UploadAbortedError(reason=token.reason) from e
                raise
            except Exception as e:
                job.error = str(e)
                self._settle(job, JobState.FAILED, aggregator)
                raise

            job.transition(JobState.SUCCEEDED)
            return result

    def upload_sync(
        self,
        obj: UploadObject,
        url: str,
        *,
        on_progress: Optional[ProgressCallback] = None,
        token: Optional[CancellationToken] = None,
        name: Optional[str] = None,
    ) -> UploadResult:
        """Run ``upload()`` to completion on a fresh event loop."""
        return asyncio.run(
            self.upload(obj, url, on_progress=on_progress, token=token, name=name)
        )

    # =========================================================================
    # Internals
    # =========================================================================

    async def _run_job(
        self,
        job: UploadJob,
        aggregator: ProgressAggregator,
        token: Optional[CancellationToken],
    ) -> UploadResult:
        source = job.source
        result = UploadResult(
            job_id=job.job_id,
            mode=job.mode.value,
            url=job.url,
            file_name=source.name,
            object_size=source.size,
        )

        async with self._open_transport() as transport:
            if job.mode == UploadMode.SINGLE:
                job.transition(JobState.RUNNING)
                response = await upload_single(job, transport, aggregator, token)
                result.response = response.body
                result.etag = response.etag
                return result

            job.transition(JobState.PLANNING)
            job.set_chunks(plan_chunks(source.size, job.options.chunk_size))
            aggregator.total_chunks = job.total_chunks
            logger.debug(
                "Job %s: %d chunk(s) of up to %d bytes, %d in parallel",
                job.job_id,
                job.total_chunks,
                job.options.chunk_size,
                job.options.max_parallel,
            )

            job.transition(JobState.RUNNING)
            chunks = await upload_chunks(job, transport, aggregator, token)

        final = chunks[-1]
        result.chunks = chunks
        result.response = final.response
        result.etag = final.etag
        aggregator.complete()
        return result

    async def _verify(self, job: UploadJob, result: UploadResult) -> None:
        if self.verifier is None:
            return

        outcome: Any = self.verifier(result)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        if outcome is False:
            raise VerificationError("Upload verification failed", url=job.url)
        logger.debug("Job %s: verification passed", job.job_id)

    @staticmethod
    def _settle(job: UploadJob, state: JobState, aggregator: ProgressAggregator) -> None:
        if not job.state.is_terminal:
            job.transition(state)
        aggregator.reset()
