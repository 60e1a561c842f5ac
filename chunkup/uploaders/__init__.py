"""Upload engine for chunkup.

This module provides the pieces that move an object to its destination:
- Chunk planning and the fixed-delay retry policy
- Bounded-concurrency scheduling and progress aggregation
- Cooperative cancellation
- Upload sources and the httpx multipart transport

These are internal building blocks. Use `UploadService` from
`chunkup.services.uploads` as the public API.
"""

from chunkup.uploaders.cancellation import CancellationToken
from chunkup.uploaders.chunked import upload_chunk, upload_chunks, upload_single
from chunkup.uploaders.common import plan_chunks, total_chunk_count, upload_with_retry
from chunkup.uploaders.progress import ProgressAggregator, bytes_percent, clamp_percent
from chunkup.uploaders.scheduler import run_bounded
from chunkup.uploaders.sources import (
    BytesSource,
    FileSource,
    StreamSource,
    UploadSource,
    open_source,
)
from chunkup.uploaders.transport import (
    HttpxTransport,
    TransferRequest,
    TransferResponse,
    Transport,
)

__all__ = [
    # Planning and retry
    "plan_chunks",
    "total_chunk_count",
    "upload_with_retry",
    # Scheduling
    "run_bounded",
    # Progress
    "ProgressAggregator",
    "bytes_percent",
    "clamp_percent",
    # Cancellation
    "CancellationToken",
    # Sources
    "UploadSource",
    "BytesSource",
    "FileSource",
    "StreamSource",
    "open_source",
    # Transport
    "Transport",
    "TransferRequest",
    "TransferResponse",
    "HttpxTransport",
    # Job drivers
    "upload_single",
    "upload_chunk",
    "upload_chunks",
]
