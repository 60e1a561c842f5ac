"""chunkup - Chunked, parallel, retrying uploads of large objects over HTTP.

This package uploads a large object to an HTTP endpoint by:
- Splitting it into bounded-size chunks
- Uploading chunks concurrently under a cap, retrying transient failures
- Aggregating per-chunk progress into one overall percentage
- Supporting mid-flight cancellation
"""

__version__ = "0.1.0"

from chunkup.core.config import Config, Profile
from chunkup.core.exceptions import (
    ChunkupError,
    ConfigurationError,
    TransferError,
    UploadAbortedError,
    UploadError,
    ValidationError,
    VerificationError,
)
from chunkup.models.progress import ChunkResult, UploadResult
from chunkup.models.upload import PayloadFields, UploadMode, UploadOptions
from chunkup.services.uploads import UploadService
from chunkup.uploaders.cancellation import CancellationToken
from chunkup.uploaders.transport import HttpxTransport, TransferRequest, TransferResponse

__all__ = [
    "__version__",
    "UploadService",
    "UploadOptions",
    "UploadMode",
    "PayloadFields",
    "UploadResult",
    "ChunkResult",
    "CancellationToken",
    "HttpxTransport",
    "TransferRequest",
    "TransferResponse",
    "Config",
    "Profile",
    "ChunkupError",
    "ConfigurationError",
    "ValidationError",
    "UploadError",
    "TransferError",
    "UploadAbortedError",
    "VerificationError",
]
