"""Result models for upload operations.

Provides dataclasses for per-chunk outcomes and the aggregate upload summary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class ChunkResult:
    """Outcome of one successfully uploaded chunk."""

    index: int
    status_code: int
    response: Any = None
    attempts: int = 1
    size: int = 0
    duration: float = 0.0
    etag: Optional[str] = None


@dataclass
class UploadResult:
    """Aggregate outcome of an upload job."""

    job_id: str
    mode: str
    url: str
    file_name: str
    object_size: int
    response: Any = None
    etag: Optional[str] = None
    duration: float = 0.0
    chunks: List[ChunkResult] = field(default_factory=list)

    @property
    def total_chunks(self) -> int:
        """Number of transfers that made up the upload."""
        return len(self.chunks) or 1

    @property
    def total_attempts(self) -> int:
        """Transfer attempts across all chunks, retries included."""
        return sum(chunk.attempts for chunk in self.chunks) or 1

    @property
    def size_mb(self) -> float:
        """Return object size in megabytes."""
        return self.object_size / (1024 * 1024)

    @property
    def throughput_mbps(self) -> float:
        """Calculate upload throughput in MB/s."""
        if self.duration == 0:
            return 0.0
        return self.size_mb / self.duration

    def to_dict(self) -> dict[str, Any]:
        """Summary suitable for JSON or table output."""
        return {
            "job_id": self.job_id,
            "mode": self.mode,
            "url": self.url,
            "file_name": self.file_name,
            "size_mb": round(self.size_mb, 3),
            "chunks": self.total_chunks,
            "attempts": self.total_attempts,
            "duration": round(self.duration, 3),
            "throughput_mbps": round(self.throughput_mbps, 3),
            "etag": self.etag,
            "response": self.response,
        }
