"""Chunk descriptors and per-chunk upload state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ChunkStatus(Enum):
    """Lifecycle of a single chunk within an upload job."""

    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        """Check if the chunk has settled."""
        return self in (ChunkStatus.SUCCEEDED, ChunkStatus.FAILED, ChunkStatus.ABORTED)


@dataclass(frozen=True)
class ChunkDescriptor:
    """Byte range ``[start, end)`` of one chunk.

    Indexes are 1-based: chunk ``i`` covers
    ``((i - 1) * chunk_size, i * chunk_size)`` clipped to the object size.
    """

    index: int
    start: int
    end: int
    total: int

    @property
    def length(self) -> int:
        """Number of bytes in the chunk."""
        return self.end - self.start

    @property
    def is_last(self) -> bool:
        """Check if this is the final chunk of the object."""
        return self.index == self.total


@dataclass
class ChunkState:
    """Mutable upload state for one chunk."""

    index: int
    status: ChunkStatus = ChunkStatus.PENDING
    attempts: int = 0
    progress: float = 0.0
    error: Optional[str] = None

    def start_attempt(self) -> None:
        """Record the start of a new transfer attempt."""
        self.attempts += 1
        self.status = ChunkStatus.IN_FLIGHT if self.attempts == 1 else ChunkStatus.RETRYING

    def mark(self, status: ChunkStatus, error: Optional[str] = None) -> None:
        """Move the chunk to ``status``, recording an error message if given."""
        self.status = status
        if error is not None:
            self.error = error
