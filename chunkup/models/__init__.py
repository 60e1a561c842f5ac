"""Data models for chunkup.

Provides Pydantic models for upload options and dataclasses for chunk state
and upload results.
"""

from __future__ import annotations

from .base import BaseModel
from .chunk import ChunkDescriptor, ChunkState, ChunkStatus
from .progress import ChunkResult, UploadResult
from .upload import HttpMethod, JobState, PayloadFields, UploadJob, UploadMode, UploadOptions

__all__ = [
    # Base
    "BaseModel",
    # Options
    "HttpMethod",
    "UploadMode",
    "PayloadFields",
    "UploadOptions",
    # Job
    "JobState",
    "UploadJob",
    # Chunks
    "ChunkDescriptor",
    "ChunkState",
    "ChunkStatus",
    # Results
    "ChunkResult",
    "UploadResult",
]
