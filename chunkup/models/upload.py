"""Upload options and per-job context."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from chunkup.core.constants import (
    DEFAULT_CHUNK_FIELD,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CURRENT_CHUNK_FIELD,
    DEFAULT_FILE_NAME_FIELD,
    DEFAULT_MAX_PARALLEL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    DEFAULT_TOTAL_CHUNK_FIELD,
)
from chunkup.core.exceptions import ConfigurationError, JobStateError
from chunkup.models.base import BaseModel
from chunkup.models.chunk import ChunkDescriptor, ChunkState

if TYPE_CHECKING:
    from chunkup.uploaders.sources import UploadSource


class UploadMode(str, Enum):
    """How an object is sent."""

    SINGLE = "single"
    CHUNKED = "chunked"


class HttpMethod(str, Enum):
    """HTTP methods accepted for uploads."""

    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"


class PayloadFields(BaseModel):
    """Names of the form fields sent alongside each chunk."""

    chunk: str = Field(DEFAULT_CHUNK_FIELD, min_length=1)
    file_name: str = Field(DEFAULT_FILE_NAME_FIELD, min_length=1)
    current_chunk: str = Field(DEFAULT_CURRENT_CHUNK_FIELD, min_length=1)
    total_chunk: str = Field(DEFAULT_TOTAL_CHUNK_FIELD, min_length=1)


class UploadOptions(BaseModel):
    """Validated settings for one or more upload jobs."""

    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)

    method: HttpMethod = HttpMethod.POST
    mode: UploadMode = UploadMode.CHUNKED
    chunk_size: int = Field(DEFAULT_CHUNK_SIZE, gt=0)
    max_retries: int = Field(DEFAULT_MAX_RETRIES, ge=0)
    retry_delay: float = Field(DEFAULT_RETRY_DELAY, ge=0)
    max_parallel: int = Field(DEFAULT_MAX_PARALLEL, ge=1)
    timeout: float = Field(DEFAULT_TIMEOUT, gt=0)
    headers: dict[str, str] = Field(default_factory=dict)
    payload_fields: PayloadFields = Field(default_factory=PayloadFields)

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            # "multiple" is the legacy name for chunked uploads
            if value in ("multiple", "multipart"):
                return UploadMode.CHUNKED.value
        return value

    @classmethod
    def create(cls, **values: Any) -> UploadOptions:
        """Build options, converting validation failures to ConfigurationError.

        Raises:
            ConfigurationError: If any option is missing, unknown, or out of range.
        """
        try:
            return cls(**values)
        except PydanticValidationError as e:
            error = e.errors()[0]
            loc = ".".join(str(part) for part in error["loc"])
            raise ConfigurationError(
                f"Invalid upload option '{loc}': {error['msg']}",
                field=loc,
                value=error.get("input"),
            ) from e


# =============================================================================
# Upload Job
# =============================================================================


class JobState(Enum):
    """States of one upload job."""

    CREATED = "created"
    PLANNING = "planning"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is allowed."""
        return self in (JobState.SUCCEEDED, JobState.FAILED, JobState.ABORTED)


_TRANSITIONS: dict[JobState, set[JobState]] = {
    JobState.CREATED: {JobState.PLANNING, JobState.RUNNING, JobState.FAILED, JobState.ABORTED},
    JobState.PLANNING: {JobState.RUNNING, JobState.FAILED, JobState.ABORTED},
    JobState.RUNNING: {JobState.SUCCEEDED, JobState.FAILED, JobState.ABORTED},
}


@dataclass
class UploadJob:
    """Context for one ``upload()`` call.

    Holds everything that changes while an object is being uploaded, so the
    service that creates jobs stays free of per-upload state.
    """

    source: UploadSource
    url: str
    options: UploadOptions
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    state: JobState = JobState.CREATED
    chunks: list[ChunkDescriptor] = field(default_factory=list)
    chunk_states: dict[int, ChunkState] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def mode(self) -> UploadMode:
        return self.options.mode

    @property
    def total_chunks(self) -> int:
        return len(self.chunks)

    def transition(self, state: JobState) -> None:
        """Move the job to ``state``.

        Raises:
            JobStateError: If the transition is not allowed from the current state.
        """
        if state not in _TRANSITIONS.get(self.state, set()):
            raise JobStateError(self.job_id, self.state.value, state.value)
        self.state = state

    def set_chunks(self, chunks: list[ChunkDescriptor]) -> None:
        """Attach planned chunks and create one state entry per chunk."""
        self.chunks = list(chunks)
        self.chunk_states = {chunk.index: ChunkState(index=chunk.index) for chunk in self.chunks}
