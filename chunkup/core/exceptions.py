"""Exception hierarchy for chunkup.

Provides typed exceptions for different failure modes with clear error messages.
"""

from __future__ import annotations

from typing import Any


class ChunkupError(Exception):
    """Base exception for all chunkup errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ChunkupError):
    """Error in configuration (missing, invalid, or malformed)."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class ProfileNotFoundError(ConfigurationError):
    """Requested profile does not exist."""

    def __init__(self, profile: str):
        super().__init__(f"Profile not found: {profile}", field="profile", value=profile)
        self.profile = profile


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(ChunkupError):
    """Input validation failed."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class InvalidURLError(ValidationError):
    """Invalid URL format."""

    def __init__(self, url: str, reason: str = ""):
        msg = f"Invalid URL: {url}"
        if reason:
            msg = f"{msg} - {reason}"
        super().__init__(msg, field="url", value=url)
        self.url = url
        self.reason = reason


# =============================================================================
# Job Errors
# =============================================================================


class JobStateError(ChunkupError):
    """Upload job was asked to make an illegal state transition."""

    def __init__(self, job_id: str, current: str, requested: str):
        super().__init__(
            f"Illegal job transition {current} -> {requested}",
            {"job": job_id},
        )
        self.job_id = job_id
        self.current = current
        self.requested = requested


# =============================================================================
# Upload Errors
# =============================================================================


class UploadError(ChunkupError):
    """Error during upload."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)


class TransferError(UploadError):
    """A transfer failed with a non-2xx status or a transport-level error."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        chunk_index: int | None = None,
        attempts: int | None = None,
    ):
        details: dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        if chunk_index is not None:
            details["chunk"] = chunk_index
        if attempts is not None:
            details["attempts"] = attempts
        super().__init__(message, details)
        self.status_code = status_code
        self.chunk_index = chunk_index
        self.attempts = attempts


class UploadAbortedError(UploadError):
    """Upload was cancelled by the caller."""

    def __init__(self, message: str = "Upload aborted", reason: str | None = None):
        details = {"reason": reason} if reason else {}
        super().__init__(message, details)
        self.reason = reason


class VerificationError(UploadError):
    """Final verification of an uploaded object failed."""

    def __init__(self, message: str, url: str | None = None):
        details = {"url": url} if url else {}
        super().__init__(message, details)
        self.url = url
