"""Core modules for chunkup."""

from chunkup.core.config import CONFIG_DIR, CONFIG_FILE, Config, Profile
from chunkup.core.exceptions import (
    ChunkupError,
    ConfigurationError,
    InvalidURLError,
    JobStateError,
    ProfileNotFoundError,
    TransferError,
    UploadAbortedError,
    UploadError,
    ValidationError,
    VerificationError,
)
from chunkup.core.logging import JobLog, log_job, setup_logging
from chunkup.core.output import (
    OutputFormat,
    console,
    format_bytes,
    print_error,
    print_json,
    print_key_value,
    print_output,
    print_success,
    print_table,
    print_warning,
)
from chunkup.core.validation import (
    parse_size,
    validate_upload_url,
    validate_workers,
)

__all__ = [
    # Exceptions
    "ChunkupError",
    "ConfigurationError",
    "ProfileNotFoundError",
    "ValidationError",
    "InvalidURLError",
    "JobStateError",
    "UploadError",
    "TransferError",
    "UploadAbortedError",
    "VerificationError",
    # Validation
    "parse_size",
    "validate_upload_url",
    "validate_workers",
    # Config
    "Config",
    "Profile",
    "CONFIG_DIR",
    "CONFIG_FILE",
    # Output
    "OutputFormat",
    "format_bytes",
    "print_output",
    "print_key_value",
    "print_table",
    "print_json",
    "print_error",
    "print_warning",
    "print_success",
    "console",
    # Logging
    "setup_logging",
    "JobLog",
    "log_job",
]
