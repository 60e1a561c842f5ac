"""Logging setup and upload job timing for chunkup."""

from __future__ import annotations

import logging
import sys
import time
from typing import Any, Optional

from chunkup.core.exceptions import UploadAbortedError

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

# Third-party loggers that report every request.
_HTTP_LOGGERS = ("httpx", "httpcore")


def setup_logging(
    level: int = logging.WARNING,
    *,
    quiet: bool = False,
    verbose: bool = False,
) -> None:
    """Configure logging for chunkup.

    ``verbose`` turns on per-chunk debug messages and httpx request lines;
    otherwise the HTTP client loggers are held at WARNING.

    Args:
        level: Base logging level.
        quiet: If True, only show errors.
        verbose: If True, show debug messages.
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
    )
    logging.getLogger("chunkup").setLevel(level)

    http_level = logging.INFO if verbose else logging.WARNING
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)


class JobLog:
    """Times one upload job and logs how it ended.

    Aborts are logged at WARNING, other failures at ERROR. Exceptions are
    never suppressed.
    """

    def __init__(self, logger: logging.Logger, job_id: str, **fields: Any) -> None:
        self.logger = logger
        self.job_id = job_id
        self.fields = fields
        self._started: Optional[float] = None

    @property
    def elapsed(self) -> float:
        """Seconds since the job started."""
        if self._started is None:
            return 0.0
        return time.monotonic() - self._started

    def __enter__(self) -> JobLog:
        self._started = time.monotonic()
        details = ", ".join(f"{k}={v}" for k, v in self.fields.items())
        self.logger.info("Job %s started (%s)", self.job_id, details)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is None:
            self.logger.info("Job %s succeeded in %.2fs", self.job_id, self.elapsed)
        elif issubclass(exc_type, UploadAbortedError):
            self.logger.warning(
                "Job %s aborted after %.2fs: %s", self.job_id, self.elapsed, exc_val
            )
        else:
            self.logger.error(
                "Job %s failed after %.2fs: %s", self.job_id, self.elapsed, exc_val
            )


def log_job(logger: logging.Logger, job_id: str, **fields: Any) -> JobLog:
    """Return a ``JobLog`` for use as ``with log_job(logger, job.job_id) as timer``."""
    return JobLog(logger, job_id, **fields)
