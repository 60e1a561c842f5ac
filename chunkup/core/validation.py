"""Input validation helpers for chunkup."""

from __future__ import annotations

import re
from urllib.parse import urlparse

from chunkup.core.constants import MAX_PARALLEL_LIMIT
from chunkup.core.exceptions import InvalidURLError, ValidationError

# Binary multipliers for human-readable sizes ("5MiB", "512K", "2mb")
SIZE_UNITS = {
    "": 1,
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "kib": 1024,
    "m": 1024**2,
    "mb": 1024**2,
    "mib": 1024**2,
    "g": 1024**3,
    "gb": 1024**3,
    "gib": 1024**3,
}

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]*)\s*$")


def validate_upload_url(url: str) -> str:
    """Validate an upload destination URL.

    Args:
        url: URL to validate.

    Returns:
        The URL with surrounding whitespace removed.

    Raises:
        InvalidURLError: If the URL is not an absolute http(s) URL.
    """
    url = url.strip()
    if not url:
        raise InvalidURLError(url, "URL is empty")

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise InvalidURLError(url, "scheme must be http or https")
    if not parsed.netloc:
        raise InvalidURLError(url, "missing host")
    return url


def parse_size(value: str | int) -> int:
    """Parse a byte size such as ``5MiB`` or ``512K`` into bytes.

    Units are binary: K, M and G all mean powers of 1024.

    Raises:
        ValidationError: If the value cannot be parsed or is negative.
    """
    if isinstance(value, int):
        if value < 0:
            raise ValidationError("Size must be non-negative", field="size", value=value)
        return value

    match = _SIZE_PATTERN.match(value)
    if not match:
        raise ValidationError(f"Invalid size: {value}", field="size", value=value)

    number, unit = match.groups()
    multiplier = SIZE_UNITS.get(unit.lower())
    if multiplier is None:
        raise ValidationError(f"Unknown size unit: {unit}", field="size", value=value)
    return int(float(number) * multiplier)


def validate_workers(workers: int, *, maximum: int = MAX_PARALLEL_LIMIT) -> int:
    """Ensure a parallelism setting is between 1 and ``maximum``."""
    if workers < 1 or workers > maximum:
        raise ValidationError(
            f"Parallel uploads must be between 1 and {maximum}",
            field="max_parallel",
            value=workers,
        )
    return workers
