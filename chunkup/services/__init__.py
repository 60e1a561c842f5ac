"""Service layer for chunkup.

Provides the service class that runs upload jobs.
"""

from __future__ import annotations

from .uploads import UploadService

__all__ = [
    "UploadService",
]
