"""Aggregation of per-chunk progress into one overall percentage."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Optional

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


def clamp_percent(value: float) -> float:
    """Clamp a percentage to the range [0, 100]."""
    return max(0.0, min(100.0, float(value)))


def bytes_percent(loaded: int, total: int) -> float:
    """Percentage of ``total`` bytes sent, 100 for an empty body."""
    if total <= 0:
        return 100.0
    return clamp_percent(loaded / total * 100)


class ProgressAggregator:
    """Track the last reported percentage of every chunk.

    Overall progress is the sum of the per-chunk values divided by the
    number of chunks; chunks that have not reported yet count as 0.
    """

    def __init__(self, total_chunks: int, callback: Optional[ProgressCallback] = None) -> None:
        self.total_chunks = max(1, total_chunks)
        self.callback = callback
        self._table: dict[int, float] = {}
        self._last_emitted: Optional[float] = None

    @property
    def overall(self) -> float:
        """Current overall progress in [0, 100]."""
        return clamp_percent(sum(self._table.values()) / self.total_chunks)

    @property
    def table(self) -> dict[int, float]:
        """Copy of the per-chunk progress table."""
        return dict(self._table)

    def update(self, index: int, percentage: float) -> float:
        """Record progress for chunk ``index`` and emit the new overall value.

        Returns:
            The recomputed overall progress.
        """
        self._table[index] = clamp_percent(percentage)
        overall = self.overall
        self.emit(overall)
        return overall

    def reset(self) -> None:
        """Forget all chunk progress and emit 0."""
        self._table.clear()
        self.emit(0.0)

    def complete(self) -> None:
        """Mark every chunk finished and emit 100."""
        for index in range(1, self.total_chunks + 1):
            self._table[index] = 100.0
        self.emit(100.0)

    def emit(self, value: float) -> None:
        """Forward a value to the callback, skipping unchanged repeats."""
        value = clamp_percent(value)
        if value == self._last_emitted:
            return
        self._last_emitted = value

        if self.callback is None:
            return
        try:
            self.callback(value)
        except Exception:
            logger.exception("Progress callback raised; continuing upload")
