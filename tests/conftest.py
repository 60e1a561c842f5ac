"""Pytest configuration and fixtures for chunkup tests."""

from __future__ import annotations

import asyncio
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Generator, Optional, Union

import pytest

from chunkup.core.exceptions import TransferError
from chunkup.uploaders.cancellation import CancellationToken
from chunkup.uploaders.transport import TransferRequest, TransferResponse


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CHUNKUP_* variables from the host environment out of tests."""
    for name in list(os.environ):
        if name.startswith("CHUNKUP_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config_yaml() -> str:
    """Sample config YAML content."""
    return """
default_profile: test
output_format: table

profiles:
  test:
    url: https://upload-test.example.org/upload
    chunk_size: 1MiB
    max_parallel: 4
    max_retries: 3
    verify_ssl: false
    timeout: 30
    headers:
      Authorization: Bearer test-token

  production:
    url: https://upload.example.org/upload
    mode: single
    verify_ssl: true
    timeout: 60
    payload_fields:
      chunk: file
"""


# =============================================================================
# Fake Transport
# =============================================================================


class FakeTransport:
    """In-process transport that records every call.

    Args:
        latency: Seconds each call takes, or a function of the chunk index.
        failures: Number of times each chunk index fails before succeeding.
        status_code: Status carried by injected failures.
        on_send: Called with each request as it starts.
    """

    def __init__(
        self,
        *,
        latency: Union[float, Callable[[int], float]] = 0.0,
        failures: Optional[dict[int, int]] = None,
        status_code: int = 500,
        on_send: Optional[Callable[[TransferRequest], None]] = None,
    ) -> None:
        self.latency = latency
        self.failures = dict(failures or {})
        self.status_code = status_code
        self.on_send = on_send
        self.calls: list[TransferRequest] = []
        self.started: list[int] = []
        self.started_after_cancel = 0
        self.in_flight = 0
        self.max_in_flight = 0

    @staticmethod
    def chunk_index(request: TransferRequest) -> int:
        return int(request.fields.get("currentChunk", 1))

    def calls_for(self, index: int) -> int:
        return self.started.count(index)

    async def send(
        self,
        request: TransferRequest,
        *,
        on_progress=None,
        token: Optional[CancellationToken] = None,
    ) -> TransferResponse:
        index = self.chunk_index(request)
        if token is not None and token.cancelled:
            self.started_after_cancel += 1

        self.calls.append(request)
        self.started.append(index)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.on_send is not None:
                self.on_send(request)

            total = len(request.payload)
            if on_progress is not None:
                on_progress(total // 2, total)

            delay = self.latency(index) if callable(self.latency) else self.latency
            if token is not None:
                await token.run(asyncio.sleep(delay))
            else:
                await asyncio.sleep(delay)

            if self.failures.get(index, 0) > 0:
                self.failures[index] -= 1
                raise TransferError(
                    f"HTTP {self.status_code}", status_code=self.status_code
                )

            if on_progress is not None:
                on_progress(total, total)
            return TransferResponse(
                status_code=200,
                headers={"ETag": f'"etag-{index}"'},
                body={"chunk": index, "size": total},
            )
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Transport that succeeds immediately."""
    return FakeTransport()


@pytest.fixture
def progress_log() -> list[float]:
    """List that collects progress values."""
    return []


@pytest.fixture
def make_transport() -> type[FakeTransport]:
    """Factory for configured fake transports."""
    return FakeTransport
