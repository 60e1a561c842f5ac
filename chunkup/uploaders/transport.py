"""Transports that move one payload to the destination.

The engine only depends on the ``Transport`` protocol. ``HttpxTransport`` is
the default implementation: it sends a multipart/form-data request with
``httpx.AsyncClient`` and reports bytes sent while the body is streamed.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Protocol

import httpx

from chunkup.core.constants import DEFAULT_TIMEOUT
from chunkup.core.exceptions import TransferError

if TYPE_CHECKING:
    from chunkup.uploaders.cancellation import CancellationToken

logger = logging.getLogger(__name__)

# Bytes handed to the connection between progress reports
DEFAULT_BLOCK_SIZE = 64 * 1024

ByteProgressCallback = Callable[[int, int], None]


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class TransferRequest:
    """One payload to send, with the form fields that accompany it."""

    url: str
    method: str
    payload: bytes
    file_name: str
    payload_field: str
    fields: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None


@dataclass
class TransferResponse:
    """Status, headers and decoded body of a completed transfer."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def etag(self) -> Optional[str]:
        for key, value in self.headers.items():
            if key.lower() == "etag":
                return value
        return None


class Transport(Protocol):
    """Sends one payload and reports bytes sent."""

    async def send(
        self,
        request: TransferRequest,
        *,
        on_progress: Optional[ByteProgressCallback] = None,
        token: Optional[CancellationToken] = None,
    ) -> TransferResponse:
        """Send ``request``.

        Raises:
            TransferError: On a non-2xx status or a network failure.
            UploadAbortedError: If ``token`` is cancelled mid-transfer.
        """
        ...


# =============================================================================
# httpx Transport
# =============================================================================


class ProgressStream(httpx.AsyncByteStream):
    """Wrap a request body so every block sent is reported."""

    def __init__(
        self,
        stream: httpx.AsyncByteStream,
        total: int,
        on_progress: Optional[ByteProgressCallback],
        block_size: int = DEFAULT_BLOCK_SIZE,
    ) -> None:
        self._stream = stream
        self._total = total
        self._on_progress = on_progress
        self._block_size = block_size

    async def __aiter__(self) -> AsyncIterator[bytes]:
        loaded = 0
        async for part in self._stream:
            for offset in range(0, len(part), self._block_size):
                block = part[offset : offset + self._block_size]
                yield block
                loaded += len(block)
                if self._on_progress is not None:
                    self._on_progress(min(loaded, self._total), self._total)

    async def aclose(self) -> None:
        await self._stream.aclose()


def decode_body(response: httpx.Response) -> Any:
    """Return parsed JSON when the server sent JSON, otherwise text."""
    content_type = response.headers.get("content-type", "")
    if content_type.startswith("application/json") or content_type.endswith("+json"):
        try:
            return response.json()
        except ValueError:
            logger.debug("Response declared JSON but did not parse; returning text")
    return response.text


class HttpxTransport:
    """Multipart/form-data transport built on ``httpx.AsyncClient``."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
        block_size: int = DEFAULT_BLOCK_SIZE,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.block_size = block_size

    # =========================================================================
    # Client Management
    # =========================================================================

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                verify=self.verify_ssl,
                follow_redirects=True,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpxTransport:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    # =========================================================================
    # Sending
    # =========================================================================

    def build_request(
        self,
        request: TransferRequest,
        on_progress: Optional[ByteProgressCallback] = None,
    ) -> httpx.Request:
        """Build the multipart request with a progress-reporting body."""
        client = self._get_client()
        headers = {"Accept": "application/json", **request.headers}
        http_request = client.build_request(
            request.method,
            request.url,
            data=request.fields,
            files={
                request.payload_field: (
                    request.file_name,
                    request.payload,
                    "application/octet-stream",
                )
            },
            headers=headers,
            timeout=request.timeout if request.timeout is not None else self.timeout,
        )
        total = int(http_request.headers.get("content-length", len(request.payload)))
        http_request.stream = ProgressStream(
            http_request.stream,  # type: ignore[arg-type]
            total,
            on_progress,
            self.block_size,
        )
        return http_request

    async def _send(self, http_request: httpx.Request) -> httpx.Response:
        client = self._get_client()
        try:
            response = await client.send(http_request)
        except httpx.TimeoutException as e:
            raise TransferError(f"Upload timed out: {e}") from e
        except httpx.TransportError as e:
            raise TransferError(f"Upload failed: {e}") from e
        return response

    async def send(
        self,
        request: TransferRequest,
        *,
        on_progress: Optional[ByteProgressCallback] = None,
        token: Optional[CancellationToken] = None,
    ) -> TransferResponse:
        """Send one payload as multipart/form-data.

        Raises:
            TransferError: On a non-2xx status or a network failure.
            UploadAbortedError: If ``token`` is cancelled mid-transfer.
        """
        http_request = self.build_request(request, on_progress)

        if token is not None:
            response = await token.run(self._send(http_request))
        else:
            response = await self._send(http_request)

        result = TransferResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=decode_body(response),
        )
        if not result.ok:
            raise TransferError(f"HTTP {response.status_code}", status_code=response.status_code)
        return result
