"""Random-access views over the object being uploaded."""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO, Protocol, Union, runtime_checkable

from chunkup.core.exceptions import ValidationError

DEFAULT_OBJECT_NAME = "upload.bin"


@runtime_checkable
class UploadSource(Protocol):
    """Anything that can hand out byte ranges of a fixed-size object."""

    name: str

    @property
    def size(self) -> int: ...

    def read_range(self, start: int, end: int) -> bytes: ...


class BytesSource:
    """Object held fully in memory."""

    def __init__(self, data: Union[bytes, bytearray, memoryview], name: str = DEFAULT_OBJECT_NAME):
        self._data = bytes(data)
        self.name = name

    def __repr__(self) -> str:
        return f"BytesSource(name={self.name!r}, size={self.size})"

    @property
    def size(self) -> int:
        return len(self._data)

    def read_range(self, start: int, end: int) -> bytes:
        return self._data[start:end]


class FileSource:
    """Object stored on disk; each range is read with a fresh file handle."""

    def __init__(self, path: Union[str, Path], name: str | None = None):
        self.path = Path(path).expanduser()
        if not self.path.is_file():
            raise ValidationError(f"Not a file: {self.path}", field="path", value=str(self.path))
        self.name = name or self.path.name
        self._size = self.path.stat().st_size

    def __repr__(self) -> str:
        return f"FileSource(path={str(self.path)!r}, size={self.size})"

    @property
    def size(self) -> int:
        return self._size

    def read_range(self, start: int, end: int) -> bytes:
        with self.path.open("rb") as f:
            f.seek(start)
            return f.read(end - start)


class StreamSource:
    """Seekable binary file object owned by the caller."""

    def __init__(self, stream: BinaryIO, name: str | None = None):
        if not stream.seekable():
            raise ValidationError("Stream must be seekable", field="stream")
        self._stream = stream
        stream_name = getattr(stream, "name", None)
        self.name = name or (
            os.path.basename(stream_name) if isinstance(stream_name, str) else DEFAULT_OBJECT_NAME
        )
        position = stream.tell()
        self._size = stream.seek(0, os.SEEK_END)
        stream.seek(position)

    @property
    def size(self) -> int:
        return self._size

    def read_range(self, start: int, end: int) -> bytes:
        self._stream.seek(start)
        return self._stream.read(end - start)


def open_source(
    obj: Union[UploadSource, bytes, bytearray, memoryview, str, Path, BinaryIO],
    name: str | None = None,
) -> UploadSource:
    """Wrap bytes, a path, or a seekable stream as an UploadSource.

    Raises:
        ValidationError: If the object type is not supported.
    """
    if isinstance(obj, (BytesSource, FileSource, StreamSource)):
        return obj
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return BytesSource(obj, name=name or DEFAULT_OBJECT_NAME)
    if isinstance(obj, (str, Path)):
        return FileSource(obj, name=name)
    if hasattr(obj, "read") and hasattr(obj, "seek"):
        return StreamSource(obj, name=name)  # type: ignore[arg-type]
    if isinstance(obj, UploadSource):
        return obj
    raise ValidationError(
        f"Unsupported upload object: {type(obj).__name__}",
        field="object",
    )
