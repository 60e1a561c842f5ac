"""Tests for chunkup models and upload sources."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from chunkup.core.exceptions import ConfigurationError, JobStateError, ValidationError
from chunkup.models.chunk import ChunkState, ChunkStatus
from chunkup.models.progress import ChunkResult, UploadResult
from chunkup.models.upload import (
    HttpMethod,
    JobState,
    PayloadFields,
    UploadJob,
    UploadMode,
    UploadOptions,
)
from chunkup.uploaders.common import plan_chunks
from chunkup.uploaders.sources import BytesSource, FileSource, StreamSource, open_source
from chunkup.uploaders.transport import TransferResponse

# =============================================================================
# UploadOptions
# =============================================================================


class TestUploadOptions:
    """Tests for UploadOptions model."""

    def test_defaults(self):
        options = UploadOptions()

        assert options.method == HttpMethod.POST
        assert options.mode == UploadMode.CHUNKED
        assert options.chunk_size == 5 * 1024 * 1024
        assert options.max_retries == 2
        assert options.retry_delay == 1.0
        assert options.max_parallel == 1
        assert options.payload_fields == PayloadFields()

    def test_method_is_case_insensitive(self):
        assert UploadOptions.create(method="patch").method == HttpMethod.PATCH

    @pytest.mark.parametrize("mode", ["multiple", "multipart", "CHUNKED", " chunked "])
    def test_chunked_aliases(self, mode: str):
        assert UploadOptions.create(mode=mode).mode == UploadMode.CHUNKED

    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("chunk_size", 0),
            ("max_retries", -1),
            ("retry_delay", -0.5),
            ("max_parallel", 0),
            ("timeout", 0),
            ("method", "DELETE"),
            ("mode", "streaming"),
        ],
    )
    def test_invalid_values(self, name: str, value):
        with pytest.raises(ConfigurationError) as exc_info:
            UploadOptions.create(**{name: value})

        assert exc_info.value.field == name

    def test_unknown_option_rejected(self):
        with pytest.raises(ConfigurationError):
            UploadOptions.create(chunksize=10)

    def test_empty_field_name_rejected(self):
        with pytest.raises(ConfigurationError):
            UploadOptions.create(payload_fields={"chunk": ""})

    def test_frozen(self):
        options = UploadOptions()

        with pytest.raises(Exception):
            options.chunk_size = 10  # type: ignore[misc]


# =============================================================================
# UploadJob
# =============================================================================


class TestUploadJob:
    """Tests for UploadJob state handling."""

    def _job(self) -> UploadJob:
        return UploadJob(
            source=BytesSource(b"x" * 10),
            url="https://upload.example.org",
            options=UploadOptions.create(chunk_size=4),
        )

    def test_initial_state(self):
        job = self._job()

        assert job.state == JobState.CREATED
        assert job.mode == UploadMode.CHUNKED
        assert job.total_chunks == 0
        assert len(job.job_id) == 12

    def test_lifecycle(self):
        job = self._job()

        job.transition(JobState.PLANNING)
        job.transition(JobState.RUNNING)
        job.transition(JobState.SUCCEEDED)

        assert job.state.is_terminal

    def test_terminal_state_is_final(self):
        job = self._job()
        job.transition(JobState.ABORTED)

        with pytest.raises(JobStateError):
            job.transition(JobState.RUNNING)

    def test_cannot_succeed_before_running(self):
        with pytest.raises(JobStateError):
            self._job().transition(JobState.SUCCEEDED)

    def test_set_chunks_creates_states(self):
        job = self._job()

        job.set_chunks(plan_chunks(10, 4))

        assert job.total_chunks == 3
        assert sorted(job.chunk_states) == [1, 2, 3]
        assert all(s.status == ChunkStatus.PENDING for s in job.chunk_states.values())


class TestChunkState:
    """Tests for ChunkState transitions."""

    def test_attempts_move_to_retrying(self):
        state = ChunkState(index=1)

        state.start_attempt()
        assert state.status == ChunkStatus.IN_FLIGHT
        state.start_attempt()
        assert state.status == ChunkStatus.RETRYING
        assert state.attempts == 2

    def test_mark_records_error(self):
        state = ChunkState(index=2)

        state.mark(ChunkStatus.FAILED, "HTTP 500")

        assert state.status.is_terminal
        assert state.error == "HTTP 500"


# =============================================================================
# Results
# =============================================================================


class TestUploadResult:
    """Tests for UploadResult summary values."""

    def test_single_mode_counts_one_transfer(self):
        result = UploadResult(
            job_id="abc", mode="single", url="https://u", file_name="f", object_size=0
        )

        assert result.total_chunks == 1
        assert result.total_attempts == 1
        assert result.throughput_mbps == 0.0

    def test_chunked_totals(self):
        result = UploadResult(
            job_id="abc",
            mode="chunked",
            url="https://u",
            file_name="f",
            object_size=4 * 1024 * 1024,
            duration=2.0,
            chunks=[
                ChunkResult(index=1, status_code=200, attempts=1),
                ChunkResult(index=2, status_code=200, attempts=3),
            ],
        )

        assert result.total_chunks == 2
        assert result.total_attempts == 4
        assert result.throughput_mbps == 2.0
        assert result.to_dict()["attempts"] == 4


class TestTransferResponse:
    """Tests for TransferResponse helpers."""

    def test_ok_range(self):
        assert TransferResponse(200).ok
        assert TransferResponse(299).ok
        assert not TransferResponse(300).ok

    def test_etag_lookup_is_case_insensitive(self):
        assert TransferResponse(200, headers={"etag": "v1"}).etag == "v1"
        assert TransferResponse(200).etag is None


# =============================================================================
# Sources
# =============================================================================


class TestSources:
    """Tests for upload sources."""

    def test_bytes_source(self):
        source = BytesSource(b"0123456789", name="digits")

        assert source.size == 10
        assert source.read_range(3, 6) == b"345"

    def test_file_source(self, temp_dir: Path):
        path = temp_dir / "data.bin"
        path.write_bytes(b"abcdefgh")

        source = FileSource(path)

        assert source.name == "data.bin"
        assert source.size == 8
        assert source.read_range(6, 8) == b"gh"

    def test_file_source_missing(self, temp_dir: Path):
        with pytest.raises(ValidationError):
            FileSource(temp_dir / "missing.bin")

    def test_stream_source_keeps_position(self):
        stream = io.BytesIO(b"hello world")
        stream.seek(3)

        source = StreamSource(stream, name="greeting")

        assert source.size == 11
        assert stream.tell() == 3
        assert source.read_range(6, 11) == b"world"

    def test_open_source_dispatch(self, temp_dir: Path):
        path = temp_dir / "f.txt"
        path.write_text("x")

        assert isinstance(open_source(b"x"), BytesSource)
        assert isinstance(open_source(str(path)), FileSource)
        assert isinstance(open_source(path), FileSource)
        assert isinstance(open_source(io.BytesIO(b"x")), StreamSource)
        assert open_source(b"x", name="n").name == "n"

    def test_open_source_unsupported(self):
        with pytest.raises(ValidationError):
            open_source(12345)  # type: ignore[arg-type]
