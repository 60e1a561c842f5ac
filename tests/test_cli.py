"""Tests for the chunkup CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from chunkup import __version__
from chunkup.cli.main import cli
from chunkup.core.config import Config
from chunkup.core.exceptions import UploadAbortedError
from chunkup.models.upload import HttpMethod, UploadOptions
from chunkup.services.uploads import UploadService

UPLOAD_URL = "https://upload.example.org/upload"


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def config_file(temp_dir: Path) -> Generator[Path, None, None]:
    """Point the CLI at a config file inside the test directory."""
    path = temp_dir / "config.yaml"
    with patch("chunkup.core.config.CONFIG_FILE", path), patch(
        "chunkup.cli.config_cmd.CONFIG_FILE", path
    ):
        yield path


@pytest.fixture
def sample_file(temp_dir: Path) -> Path:
    """Twelve-byte file to upload."""
    path = temp_dir / "sample.bin"
    path.write_bytes(b"0123456789AB")
    return path


@pytest.fixture
def with_profiles(config_file: Path, sample_config_yaml: str) -> Path:
    """Write the sample config to the patched config path."""
    config_file.write_text(sample_config_yaml)
    return config_file


def _service_factory(transport, captured: dict | None = None):
    def factory(options: UploadOptions, verify_ssl: bool = True) -> UploadService:
        if captured is not None:
            captured["options"] = options
            captured["verify_ssl"] = verify_ssl
        return UploadService(options, transport=transport)

    return factory


# =============================================================================
# Basics
# =============================================================================


class TestCliBasics:
    """Tests for the top-level group."""

    def test_help_lists_commands(self, runner: CliRunner):
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("upload", "plan", "config"):
            assert command in result.output

    def test_version(self, runner: CliRunner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


# =============================================================================
# Plan
# =============================================================================


class TestPlanCommand:
    """Tests for the plan command."""

    def test_json_rows(self, runner: CliRunner, sample_file: Path):
        result = runner.invoke(cli, ["plan", str(sample_file), "--chunk-size", "5", "-o", "json"])

        assert result.exit_code == 0, result.output
        rows = json.loads(result.output)
        assert [row["length"] for row in rows] == [5, 5, 2]
        assert rows[-1] == {"index": 3, "start": 10, "end": 12, "length": 2}

    def test_quiet_prints_count(self, runner: CliRunner, sample_file: Path):
        result = runner.invoke(cli, ["plan", str(sample_file), "--chunk-size", "4", "-q"])

        assert result.exit_code == 0
        assert result.output.strip() == "3"

    def test_table(self, runner: CliRunner, sample_file: Path):
        result = runner.invoke(cli, ["plan", str(sample_file), "--chunk-size", "5"])

        assert result.exit_code == 0
        assert "Index" in result.output

    def test_invalid_size(self, runner: CliRunner, sample_file: Path):
        result = runner.invoke(cli, ["plan", str(sample_file), "--chunk-size", "lots"])

        assert result.exit_code == 2

    def test_missing_file(self, runner: CliRunner, temp_dir: Path):
        result = runner.invoke(cli, ["plan", str(temp_dir / "nope.bin")])

        assert result.exit_code == 2


# =============================================================================
# Upload
# =============================================================================


class TestUploadCommand:
    """Tests for the upload command."""

    def test_dry_run(self, runner: CliRunner, sample_file: Path, make_transport):
        transport = make_transport()

        with patch("chunkup.cli.upload.UploadService", _service_factory(transport)):
            result = runner.invoke(
                cli,
                ["upload", str(sample_file), "--url", UPLOAD_URL, "--chunk-size", "5", "--dry-run"],
            )

        assert result.exit_code == 0, result.output
        assert "[DRY-RUN]" in result.output
        assert "chunks: 3" in result.output
        assert transport.calls == []

    def test_requires_url(self, runner: CliRunner, sample_file: Path):
        result = runner.invoke(cli, ["upload", str(sample_file)])

        assert result.exit_code == 1
        assert "No upload URL" in result.output

    def test_invalid_url(self, runner: CliRunner, sample_file: Path):
        result = runner.invoke(cli, ["upload", str(sample_file), "--url", "ftp://example.org"])

        assert result.exit_code == 1
        assert "Invalid URL" in result.output

    def test_json_output(self, runner: CliRunner, sample_file: Path, make_transport):
        transport = make_transport()

        with patch("chunkup.cli.upload.UploadService", _service_factory(transport)):
            result = runner.invoke(
                cli,
                [
                    "upload",
                    str(sample_file),
                    "--url",
                    UPLOAD_URL,
                    "--chunk-size",
                    "5",
                    "--retry-delay",
                    "0",
                    "-o",
                    "json",
                ],
            )

        assert result.exit_code == 0, result.output
        assert '"chunks": 3' in result.output
        assert '"file_name": "sample.bin"' in result.output
        assert len(transport.calls) == 3

    def test_quiet_prints_job_id(self, runner: CliRunner, sample_file: Path, make_transport):
        transport = make_transport()

        with patch("chunkup.cli.upload.UploadService", _service_factory(transport)):
            result = runner.invoke(cli, ["upload", str(sample_file), "--url", UPLOAD_URL, "-q"])

        assert result.exit_code == 0, result.output
        assert len(result.output.strip().splitlines()[-1]) == 12

    def test_flags_reach_options(self, runner: CliRunner, sample_file: Path, make_transport):
        captured: dict = {}
        transport = make_transport()

        with patch(
            "chunkup.cli.upload.UploadService", _service_factory(transport, captured)
        ):
            result = runner.invoke(
                cli,
                [
                    "upload",
                    str(sample_file),
                    "--url",
                    UPLOAD_URL,
                    "--method",
                    "put",
                    "--max-parallel",
                    "3",
                    "--max-retries",
                    "0",
                    "-H",
                    "Authorization: Bearer abc",
                    "--chunk-field",
                    "file",
                    "--no-verify-ssl",
                    "-q",
                ],
            )

        assert result.exit_code == 0, result.output
        options = captured["options"]
        assert options.method == HttpMethod.PUT
        assert options.max_parallel == 3
        assert options.max_retries == 0
        assert options.headers == {"Authorization": "Bearer abc"}
        assert options.payload_fields.chunk == "file"
        assert captured["verify_ssl"] is False
        assert transport.calls[0].payload_field == "file"

    def test_transfer_failure_exit_code(
        self, runner: CliRunner, sample_file: Path, make_transport
    ):
        transport = make_transport(failures={1: 5})

        with patch("chunkup.cli.upload.UploadService", _service_factory(transport)):
            result = runner.invoke(
                cli,
                ["upload", str(sample_file), "--url", UPLOAD_URL, "--max-retries", "0", "-q"],
            )

        assert result.exit_code == 3
        assert "Error" in result.output

    def test_aborted_exit_code(self, runner: CliRunner, sample_file: Path):
        service = MagicMock()
        service.upload = AsyncMock(side_effect=UploadAbortedError(reason="Interrupted by user"))

        with patch("chunkup.cli.upload.UploadService", return_value=service):
            result = runner.invoke(cli, ["upload", str(sample_file), "--url", UPLOAD_URL, "-q"])

        assert result.exit_code == 5
        assert "aborted" in result.output

    def test_bad_header(self, runner: CliRunner, sample_file: Path):
        result = runner.invoke(
            cli, ["upload", str(sample_file), "--url", UPLOAD_URL, "-H", "NoColon"]
        )

        assert result.exit_code == 2

    def test_parallelism_out_of_range(self, runner: CliRunner, sample_file: Path):
        result = runner.invoke(
            cli, ["upload", str(sample_file), "--url", UPLOAD_URL, "-w", "0", "--dry-run"]
        )

        assert result.exit_code == 1

    def test_profile_supplies_settings(
        self, runner: CliRunner, sample_file: Path, with_profiles: Path
    ):
        result = runner.invoke(cli, ["upload", str(sample_file), "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "upload-test.example.org" in result.output
        assert "parallel: 4" in result.output

    def test_named_profile(self, runner: CliRunner, sample_file: Path, with_profiles: Path):
        result = runner.invoke(cli, ["upload", str(sample_file), "-p", "production", "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "Mode: single" in result.output
        assert "chunks: 1" in result.output

    def test_unknown_profile(self, runner: CliRunner, sample_file: Path, with_profiles: Path):
        result = runner.invoke(cli, ["upload", str(sample_file), "-p", "ghost", "--dry-run"])

        assert result.exit_code == 1
        assert "Profile not found" in result.output


# =============================================================================
# Config
# =============================================================================


class TestConfigCommands:
    """Tests for config subcommands."""

    def test_init_creates_profile(self, runner: CliRunner, config_file: Path):
        result = runner.invoke(
            cli, ["config", "init", "--url", UPLOAD_URL, "--max-parallel", "2"]
        )

        assert result.exit_code == 0, result.output
        profile = Config.load(config_file).get_profile("default")
        assert profile.url == UPLOAD_URL
        assert profile.max_parallel == 2

    def test_init_refuses_existing_profile(self, runner: CliRunner, with_profiles: Path):
        result = runner.invoke(cli, ["config", "init", "--url", UPLOAD_URL, "--profile", "test"])

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_init_invalid_url(self, runner: CliRunner):
        result = runner.invoke(cli, ["config", "init", "--url", "not-a-url"])

        assert result.exit_code == 1

    def test_show_without_config(self, runner: CliRunner):
        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 1

    def test_show_json(self, runner: CliRunner, with_profiles: Path):
        result = runner.invoke(cli, ["config", "show", "-o", "json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["default_profile"] == "test"
        assert data["profile_details"]["production"]["mode"] == "single"

    def test_show_table(self, runner: CliRunner, with_profiles: Path):
        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "Profile: test (default)" in result.output

    def test_current_and_use_context(self, runner: CliRunner, with_profiles: Path):
        assert runner.invoke(cli, ["config", "current-context"]).output.strip() == "test"

        result = runner.invoke(cli, ["config", "use-context", "production"])

        assert result.exit_code == 0
        assert Config.load(with_profiles).default_profile == "production"

    def test_use_unknown_context(self, runner: CliRunner, with_profiles: Path):
        result = runner.invoke(cli, ["config", "use-context", "ghost"])

        assert result.exit_code == 1

    def test_add_profile(self, runner: CliRunner, with_profiles: Path):
        result = runner.invoke(
            cli,
            [
                "config",
                "add-profile",
                "staging",
                "--url",
                "https://staging.example.org/upload",
                "--chunk-size",
                "8MiB",
                "--no-verify-ssl",
            ],
        )

        assert result.exit_code == 0, result.output
        profile = Config.load(with_profiles).get_profile("staging")
        assert profile.chunk_size == 8 * 1024 * 1024
        assert profile.verify_ssl is False

    def test_add_duplicate_profile(self, runner: CliRunner, with_profiles: Path):
        result = runner.invoke(cli, ["config", "add-profile", "test", "--url", UPLOAD_URL])

        assert result.exit_code == 1

    def test_remove_profile(self, runner: CliRunner, with_profiles: Path):
        result = runner.invoke(cli, ["config", "remove-profile", "production", "-y"])

        assert result.exit_code == 0
        assert not Config.load(with_profiles).has_profile("production")

    def test_remove_default_profile_refused(self, runner: CliRunner, with_profiles: Path):
        result = runner.invoke(cli, ["config", "remove-profile", "test", "-y"])

        assert result.exit_code == 1
        assert Config.load(with_profiles).has_profile("test")
