"""Upload commands for chunkup."""

from __future__ import annotations

import asyncio
import contextlib
import signal
from pathlib import Path
from typing import Optional

import click

from chunkup.cli.common import Context, global_options, handle_errors, parse_headers
from chunkup.core.exceptions import ConfigurationError
from chunkup.core.output import (
    OutputFormat,
    create_progress,
    format_bytes,
    print_output,
    print_warning,
)
from chunkup.core.validation import parse_size, validate_upload_url, validate_workers
from chunkup.models.progress import UploadResult
from chunkup.models.upload import UploadMode
from chunkup.services.uploads import UploadService
from chunkup.uploaders.cancellation import CancellationToken
from chunkup.uploaders.common import plan_chunks
from chunkup.uploaders.progress import ProgressCallback
from chunkup.uploaders.sources import FileSource

PLAN_COLUMNS = ["index", "start", "end", "length"]


class SizeParamType(click.ParamType):
    """Click parameter accepting sizes such as ``5MB`` or ``1048576``."""

    name = "size"

    def convert(self, value, param, ctx):  # type: ignore[no-untyped-def]
        if isinstance(value, int):
            return value
        try:
            return parse_size(value)
        except Exception as e:
            self.fail(str(e), param, ctx)


SIZE = SizeParamType()


async def _upload_with_interrupt(
    service: UploadService,
    source: FileSource,
    url: str,
    *,
    token: CancellationToken,
    on_progress: Optional[ProgressCallback],
) -> UploadResult:
    loop = asyncio.get_running_loop()
    # Signal handlers are unavailable off the main thread and on Windows
    with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
        loop.add_signal_handler(signal.SIGINT, token.cancel, "Interrupted by user")
    try:
        return await service.upload(source, url, on_progress=on_progress, token=token)
    finally:
        with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
            loop.remove_signal_handler(signal.SIGINT)


# =============================================================================
# Upload Command
# =============================================================================


@click.command("upload")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--url", "-u", help="Upload endpoint (defaults to profile url)")
@click.option(
    "--mode",
    type=click.Choice(["single", "chunked", "multiple"], case_sensitive=False),
    help="Send the file whole or in chunks",
)
@click.option(
    "--method",
    type=click.Choice(["POST", "PUT", "PATCH"], case_sensitive=False),
    help="HTTP method",
)
@click.option("--chunk-size", type=SIZE, help="Chunk size, e.g. 5MB or 1048576")
@click.option("--max-parallel", "-w", type=int, help="Chunks uploaded concurrently")
@click.option("--max-retries", type=int, help="Retries per chunk after the first attempt")
@click.option("--retry-delay", type=float, help="Seconds to wait between attempts")
@click.option("--timeout", type=float, help="Per-request timeout in seconds")
@click.option("--name", help="Object name sent to the server (defaults to file name)")
@click.option("--header", "-H", "headers", multiple=True, help="Extra header 'Name: value'")
@click.option("--chunk-field", help="Form field holding the chunk bytes")
@click.option("--file-name-field", help="Form field holding the object name")
@click.option("--current-chunk-field", help="Form field holding the chunk index")
@click.option("--total-chunk-field", help="Form field holding the chunk count")
@click.option("--no-verify-ssl", is_flag=True, help="Disable SSL verification")
@click.option("--dry-run", is_flag=True, help="Show the chunk plan without uploading")
@global_options
@handle_errors
def upload(
    ctx: Context,
    file: Path,
    url: Optional[str],
    mode: Optional[str],
    method: Optional[str],
    chunk_size: Optional[int],
    max_parallel: Optional[int],
    max_retries: Optional[int],
    retry_delay: Optional[float],
    timeout: Optional[float],
    name: Optional[str],
    headers: tuple[str, ...],
    chunk_field: Optional[str],
    file_name_field: Optional[str],
    current_chunk_field: Optional[str],
    total_chunk_field: Optional[str],
    no_verify_ssl: bool,
    dry_run: bool,
) -> None:
    """Upload FILE to an HTTP endpoint.

    Large files are split into chunks that are uploaded concurrently and
    retried on failure. Press Ctrl+C to abort every in-flight chunk.

    Example:
        chunkup upload video.mp4 --url https://example.org/upload -w 4
    """
    profile = ctx.get_profile()

    target = url or profile.url
    if not target:
        raise ConfigurationError(
            "No upload URL given. Use --url or set one in the profile.", field="url"
        )
    target = validate_upload_url(target)

    if max_parallel is not None:
        validate_workers(max_parallel)

    payload_fields = {
        key: value
        for key, value in (
            ("chunk", chunk_field),
            ("file_name", file_name_field),
            ("current_chunk", current_chunk_field),
            ("total_chunk", total_chunk_field),
        )
        if value
    }

    options = profile.to_options(
        mode=mode,
        method=method,
        chunk_size=chunk_size,
        max_parallel=max_parallel,
        max_retries=max_retries,
        retry_delay=retry_delay,
        timeout=timeout,
        headers=parse_headers(headers) or None,
        payload_fields=payload_fields or None,
    )

    source = FileSource(file, name=name)

    if dry_run:
        chunked = options.mode == UploadMode.CHUNKED
        total = len(plan_chunks(source.size, options.chunk_size)) if chunked else 1
        size = format_bytes(source.size)
        click.echo(f"[DRY-RUN] Would upload {source.name} ({size}) to {target}")
        click.echo(
            f"[DRY-RUN] Mode: {options.mode.value}, method: {options.method.value}, "
            f"chunks: {total}, "
            f"parallel: {options.max_parallel}"
        )
        return

    verify_ssl = profile.verify_ssl and not no_verify_ssl
    if not verify_ssl and not ctx.quiet:
        print_warning("SSL verification is disabled")

    service = UploadService(options, verify_ssl=verify_ssl)
    token = CancellationToken()

    if ctx.quiet:
        result = asyncio.run(
            _upload_with_interrupt(
                service, source, target, token=token, on_progress=None
            )
        )
        click.echo(result.job_id)
        return

    with create_progress() as progress:
        task = progress.add_task(f"Uploading {source.name}", total=source.size)

        def on_progress(percent: float) -> None:
            progress.update(task, completed=source.size * percent / 100)

        result = asyncio.run(
            _upload_with_interrupt(
                service, source, target, token=token, on_progress=on_progress
            )
        )
        progress.update(task, completed=source.size, description=f"Uploaded {source.name}")

    if ctx.output_format == OutputFormat.JSON:
        print_output(result.to_dict(), format=OutputFormat.JSON)
    else:
        print_output(result.to_dict(), format=OutputFormat.TABLE, title="Upload complete")


# =============================================================================
# Plan Command
# =============================================================================


@click.command("plan")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--chunk-size", type=SIZE, help="Chunk size, e.g. 5MB or 1048576")
@global_options
@handle_errors
def plan(ctx: Context, file: Path, chunk_size: Optional[int]) -> None:
    """Show how FILE would be split into chunks.

    Example:
        chunkup plan video.mp4 --chunk-size 8MB
    """
    profile = ctx.get_profile()
    options = profile.to_options(chunk_size=chunk_size)
    source = FileSource(file)

    rows = [
        {
            "index": chunk.index,
            "start": chunk.start,
            "end": chunk.end,
            "length": chunk.length,
        }
        for chunk in plan_chunks(source.size, options.chunk_size)
    ]

    if ctx.quiet:
        click.echo(len(rows))
        return

    print_output(
        rows,
        format=ctx.output_format,
        columns=PLAN_COLUMNS,
        title=f"{source.name}: {len(rows)} chunk(s) of up to {format_bytes(options.chunk_size)}",
    )
