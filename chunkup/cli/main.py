"""Main CLI entry point for chunkup."""

from __future__ import annotations

import click

from chunkup import __version__
from chunkup.cli.config_cmd import config
from chunkup.cli.upload import plan, upload

# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="chunkup")
def cli() -> None:
    """chunkup - Chunked, parallel, retrying uploads over HTTP.

    Splits large files into chunks, uploads them concurrently with
    bounded parallelism, and retries transient failures.

    Get started:

      chunkup config init                       # Create config file

      chunkup plan video.mp4 --chunk-size 8MB   # Preview the chunks

      chunkup upload video.mp4 -w 4             # Upload

    Use --help on any command for more information.
    """
    pass


# =============================================================================
# Register Commands
# =============================================================================

cli.add_command(config)
cli.add_command(upload)
cli.add_command(plan)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
