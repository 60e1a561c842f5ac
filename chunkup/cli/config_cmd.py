"""Config commands for chunkup."""

from __future__ import annotations

import click

from chunkup.cli.upload import SIZE
from chunkup.core.config import CONFIG_FILE, Config
from chunkup.core.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_PARALLEL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
)
from chunkup.core.output import (
    OutputFormat,
    print_error,
    print_key_value,
    print_output,
    print_success,
)
from chunkup.core.validation import validate_upload_url, validate_workers


def _profile_summary(profile_settings: dict) -> dict:
    return {
        "url": profile_settings.get("url") or "-",
        "mode": profile_settings.get("mode"),
        "method": profile_settings.get("method"),
        "chunk_size": profile_settings.get("chunk_size"),
        "max_parallel": profile_settings.get("max_parallel"),
        "max_retries": profile_settings.get("max_retries"),
        "retry_delay": f"{profile_settings.get('retry_delay')}s",
        "timeout": f"{profile_settings.get('timeout')}s",
        "verify_ssl": profile_settings.get("verify_ssl"),
    }


@click.group()
def config() -> None:
    """Manage chunkup configuration."""
    pass


@config.command("init")
@click.option("--url", prompt="Upload endpoint URL", help="Upload endpoint URL")
@click.option("--profile", default="default", help="Profile name")
@click.option("--chunk-size", type=SIZE, default=DEFAULT_CHUNK_SIZE, help="Chunk size")
@click.option("--max-parallel", type=int, default=DEFAULT_MAX_PARALLEL, help="Parallel chunks")
@click.option("--force", is_flag=True, help="Overwrite existing config")
def config_init(url: str, profile: str, chunk_size: int, max_parallel: int, force: bool) -> None:
    """Create configuration file with a new profile.

    Example:
        chunkup config init --url https://example.org/upload
    """
    try:
        url = validate_upload_url(url)
        validate_workers(max_parallel)
    except Exception as e:
        print_error(str(e))
        raise SystemExit(1)

    if CONFIG_FILE.exists() and not force:
        cfg = Config.load()
        if cfg.has_profile(profile):
            print_error(f"Profile '{profile}' already exists. Use --force to overwrite.")
            raise SystemExit(1)
    else:
        cfg = Config()

    cfg.add_profile(profile, url=url, chunk_size=chunk_size, max_parallel=max_parallel)

    # First profile becomes the default
    if len(cfg.profiles) == 1:
        cfg.default_profile = profile

    cfg.save()

    print_success(f"Configuration saved to {CONFIG_FILE}")
    print_key_value(
        {
            "profile": profile,
            "url": url,
            "chunk_size": chunk_size,
            "max_parallel": max_parallel,
        }
    )


@config.command("show")
@click.option("--output", "-o", type=click.Choice(["json", "table"]), default="table")
def config_show(output: str) -> None:
    """Show current configuration."""
    try:
        cfg = Config.load()
    except Exception as e:
        print_error(f"Failed to load config: {e}")
        raise SystemExit(1)

    if not cfg.profiles:
        print_error("No configuration found. Run 'chunkup config init' first.")
        raise SystemExit(1)

    data = {
        "config_file": str(CONFIG_FILE),
        "default_profile": cfg.default_profile,
        "output_format": cfg.output_format,
        "profiles": list(cfg.profiles.keys()),
    }

    if output == "json":
        data["profile_details"] = {name: p.to_dict() for name, p in cfg.profiles.items()}
        print_output(data, format=OutputFormat.JSON)
        return

    print_key_value(data, title="Configuration")
    click.echo()
    for name, profile in cfg.profiles.items():
        marker = " (default)" if name == cfg.default_profile else ""
        click.echo(f"Profile: {name}{marker}")
        print_key_value(_profile_summary(profile.to_dict()))
        click.echo()


@config.command("use-context")
@click.argument("profile")
def config_use_context(profile: str) -> None:
    """Switch the active profile.

    Example:
        chunkup config use-context staging
    """
    try:
        cfg = Config.load()
    except Exception as e:
        print_error(f"Failed to load config: {e}")
        raise SystemExit(1)

    if not cfg.has_profile(profile):
        print_error(f"Profile '{profile}' not found.")
        click.echo(f"Available profiles: {', '.join(cfg.profiles.keys())}")
        raise SystemExit(1)

    cfg.set_default_profile(profile)
    cfg.save()

    print_success(f"Switched to profile '{profile}'")


@config.command("current-context")
def config_current_context() -> None:
    """Show the current active profile."""
    try:
        cfg = Config.load()
    except Exception as e:
        print_error(f"Failed to load config: {e}")
        raise SystemExit(1)

    if not cfg.profiles:
        print_error("No configuration found.")
        raise SystemExit(1)

    click.echo(cfg.default_profile)


@config.command("add-profile")
@click.argument("name")
@click.option("--url", required=True, help="Upload endpoint URL")
@click.option(
    "--mode",
    type=click.Choice(["single", "chunked"], case_sensitive=False),
    default="chunked",
    help="Upload mode",
)
@click.option("--chunk-size", type=SIZE, default=DEFAULT_CHUNK_SIZE, help="Chunk size")
@click.option("--max-parallel", type=int, default=DEFAULT_MAX_PARALLEL, help="Parallel chunks")
@click.option("--max-retries", type=int, default=DEFAULT_MAX_RETRIES, help="Retries per chunk")
@click.option("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Request timeout in seconds")
@click.option("--no-verify-ssl", is_flag=True, help="Disable SSL verification")
def config_add_profile(
    name: str,
    url: str,
    mode: str,
    chunk_size: int,
    max_parallel: int,
    max_retries: int,
    timeout: float,
    no_verify_ssl: bool,
) -> None:
    """Add a new profile.

    Example:
        chunkup config add-profile staging --url https://staging.example.org/upload
    """
    try:
        url = validate_upload_url(url)
        validate_workers(max_parallel)
    except Exception as e:
        print_error(str(e))
        raise SystemExit(1)

    cfg = Config.load()

    if cfg.has_profile(name):
        print_error(f"Profile '{name}' already exists.")
        raise SystemExit(1)

    cfg.add_profile(
        name,
        url=url,
        mode=mode.lower(),
        chunk_size=chunk_size,
        max_parallel=max_parallel,
        max_retries=max_retries,
        timeout=timeout,
        verify_ssl=not no_verify_ssl,
    )
    cfg.save()

    print_success(f"Profile '{name}' added")


@config.command("remove-profile")
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def config_remove_profile(name: str, yes: bool) -> None:
    """Remove a profile.

    Example:
        chunkup config remove-profile staging
    """
    cfg = Config.load()

    if not cfg.has_profile(name):
        print_error(f"Profile '{name}' not found.")
        raise SystemExit(1)

    if name == cfg.default_profile:
        print_error("Cannot remove the default profile. Switch to another profile first.")
        raise SystemExit(1)

    if not yes:
        click.confirm(f"Remove profile '{name}'?", abort=True)

    cfg.remove_profile(name)
    cfg.save()

    print_success(f"Profile '{name}' removed")