"""CLI for fs-blobstore."""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from .config import load_settings
from .constants import ENV_LOG_LEVEL
from .errors import ConfigError, InvalidKeyError
from .storage import FileSystemBlobStore, make_blob_store
from .utils import humanize_size


app = typer.Typer(help="""\
Store, fetch and delete blobs in a flat directory. Every key is one file;
writes are atomic, so readers never see half-written content.""")

console = Console()


def _configure_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else os.environ.get(ENV_LOG_LEVEL, "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def require_store(ctx: typer.Context) -> FileSystemBlobStore:
    """Build the store from CLI options and config, exit on bad configuration.

    Raises:
        typer.Exit: If no usable store configuration is found
    """
    opts = ctx.obj or {}
    try:
        settings = load_settings(opts.get("config"))
        if opts.get("base_path"):
            settings = settings.model_copy(update={"base_path": str(opts["base_path"])})
        return make_blob_store(settings)
    except (ConfigError, NotImplementedError) as e:
        console.print(f"[red]✗[/red] {e}")
        console.print()
        console.print("[dim]Hint: pass --base-path or set FS_BLOBSTORE_PATH[/dim]")
        raise typer.Exit(1)
    except OSError as e:
        console.print(f"[red]✗[/red] Cannot create store directory: {e}")
        raise typer.Exit(1)


def _invalid_key(e: InvalidKeyError) -> None:
    console.print(f"[red]error:[/red] {e}")
    raise typer.Exit(1)


@app.callback()
def main_options(
    ctx: typer.Context,
    base_path: Optional[Path] = typer.Option(
        None, "--base-path", "-d", help="Store directory (overrides config and FS_BLOBSTORE_PATH)"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file (default: ./fs-blobstore.yaml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Global options shared by all commands."""
    _configure_logging(verbose)
    ctx.obj = {"base_path": base_path, "config": config}


@app.command()
def put(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Blob key (a single file name)"),
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to store"),
    no_overwrite: bool = typer.Option(False, "--no-overwrite", help="Fail if the key already exists"),
):
    """Store a local file under KEY.

    Examples:
        fs-blobstore -d ./blobs put report.pdf ~/report.pdf
        fs-blobstore put --no-overwrite model.bin build/model.bin
    """
    store = require_store(ctx)
    try:
        written = store.put_file(key, source, overwrite=not no_overwrite)
    except InvalidKeyError as e:
        _invalid_key(e)
    except OSError as e:
        console.print(f"[red]✗[/red] Failed to store {key}: {e}")
        raise typer.Exit(1)

    if not written:
        console.print(f"[yellow]⚠[/yellow] {key} already exists, not overwritten")
        raise typer.Exit(1)
    size = store.resolve(key).stat().st_size
    console.print(f"[green]✓[/green] Stored {key} ({humanize_size(size)})")


@app.command()
def get(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Blob key"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Destination file (default: stdout)"),
):
    """Fetch the blob stored under KEY."""
    store = require_store(ctx)
    try:
        if output is not None:
            found = store.get_file(key, output)
            if found:
                console.print(f"[green]✓[/green] Wrote {key} to {output}")
        else:
            stream = store.read(key)
            found = stream is not None
            if found:
                with stream:
                    for chunk in iter(lambda: stream.read(64 * 1024), b""):
                        sys.stdout.buffer.write(chunk)
                sys.stdout.buffer.flush()
    except InvalidKeyError as e:
        _invalid_key(e)
    except OSError as e:
        console.print(f"[red]✗[/red] Failed to read {key}: {e}")
        raise typer.Exit(1)

    if not found:
        console.print(f"[red]✗[/red] No blob named {key}")
        raise typer.Exit(1)


@app.command()
def exists(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Blob key"),
):
    """Check whether KEY exists (exit code 0 if it does, 1 if not)."""
    store = require_store(ctx)
    try:
        present = store.exists(key)
    except InvalidKeyError as e:
        _invalid_key(e)

    if present:
        console.print(f"[green]✓[/green] {key}")
    else:
        console.print(f"[dim]{key} not found[/dim]")
        raise typer.Exit(1)


@app.command()
def rm(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Blob key"),
):
    """Delete the blob stored under KEY."""
    store = require_store(ctx)
    try:
        deleted = store.delete(key)
    except InvalidKeyError as e:
        _invalid_key(e)

    if not deleted:
        console.print(f"[yellow]⚠[/yellow] {key} was not deleted (missing or not removable)")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Deleted {key}")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
