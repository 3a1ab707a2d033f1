# filemon/cli/cli.py
"""
filemon command line.

Usage:
    filemon scan  --root . --folder files --ext .txt --output output.txt
    filemon watch --config filemon.yaml
    filemon show  --config filemon.yaml

Flags override values from --config.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from filemon.config.loader import load_config
from filemon.config.schema import WatcherConfig
from filemon.exceptions import ConfigError
from filemon.logging.logger import get_logger
from filemon.logging.tags import CLI
from filemon.monitor.coordinator import WatchCoordinator
from filemon.monitor.manifest import ManifestStore

app = typer.Typer(
    help="filemon - incremental checksum manifest for a folder",
    no_args_is_help=True,
)
console = Console()
logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# shared options
# ---------------------------------------------------------------------------

ConfigOpt = typer.Option(None, "--config", "-c", help="YAML config file.")
RootOpt = typer.Option(None, "--root", "-r", help="Content root directory.")
FolderOpt = typer.Option(None, "--folder", "-f", help="Folder to watch, relative to the root.")
ExtOpt = typer.Option(None, "--ext", "-e", help="Extension to track (repeatable).")
OutputOpt = typer.Option(None, "--output", "-o", help="Manifest file name.")
ExcludeOpt = typer.Option(None, "--exclude", "-x", help="Sub-path to ignore (repeatable).")


def _resolve_config(
    config: Optional[Path],
    root: Optional[str],
    folder: Optional[str],
    ext: Optional[List[str]],
    output: Optional[str],
    exclude: Optional[List[str]],
) -> WatcherConfig:
    try:
        return load_config(
            config,
            content_root=root,
            folder_path=folder,
            file_extensions=ext or None,
            output_file_name=output,
            excluded_paths=exclude or None,
        )
    except ConfigError as e:
        typer.secho(f"Configuration error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# commands
# ---------------------------------------------------------------------------

@app.command("scan")
def scan(
    config: Optional[Path] = ConfigOpt,
    root: Optional[str] = RootOpt,
    folder: Optional[str] = FolderOpt,
    ext: Optional[List[str]] = ExtOpt,
    output: Optional[str] = OutputOpt,
    exclude: Optional[List[str]] = ExcludeOpt,
) -> None:
    """
    Run a single reconciliation pass and update the manifest.
    """
    cfg = _resolve_config(config, root, folder, ext, output, exclude)
    watcher = WatchCoordinator(cfg)

    watcher.load()
    summary = watcher.rescan()
    if summary is None:
        typer.secho(f"Directory does not exist: {cfg.root}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    typer.echo(f"{cfg.root}: {summary}")
    if watcher.has_changes:
        typer.secho(f"Could not write {cfg.output_path}", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(1)


@app.command("watch")
def watch(
    config: Optional[Path] = ConfigOpt,
    root: Optional[str] = RootOpt,
    folder: Optional[str] = FolderOpt,
    ext: Optional[List[str]] = ExtOpt,
    output: Optional[str] = OutputOpt,
    exclude: Optional[List[str]] = ExcludeOpt,
) -> None:
    """
    Keep the manifest in sync until interrupted (Ctrl+C).
    """
    cfg = _resolve_config(config, root, folder, ext, output, exclude)
    logger.info(f"{CLI}Watching {cfg.root} (poll every {cfg.poll_interval}s)")

    with WatchCoordinator(cfg):
        try:
            while True:
                time.sleep(1.0)
        except KeyboardInterrupt:
            typer.echo("Stopping...")


@app.command("show")
def show(
    config: Optional[Path] = ConfigOpt,
    root: Optional[str] = RootOpt,
    folder: Optional[str] = FolderOpt,
    ext: Optional[List[str]] = ExtOpt,
    output: Optional[str] = OutputOpt,
    exclude: Optional[List[str]] = ExcludeOpt,
) -> None:
    """
    Print the manifest as stored on disk.
    """
    cfg = _resolve_config(config, root, folder, ext, output, exclude)
    entries = ManifestStore(cfg).read_manifest()

    if not entries:
        typer.echo(f"No entries in {cfg.output_path}")
        return

    table = Table(title=str(cfg.output_path))
    table.add_column("Path")
    table.add_column("Checksum", style="dim")
    for path, checksum in entries.items():
        table.add_row(path, checksum or "-")
    console.print(table)


if __name__ == "__main__":
    app()
