"""Command line interface for filever."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from filever.config import AppConfig
from filever.filters.exclusions import ExclusionRuleError
from filever.purge import (
    describe_selection,
    find_trash_command,
    remove_version_files,
    select_version_files,
    total_size,
)
from filever.state.poller import DISABLED, ENABLED, write_indicator
from filever.watch.service import VersioningService


console = Console()
app = typer.Typer(help="filever - keep versions of files as they change")


def _setup_logging(verbose: bool, log_file: Path | None = None) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        _ensure_parent(log_file)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
    )


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


async def _serve(service: VersioningService) -> None:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGTERM, service.request_stop)
    except NotImplementedError:
        pass
    await service.run()


@app.command()
def watch(
    target: Path = typer.Argument(
        AppConfig().target_dir, help="Directory tree to watch.", resolve_path=True
    ),
    state_file: Path = typer.Option(
        AppConfig().state_file, "--state-file", help="File containing 'enabled' or 'disabled'"
    ),
    exclusions_file: Path = typer.Option(
        AppConfig().exclusions_file, "--exclusions", help="File with one exclusion pattern per line"
    ),
    log_file: Optional[Path] = typer.Option(
        AppConfig().log_file, "--log-file", help="Append decisions to this file"
    ),
    no_log_file: bool = typer.Option(False, "--no-log-file", help="Log to the console only"),
    cooldown: float = typer.Option(
        AppConfig().cooldown, help="Minimum seconds between two versions of one file"
    ),
    max_workers: int = typer.Option(AppConfig().max_workers, help="Concurrent versioning tasks"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Watch a directory and version files as they change."""
    try:
        _setup_logging(verbose, None if no_log_file else log_file)
    except OSError as exc:
        raise typer.BadParameter(f"Cannot open log file {log_file}: {exc}") from exc

    if not target.is_dir():
        raise typer.BadParameter(f"Directory not found: {target}")

    config = AppConfig(
        target_dir=target,
        state_file=state_file,
        exclusions_file=exclusions_file,
        log_file=None if no_log_file else log_file,
        cooldown=cooldown,
        max_workers=max_workers,
    )

    try:
        service = VersioningService(config)
    except ExclusionRuleError as exc:
        console.print(f"[red]Invalid exclusion rules:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    except OSError as exc:
        console.print(
            f"[red]Cannot load exclusion rules from {escape(str(exclusions_file))}:[/red] "
            f"{escape(str(exc))}"
        )
        raise typer.Exit(code=1) from exc

    console.print(f"Monitoring [bold]{target}[/bold]. Press Ctrl+C to exit.")
    try:
        asyncio.run(_serve(service))
    except KeyboardInterrupt:
        console.print("Stopped.")


@app.command()
def state(
    value: Optional[str] = typer.Argument(None, help="'enabled' or 'disabled'; omit to show"),
    state_file: Path = typer.Option(AppConfig().state_file, "--state-file", help="Status file"),
) -> None:
    """Show or set the versioning state."""
    if value is None:
        if not state_file.exists():
            console.print("Status file not found. The current state is unknown.")
            return
        current = state_file.read_text(encoding="utf-8").strip()
        console.print(f"Current file versioning state: {current}")
        return

    normalized = value.strip().lower()
    if normalized not in (ENABLED, DISABLED):
        console.print(f"[red]Invalid argument: {value}. Use 'enabled' or 'disabled'.[/red]")
        raise typer.Exit(code=1)

    _ensure_parent(state_file)
    write_indicator(state_file, normalized == ENABLED)
    console.print(f"File versioning set to {normalized}")


@app.command()
def purge(
    directory: Optional[Path] = typer.Argument(None, help="Where to look for version files"),
    days: Optional[int] = typer.Argument(
        None,
        min=0,
        help="Select files more than this many full days old (default 1); 0 means the last 24 hours",
    ),
    include_all: bool = typer.Option(False, "--all", "-a", help="Target every version file"),
    delete: bool = typer.Option(False, "--delete", "-d", help="Remove the files found"),
    notrash: bool = typer.Option(False, "--notrash", help="Delete permanently instead of trashing"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Less verbose output"),
) -> None:
    """List, trash or delete old version files."""
    if directory is None:
        directory = AppConfig().target_dir
        if not quiet:
            console.print(f"[yellow]No directory provided, assuming {directory}[/yellow]")
    if not directory.is_dir():
        raise typer.BadParameter(f"Directory not found: {directory}")

    if include_all and days is not None and not quiet:
        console.print("Ignoring the provided days because --all was specified.")
    min_days = 1 if days is None else days

    files = select_version_files(directory, days=min_days, include_all=include_all)
    console.print(describe_selection(min_days, include_all))
    if not files:
        console.print("[yellow]No version files found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Modified")
    table.add_column("Size", justify="right")
    table.add_column("Path")
    for item in files:
        modified = datetime.fromtimestamp(item.mtime).strftime("%Y-%m-%d %H:%M")
        table.add_row(modified, str(item.size), escape(str(item.path)))
    console.print(table)
    console.print(f"{len(files)} file(s), {total_size(files)} bytes")

    if not delete:
        return

    trash_command = None if notrash else find_trash_command()
    if not notrash and trash_command is None:
        console.print(
            "[yellow]trash-cli is not installed, files will be deleted permanently.[/yellow]"
        )

    if trash_command is None and not quiet and sys.stdin.isatty():
        if not typer.confirm(
            "Do you want to continue with permanently deleting matching version files?",
            default=False,
        ):
            trash_command = find_trash_command()
            if trash_command is None:
                console.print("Nothing deleted.")
                return
            console.print("Using the trash instead.")

    stats = remove_version_files(files, trash_command=trash_command)
    if stats.failed:
        console.print(f"[red]Failed to remove {stats.failed} file(s).[/red]")
    if not quiet:
        if trash_command:
            console.print(f"Sent {stats.removed} version file(s) to the trash.")
        else:
            console.print(f"[red]PERMANENTLY DELETED {stats.removed} version file(s).[/red]")
