"""
Command line interface for Smart File Sorter.

Sorts the files of one directory into per-extension subfolders, deletes
byte-identical duplicates and can undo the last run.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from smart_file_sorter.core import (
    PreconditionError,
    RunConfig,
    RunSummary,
    Session,
    get_default_history_path,
    iter_batches,
    list_entries,
    load_run_config,
    preview,
    validate_working_directory,
)
from smart_file_sorter.core.settings import Settings

console = Console()


def _parse_folders(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]) -> dict[str, str]:
    folders: dict[str, str] = {}
    for value in values:
        ext, sep, folder = value.partition("=")
        if not sep or not ext.strip() or not folder.strip():
            raise click.BadParameter(f"expected EXT=FOLDER, got {value!r}")
        folders[ext] = folder
    return folders


def _build_config(
    config_file: str | None,
    exclude: tuple[str, ...],
    folders: dict[str, str],
    copy_instead: bool,
) -> RunConfig:
    """Merge an optional JSON config file with command line options."""
    base = load_run_config(Path(config_file)) if config_file else RunConfig()
    merged_folders = dict(base.custom_folders)
    merged_folders.update(folders)
    return RunConfig.create(
        exclude_ext=[*base.exclude_ext, *exclude],
        custom_folders=merged_folders,
        copy_instead=base.copy_instead or copy_instead,
    )


def _working_dir(directory: str) -> Path:
    try:
        return validate_working_directory(Path(directory))
    except PreconditionError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)


def _config_options(func):
    func = click.option(
        "--config",
        "config_file",
        type=click.Path(exists=True, dir_okay=False),
        help="JSON file with excludeExt, customFolders and copyInstead",
    )(func)
    func = click.option(
        "--folder",
        "folders",
        multiple=True,
        callback=_parse_folders,
        help="Custom destination as EXT=FOLDER (repeatable)",
    )(func)
    func = click.option(
        "--exclude",
        multiple=True,
        help="Extension to leave untouched (repeatable)",
    )(func)
    return func


@click.group()
@click.option(
    "--settings",
    "settings_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Settings file (default: ~/.smart-file-sorter/settings.json)",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose output")
@click.pass_context
def cli(ctx: click.Context, settings_file: str | None, verbose: bool) -> None:
    """Sort a folder into per-extension subfolders."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s - %(message)s")

    ctx.ensure_object(dict)
    ctx.obj["settings"] = Settings(Path(settings_file)) if settings_file else Settings()


@cli.command("preview")
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@_config_options
def preview_command(directory: str, exclude: tuple[str, ...], folders: dict[str, str], config_file: str | None) -> None:
    """Show where each file in DIRECTORY would go, without touching anything."""
    root = _working_dir(directory)
    config = _build_config(config_file, exclude, folders, False)
    planned = preview(list_entries(root, config), config)

    if not planned:
        console.print("[yellow]No files to organize.[/yellow]")
        return

    table = Table(title=f"Preview of {root}")
    table.add_column("File")
    table.add_column("Target folder", style="cyan")
    for item in planned:
        table.add_row(item.name, item.target_folder)
    console.print(table)


@cli.command("organize")
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@_config_options
@click.option("--copy", "copy_instead", is_flag=True, default=False, help="Copy files instead of moving them")
@click.option("--batch-size", type=int, default=None, help="Files per batch (0 = all at once)")
@click.option(
    "--dedupe-across-batches",
    is_flag=True,
    default=False,
    help="Detect duplicates across the whole run instead of per batch",
)
@click.option("--keep-empty", is_flag=True, default=False, help="Do not remove folders left empty")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Write the run log to this file")
@click.pass_context
def organize_command(
    ctx: click.Context,
    directory: str,
    exclude: tuple[str, ...],
    folders: dict[str, str],
    config_file: str | None,
    copy_instead: bool,
    batch_size: int | None,
    dedupe_across_batches: bool,
    keep_empty: bool,
    log_file: str | None,
) -> None:
    """Organize the files in DIRECTORY into per-extension folders.

    \b
    Examples:
        smart-file-sorter preview ~/Downloads
        smart-file-sorter organize ~/Downloads --exclude pdf --folder jpeg=Photos
        smart-file-sorter organize ~/Downloads --copy
        smart-file-sorter undo ~/Downloads
    """
    settings: Settings = ctx.obj["settings"]
    root = _working_dir(directory)
    config = _build_config(config_file, exclude, folders, copy_instead)

    if batch_size is None:
        batch_size = settings.get("batch_size")
    dedupe_across_batches = dedupe_across_batches or settings.get("dedupe_across_batches")

    entries = list_entries(root, config)
    if not entries:
        console.print("[yellow]No files to organize.[/yellow]")
        return

    session = Session.create(get_default_history_path(root), dedupe_across_batches=dedupe_across_batches)
    # A new run replaces the undo history of the previous one
    session.undo_stack.clear()

    total = RunSummary()
    for batch in iter_batches(entries, batch_size):
        summary = session.organize(
            root,
            batch,
            config,
            hash_workers=settings.get("hash_workers"),
            chunk_size=settings.get("hash_chunk_size"),
        )
        total = total.merge(summary)

    if not keep_empty:
        session.reap(root)

    if log_file:
        session.export_log(Path(log_file))

    table = Table(title="Summary")
    table.add_column("Result")
    table.add_column("Count", justify="right")
    table.add_row("Moved", str(total.files_moved))
    table.add_row("Copied", str(total.files_copied))
    table.add_row("Duplicates deleted", str(total.duplicates_deleted))
    table.add_row("Bytes processed", str(total.total_bytes_processed))
    table.add_row("Errors", str(total.errors), style="red" if total.errors else None)
    console.print(table)

    if total.errors:
        for line in session.log:
            if line.startswith("Error: "):
                console.print(f"[red]{line}[/red]")


@cli.command("undo")
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option("--keep-failed", is_flag=True, default=False, help="Keep moves that could not be undone for a retry")
@click.pass_context
def undo_command(ctx: click.Context, directory: str, keep_failed: bool) -> None:
    """Move the files of the last organize run in DIRECTORY back."""
    settings: Settings = ctx.obj["settings"]
    root = _working_dir(directory)
    keep_failed = keep_failed or settings.get("keep_failed_undo")

    session = Session.create(get_default_history_path(root))
    if session.undo_stack.is_empty():
        console.print("[yellow]Nothing to undo.[/yellow]")
        return

    undone = session.undo(keep_failed=keep_failed)
    console.print(f"[green]✓ Restored {len(undone)} file(s)[/green]")
    for line in session.log:
        if line.startswith("Error: "):
            console.print(f"[red]{line}[/red]")
