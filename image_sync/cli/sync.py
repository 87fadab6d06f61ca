"""CLI to attach per-folder images to matching table records."""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

import typer

from sync_lib import config as config_mod, log as log_mod
from sync_lib.acquisition import RawFile, collect_folder, filter_images
from sync_lib.errors import SetupError
from sync_lib.grouping import count_images, group_files
from sync_lib.preview import build_preview
from sync_lib.reconcile import ABORT_ERROR, reconcile
from sync_lib.stores import JsonRecordTable

app = typer.Typer(help="Match image sub-folders to table records and attach their images.")


def _open_table(table: Path) -> JsonRecordTable:
    if not table.exists():
        raise SetupError(f"Record table {table} not found")
    try:
        return JsonRecordTable(table)
    except ValueError as exc:
        raise SetupError(str(exc)) from exc


def _load_images(root: Path) -> Tuple[List[RawFile], int]:
    resolved = root.expanduser().resolve()
    if not resolved.is_dir():
        raise typer.BadParameter(f"{resolved} does not exist or is not a directory")
    return filter_images(collect_folder(resolved))


def _echo_selection(images: List[RawFile], ignored: int) -> None:
    suffix = f", ignored {ignored} non-image files" if ignored else ""
    typer.echo(f"Selected {len(images)} image files{suffix}")


@app.command()
def fields(
    table: Path = typer.Option(..., "--table", help="Path to the JSON record table"),
) -> None:
    """List table fields and the default match/upload selection."""
    try:
        record_table = _open_table(table)
    except SetupError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    metas = record_table.fields()
    match_id, upload_id = config_mod.select_default_fields(metas, config_mod.SyncConfig())
    for meta in metas:
        markers = []
        if meta.id == match_id:
            markers.append("default match")
        if meta.id == upload_id:
            markers.append("default upload")
        note = f"  [{', '.join(markers)}]" if markers else ""
        typer.echo(f"{meta.id}\t{meta.name}\t{meta.type}{note}")


@app.command()
def preview(
    root: Path = typer.Argument(..., help="Parent folder holding one sub-folder per record"),
    keyword: Optional[str] = typer.Option(None, "--keyword", help="Cover keyword ordered first"),
    config: Optional[Path] = typer.Option(None, "--config", help="JSON config file"),
) -> None:
    """Show how images would be grouped and ordered, without touching records."""
    try:
        cfg = config_mod.load_config(config, priority_keyword=keyword)
    except SetupError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    images, ignored = _load_images(root)
    _echo_selection(images, ignored)
    groups = group_files(images)
    typer.echo(f"{len(groups)} sub-folders, {count_images(groups)} images")
    for entry in build_preview(groups, cfg.priority_keyword):
        typer.echo(f"  {entry.folder} ({entry.total}) -> {', '.join(entry.preview)}")


@app.command()
def run(
    root: Path = typer.Argument(..., help="Parent folder holding one sub-folder per record"),
    table: Path = typer.Option(..., "--table", help="Path to the JSON record table"),
    match_field: Optional[str] = typer.Option(None, "--match-field", help="Field id holding the record key"),
    upload_field: Optional[str] = typer.Option(None, "--upload-field", help="Attachment field id to fill"),
    max_images: Optional[int] = typer.Option(None, "--max-images", help="Images kept per record (default 10)"),
    keyword: Optional[str] = typer.Option(None, "--keyword", help="Cover keyword ordered first"),
    write_timeout: Optional[float] = typer.Option(None, "--write-timeout", help="Seconds allowed per record write"),
    config: Optional[Path] = typer.Option(None, "--config", help="JSON config file"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Decide everything but write nothing"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also append the run trace to this file"),
) -> None:
    """Attach each sub-folder's ordered images to its matching record."""
    try:
        log_mod.setup_logging(log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--log-level") from exc
    logger = log_mod.trace_logger(log_file)
    try:
        cfg = config_mod.load_config(
            config,
            match_field_id=match_field,
            upload_field_id=upload_field,
            max_images=max_images,
            priority_keyword=keyword,
            write_timeout=write_timeout,
            dry_run=dry_run or None,
        )
        record_table = _open_table(table)
        match_id, upload_id = config_mod.select_default_fields(record_table.fields(), cfg)
        if not match_id or not upload_id:
            raise SetupError("Select both a match field and an upload field")
        cfg = cfg.with_overrides(match_field_id=match_id, upload_field_id=upload_id)
        images, ignored = _load_images(root)
        if not images:
            raise SetupError("Select an image folder that contains sub-folders first")
    except SetupError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)

    _echo_selection(images, ignored)
    summary = reconcile(record_table, group_files(images), cfg, logger=logger)
    for line in summary.log.chronological():
        typer.echo(line)
    if summary.aborted == ABORT_ERROR or summary.failed:
        raise typer.Exit(code=1)
    if summary.aborted:
        raise typer.Exit(code=2)


def main() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
