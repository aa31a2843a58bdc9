"""Command line interface for ccprov.

Provides commands to inspect and maintain the provenance store:
- List and look up recorded origins
- Record a finished download
- Delete or rename downloads while keeping the store in step
- Report startup reconciliation
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from ccprov.config.config import ConfigManager
from ccprov.models import LogLevel
from ccprov.storage.provenance import ProvenanceStore
from ccprov.storage.resume import (
    origin_host,
    record_download,
    suggest_alternative_filename,
)
from ccprov.utils.exceptions import CCProvError, FileSystemError
from ccprov.utils.logging_config import get_logger, log_exception

logger = get_logger(__name__)


def _raise_cli_error(message: str) -> None:
    """Raise a ClickException with the given message."""
    raise click.ClickException(message)


def _get_config_from_context(ctx: click.Context) -> ConfigManager:
    """Get the ConfigManager created by the ``cli`` group.

    Args:
        ctx: Click context

    Returns:
        ConfigManager instance

    """
    return ctx.obj["config_manager"]


def _open_store(ctx: click.Context) -> ProvenanceStore:
    config_manager = _get_config_from_context(ctx)
    try:
        store = ProvenanceStore.from_config(config_manager.config.provenance)
    except CCProvError as e:
        log_exception(logger, e, "Opening provenance store")
        raise click.ClickException(str(e)) from e
    store.wait_ready()
    return store


def _download_path(store: ProvenanceStore, file_name: str) -> Path:
    if Path(file_name).name != file_name or file_name in {".", ".."}:
        _raise_cli_error(f"Expected a file name, not a path: {file_name}")
    return store.download_dir / file_name


def _delete_download(path: Path) -> bool:
    """Delete a downloaded file.

    Returns:
        True if a file was deleted, False if there was none

    Raises:
        FileSystemError: If the file exists but cannot be deleted

    """
    if not path.exists():
        return False
    try:
        path.unlink()
    except OSError as e:
        msg = f"Cannot delete {path.name}: {e.strerror or e}"
        raise FileSystemError(msg, {"path": str(path)}) from e
    return True


def _rename_download(old: Path, new: Path) -> None:
    """Rename a downloaded file without overwriting another one.

    Raises:
        FileSystemError: If the rename is impossible or fails

    """
    if not old.exists():
        msg = f"No such download: {old.name}"
        raise FileSystemError(msg, {"path": str(old)})
    if new.exists():
        msg = f"A download named {new.name} already exists"
        alternative = suggest_alternative_filename(new)
        if alternative:
            msg += f", try {alternative}"
        raise FileSystemError(msg, {"path": str(new)})
    try:
        old.rename(new)
    except OSError as e:
        msg = f"Cannot rename {old.name} to {new.name}: {e.strerror or e}"
        raise FileSystemError(msg, {"old": str(old), "new": str(new)}) from e


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Configuration file path",
)
@click.option(
    "--download-dir",
    type=click.Path(file_okay=False),
    help="Override the download directory",
)
@click.option(
    "--state-dir",
    type=click.Path(file_okay=False),
    help="Override the directory holding the store file",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (-v: info, -vv: debug)",
)
@click.option("--debug", "-d", is_flag=True, help="Enable debug logging (same as -vv)")
@click.pass_context
def cli(ctx, config, download_dir, state_dir, verbose, debug):
    """Ccprov - remembers which host supplied each downloaded file."""
    ctx.ensure_object(dict)
    if debug:
        verbose = max(verbose, 2)

    try:
        config_manager = ConfigManager(config)
        overrides: dict[str, Any] = {}
        if download_dir:
            overrides.setdefault("provenance", {})["download_dir"] = download_dir
        if state_dir:
            overrides.setdefault("provenance", {})["state_dir"] = state_dir
        if verbose >= 2:
            overrides["observability"] = {"log_level": LogLevel.DEBUG.value}
        elif verbose == 1:
            overrides["observability"] = {"log_level": LogLevel.INFO.value}
        if overrides:
            config_manager.apply_overrides(overrides)
    except CCProvError as e:
        raise click.ClickException(str(e)) from e

    config_manager.setup_logging()
    ctx.obj["config_manager"] = config_manager


@cli.command("list")
@click.pass_context
def list_origins(ctx):
    """List recorded downloads and their origin hosts."""
    console = Console()
    with _open_store(ctx) as store:
        entries = store.entries()

    if not entries:
        console.print("[yellow]No origins recorded[/yellow]")
        return

    table = Table(title="Download Origins")
    table.add_column("File", style="cyan")
    table.add_column("Host", style="green")
    for file_name, host in sorted(entries.items()):
        table.add_row(file_name, host)
    console.print(table)


@cli.command()
@click.argument("file_name")
@click.pass_context
def show(ctx, file_name):
    """Print the host FILE_NAME was downloaded from."""
    with _open_store(ctx) as store:
        host = store.get_host(file_name)
    if host is None:
        click.echo(f"No origin recorded for {file_name}", err=True)
        ctx.exit(1)
    click.echo(host)


@cli.command()
@click.argument("url")
@click.argument("file_name")
@click.pass_context
def record(ctx, url, file_name):
    """Record that FILE_NAME was downloaded from URL."""
    console = Console()
    host = origin_host(url)
    if host is None:
        _raise_cli_error(f"Not a supported remote URL: {url}")

    with _open_store(ctx) as store:
        path = _download_path(store, file_name)
        if not path.is_file():
            _raise_cli_error(f"No such download: {file_name}")
        record_download(store, url, file_name)
        recorded = store.get_host(file_name)

    if recorded == host:
        console.print(f"[green]Recorded {host} for {file_name}[/green]")
    else:
        console.print(
            f"[yellow]{file_name} already came from {recorded}, keeping it[/yellow]"
        )


@cli.command()
@click.argument("file_name")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def forget(ctx, file_name, yes):
    """Delete the download FILE_NAME and its origin record."""
    console = Console()
    with _open_store(ctx) as store:
        path = _download_path(store, file_name)
        if path.exists() and not yes:
            click.confirm(f"Delete {path}?", abort=True)
        try:
            deleted = _delete_download(path)
        except FileSystemError as e:
            raise click.ClickException(str(e)) from e
        known = store.knows_file(path)
        store.remove(path)

    if deleted:
        console.print(f"[green]Deleted {file_name}[/green]")
    if known:
        console.print(f"[green]Forgot origin of {file_name}[/green]")
    elif not deleted:
        console.print(f"[yellow]Nothing known about {file_name}[/yellow]")


@cli.command()
@click.argument("old_name")
@click.argument("new_name")
@click.pass_context
def rename(ctx, old_name, new_name):
    """Rename the download OLD_NAME to NEW_NAME, keeping its origin."""
    console = Console()
    with _open_store(ctx) as store:
        old = _download_path(store, old_name)
        new = _download_path(store, new_name)
        try:
            _rename_download(old, new)
        except FileSystemError as e:
            raise click.ClickException(str(e)) from e
        store.transfer(old, new)
        host = store.get_host(new)

    console.print(f"[green]Renamed {old_name} to {new_name}[/green]")
    if host:
        console.print(f"Origin: {host}")


@cli.command()
@click.pass_context
def reconcile(ctx):
    """Drop records of downloads that no longer exist."""
    console = Console()
    with _open_store(ctx) as store:
        result = store.last_reconcile
        remaining = len(store)

    if result is None:
        _raise_cli_error("Reconciliation did not complete, see the log")
    table = Table(title="Reconciliation")
    table.add_column("Loaded", style="cyan")
    table.add_column("Pruned", style="yellow")
    table.add_column("Cleared", style="red")
    table.add_column("Remaining", style="green")
    table.add_row(
        str(result.loaded),
        str(result.pruned),
        "yes" if result.cleared else "no",
        str(remaining),
    )
    console.print(table)


@cli.command("config")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["toml", "json"]),
    default="toml",
    help="Output format",
)
@click.pass_context
def show_config(ctx, fmt):
    """Print the effective configuration."""
    config_manager = _get_config_from_context(ctx)
    try:
        click.echo(config_manager.export(fmt))
    except CCProvError as e:
        raise click.ClickException(str(e)) from e


def main():
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
