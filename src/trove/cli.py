"""CLI commands for trove - a symlink-based dotfiles manager."""

from contextlib import nullcontext
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.status import Status
from rich.table import Table
from typing_extensions import Annotated

from . import __version__
from .deploy import deploy as deploy_entries
from .deploy import pack as pack_entries
from .exceptions import LinkResultsDict, TroveError
from .lifecycle import add_entry, remove_entry
from .locator import CONFIG_ENV_VAR, init_store, locate_store
from .status import LinkState, get_status
from .store import Store, load_store

# Global app and console instances
app = typer.Typer(help="trove - a symlink-based dotfiles manager")
console = Console()

STATE_STYLES = {
    LinkState.DEPLOYED.value: "green",
    LinkState.NOT_DEPLOYED.value: "yellow",
    LinkState.BROKEN.value: "bold red",
}


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def _fail(error: Exception) -> NoReturn:
    typer.secho(f"Error: {error}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _open_store(ctx: typer.Context) -> Store:
    """Locate and load the store every command except init works on."""
    override = (ctx.obj or {}).get("config")
    try:
        return load_store(locate_store(override))
    except TroveError as e:
        _fail(e)


def _report(results: LinkResultsDict, verb: str, quiet: bool) -> None:
    """Print a deploy/pack summary and exit non-zero if any entry failed."""
    failed = results["failed"]
    if not quiet:
        typer.secho(
            f"{verb} {len(results['changed'])}, unchanged "
            f"{len(results['unchanged'])}, failed {len(failed)}",
            fg=typer.colors.YELLOW if failed else typer.colors.GREEN,
            bold=True,
        )
    if failed:
        typer.secho(
            f"{len(failed)} entries were skipped:", fg=typer.colors.RED, err=True
        )
        for name, error in failed.items():
            typer.secho(f"  - {name}: {error}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    config: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            envvar=CONFIG_ENV_VAR,
            help="Store config file to use instead of the one recorded in ~/.trove",
        ),
    ] = None,
) -> None:
    """trove - a symlink-based dotfiles manager"""
    ctx.obj = {"config": config}


# ============================================================================
# STORE SETUP
# ============================================================================


@app.command()
def init(
    path: Annotated[Path, typer.Argument(help="Directory to keep the store in")],
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Suppress output")
    ] = False,
) -> None:
    """
    Create a store at PATH, or point trove at an existing store there.
    """
    try:
        init_store(path, quiet=quiet)
    except TroveError as e:
        _fail(e)


# ============================================================================
# ENTRY COMMANDS
# ============================================================================


@app.command()
def add(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="File or directory to start tracking")],
    name: Annotated[str, typer.Argument(help="Unique name for the entry")],
    save_path: Annotated[
        Optional[str],
        typer.Option(
            "--save-path",
            "-s",
            help="Templated host path to record instead of PATH, e.g. '$HOME/.vimrc'",
        ),
    ] = None,
    category: Annotated[
        Optional[List[str]],
        typer.Option(
            "--category", "-c", help="Category tag (repeatable, or comma-separated)"
        ),
    ] = None,
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Suppress output")
    ] = False,
) -> None:
    """Move PATH into the store as NAME and link it back into place."""
    store = _open_store(ctx)
    try:
        with (
            Status(f"Adding {name}...", console=console) if not quiet else nullcontext()
        ):
            add_entry(
                store,
                path,
                name,
                save_path=save_path,
                categories=category or [],
                quiet=quiet,
            )
    except TroveError as e:
        _fail(e)


@app.command()
def remove(
    ctx: typer.Context,
    path: Annotated[
        Optional[Path],
        typer.Option("--path", "-p", help="Host path of the entry to remove"),
    ] = None,
    name: Annotated[
        Optional[str], typer.Option("--name", "-n", help="Name of the entry to remove")
    ] = None,
    delete: Annotated[
        bool,
        typer.Option(
            "--delete", "-d", help="Move the content out instead of leaving a copy"
        ),
    ] = False,
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Suppress output")
    ] = False,
) -> None:
    """
    Stop tracking an entry and put its content back at its host path.
    Without --delete the store keeps an untracked copy.
    """
    store = _open_store(ctx)
    try:
        remove_entry(store, path=path, name=name, delete=delete, quiet=quiet)
    except TroveError as e:
        _fail(e)


# ============================================================================
# DEPLOYMENT COMMANDS
# ============================================================================


@app.command()
def deploy(
    ctx: typer.Context,
    category: Annotated[
        Optional[str],
        typer.Option("--category", "-c", help="Only entries with this category"),
    ] = None,
    name: Annotated[
        Optional[str], typer.Option("--name", "-n", help="Only the entry NAME")
    ] = None,
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Suppress output")
    ] = False,
) -> None:
    """
    Link entries from the store into place. Anything already sitting at a host
    path is left alone and reported.
    """
    store = _open_store(ctx)
    try:
        results = deploy_entries(store, category=category, name=name, quiet=quiet)
    except TroveError as e:
        _fail(e)
    _report(results, "Deployed", quiet)


@app.command()
def pack(
    ctx: typer.Context,
    category: Annotated[
        Optional[str],
        typer.Option("--category", "-c", help="Only entries with this category"),
    ] = None,
    name: Annotated[
        Optional[str], typer.Option("--name", "-n", help="Only the entry NAME")
    ] = None,
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Suppress output")
    ] = False,
) -> None:
    """
    Remove the links of entries. Their content stays in the store.
    """
    store = _open_store(ctx)
    try:
        results = pack_entries(store, category=category, name=name, quiet=quiet)
    except TroveError as e:
        _fail(e)
    _report(results, "Packed", quiet)


@app.command()
def status(ctx: typer.Context) -> None:
    """
    Show every entry with its categories and whether it is deployed.
    """
    store = _open_store(ctx)
    report = get_status(store)

    typer.secho(f"Store: {store.root_path}", fg=typer.colors.WHITE, bold=True)
    if not report:
        typer.secho("No entries tracked by trove.", fg=typer.colors.YELLOW)
        return

    table = Table()
    table.add_column("Name", no_wrap=True)
    table.add_column("Categories")
    table.add_column("State", no_wrap=True)
    table.add_column("Host path")
    for line in report:
        state = line["state"]
        host = line["host_path"]
        if line["detail"]:
            host = f"{host} ({line['detail']})"
        style = STATE_STYLES[state]
        table.add_row(
            escape(line["name"]),
            escape(", ".join(line["categories"])),
            f"[{style}]{state}[/{style}]",
            escape(host),
        )
    console.print(table)


# ============================================================================
# UTILITY COMMANDS
# ============================================================================


@app.command()
def version() -> None:
    """Show trove version."""
    try:
        from importlib.metadata import version as get_version

        version_str = get_version("trove")
    except Exception:
        version_str = __version__

    typer.secho(f"trove version {version_str}", fg=typer.colors.GREEN)


@app.command()
def completion() -> None:
    """Show instructions for enabling shell completion."""
    typer.echo("Run: trove --install-completion")


if __name__ == "__main__":
    app()
