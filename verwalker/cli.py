"""CLI entry point for verwalker."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax

from verwalker.config import VerwalkerConfig, load_config
from verwalker.config.loader import DEFAULT_CONFIG_TEMPLATE
from verwalker.crawl import IndexRunner
from verwalker.index import (
    Index,
    IndexFileError,
    IndexStore,
    PackageNotFoundError,
    deps as query_deps,
    revdeps as query_revdeps,
)
from verwalker.vcs import VCSError, create_provider

app = typer.Typer(
    name="verwalker",
    help="Crawl repository accounts into a package dependency index and query it.",
)

config_app = typer.Typer(help="Manage verwalker configuration.")
app.add_typer(config_app, name="config")

err_console = Console(stderr=True)

# Global state
_config: VerwalkerConfig | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def _get_config() -> VerwalkerConfig:
    if _config is None:
        return load_config()
    return _config


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=_LOG_LEVELS[level],
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to verwalker.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    _configure_logging(_config.log_level)


def _pad(value: str, widths: tuple[int, ...]) -> str:
    """Tab separator that keeps short columns lined up."""
    return "\t" + "".join("\t" for w in widths if len(value) < w)


def _load_index(index_file: str | None) -> Index:
    path = index_file or _get_config().output.index_file
    try:
        return IndexStore(path).load()
    except IndexFileError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)


IndexFileOption = Annotated[
    str | None, typer.Option("--index-file", "-f", help="Path to the index JSON file")
]


@app.command()
def index(
    index_file: IndexFileOption = None,
    account: Annotated[
        list[str] | None,
        typer.Option("--account", "-a", help="Account to crawl (repeatable)"),
    ] = None,
) -> None:
    """Crawl the configured accounts and build the index."""
    cfg = _get_config()
    if account:
        cfg = cfg.model_copy(
            update={"crawl": cfg.crawl.model_copy(update={"accounts": account})}
        )
    path = Path(index_file or cfg.output.index_file)

    try:
        provider = create_provider(cfg.vcs)
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)

    runner = IndexRunner(provider, cfg, IndexStore(path))
    try:
        summary = asyncio.run(runner.run())
    except (VCSError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(
        f"{summary.reason}: {summary.processed} repos, {summary.packages} packages, "
        f"{summary.indexed} indexed -> {summary.index_file}",
        err=True,
    )


@app.command()
def deps(
    args: Annotated[list[str] | None, typer.Argument(help="Package name or repo")] = None,
    index_file: IndexFileOption = None,
) -> None:
    """Show the dependencies of a package."""
    if not args or len(args) != 1:
        typer.echo("usage: verwalker deps <package name | repo>", err=True)
        raise typer.Exit(1)
    idx = _load_index(index_file)
    try:
        rows = query_deps(idx, args[0])
    except PackageNotFoundError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)
    for name, version in rows:
        typer.echo(f"{name}{_pad(name, (8, 16))}{version}")


@app.command()
def revdeps(
    args: Annotated[
        list[str] | None, typer.Argument(help="Package name, repo, or 'node'")
    ] = None,
    index_file: IndexFileOption = None,
) -> None:
    """Show the packages depending on a package, ordered by requested version."""
    if not args or len(args) != 1:
        typer.echo("usage: verwalker revdeps <package name | repo | node>", err=True)
        raise typer.Exit(1)
    idx = _load_index(index_file)
    try:
        rows = query_revdeps(idx, args[0])
    except PackageNotFoundError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)
    for r in rows:
        repo = r.repository or "-"
        typer.echo(
            f"{r.name}{_pad(r.name, (8, 16))}{repo}{_pad(repo, (8, 16, 24))}{r.version}"
        )


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default verwalker.yaml in current directory."""
    target = Path("verwalker.yaml")
    if target.exists() and not force:
        rprint("[yellow]verwalker.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
