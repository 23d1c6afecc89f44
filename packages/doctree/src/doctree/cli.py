"""CLI interface for Doctree.

Command-line tool for serving and inspecting the document tree.
"""

import asyncio
import logging
import sys
from pathlib import Path

import click

from doctree.config import Config
from doctree.core.errors import TreeError
from doctree.core.items import OperationResult, TreeItem
from doctree.core.mutations import FolderMutations
from doctree.core.query import MAX_DEPTH, TreeQueries, TreeQuery
from doctree.core.store import TreeStore
from doctree.core.types import NodeType

config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover doctree.toml)",
)
database_url_option = click.option(
    "--database-url",
    default=None,
    help="SQLAlchemy database URL (overrides config)",
)
verbose_option = click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output (debug logging)",
)


@click.group()
def cli() -> None:
    """Doctree - hierarchical path store for documentation sites."""


@cli.command()
@config_option
@database_url_option
@click.option(
    "--host",
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@verbose_option
def serve(
    config_path: Path | None,
    database_url: str | None,
    host: str | None,
    port: int | None,
    verbose: bool,
) -> None:
    """Start the tree API server."""
    from doctree.server import run_server

    _setup_logging(verbose)
    config = Config.load(config_path).with_overrides(
        host=host,
        port=port,
        database_url=database_url,
    )

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Database: {config.database.url}")
    click.echo(f"Default site: {config.site.default_id}")

    run_server(config)


@cli.command("init-db")
@config_option
@database_url_option
@verbose_option
def init_db(config_path: Path | None, database_url: str | None, verbose: bool) -> None:
    """Create the tree schema."""
    _setup_logging(verbose)
    config = Config.load(config_path).with_overrides(database_url=database_url)

    async def run() -> None:
        store = TreeStore.from_config(config.database)
        try:
            await store.create_schema()
        finally:
            await store.dispose()

    asyncio.run(run())
    click.echo(click.style("Schema created.", fg="green"))


@cli.command("ls")
@click.argument("path", default="")
@click.option("--site", "site_id", default=None, help="Site id (default: from config)")
@click.option(
    "--depth",
    "-d",
    type=click.IntRange(0, MAX_DEPTH),
    default=1,
    help="Levels below PATH to list",
)
@click.option(
    "--ancestors/--no-ancestors",
    default=False,
    help="Include the folders leading to PATH",
)
@config_option
@database_url_option
@verbose_option
def list_tree(
    path: str,
    site_id: str | None,
    depth: int,
    ancestors: bool,
    config_path: Path | None,
    database_url: str | None,
    verbose: bool,
) -> None:
    """List the tree below PATH (default: site root)."""
    _setup_logging(verbose)
    config = Config.load(config_path).with_overrides(database_url=database_url)
    query = TreeQuery(
        site_id=site_id or config.site.default_id,
        depth=depth,
        parent_path=path or None,
        include_ancestors=ancestors,
    )

    async def run() -> list[TreeItem]:
        store = TreeStore.from_config(config.database)
        try:
            await store.create_schema()
            return await TreeQueries(store).tree(query)
        finally:
            await store.dispose()

    try:
        items = asyncio.run(run())
    except TreeError as e:
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        sys.exit(1)

    if not items:
        click.echo("(empty)")
        return
    for item in items:
        click.echo(_format_item(item))


@cli.command()
@click.argument("name")
@click.option("--title", "-t", default=None, help="Display title (default: NAME)")
@click.option("--parent-id", default=None, help="Parent folder id (default: site root)")
@click.option("--site", "site_id", default=None, help="Site id (default: from config)")
@config_option
@database_url_option
@verbose_option
def mkdir(
    name: str,
    title: str | None,
    parent_id: str | None,
    site_id: str | None,
    config_path: Path | None,
    database_url: str | None,
    verbose: bool,
) -> None:
    """Create folder NAME."""
    _setup_logging(verbose)
    config = Config.load(config_path).with_overrides(database_url=database_url)

    async def run() -> OperationResult:
        store = TreeStore.from_config(config.database)
        try:
            await store.create_schema()
            return await FolderMutations(store).create_folder(
                site_id or config.site.default_id,
                parent_id,
                name,
                title or name,
            )
        finally:
            await store.dispose()

    result = asyncio.run(run())
    if not result.succeeded:
        click.echo(click.style(f"Error: {result.error_code}: {result.message}", fg="red"), err=True)
        sys.exit(1)
    click.echo(click.style(result.message, fg="green"))


def _format_item(item: TreeItem) -> str:
    indent = "  " * (item.depth - 1)
    suffix = "/" if item.type is NodeType.FOLDER else ""
    return f"{indent}{item.name}{suffix}  {item.title}  [{item.id}]"


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )
