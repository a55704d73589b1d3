"""Cosmic MCP CLI main entry point."""

import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import click
import yaml

from cosmic_mcp.config import get_settings
from cosmic_mcp.dispatcher import ToolDispatcher, to_jsonable
from cosmic_mcp.errors import BaseError
from cosmic_mcp.utils.logger import configure_logging


def run_operation(operation: Callable[[ToolDispatcher], Awaitable[Any]]) -> None:
    """Run one operation against a fresh dispatcher and print the result as YAML."""

    async def _run():
        dispatcher = ToolDispatcher.from_settings(get_settings())
        try:
            return await operation(dispatcher)
        finally:
            await dispatcher.aclose()

    try:
        settings = get_settings()
        configure_logging(settings.effective_log_level, settings.log_format)
        result = asyncio.run(_run())
    except BaseError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    click.echo(yaml.dump(to_jsonable(result), default_flow_style=False, sort_keys=False))


@click.group()
@click.pass_context
def cli(ctx):
    """Cosmic MCP - Cosmic CMS tools for AI assistants.

    Runs the MCP server and exposes bucket administration commands.
    Credentials come from COSMIC_* environment variables or .env.
    """
    ctx.ensure_object(dict)


@cli.command(name="serve")
def serve():
    """Serve the MCP tools over stdio."""
    from cosmic_mcp.mcp.server import main

    main()


@cli.group()
def types():
    """Manage object types."""
    pass


@types.command(name="list")
def types_list():
    """List all object types."""
    run_operation(lambda d: d.execute("list_object_types", {}))


@types.command(name="create")
@click.argument("title")
@click.argument("slug")
@click.option("--singular", help="Singular name (defaults to the title)")
@click.option("--plural", help="Plural name (defaults to the pluralized title)")
@click.option("--emoji", help="Emoji shown in the dashboard")
def types_create(
    title: str, slug: str, singular: str | None, plural: str | None, emoji: str | None
):
    """Create an object type."""
    args = {"title": title, "slug": slug, "singular": singular, "plural": plural, "emoji": emoji}
    run_operation(
        lambda d: d.run_admin(
            "create_object_type", {k: v for k, v in args.items() if v is not None}
        )
    )


@types.command(name="delete")
@click.argument("slug")
@click.confirmation_option(prompt="Delete this object type?")
def types_delete(slug: str):
    """Delete an object type. Fails while objects of the type exist."""
    run_operation(lambda d: d.run_admin("delete_object_type", {"slug": slug}))


@types.command(name="validate-slug")
@click.argument("slug")
def types_validate_slug(slug: str):
    """Check whether SLUG is well formed and unused."""
    run_operation(lambda d: d.run_admin("validate_type_slug", {"slug": slug}))


@types.command(name="duplicate")
@click.argument("source_slug")
@click.argument("new_slug")
@click.argument("new_title")
def types_duplicate(source_slug: str, new_slug: str, new_title: str):
    """Copy an object type, metafields included, under a new slug."""
    run_operation(
        lambda d: d.run_admin(
            "duplicate_object_type",
            {"source_slug": source_slug, "new_slug": new_slug, "new_title": new_title},
        )
    )


@types.command(name="stats")
def types_stats():
    """Show object counts per type."""
    run_operation(lambda d: d.types.get_object_type_stats())


@cli.group()
def objects():
    """Inspect objects."""
    pass


@objects.command(name="stats")
def objects_stats():
    """Show object counts by type and status."""
    run_operation(lambda d: d.objects.get_object_stats())


@cli.group()
def media():
    """Inspect the media library."""
    pass


@media.command(name="stats")
def media_stats():
    """Show media totals by file category and folder."""
    run_operation(lambda d: d.media.get_media_stats())


@media.command(name="folder")
@click.argument("folder")
def media_folder(folder: str):
    """List media in FOLDER."""
    run_operation(lambda d: d.run_admin("get_media_by_folder", {"folder": folder}))


@media.command(name="optimize")
@click.argument("media_id")
def media_optimize(media_id: str):
    """Report the simulated optimization result for a media file."""
    run_operation(lambda d: d.run_admin("optimize_media", {"id": media_id}))


if __name__ == "__main__":
    cli()
