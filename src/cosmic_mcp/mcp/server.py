"""
Cosmic MCP Server - FastMCP 2.0 implementation.

Exposes Cosmic object, object type and media operations as MCP tools.
Results are returned as pretty-printed JSON.
"""

import json
import sys
from contextlib import asynccontextmanager
from typing import Any, Literal

import structlog
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from cosmic_mcp.config import get_settings
from cosmic_mcp.dispatcher import ToolDispatcher
from cosmic_mcp.errors import BaseError, ConfigurationError
from cosmic_mcp.utils.logger import configure_logging

logger = structlog.get_logger()

SERVER_NAME = "cosmic-mcp"
SERVER_VERSION = "2.0.0"

# Built on first use so importing this module needs no credentials
_dispatcher: ToolDispatcher | None = None


def get_dispatcher() -> ToolDispatcher:
    """Get the process-wide dispatcher (lazy-loaded)."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = ToolDispatcher.from_settings(get_settings())
    return _dispatcher


def set_dispatcher(dispatcher: ToolDispatcher | None) -> None:
    """Replace the process-wide dispatcher (used by tests)."""
    global _dispatcher
    _dispatcher = dispatcher


@asynccontextmanager
async def lifespan(server: FastMCP):
    """Run the limiter sweep while serving; close the HTTP client on exit."""
    dispatcher = get_dispatcher()
    dispatcher.start()
    logger.info("mcp_server_started", name=SERVER_NAME, version=SERVER_VERSION)
    try:
        yield
    finally:
        await dispatcher.aclose()
        set_dispatcher(None)
        logger.info("mcp_server_stopped", name=SERVER_NAME)


mcp = FastMCP(
    name=SERVER_NAME,
    instructions="""
    This server manages content in a Cosmic headless CMS bucket.

    Available operations:
    - List, get, create, update, delete and search objects
    - List object types
    - Upload, list and delete media files
    """,
    lifespan=lifespan,
)


async def call_tool(tool_name: str, **arguments: Any) -> str:
    """Dispatch a tool call and render the result as JSON.

    Arguments left as None are dropped so schema defaults apply. Typed
    errors become a ToolError reading "Error: <message>".
    """
    args = {key: value for key, value in arguments.items() if value is not None}
    try:
        result = await get_dispatcher().execute(tool_name, args)
    except BaseError as e:
        raise ToolError(f"Error: {e.message}") from e
    return json.dumps(result, indent=2, ensure_ascii=False)


@mcp.tool(name="list_objects")
async def list_objects(
    type_slug: str | None = None,
    limit: int = 100,
    skip: int = 0,
    sort: str = "-created_at",
    status: Literal["published", "draft", "any"] = "published",
    locale: str | None = None,
) -> str:
    """
    List objects from your Cosmic bucket. Optionally filter by object type,
    with pagination support.
    """
    return await call_tool(
        "list_objects",
        type_slug=type_slug,
        limit=limit,
        skip=skip,
        sort=sort,
        status=status,
        locale=locale,
    )


@mcp.tool(name="get_object")
async def get_object(
    id: str | None = None,  # noqa: A002
    slug: str | None = None,
    type_slug: str | None = None,
    locale: str | None = None,
) -> str:
    """
    Get a specific object by ID or slug from your Cosmic bucket.

    Pass either `id`, or both `slug` and `type_slug`.
    """
    return await call_tool("get_object", id=id, slug=slug, type_slug=type_slug, locale=locale)


@mcp.tool(name="create_object")
async def create_object(
    title: str,
    type_slug: str,
    slug: str | None = None,
    content: str | None = None,
    status: Literal["published", "draft"] = "draft",
    metadata: dict[str, Any] | None = None,
    locale: str | None = None,
) -> str:
    """
    Create a new object in your Cosmic bucket.

    The slug is derived from the title when omitted and must be unique
    within the object type.
    """
    return await call_tool(
        "create_object",
        title=title,
        type_slug=type_slug,
        slug=slug,
        content=content,
        status=status,
        metadata=metadata,
        locale=locale,
    )


@mcp.tool(name="update_object")
async def update_object(
    id: str | None = None,  # noqa: A002
    slug: str | None = None,
    type_slug: str | None = None,
    title: str | None = None,
    content: str | None = None,
    status: Literal["published", "draft"] | None = None,
    metadata: dict[str, Any] | None = None,
    locale: str | None = None,
) -> str:
    """Update an existing object in your Cosmic bucket."""
    return await call_tool(
        "update_object",
        id=id,
        slug=slug,
        type_slug=type_slug,
        title=title,
        content=content,
        status=status,
        metadata=metadata,
        locale=locale,
    )


@mcp.tool(name="delete_object")
async def delete_object(
    id: str | None = None,  # noqa: A002
    slug: str | None = None,
    type_slug: str | None = None,
) -> str:
    """Delete an object from your Cosmic bucket."""
    return await call_tool("delete_object", id=id, slug=slug, type_slug=type_slug)


@mcp.tool(name="list_object_types")
async def list_object_types() -> str:
    """List all object types in your Cosmic bucket."""
    return await call_tool("list_object_types")


@mcp.tool(name="upload_media")
async def upload_media(
    file_data: str,
    filename: str,
    folder: str | None = None,
    alt_text: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> str:
    """
    Upload media files to your Cosmic bucket.

    `file_data` is the base64-encoded file. Files are limited to 50MB and
    to common image, video, audio, PDF and text types.
    """
    return await call_tool(
        "upload_media",
        file_data=file_data,
        filename=filename,
        folder=folder,
        alt_text=alt_text,
        metadata=metadata,
    )


@mcp.tool(name="list_media")
async def list_media(limit: int = 100, skip: int = 0, folder: str | None = None) -> str:
    """List media files in your Cosmic bucket."""
    return await call_tool("list_media", limit=limit, skip=skip, folder=folder)


@mcp.tool(name="delete_media")
async def delete_media(id: str) -> str:  # noqa: A002
    """Delete a media file from your Cosmic bucket."""
    return await call_tool("delete_media", id=id)


@mcp.tool(name="search_objects")
async def search_objects(
    query: str,
    type_slug: str | None = None,
    limit: int = 100,
    locale: str | None = None,
) -> str:
    """Search objects in your Cosmic bucket using text search."""
    return await call_tool(
        "search_objects", query=query, type_slug=type_slug, limit=limit, locale=locale
    )


def main() -> None:
    """Configure logging and serve over stdio."""
    try:
        settings = get_settings()
    except ConfigurationError as e:
        print(f"cosmic-mcp: {e.message}", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings.effective_log_level, settings.log_format)
    logger.info("mcp_server_configuring", settings=settings.redacted())
    mcp.run()


if __name__ == "__main__":
    main()
