"""Routes validated tool calls to the services.

MCP tools run through execute() and are rate limited under `tool_<name>`.
Admin operations run through run_admin() under `admin_<name>`. Every call is
validated, routed and serialized to plain JSON data, and only typed errors
(BaseError) leave either entry point.
"""

from collections.abc import Awaitable, Callable, Container
from typing import Any

import structlog
from pydantic import BaseModel

from cosmic_mcp.config import Settings
from cosmic_mcp.cosmic.client import CosmicClient
from cosmic_mcp.errors import BaseError, UnknownToolError, create_cosmic_error
from cosmic_mcp.repositories import MediaRepository, ObjectRepository, TypeRepository
from cosmic_mcp.services import MediaService, ObjectService, TypeService
from cosmic_mcp.utils.rate_limiter import RateLimitConfig, RateLimiter
from cosmic_mcp.validation import (
    OPERATION_VALIDATION_MAP,
    TOOL_VALIDATION_MAP,
    ToolInput,
    validate_tool_input,
)

logger = structlog.get_logger()

Handler = Callable[[Any], Awaitable[Any]]

# Operations served to the CLI only; never published as MCP tools
ADMIN_OPERATIONS = frozenset(OPERATION_VALIDATION_MAP) - frozenset(TOOL_VALIDATION_MAP)


def to_jsonable(result: Any) -> Any:
    """Convert service results to JSON-compatible data."""
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json", exclude_none=True)
    if isinstance(result, list):
        return [to_jsonable(item) for item in result]
    return result


class ToolDispatcher:
    """Single entry point for tool and admin operations."""

    def __init__(
        self,
        objects: ObjectService,
        types: TypeService,
        media: MediaService,
        rate_limiter: RateLimiter,
        client: CosmicClient | None = None,
    ):
        self.objects = objects
        self.types = types
        self.media = media
        self.rate_limiter = rate_limiter
        self.client = client
        self._routes: dict[str, Handler] = {
            "list_objects": objects.list_objects,
            "get_object": objects.get_object,
            "create_object": objects.create_object,
            "update_object": objects.update_object,
            "delete_object": self._delete_object,
            "search_objects": objects.search_objects,
            "list_object_types": lambda _: types.list_object_types(),
            "get_object_type": lambda p: types.get_object_type(p.slug),
            "create_object_type": types.create_object_type,
            "update_object_type": types.update_object_type,
            "delete_object_type": self._delete_object_type,
            "validate_type_slug": lambda p: types.validate_type_slug(p.slug),
            "duplicate_object_type": types.duplicate_object_type,
            "list_media": media.list_media,
            "get_media": lambda p: media.get_media(p.id),
            "upload_media": media.upload_media,
            "update_media": media.update_media,
            "delete_media": self._delete_media,
            "get_media_by_folder": lambda p: media.get_media_by_folder(p.folder),
            "optimize_media": lambda p: media.optimize_media(p.id),
        }

    @classmethod
    def from_client(
        cls, client: CosmicClient, rate_limiter: RateLimiter | None = None
    ) -> "ToolDispatcher":
        """Wire repositories and services around one client and one limiter."""
        rate_limiter = rate_limiter or RateLimiter()
        object_repo = ObjectRepository(client)
        type_repo = TypeRepository(client)
        media_repo = MediaRepository(client)
        return cls(
            objects=ObjectService(object_repo, type_repo, rate_limiter),
            types=TypeService(type_repo, object_repo, rate_limiter),
            media=MediaService(media_repo, rate_limiter),
            rate_limiter=rate_limiter,
            client=client,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ToolDispatcher":
        limiter = RateLimiter(
            RateLimitConfig(
                window_ms=settings.rate_limit_window_ms,
                max_requests=settings.rate_limit_max_requests,
            )
        )
        return cls.from_client(CosmicClient.from_settings(settings), limiter)

    async def _delete_object(self, params: ToolInput) -> dict[str, str]:
        await self.objects.delete_object(params)
        return {"message": "Object deleted successfully"}

    async def _delete_object_type(self, params: ToolInput) -> dict[str, str]:
        await self.types.delete_object_type(params.slug)
        return {"message": "Object type deleted successfully"}

    async def _delete_media(self, params: ToolInput) -> dict[str, str]:
        await self.media.delete_media(params.id)
        return {"message": "Media deleted successfully"}

    async def execute(self, tool_name: str, raw_args: Any = None) -> Any:
        """Run one MCP tool call and return JSON-compatible data.

        Only the published tools are accepted here; admin operations go
        through run_admin().

        Raises:
            RateLimitError: the tool's budget is exhausted
            UnknownToolError: no tool has this name
            ToolInputValidationError: the arguments do not match the schema
            BaseError: any other failure, normalized
        """
        return await self._dispatch(tool_name, raw_args, "tool", TOOL_VALIDATION_MAP)

    async def run_admin(self, name: str, raw_args: Any = None) -> Any:
        """Run one admin operation (type management, folders, optimize).

        Admin operations are limited under `admin_<name>`. Tool names are
        rejected so each surface keeps its own budget.
        """
        return await self._dispatch(name, raw_args, "admin", ADMIN_OPERATIONS)

    async def _dispatch(
        self, name: str, raw_args: Any, surface: str, allowed: Container[str]
    ) -> Any:
        logger.info(f"{surface}_called", operation=name)

        try:
            self.rate_limiter.check_and_consume(f"{surface}_{name}")
            if name not in allowed:
                raise UnknownToolError(name)
            params = validate_tool_input(name, raw_args)
            result = to_jsonable(await self._routes[name](params))
        except BaseError as e:
            logger.warning(f"{surface}_failed", operation=name, error=e.message, error_name=e.name)
            raise
        except Exception as e:
            logger.error(
                f"{surface}_unexpected_error",
                operation=name,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise create_cosmic_error(e, {surface: name}) from e

        logger.info(f"{surface}_succeeded", operation=name)
        return result

    def start(self) -> None:
        """Start background work. Needs a running event loop."""
        self.rate_limiter.start()

    async def aclose(self) -> None:
        """Stop the limiter sweep and close the HTTP client."""
        self.rate_limiter.destroy()
        if self.client is not None:
            await self.client.aclose()
