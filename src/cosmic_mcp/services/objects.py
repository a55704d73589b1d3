"""Business rules for content objects."""

import re
from collections import Counter

import structlog

from cosmic_mcp.errors import CosmicObjectNotFoundError, ValidationError
from cosmic_mcp.models import CosmicObject, ObjectList, ObjectStats
from cosmic_mcp.repositories import ObjectRepository, TypeRepository
from cosmic_mcp.utils.rate_limiter import RateLimiter
from cosmic_mcp.validation import (
    CreateObjectInput,
    DeleteObjectInput,
    GetObjectInput,
    ListObjectsInput,
    ObjectLocator,
    SearchObjectsInput,
    UpdateObjectInput,
)

logger = structlog.get_logger()

MAX_SEARCH_QUERY_LENGTH = 500
STATS_FETCH_LIMIT = 1000


def generate_slug(title: str) -> str:
    """Derive a URL slug from a title.

    >>> generate_slug("Hello, World!!")
    'hello-world'
    """
    slug = title.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def sanitize_search_query(query: str) -> str:
    """Strip angle brackets and cap the length."""
    return re.sub(r"[<>]", "", query)[:MAX_SEARCH_QUERY_LENGTH]


class ObjectService:
    """Validates and forwards object operations."""

    def __init__(
        self,
        objects: ObjectRepository,
        types: TypeRepository,
        rate_limiter: RateLimiter,
    ):
        self.objects = objects
        self.types = types
        self.rate_limiter = rate_limiter

    async def _ensure_type_exists(self, type_slug: str) -> None:
        if not await self.types.type_exists(type_slug):
            raise ValidationError(
                f"Object type '{type_slug}' does not exist", {"type_slug": type_slug}
            )

    async def _ensure_slug_available(self, slug: str, type_slug: str) -> None:
        try:
            await self.objects.find_one(slug=slug, type_slug=type_slug)
        except CosmicObjectNotFoundError:
            return
        raise ValidationError(
            f"An object with slug '{slug}' already exists in type '{type_slug}'",
            {"slug": slug, "type_slug": type_slug},
        )

    async def _resolve(self, locator: ObjectLocator, locale: str | None = None) -> CosmicObject:
        return await self.objects.find_one(
            id=locator.id, slug=locator.slug, type_slug=locator.type_slug, locale=locale
        )

    async def list_objects(self, params: ListObjectsInput) -> ObjectList:
        logger.info("list_objects", type_slug=params.type_slug, limit=params.limit)
        self.rate_limiter.check_and_consume("list_objects")

        if params.type_slug:
            await self._ensure_type_exists(params.type_slug)

        return await self.objects.find_many(params)

    async def get_object(self, params: GetObjectInput) -> CosmicObject:
        logger.info("get_object", identifier=params.identifier)
        self.rate_limiter.check_and_consume("get_object")

        if params.type_slug:
            await self._ensure_type_exists(params.type_slug)

        return await self._resolve(params, params.locale)

    async def create_object(self, data: CreateObjectInput) -> CosmicObject:
        """Create an object, deriving its slug from the title when none is given.

        Raises:
            ValidationError: the type does not exist, no slug can be derived,
                or the slug is already taken within the type
        """
        logger.info("create_object", title=data.title, type_slug=data.type_slug)
        self.rate_limiter.check_and_consume("create_object")

        await self._ensure_type_exists(data.type_slug)

        slug = data.slug or generate_slug(data.title)
        if not slug:
            raise ValidationError(
                f"Cannot derive a slug from title '{data.title}'", {"title": data.title}
            )
        await self._ensure_slug_available(slug, data.type_slug)

        created = await self.objects.create(data.model_copy(update={"slug": slug}))
        logger.info("object_created", id=created.id, slug=created.slug, type=data.type_slug)
        return created

    async def update_object(self, data: UpdateObjectInput) -> CosmicObject:
        logger.info("update_object", identifier=data.identifier)
        self.rate_limiter.check_and_consume("update_object")

        if data.type_slug:
            await self._ensure_type_exists(data.type_slug)

        existing = await self._resolve(data)
        updated = await self.objects.update(data.model_copy(update={"id": existing.id}))
        logger.info("object_updated", id=updated.id, slug=updated.slug)
        return updated

    async def delete_object(self, data: DeleteObjectInput) -> None:
        logger.info("delete_object", identifier=data.identifier)
        self.rate_limiter.check_and_consume("delete_object")

        if data.type_slug:
            await self._ensure_type_exists(data.type_slug)

        existing = await self._resolve(data)
        logger.info(
            "object_deletion_audit",
            id=existing.id,
            slug=existing.slug,
            type=existing.type,
            title=existing.title,
        )
        await self.objects.delete(ObjectLocator(id=existing.id))

    async def search_objects(self, params: SearchObjectsInput) -> ObjectList:
        """Search objects after stripping markup characters from the query."""
        self.rate_limiter.check_and_consume("search_objects")

        query = sanitize_search_query(params.query)
        logger.info("search_objects", query=query, type_slug=params.type_slug)

        if not query.strip():
            raise ValidationError("Search query is empty after sanitization", {"query": query})
        if params.type_slug:
            await self._ensure_type_exists(params.type_slug)

        return await self.objects.search(params.model_copy(update={"query": query}))

    async def get_object_stats(self) -> ObjectStats:
        """Count objects by type and by status (first STATS_FETCH_LIMIT only)."""
        self.rate_limiter.check_and_consume("get_stats")

        result = await self.objects.find_many(
            ListObjectsInput(status="any", limit=STATS_FETCH_LIMIT, sort="created_at")
        )
        by_type = Counter(obj.type or "unknown" for obj in result.objects)
        by_status = Counter(obj.status or "unknown" for obj in result.objects)

        stats = ObjectStats(
            total_objects=result.total if result.total is not None else len(result.objects),
            objects_by_type=dict(by_type),
            objects_by_status=dict(by_status),
        )
        logger.info("object_stats_calculated", total_objects=stats.total_objects)
        return stats
