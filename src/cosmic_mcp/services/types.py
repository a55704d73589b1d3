"""Business rules for object types."""

import re

import structlog

from cosmic_mcp.errors import ValidationError
from cosmic_mcp.models import (
    CosmicObjectType,
    ObjectTypeList,
    ObjectTypeStats,
    SlugValidation,
    TypeObjectCount,
)
from cosmic_mcp.repositories import ObjectRepository, TypeRepository
from cosmic_mcp.utils.rate_limiter import RateLimiter
from cosmic_mcp.validation import (
    SLUG_PATTERN,
    CreateObjectTypeInput,
    DuplicateObjectTypeInput,
    ListObjectsInput,
    UpdateObjectTypeInput,
)

logger = structlog.get_logger()

MIN_SLUG_LENGTH = 2
MAX_SLUG_LENGTH = 50
SUGGESTION_SUFFIXES = ("2", "3", "4", "5", "new", "v2", "alt", "copy")

INVALID_SLUG_MESSAGE = (
    "Invalid slug format. Must contain only lowercase letters, numbers, and hyphens, "
    "and cannot start or end with a hyphen."
)


def pluralize(word: str) -> str:
    """Naive English plural of `word`, lowercased.

    >>> pluralize("Category")
    'categories'
    """
    word = word.strip().lower()
    if len(word) > 1 and word.endswith("y") and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    if word.endswith(("s", "sh", "ch", "x", "z")):
        return word + "es"
    if word.endswith("fe"):
        return word[:-2] + "ves"
    if word.endswith("f"):
        return word[:-1] + "ves"
    return word + "s"


def is_valid_type_slug(slug: str) -> bool:
    return (
        MIN_SLUG_LENGTH <= len(slug) <= MAX_SLUG_LENGTH
        and re.fullmatch(SLUG_PATTERN, slug) is not None
    )


def slug_suggestions(slug: str) -> list[str]:
    return [f"{slug}-{suffix}" for suffix in SUGGESTION_SUFFIXES]


class TypeService:
    """Validates and forwards object type operations."""

    def __init__(
        self,
        types: TypeRepository,
        objects: ObjectRepository,
        rate_limiter: RateLimiter,
    ):
        self.types = types
        self.objects = objects
        self.rate_limiter = rate_limiter

    async def _check_new_slug(self, slug: str) -> None:
        if not is_valid_type_slug(slug):
            raise ValidationError(INVALID_SLUG_MESSAGE, {"slug": slug})
        if await self.types.type_exists(slug):
            raise ValidationError(f"Object type with slug '{slug}' already exists", {"slug": slug})

    async def list_object_types(self) -> ObjectTypeList:
        logger.info("list_object_types")
        self.rate_limiter.check_and_consume("list_object_types")
        return await self.types.find_many()

    async def get_object_type(self, slug: str) -> CosmicObjectType:
        logger.info("get_object_type", slug=slug)
        self.rate_limiter.check_and_consume("get_object_type")
        return await self.types.find_one(slug)

    async def create_object_type(self, data: CreateObjectTypeInput) -> CosmicObjectType:
        """Create a type after checking the slug rule and availability.

        Singular defaults to the title and plural to its pluralized form.
        """
        logger.info("create_object_type", slug=data.slug, title=data.title)
        self.rate_limiter.check_and_consume("create_object_type")

        await self._check_new_slug(data.slug)

        created = await self.types.create(
            data.model_copy(
                update={
                    "singular": data.singular or data.title,
                    "plural": data.plural or pluralize(data.title),
                }
            )
        )
        logger.info("object_type_created", slug=created.slug, id=created.id)
        return created

    async def update_object_type(self, data: UpdateObjectTypeInput) -> CosmicObjectType:
        logger.info("update_object_type", slug=data.slug)
        self.rate_limiter.check_and_consume("update_object_type")

        await self.types.find_one(data.slug)
        return await self.types.update(data)

    async def delete_object_type(self, slug: str) -> None:
        """Delete a type that has no objects.

        Raises:
            CosmicObjectTypeNotFoundError: the type does not exist
            ValidationError: objects of this type still exist
        """
        logger.info("delete_object_type", slug=slug)
        self.rate_limiter.check_and_consume("delete_object_type")

        object_type = await self.types.find_one(slug)

        existing = await self.objects.find_many(
            ListObjectsInput(type_slug=slug, status="any", limit=1)
        )
        if existing.objects:
            count = existing.total or "existing"
            raise ValidationError(
                f"Cannot delete object type '{slug}' because it has {count} objects. "
                "Delete all objects of this type first.",
                {"slug": slug, "object_count": existing.total},
            )

        logger.info(
            "object_type_deletion_audit",
            slug=slug,
            id=object_type.id,
            title=object_type.title,
        )
        await self.types.delete(slug)

    async def get_object_type_stats(self) -> ObjectTypeStats:
        """Object count per type. Costs one list call per type."""
        self.rate_limiter.check_and_consume("get_type_stats")

        types = await self.types.find_many()
        counts = []
        for object_type in types.object_types:
            page = await self.objects.find_many(
                ListObjectsInput(
                    type_slug=object_type.slug, status="any", limit=1, sort="created_at"
                )
            )
            counts.append(
                TypeObjectCount(
                    slug=object_type.slug,
                    title=object_type.title,
                    object_count=page.total or 0,
                )
            )

        stats = ObjectTypeStats(total_types=len(types.object_types), types=counts)
        logger.info("object_type_stats_calculated", total_types=stats.total_types)
        return stats

    async def validate_type_slug(self, slug: str) -> SlugValidation:
        """Check format and availability; suggest alternatives when taken."""
        self.rate_limiter.check_and_consume("validate_slug")

        if not is_valid_type_slug(slug):
            return SlugValidation(is_valid=False, is_available=False)

        available = not await self.types.type_exists(slug)
        result = SlugValidation(
            is_valid=True,
            is_available=available,
            suggestions=[] if available else slug_suggestions(slug),
        )
        logger.info("slug_validated", slug=slug, is_available=available)
        return result

    async def duplicate_object_type(self, data: DuplicateObjectTypeInput) -> CosmicObjectType:
        """Create a new type from an existing one, copying its metafields."""
        logger.info(
            "duplicate_object_type",
            source_slug=data.source_slug,
            new_slug=data.new_slug,
        )
        self.rate_limiter.check_and_consume("duplicate_type")

        source = await self.types.find_one(data.source_slug)
        await self._check_new_slug(data.new_slug)

        metafields = (
            [field.to_dict() for field in source.metafields] if source.metafields else None
        )
        created = await self.types.create(
            CreateObjectTypeInput(
                title=data.new_title,
                slug=data.new_slug,
                singular=data.new_title,
                plural=pluralize(data.new_title),
                emoji=source.emoji,
                metafields=metafields,
            )
        )
        logger.info(
            "object_type_duplicated",
            source_slug=data.source_slug,
            new_slug=created.slug,
            new_id=created.id,
        )
        return created
