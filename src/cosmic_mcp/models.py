"""Pydantic models for Cosmic entities as returned by the API.

Unknown fields are kept so results go back to the caller in the shape the
API produced them.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class CosmicModel(BaseModel):
    """Base for API payloads: tolerant of extra fields."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses, dropping unset optionals."""
        return self.model_dump(mode="json", exclude_none=True)


class CosmicObject(CosmicModel):
    """A content object."""

    id: str
    title: str
    slug: str
    type: str | None = None
    status: Literal["published", "draft"] | None = None
    content: str | None = None
    metadata: dict[str, Any] | None = None
    locale: str | None = None
    thumbnail: str | None = None
    created_at: str | None = None
    modified_at: str | None = None
    created_by: str | None = None
    modified_by: str | None = None


class CosmicMetafield(CosmicModel):
    """A custom field definition on an object type."""

    id: str | None = None
    title: str
    key: str
    type: str
    value: Any = None
    required: bool | None = None
    children: list["CosmicMetafield"] | None = None


class CosmicObjectType(CosmicModel):
    """An object type (content schema)."""

    id: str | None = None
    title: str
    slug: str
    singular: str | None = None
    plural: str | None = None
    emoji: str | None = None
    preview_link: str | None = None
    priority: int | None = None
    metafields: list[CosmicMetafield] | None = None
    options: dict[str, Any] | None = None
    created_at: str | None = None
    modified_at: str | None = None


class CosmicMedia(CosmicModel):
    """An uploaded media file."""

    id: str
    name: str
    original_name: str | None = None
    size: int = 0
    type: str = "application/octet-stream"
    bucket: str | None = None
    url: str | None = None
    imgix_url: str | None = None
    folder: str | None = None
    alt_text: str | None = None
    width: int | None = None
    height: int | None = None
    metadata: dict[str, Any] | None = None
    created_at: str | None = None
    modified_at: str | None = None


class ObjectList(CosmicModel):
    """A page of objects."""

    objects: list[CosmicObject] = Field(default_factory=list)
    total: int | None = None


class ObjectTypeList(CosmicModel):
    """All object types in the bucket."""

    object_types: list[CosmicObjectType] = Field(default_factory=list)
    total: int | None = None


class MediaList(CosmicModel):
    """A page of media files."""

    media: list[CosmicMedia] = Field(default_factory=list)
    total: int | None = None


class MediaStats(BaseModel):
    """Aggregate numbers over the media library."""

    total_count: int
    total_size: int
    average_size: int
    media_by_type: dict[str, int]
    media_by_folder: dict[str, int]


class ObjectStats(BaseModel):
    """Aggregate numbers over objects."""

    total_objects: int
    objects_by_type: dict[str, int]
    objects_by_status: dict[str, int]


class TypeObjectCount(BaseModel):
    """Object count for one type."""

    slug: str
    title: str
    object_count: int


class ObjectTypeStats(BaseModel):
    """Object counts for every type."""

    total_types: int
    types: list[TypeObjectCount]


class SlugValidation(BaseModel):
    """Outcome of checking a proposed type slug."""

    is_valid: bool
    is_available: bool
    suggestions: list[str] = Field(default_factory=list)


class OptimizationResult(BaseModel):
    """Reported outcome of optimize_media.

    The numbers are simulated; nothing is compressed.
    """

    original_size: int
    optimized_size: int
    compression_ratio: float
