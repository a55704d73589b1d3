"""Pydantic schemas for tool and operation input.

Defaults are applied here, so repositories and services always receive
fully populated inputs.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from cosmic_mcp.errors import ToolInputValidationError, UnknownToolError

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"

StatusFilter = Literal["published", "draft", "any"]
ObjectStatus = Literal["published", "draft"]


class ToolInput(BaseModel):
    """Base for all inputs. Unknown keys are dropped."""

    model_config = ConfigDict(extra="ignore")


# Objects

class ListObjectsInput(ToolInput):
    """Arguments for list_objects."""

    type_slug: str | None = None
    limit: int = Field(default=100, ge=1, le=1000)
    skip: int = Field(default=0, ge=0)
    sort: str = "-created_at"
    status: StatusFilter = "published"
    locale: str | None = None


class ObjectLocator(ToolInput):
    """Addresses one object by `id`, or by `slug` together with `type_slug`."""

    # An empty id counts as absent
    id: str | None = None
    slug: str | None = Field(default=None, min_length=1)
    type_slug: str | None = Field(default=None, min_length=1)

    @model_validator(mode="after")
    def check_locator(self) -> "ObjectLocator":
        """Require one addressing form; an id wins over slug + type."""
        if self.id:
            self.slug = None
            self.type_slug = None
        elif not (self.slug and self.type_slug):
            raise ValueError("Either id or both slug and type_slug must be provided")
        else:
            self.id = None
        return self

    @property
    def identifier(self) -> str:
        """Whichever identifier addresses the object."""
        return self.id or self.slug or "unknown"


class GetObjectInput(ObjectLocator):
    """Arguments for get_object."""

    locale: str | None = None


class CreateObjectInput(ToolInput):
    """Arguments for create_object."""

    title: str = Field(..., min_length=1, max_length=200)
    type_slug: str = Field(..., min_length=1)
    slug: str | None = Field(default=None, pattern=SLUG_PATTERN)
    content: str | None = None
    status: ObjectStatus = "draft"
    metadata: dict[str, Any] | None = None
    locale: str | None = None


class UpdateObjectInput(ObjectLocator):
    """Arguments for update_object."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = None
    status: ObjectStatus | None = None
    metadata: dict[str, Any] | None = None
    locale: str | None = None


class DeleteObjectInput(ObjectLocator):
    """Arguments for delete_object."""


class SearchObjectsInput(ToolInput):
    """Arguments for search_objects."""

    query: str = Field(..., min_length=1)
    type_slug: str | None = None
    limit: int = Field(default=100, ge=1, le=1000)
    locale: str | None = None


# Object types

class ListObjectTypesInput(ToolInput):
    """list_object_types takes no arguments."""


class GetObjectTypeInput(ToolInput):
    slug: str = Field(..., min_length=1)


class CreateObjectTypeInput(ToolInput):
    # Slug format is a business rule checked by TypeService
    title: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=1)
    singular: str | None = None
    plural: str | None = None
    emoji: str | None = None
    metafields: list[dict[str, Any]] | None = None
    options: dict[str, Any] | None = None


class UpdateObjectTypeInput(ToolInput):
    slug: str = Field(..., min_length=1)
    title: str | None = Field(default=None, min_length=1, max_length=200)
    singular: str | None = None
    plural: str | None = None
    emoji: str | None = None
    metafields: list[dict[str, Any]] | None = None
    options: dict[str, Any] | None = None


class DeleteObjectTypeInput(ToolInput):
    slug: str = Field(..., min_length=1)


class ValidateTypeSlugInput(ToolInput):
    slug: str


class DuplicateObjectTypeInput(ToolInput):
    source_slug: str = Field(..., min_length=1)
    new_slug: str = Field(..., min_length=1)
    new_title: str = Field(..., min_length=1, max_length=200)


# Media

class ListMediaInput(ToolInput):
    """Arguments for list_media."""

    limit: int = Field(default=100, ge=1, le=1000)
    skip: int = Field(default=0, ge=0)
    folder: str | None = None


class GetMediaInput(ToolInput):
    id: str = Field(..., min_length=1)


class UploadMediaInput(ToolInput):
    """Arguments for upload_media. `file_data` is base64."""

    file_data: str = Field(..., min_length=1)
    filename: str = Field(..., min_length=1)
    folder: str | None = None
    alt_text: str | None = None
    metadata: dict[str, Any] | None = None


class UpdateMediaInput(ToolInput):
    id: str = Field(..., min_length=1)
    alt_text: str | None = None
    metadata: dict[str, Any] | None = None


class DeleteMediaInput(ToolInput):
    """Arguments for delete_media."""

    id: str = Field(..., min_length=1)


class MediaFolderInput(ToolInput):
    folder: str = Field(..., min_length=1)


class OptimizeMediaInput(ToolInput):
    id: str = Field(..., min_length=1)


# Tools published over MCP
TOOL_VALIDATION_MAP: dict[str, type[ToolInput]] = {
    "list_objects": ListObjectsInput,
    "get_object": GetObjectInput,
    "create_object": CreateObjectInput,
    "update_object": UpdateObjectInput,
    "delete_object": DeleteObjectInput,
    "list_object_types": ListObjectTypesInput,
    "upload_media": UploadMediaInput,
    "list_media": ListMediaInput,
    "delete_media": DeleteMediaInput,
    "search_objects": SearchObjectsInput,
}

# Tools plus the operations only reachable from the admin CLI
OPERATION_VALIDATION_MAP: dict[str, type[ToolInput]] = {
    **TOOL_VALIDATION_MAP,
    "get_object_type": GetObjectTypeInput,
    "create_object_type": CreateObjectTypeInput,
    "update_object_type": UpdateObjectTypeInput,
    "delete_object_type": DeleteObjectTypeInput,
    "validate_type_slug": ValidateTypeSlugInput,
    "duplicate_object_type": DuplicateObjectTypeInput,
    "get_media": GetMediaInput,
    "update_media": UpdateMediaInput,
    "get_media_by_folder": MediaFolderInput,
    "optimize_media": OptimizeMediaInput,
}


def validate_tool_input(tool_name: str, raw_input: Any) -> ToolInput:
    """Validate raw arguments against the schema registered for `tool_name`.

    Raises:
        UnknownToolError: no schema is registered under that name
        ToolInputValidationError: the input violates the schema; the message
            lists every violated field
    """
    schema = OPERATION_VALIDATION_MAP.get(tool_name)
    if schema is None:
        raise UnknownToolError(tool_name)

    try:
        return schema.model_validate(raw_input if raw_input is not None else {})
    except PydanticValidationError as e:
        raise ToolInputValidationError.from_pydantic(tool_name, e) from e
