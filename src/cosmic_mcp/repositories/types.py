"""Object type repository over the Cosmic `object_types` resource."""

from typing import Any

from cosmic_mcp.errors import CosmicObjectTypeNotFoundError
from cosmic_mcp.models import CosmicObjectType, ObjectTypeList
from cosmic_mcp.validation import CreateObjectTypeInput, UpdateObjectTypeInput

from .base import BaseRepository

_TYPE_FIELDS = {"title", "singular", "plural", "emoji", "metafields", "options"}


class TypeRepository(BaseRepository):
    """Reads and writes object types."""

    async def find_many(self) -> ObjectTypeList:
        """List every object type in the bucket."""
        self.log_operation("find_many")

        try:
            response = await self.client.object_types.find()
        except Exception as e:
            self.handle_error(e, "find_many", {"identifier": None})

        result = ObjectTypeList.model_validate(response)
        if result.total is None:
            result.total = len(result.object_types)
        self.log_success("find_many", {"count": len(result.object_types)})
        return result

    async def find_one(self, slug: str) -> CosmicObjectType:
        """Fetch one object type.

        Raises:
            CosmicObjectTypeNotFoundError: no type has this slug
        """
        self.log_operation("find_one", {"slug": slug})

        try:
            response = await self.client.object_types.find_one(slug)
        except Exception as e:
            self.handle_error(e, "find_one", {"slug": slug, "identifier": slug})

        object_type = response.get("object_type")
        if not object_type:
            # Some API versions answer with a one-element list
            listed = response.get("object_types") or []
            object_type = listed[0] if listed else None
        if not object_type:
            raise CosmicObjectTypeNotFoundError(slug)

        result = CosmicObjectType.model_validate(object_type)
        self.log_success("find_one", {"slug": result.slug, "title": result.title})
        return result

    async def create(self, data: CreateObjectTypeInput) -> CosmicObjectType:
        """Insert a new object type. Singular and plural must already be set."""
        payload: dict[str, Any] = {
            "slug": data.slug,
            **data.model_dump(include=_TYPE_FIELDS, exclude_none=True),
        }

        self.log_operation("create", payload)

        try:
            response = await self.client.object_types.insert_one(payload)
        except Exception as e:
            self.handle_error(e, "create", {"slug": data.slug, "identifier": data.slug})

        object_type = self.require(response, "object_type", "create")
        result = CosmicObjectType.model_validate(object_type)
        self.log_success("create", {"slug": result.slug, "title": result.title})
        return result

    async def update(self, data: UpdateObjectTypeInput) -> CosmicObjectType:
        payload = data.model_dump(include=_TYPE_FIELDS, exclude_none=True)

        self.log_operation("update", {"slug": data.slug, **payload})

        try:
            response = await self.client.object_types.update_one(data.slug, payload)
        except Exception as e:
            self.handle_error(e, "update", {"slug": data.slug, "identifier": data.slug})

        object_type = self.require(response, "object_type", "update")
        result = CosmicObjectType.model_validate(object_type)
        self.log_success("update", {"slug": result.slug})
        return result

    async def delete(self, slug: str) -> None:
        self.log_operation("delete", {"slug": slug})

        try:
            await self.client.object_types.delete_one(slug)
        except Exception as e:
            self.handle_error(e, "delete", {"slug": slug, "identifier": slug})

        self.log_success("delete", {"slug": slug})

    async def get_object_type_stats(self) -> dict[str, Any]:
        """Type count and the list of type slugs."""
        types = await self.find_many()
        return {
            "total_count": len(types.object_types),
            "types": [t.slug for t in types.object_types],
        }

    async def type_exists(self, slug: str) -> bool:
        """Whether a type with this slug exists. Lists every type."""
        types = await self.find_many()
        return any(t.slug == slug for t in types.object_types)
