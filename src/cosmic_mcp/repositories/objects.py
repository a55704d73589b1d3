"""Object repository over the Cosmic `objects` resource."""

from typing import Any

from cosmic_mcp.errors import CosmicObjectNotFoundError
from cosmic_mcp.models import CosmicObject, ObjectList
from cosmic_mcp.validation import (
    CreateObjectInput,
    ListObjectsInput,
    ObjectLocator,
    SearchObjectsInput,
    UpdateObjectInput,
)

from .base import BaseRepository

# Fields returned by list and search calls; `content` is left out
LIST_PROPS = "id,title,slug,type,status,created_at,modified_at,metadata"


class ObjectRepository(BaseRepository):
    """Reads and writes content objects."""

    async def find_many(self, params: ListObjectsInput) -> ObjectList:
        """List objects, filtered by type, status and locale."""
        query: dict[str, Any] = {}
        if params.type_slug:
            query["type"] = params.type_slug
        if params.locale:
            query["locale"] = params.locale

        self.log_operation("find_many", params.model_dump())
        context = {**query, "identifier": None}

        try:
            response = await (
                self.client.objects.find(query)
                .props(LIST_PROPS)
                .status(params.status)
                .sort(params.sort)
                .limit(params.limit)
                .skip(params.skip)
                .execute()
            )
        except Exception as e:
            self.handle_error(e, "find_many", context)

        result = ObjectList.model_validate(response)
        self.log_success("find_many", {"count": len(result.objects), "total": result.total})
        return result

    async def find_one(
        self,
        id: str | None = None,  # noqa: A002
        slug: str | None = None,
        type_slug: str | None = None,
        locale: str | None = None,
    ) -> CosmicObject:
        """Fetch one object by id, or by slug within a type, in any status.

        Raises:
            CosmicObjectNotFoundError: nothing matches
        """
        query: dict[str, Any] = {"id": id} if id else {"slug": slug, "type": type_slug}
        if locale:
            query["locale"] = locale

        identifier = id or slug or "unknown"
        self.log_operation("find_one", query)
        context = {**query, "identifier": identifier, "type": type_slug}

        try:
            response = await self.client.objects.find_one(query).status("any").execute()
        except Exception as e:
            self.handle_error(e, "find_one", context)

        if not response.get("object"):
            raise CosmicObjectNotFoundError(identifier, type_slug)

        obj = CosmicObject.model_validate(response["object"])
        self.log_success("find_one", {"id": obj.id, "slug": obj.slug})
        return obj

    async def create(self, data: CreateObjectInput) -> CosmicObject:
        """Insert a new object. The slug must already be resolved."""
        payload = {
            "title": data.title,
            "type": data.type_slug,
            "status": data.status,
            **data.model_dump(
                include={"slug", "content", "metadata", "locale"}, exclude_none=True
            ),
        }

        self.log_operation("create", payload)

        try:
            response = await self.client.objects.insert_one(payload)
        except Exception as e:
            self.handle_error(
                e, "create", {**payload, "identifier": data.slug, "type": data.type_slug}
            )

        obj = CosmicObject.model_validate(self.require(response, "object", "create"))
        self.log_success("create", {"id": obj.id, "slug": obj.slug, "type": obj.type})
        return obj

    async def update(self, data: UpdateObjectInput) -> CosmicObject:
        """Patch an object. Addressing by slug costs one extra lookup."""
        object_id = data.id or (await self.find_one(slug=data.slug, type_slug=data.type_slug)).id
        payload = data.model_dump(
            include={"title", "content", "status", "metadata", "locale"}, exclude_none=True
        )

        self.log_operation("update", {"id": object_id, **payload})

        try:
            response = await self.client.objects.update_one(object_id, payload)
        except Exception as e:
            self.handle_error(e, "update", {"identifier": object_id, "type": data.type_slug})

        obj = CosmicObject.model_validate(self.require(response, "object", "update"))
        self.log_success("update", {"id": obj.id, "slug": obj.slug})
        return obj

    async def delete(self, locator: ObjectLocator) -> None:
        """Delete an object by id, or by slug within a type."""
        object_id = (
            locator.id
            or (await self.find_one(slug=locator.slug, type_slug=locator.type_slug)).id
        )

        self.log_operation("delete", {"id": object_id})

        try:
            await self.client.objects.delete_one(object_id)
        except Exception as e:
            self.handle_error(e, "delete", {"identifier": object_id, "type": locator.type_slug})

        self.log_success("delete", {"id": object_id})

    async def search(self, params: SearchObjectsInput) -> ObjectList:
        """Full-text search over objects in any status."""
        query: dict[str, Any] = {"q": params.query}
        if params.type_slug:
            query["type"] = params.type_slug
        if params.locale:
            query["locale"] = params.locale

        self.log_operation("search", query)

        try:
            response = await (
                self.client.objects.find(query)
                .props(LIST_PROPS)
                .status("any")
                .limit(params.limit)
                .execute()
            )
        except Exception as e:
            self.handle_error(
                e, "search", {**query, "identifier": params.query, "type": params.type_slug}
            )

        result = ObjectList.model_validate(response)
        self.log_success("search", {"count": len(result.objects), "total": result.total})
        return result
