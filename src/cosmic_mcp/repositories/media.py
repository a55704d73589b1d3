"""Media repository over the Cosmic `media` resource."""

import base64
from typing import Any

from cosmic_mcp.errors import CosmicMediaNotFoundError
from cosmic_mcp.models import CosmicMedia, MediaList
from cosmic_mcp.validation import ListMediaInput, UpdateMediaInput, UploadMediaInput

from .base import BaseRepository

# Upper bound for the "fetch everything" calls behind stats
STATS_FETCH_LIMIT = 1000


def _as_media_list(response: dict[str, Any]) -> MediaList:
    media = response.get("media") or []
    if isinstance(media, dict):
        media = [media]
    return MediaList(media=media, total=response.get("total", len(media)))


class MediaRepository(BaseRepository):
    """Reads and writes media files."""

    async def find_many(self, params: ListMediaInput) -> MediaList:
        query = {"folder": params.folder} if params.folder else {}

        self.log_operation("find_many", params.model_dump())

        try:
            response = await (
                self.client.media.find(query).limit(params.limit).skip(params.skip).execute()
            )
        except Exception as e:
            self.handle_error(e, "find_many", {**query, "identifier": None})

        result = _as_media_list(response)
        self.log_success("find_many", {"count": len(result.media), "total": result.total})
        return result

    async def find_one(self, media_id: str) -> CosmicMedia:
        """Fetch one media file.

        Raises:
            CosmicMediaNotFoundError: no media has this id
        """
        self.log_operation("find_one", {"id": media_id})

        try:
            response = await self.client.media.find_one({"id": media_id}).execute()
        except Exception as e:
            self.handle_error(e, "find_one", {"id": media_id, "identifier": media_id})

        if not response.get("media"):
            raise CosmicMediaNotFoundError(media_id)

        media = CosmicMedia.model_validate(response["media"])
        self.log_success("find_one", {"id": media.id, "name": media.name})
        return media

    async def create(self, data: UploadMediaInput, content_type: str) -> CosmicMedia:
        """Upload a file. `data.file_data` is decoded from base64 here."""
        self.log_operation("create", data.model_dump())

        try:
            response = await self.client.media.insert_one(
                media=base64.b64decode(data.file_data, validate=True),
                filename=data.filename,
                content_type=content_type,
                folder=data.folder,
                alt_text=data.alt_text,
                metadata=data.metadata,
            )
        except Exception as e:
            self.handle_error(e, "create", {"filename": data.filename, "identifier": data.filename})

        media = CosmicMedia.model_validate(self.require(response, "media", "create"))
        self.log_success("create", {"id": media.id, "name": media.name, "size": media.size})
        return media

    async def update(self, data: UpdateMediaInput) -> CosmicMedia:
        payload = data.model_dump(include={"alt_text", "metadata"}, exclude_none=True)

        self.log_operation("update", {"id": data.id, **payload})

        try:
            response = await self.client.media.update_one(data.id, payload)
        except Exception as e:
            self.handle_error(e, "update", {"id": data.id, "identifier": data.id})

        media = CosmicMedia.model_validate(self.require(response, "media", "update"))
        self.log_success("update", {"id": media.id})
        return media

    async def delete(self, media_id: str) -> None:
        self.log_operation("delete", {"id": media_id})

        try:
            await self.client.media.delete_one(media_id)
        except Exception as e:
            self.handle_error(e, "delete", {"id": media_id, "identifier": media_id})

        self.log_success("delete", {"id": media_id})

    async def get_media_stats(self) -> MediaList:
        """Fetch the whole library (up to STATS_FETCH_LIMIT) for aggregation."""
        return await self.find_many(ListMediaInput(limit=STATS_FETCH_LIMIT))

    async def get_media_by_folder(self, folder: str) -> MediaList:
        return await self.find_many(ListMediaInput(folder=folder, limit=STATS_FETCH_LIMIT))
