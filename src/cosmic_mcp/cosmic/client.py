"""Async client for the Cosmic REST API (v3).

Mirrors the resource layout of the official SDK: `client.objects`,
`client.object_types` and `client.media`, each with find / find_one /
insert_one / update_one / delete_one. Listing calls return a FindQuery
builder that is sent with `await query.execute()`.

Requests have no timeout unless one is configured, and nothing is retried.
"""

import json
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

logger = structlog.get_logger()

JSONDict = dict[str, Any]


class CosmicAPIError(Exception):
    """Raised for non-2xx responses and transport failures.

    The message starts with the HTTP status when there is one, so the error
    normalizer can classify it.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FindQuery:
    """Chainable list/lookup query, sent by `execute()`."""

    def __init__(
        self,
        fetch: Callable[[JSONDict], Awaitable[JSONDict]],
        query: JSONDict | None = None,
    ):
        self._fetch = fetch
        self._params: JSONDict = {}
        if query:
            self._params["query"] = json.dumps(query, separators=(",", ":"))

    def props(self, props: str | list[str]) -> "FindQuery":
        self._params["props"] = props if isinstance(props, str) else ",".join(props)
        return self

    def sort(self, sort: str) -> "FindQuery":
        self._params["sort"] = sort
        return self

    def skip(self, skip: int) -> "FindQuery":
        self._params["skip"] = skip
        return self

    def limit(self, limit: int) -> "FindQuery":
        self._params["limit"] = limit
        return self

    def status(self, status: str) -> "FindQuery":
        self._params["status"] = status
        return self

    def depth(self, depth: int) -> "FindQuery":
        self._params["depth"] = depth
        return self

    @property
    def params(self) -> JSONDict:
        """Query-string parameters collected so far."""
        return dict(self._params)

    async def execute(self) -> JSONDict:
        """Send the query and return the decoded response."""
        return await self._fetch(self.params)


class _Resource:
    def __init__(self, client: "CosmicClient"):
        self._client = client


class ObjectsResource(_Resource):
    """`/objects` endpoints."""

    def find(self, query: JSONDict | None = None) -> FindQuery:
        async def fetch(params: JSONDict) -> JSONDict:
            result = await self._client.read("objects", params)
            return result or {"objects": [], "total": 0}

        return FindQuery(fetch, query)

    def find_one(self, query: JSONDict) -> FindQuery:
        async def fetch(params: JSONDict) -> JSONDict:
            result = await self._client.read("objects", {**params, "limit": 1})
            objects = (result or {}).get("objects") or []
            return {"object": objects[0] if objects else None}

        return FindQuery(fetch, query)

    async def insert_one(self, data: JSONDict) -> JSONDict:
        return await self._client.write("POST", "objects", json=data)

    async def update_one(self, object_id: str, data: JSONDict) -> JSONDict:
        return await self._client.write("PATCH", f"objects/{object_id}", json=data)

    async def delete_one(self, object_id: str, trigger_webhook: bool = False) -> JSONDict:
        params = {"trigger_webhook": "true"} if trigger_webhook else None
        return await self._client.write("DELETE", f"objects/{object_id}", params=params)


class ObjectTypesResource(_Resource):
    """`/object-types` endpoints."""

    async def find(self) -> JSONDict:
        result = await self._client.read("object-types", {})
        return result or {"object_types": []}

    async def find_one(self, slug: str) -> JSONDict:
        result = await self._client.read(f"object-types/{slug}", {})
        return result or {"object_type": None}

    async def insert_one(self, data: JSONDict) -> JSONDict:
        return await self._client.write("POST", "object-types", json=data)

    async def update_one(self, slug: str, data: JSONDict) -> JSONDict:
        return await self._client.write("PATCH", f"object-types/{slug}", json=data)

    async def delete_one(self, slug: str) -> JSONDict:
        return await self._client.write("DELETE", f"object-types/{slug}")


class MediaResource(_Resource):
    """`/media` endpoints. Uploads go to the upload host."""

    def find(self, query: JSONDict | None = None) -> FindQuery:
        async def fetch(params: JSONDict) -> JSONDict:
            result = await self._client.read("media", params)
            return result or {"media": [], "total": 0}

        return FindQuery(fetch, query)

    def find_one(self, query: JSONDict) -> FindQuery:
        async def fetch(params: JSONDict) -> JSONDict:
            result = await self._client.read("media", {**params, "limit": 1})
            media = (result or {}).get("media") or []
            if isinstance(media, dict):
                return {"media": media}
            return {"media": media[0] if media else None}

        return FindQuery(fetch, query)

    async def insert_one(
        self,
        media: bytes,
        filename: str,
        content_type: str = "application/octet-stream",
        folder: str | None = None,
        alt_text: str | None = None,
        metadata: JSONDict | None = None,
    ) -> JSONDict:
        form: JSONDict = {}
        if folder:
            form["folder"] = folder
        if alt_text:
            form["alt_text"] = alt_text
        if metadata:
            form["metadata"] = json.dumps(metadata)

        return await self._client.write(
            "POST",
            "media",
            data=form,
            files={"media": (filename, media, content_type)},
            base_url=self._client.upload_url,
        )

    async def update_one(self, media_id: str, data: JSONDict) -> JSONDict:
        return await self._client.write("PATCH", f"media/{media_id}", json=data)

    async def delete_one(self, media_id: str, trigger_webhook: bool = False) -> JSONDict:
        params = {"trigger_webhook": "true"} if trigger_webhook else None
        return await self._client.write("DELETE", f"media/{media_id}", params=params)


class CosmicClient:
    """Bucket-scoped client for the Cosmic API."""

    def __init__(
        self,
        bucket_slug: str,
        read_key: str,
        write_key: str | None = None,
        api_url: str = "https://api.cosmicjs.com/v3",
        upload_url: str = "https://workers.cosmicjs.com/v3",
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.bucket_slug = bucket_slug
        self.api_url = api_url.rstrip("/")
        self.upload_url = upload_url.rstrip("/")
        self._read_key = read_key
        self._write_key = write_key
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

        self.objects = ObjectsResource(self)
        self.object_types = ObjectTypesResource(self)
        self.media = MediaResource(self)

    @classmethod
    def from_settings(cls, settings) -> "CosmicClient":
        """Build a client from application settings."""
        return cls(
            bucket_slug=settings.cosmic_bucket_slug,
            read_key=settings.cosmic_read_key,
            write_key=settings.cosmic_write_key,
            api_url=settings.cosmic_api_url,
            upload_url=settings.cosmic_upload_url,
            timeout=settings.cosmic_request_timeout,
        )

    def _url(self, path: str, base_url: str | None = None) -> str:
        return f"{base_url or self.api_url}/buckets/{self.bucket_slug}/{path}"

    async def read(self, path: str, params: JSONDict) -> JSONDict | None:
        """GET with the read key. A 404 means "nothing matched" and returns None."""
        try:
            return await self._send(
                "GET", self._url(path), params={**params, "read_key": self._read_key}
            )
        except CosmicAPIError as e:
            if e.status_code == 404:
                return None
            raise

    async def write(
        self,
        method: str,
        path: str,
        *,
        params: JSONDict | None = None,
        json: JSONDict | None = None,  # noqa: A002
        data: JSONDict | None = None,
        files: JSONDict | None = None,
        base_url: str | None = None,
    ) -> JSONDict:
        """Mutating request authorized with the write key."""
        headers = {"Authorization": f"Bearer {self._write_key}"} if self._write_key else {}
        result = await self._send(
            method,
            self._url(path, base_url),
            params=params,
            json=json,
            data=data,
            files=files,
            headers=headers,
        )
        return result or {}

    async def _send(self, method: str, url: str, **kwargs) -> JSONDict | None:
        request_id = str(uuid.uuid4())
        logger.debug("cosmic_api_request_start", request_id=request_id, method=method, url=url)

        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.error(
                "cosmic_api_network_error",
                request_id=request_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise CosmicAPIError(f"network error: {e}") from e

        logger.debug(
            "cosmic_api_response_received",
            request_id=request_id,
            status_code=response.status_code,
            response_size=len(response.content),
        )

        if response.is_error:
            raise CosmicAPIError(
                f"{response.status_code} {self._error_message(response)}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text[:500] or response.reason_phrase
        if isinstance(payload, dict):
            return str(payload.get("message") or payload.get("error") or response.reason_phrase)
        return response.reason_phrase

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()

    async def __aenter__(self) -> "CosmicClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
