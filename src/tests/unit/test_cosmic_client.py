"""Unit tests for the Cosmic HTTP client, against httpx.MockTransport."""

import json

import httpx
import pytest

from cosmic_mcp.config import load_settings
from cosmic_mcp.cosmic.client import CosmicAPIError, CosmicClient

API = "https://api.test/v3"
UPLOAD = "https://upload.test/v3"


def make_client(handler) -> tuple[CosmicClient, list[httpx.Request]]:
    """Client whose requests are answered by `handler` and recorded."""
    requests: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    client = CosmicClient(
        bucket_slug="my-bucket",
        read_key="rk",
        write_key="wk",
        api_url=API,
        upload_url=UPLOAD,
        transport=httpx.MockTransport(record),
    )
    return client, requests


class TestFindQuery:
    """Read calls built with the query builder."""

    @pytest.mark.asyncio
    async def test_find_sends_builder_params(self):
        """Every builder call becomes a query-string parameter."""
        client, requests = make_client(
            lambda r: httpx.Response(200, json={"objects": [{"id": "1"}], "total": 1})
        )

        result = await (
            client.objects.find({"type": "posts"})
            .props("id,title")
            .sort("-created_at")
            .limit(10)
            .skip(20)
            .status("any")
            .depth(1)
            .execute()
        )

        assert result == {"objects": [{"id": "1"}], "total": 1}
        request = requests[0]
        assert request.method == "GET"
        assert request.url.path == "/v3/buckets/my-bucket/objects"
        params = request.url.params
        assert json.loads(params["query"]) == {"type": "posts"}
        assert params["props"] == "id,title"
        assert params["sort"] == "-created_at"
        assert params["limit"] == "10"
        assert params["skip"] == "20"
        assert params["status"] == "any"
        assert params["depth"] == "1"
        assert params["read_key"] == "rk"
        assert "authorization" not in request.headers
        await client.aclose()

    def test_props_accepts_list(self):
        """A list of props is joined with commas."""
        query = CosmicClient("b", "rk").objects.find().props(["id", "slug"])

        assert query.params == {"props": "id,slug"}

    @pytest.mark.asyncio
    async def test_find_404_means_empty(self):
        """The API's 404 for an empty result becomes an empty list."""
        client, _ = make_client(
            lambda r: httpx.Response(404, json={"message": "No objects found"})
        )

        assert await client.objects.find({"type": "posts"}).execute() == {
            "objects": [],
            "total": 0,
        }
        assert await client.media.find().execute() == {"media": [], "total": 0}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_find_one_takes_first(self):
        """find_one asks for one item and unwraps it."""
        client, requests = make_client(
            lambda r: httpx.Response(200, json={"objects": [{"id": "1"}, {"id": "2"}]})
        )

        result = await client.objects.find_one({"slug": "hello"}).status("any").execute()

        assert result == {"object": {"id": "1"}}
        assert requests[0].url.params["limit"] == "1"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_find_one_missing(self):
        """No match gives an empty object, not an error."""
        client, _ = make_client(lambda r: httpx.Response(404, json={"message": "nope"}))

        assert await client.objects.find_one({"id": "x"}).execute() == {"object": None}
        assert await client.media.find_one({"id": "x"}).execute() == {"media": None}
        await client.aclose()


class TestWrites:
    """Mutating calls."""

    @pytest.mark.asyncio
    async def test_insert_uses_write_key(self):
        """Writes send JSON with the write key as a bearer token."""
        client, requests = make_client(
            lambda r: httpx.Response(201, json={"object": {"id": "new"}})
        )

        result = await client.objects.insert_one({"title": "Hi", "type": "posts"})

        assert result == {"object": {"id": "new"}}
        request = requests[0]
        assert request.method == "POST"
        assert request.headers["authorization"] == "Bearer wk"
        assert json.loads(request.content) == {"title": "Hi", "type": "posts"}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_update_and_delete_paths(self):
        """Objects are addressed by id in the path."""
        client, requests = make_client(lambda r: httpx.Response(200, json={"object": {}}))

        await client.objects.update_one("abc", {"title": "New"})
        await client.objects.delete_one("abc", trigger_webhook=True)

        assert requests[0].method == "PATCH"
        assert requests[0].url.path == "/v3/buckets/my-bucket/objects/abc"
        assert requests[1].method == "DELETE"
        assert requests[1].url.params["trigger_webhook"] == "true"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_empty_response_body(self):
        """A 204 without a body returns an empty dict."""
        client, _ = make_client(lambda r: httpx.Response(204))

        assert await client.object_types.delete_one("posts") == {}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_object_type_paths(self):
        """Object types are addressed by slug."""
        client, requests = make_client(
            lambda r: httpx.Response(200, json={"object_type": {"slug": "posts"}})
        )

        assert await client.object_types.find_one("posts") == {
            "object_type": {"slug": "posts"}
        }
        await client.object_types.update_one("posts", {"title": "Posts"})

        assert requests[0].url.path == "/v3/buckets/my-bucket/object-types/posts"
        assert requests[0].url.params["read_key"] == "rk"
        assert requests[1].method == "PATCH"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_media_upload_is_multipart(self):
        """Uploads go to the upload host as multipart form data."""
        client, requests = make_client(
            lambda r: httpx.Response(200, json={"media": {"id": "m1"}})
        )

        result = await client.media.insert_one(
            media=b"\x89PNG",
            filename="logo.png",
            content_type="image/png",
            folder="brand",
            alt_text="logo",
            metadata={"k": "v"},
        )

        assert result == {"media": {"id": "m1"}}
        request = requests[0]
        assert str(request.url) == f"{UPLOAD}/buckets/my-bucket/media"
        assert request.headers["content-type"].startswith("multipart/form-data")
        body = request.read()
        assert b'filename="logo.png"' in body
        assert b"\x89PNG" in body
        assert b"brand" in body
        await client.aclose()


class TestErrors:
    """Failures become CosmicAPIError."""

    @pytest.mark.asyncio
    async def test_http_error_carries_status_and_message(self):
        """The message starts with the status code, then the API message."""
        client, _ = make_client(
            lambda r: httpx.Response(401, json={"message": "Unauthorized"})
        )

        with pytest.raises(CosmicAPIError) as exc_info:
            await client.objects.insert_one({"title": "x"})

        assert str(exc_info.value) == "401 Unauthorized"
        assert exc_info.value.status_code == 401
        await client.aclose()

    @pytest.mark.asyncio
    async def test_non_json_error_body(self):
        """Plain-text error bodies are used as the message."""
        client, _ = make_client(lambda r: httpx.Response(500, text="upstream exploded"))

        with pytest.raises(CosmicAPIError, match="500 upstream exploded"):
            await client.objects.find().execute()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_write_404_is_an_error(self):
        """Only reads treat 404 as empty."""
        client, _ = make_client(lambda r: httpx.Response(404, json={"message": "Not found"}))

        with pytest.raises(CosmicAPIError, match="404"):
            await client.media.delete_one("missing")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        """Connection problems become a network error."""

        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client, _ = make_client(refuse)

        with pytest.raises(CosmicAPIError, match="network error") as exc_info:
            await client.objects.find().execute()

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        await client.aclose()


class TestLifecycle:
    """Construction and closing."""

    @pytest.mark.asyncio
    async def test_from_settings(self, cosmic_env):
        """Settings supply the bucket, keys and endpoints."""
        client = CosmicClient.from_settings(load_settings(_env_file=None))

        assert client.bucket_slug == "test-bucket"
        assert client.api_url == "https://api.cosmicjs.com/v3"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_async_context_manager(self):
        """Leaving the context closes the HTTP client."""
        async with CosmicClient("b", "rk") as client:
            pass

        assert client._http.is_closed
