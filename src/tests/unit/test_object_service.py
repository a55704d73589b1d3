"""Unit tests for ObjectService business rules."""

import pytest

from cosmic_mcp.cosmic.client import CosmicAPIError
from cosmic_mcp.errors import (
    CosmicConnectionError,
    CosmicObjectNotFoundError,
    RateLimitError,
    ValidationError,
)
from cosmic_mcp.repositories import ObjectRepository, TypeRepository
from cosmic_mcp.services import ObjectService, generate_slug
from cosmic_mcp.services.objects import sanitize_search_query
from cosmic_mcp.utils.rate_limiter import RateLimitConfig, RateLimiter
from cosmic_mcp.validation import (
    CreateObjectInput,
    DeleteObjectInput,
    GetObjectInput,
    ListObjectsInput,
    SearchObjectsInput,
    UpdateObjectInput,
)
from tests.fixtures.cosmic import make_object


@pytest.fixture
def service(fake_client, rate_limiter) -> ObjectService:
    return ObjectService(ObjectRepository(fake_client), TypeRepository(fake_client), rate_limiter)


class TestGenerateSlug:
    """Slug derivation from titles."""

    @pytest.mark.parametrize(
        ("title", "slug"),
        [
            ("Hello, World!!", "hello-world"),
            ("  multiple   spaces ", "multiple-spaces"),
            ("Already-Hyphenated -- Title", "already-hyphenated-title"),
            ("Café au lait", "caf-au-lait"),
            ("2024 Roadmap", "2024-roadmap"),
            ("!!!", ""),
        ],
    )
    def test_generate_slug(self, title, slug):
        """Lowercase, punctuation dropped, whitespace and dashes collapsed."""
        assert generate_slug(title) == slug

    def test_sanitize_search_query(self):
        """Angle brackets are stripped and length capped at 500."""
        assert sanitize_search_query("<b>bold</b>") == "bbold/b"
        assert len(sanitize_search_query("x" * 800)) == 500


class TestListAndGet:
    """Reads."""

    @pytest.mark.asyncio
    async def test_list_checks_type(self, service):
        """Listing by an unknown type is a validation error."""
        with pytest.raises(ValidationError, match="Object type 'missing' does not exist") as e:
            await service.list_objects(ListObjectsInput(type_slug="missing"))

        assert e.value.context["type_slug"] == "missing"

    @pytest.mark.asyncio
    async def test_list(self, service):
        """Listing by a known type returns its objects."""
        result = await service.list_objects(ListObjectsInput(type_slug="test-type"))

        assert [o.id for o in result.objects] == ["test-object-id"]

    @pytest.mark.asyncio
    async def test_get_by_slug(self, service):
        """Objects can be fetched by slug within a type."""
        obj = await service.get_object(
            GetObjectInput(slug="test-object-slug", type_slug="test-type")
        )

        assert obj.id == "test-object-id"

    @pytest.mark.asyncio
    async def test_get_missing(self, service):
        """A missing object is a typed 404."""
        with pytest.raises(CosmicObjectNotFoundError):
            await service.get_object(GetObjectInput(id="nope"))


class TestCreate:
    """create_object rules."""

    @pytest.mark.asyncio
    async def test_derives_slug(self, service, fake_client):
        """Without a slug, one is derived from the title."""
        obj = await service.create_object(
            CreateObjectInput(title="My First Post!", type_slug="test-type")
        )

        assert obj.slug == "my-first-post"
        assert obj.status == "draft"
        assert fake_client.objects_store[-1]["slug"] == "my-first-post"

    @pytest.mark.asyncio
    async def test_explicit_slug_wins(self, service):
        """A given slug is used as-is."""
        obj = await service.create_object(
            CreateObjectInput(title="Whatever", type_slug="test-type", slug="custom")
        )

        assert obj.slug == "custom"

    @pytest.mark.asyncio
    async def test_missing_type_fails_before_insert(self, service, fake_client):
        """An unknown type is rejected and nothing is inserted."""
        with pytest.raises(ValidationError, match="does not exist"):
            await service.create_object(CreateObjectInput(title="Hi", type_slug="nope"))

        assert "objects.insert_one" not in fake_client.call_names()

    @pytest.mark.asyncio
    async def test_duplicate_slug(self, service, fake_client):
        """A taken slug within the type is rejected with both slugs in context."""
        with pytest.raises(ValidationError) as exc_info:
            await service.create_object(
                CreateObjectInput(title="Test Object Slug", type_slug="test-type")
            )

        error = exc_info.value
        assert error.message == (
            "An object with slug 'test-object-slug' already exists in type 'test-type'"
        )
        assert dict(error.context) == {"slug": "test-object-slug", "type_slug": "test-type"}
        assert "objects.insert_one" not in fake_client.call_names()

    @pytest.mark.asyncio
    async def test_same_slug_in_other_type(self, service, fake_client):
        """Slugs only need to be unique within their type."""
        fake_client.types_store.append({"slug": "other", "title": "Other"})

        obj = await service.create_object(
            CreateObjectInput(title="x", type_slug="other", slug="test-object-slug")
        )

        assert obj.slug == "test-object-slug"

    @pytest.mark.asyncio
    async def test_uniqueness_check_propagates_other_errors(self, service, fake_client):
        """Only not-found means available; other failures surface."""
        fake_client.fail("objects.find_one", CosmicAPIError("network error: down"))

        with pytest.raises(CosmicConnectionError):
            await service.create_object(CreateObjectInput(title="Hi", type_slug="test-type"))

        assert "objects.insert_one" not in fake_client.call_names()

    @pytest.mark.asyncio
    async def test_underivable_slug(self, service):
        """A title with nothing slug-worthy needs an explicit slug."""
        with pytest.raises(ValidationError, match="Cannot derive a slug"):
            await service.create_object(CreateObjectInput(title="!!!", type_slug="test-type"))


class TestUpdateAndDelete:
    """Writes to existing objects."""

    @pytest.mark.asyncio
    async def test_update_by_slug(self, service, fake_client):
        """The target is fetched first, then updated by id."""
        obj = await service.update_object(
            UpdateObjectInput(slug="test-object-slug", type_slug="test-type", title="New")
        )

        assert obj.title == "New"
        _, (object_id, _payload) = fake_client.calls[-1]
        assert object_id == "test-object-id"

    @pytest.mark.asyncio
    async def test_update_missing(self, service, fake_client):
        """Updating a missing object fails without writing."""
        with pytest.raises(CosmicObjectNotFoundError):
            await service.update_object(UpdateObjectInput(id="nope", title="New"))

        assert "objects.update_one" not in fake_client.call_names()

    @pytest.mark.asyncio
    async def test_delete(self, service, fake_client):
        """Delete re-checks existence, then removes."""
        await service.delete_object(
            DeleteObjectInput(slug="test-object-slug", type_slug="test-type")
        )

        assert fake_client.objects_store == []

    @pytest.mark.asyncio
    async def test_delete_missing(self, service, fake_client):
        """Deleting a missing object never calls delete."""
        with pytest.raises(CosmicObjectNotFoundError):
            await service.delete_object(DeleteObjectInput(id="nope"))

        assert "objects.delete_one" not in fake_client.call_names()


class TestSearchAndStats:
    """Search and aggregates."""

    @pytest.mark.asyncio
    async def test_search_sanitizes_query(self, service, fake_client):
        """Markup characters never reach the API."""
        await service.search_objects(SearchObjectsInput(query="<test>"))

        _, (query, _params) = fake_client.calls[-1]
        assert query == {"q": "test"}

    @pytest.mark.asyncio
    async def test_search_empty_after_sanitizing(self, service):
        """A query of only markup is rejected."""
        with pytest.raises(ValidationError, match="empty"):
            await service.search_objects(SearchObjectsInput(query="<>"))

    @pytest.mark.asyncio
    async def test_stats(self, service, fake_client):
        """Objects are counted by type and by status."""
        fake_client.objects_store.append(make_object(id="2", status="draft"))
        fake_client.objects_store.append(make_object(id="3", type="pages"))

        stats = await service.get_object_stats()

        assert stats.total_objects == 3
        assert stats.objects_by_type == {"test-type": 2, "pages": 1}
        assert stats.objects_by_status == {"published": 2, "draft": 1}


class TestRateLimiting:
    """Every operation spends from its own budget."""

    @pytest.mark.asyncio
    async def test_limit_is_per_operation(self, fake_client, clock):
        """Exhausting one operation does not block another."""
        limiter = RateLimiter(RateLimitConfig(window_ms=1000, max_requests=1), clock=clock)
        service = ObjectService(
            ObjectRepository(fake_client), TypeRepository(fake_client), limiter
        )

        await service.list_objects(ListObjectsInput())
        with pytest.raises(RateLimitError):
            await service.list_objects(ListObjectsInput())

        assert await service.get_object(GetObjectInput(id="test-object-id"))
