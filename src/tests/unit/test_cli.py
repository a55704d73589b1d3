"""Tests for the admin CLI commands."""

import pytest
import yaml
from click.testing import CliRunner

from cosmic_mcp.cli import main as cli_main
from cosmic_mcp.cli.main import cli
from cosmic_mcp.config import load_settings
from cosmic_mcp.dispatcher import ToolDispatcher
from cosmic_mcp.errors import ConfigurationError


@pytest.fixture
def run(cosmic_env, dispatcher, monkeypatch):
    """Invoke the CLI against the in-memory client."""
    settings = load_settings(_env_file=None)
    monkeypatch.setattr(cli_main, "get_settings", lambda: settings)
    monkeypatch.setattr(cli_main, "configure_logging", lambda *args: None)
    monkeypatch.setattr(ToolDispatcher, "from_settings", staticmethod(lambda s: dispatcher))
    runner = CliRunner()

    def invoke(*args, **kwargs):
        return runner.invoke(cli, list(args), **kwargs)

    return invoke


class TestTypes:
    """`types` commands."""

    def test_list(self, run, fake_client):
        """Types are printed as YAML and the client is closed afterwards."""
        result = run("types", "list")

        assert result.exit_code == 0
        data = yaml.safe_load(result.output)
        assert [t["slug"] for t in data["object_types"]] == ["test-type"]
        assert fake_client.closed is True

    def test_create(self, run, fake_client):
        result = run("types", "create", "Blog Post", "blog-posts", "--emoji", "✍️")

        assert result.exit_code == 0
        data = yaml.safe_load(result.output)
        assert data["slug"] == "blog-posts"
        assert data["plural"] == "blog posts"

    def test_delete_with_objects_fails(self, run, fake_client):
        """Business errors are printed and exit with status 1."""
        result = run("types", "delete", "test-type", "--yes")

        assert result.exit_code == 1
        assert "Error: Cannot delete object type 'test-type'" in result.output
        assert "object_types.delete_one" not in fake_client.call_names()

    def test_delete_needs_confirmation(self, run, fake_client):
        """Declining the prompt deletes nothing."""
        result = run("types", "delete", "test-type", input="n\n")

        assert result.exit_code == 1
        assert fake_client.calls == []

    def test_validate_slug(self, run):
        result = run("types", "validate-slug", "My_Type")

        assert yaml.safe_load(result.output) == {
            "is_valid": False,
            "is_available": False,
            "suggestions": [],
        }

    def test_duplicate(self, run, fake_client):
        result = run("types", "duplicate", "test-type", "pages", "Page")

        assert result.exit_code == 0
        assert fake_client.types_store[-1]["slug"] == "pages"

    def test_stats(self, run):
        result = run("types", "stats")

        data = yaml.safe_load(result.output)
        assert data["total_types"] == 1
        assert data["types"][0]["object_count"] == 1


class TestObjectsAndMedia:
    """`objects` and `media` commands."""

    def test_objects_stats(self, run):
        data = yaml.safe_load(run("objects", "stats").output)

        assert data == {
            "total_objects": 1,
            "objects_by_type": {"test-type": 1},
            "objects_by_status": {"published": 1},
        }

    def test_media_stats(self, run):
        data = yaml.safe_load(run("media", "stats").output)

        assert data["total_count"] == 1
        assert data["media_by_folder"] == {"images": 1}

    def test_media_folder(self, run):
        data = yaml.safe_load(run("media", "folder", "images").output)

        assert [m["id"] for m in data["media"]] == ["test-media-id"]

    def test_media_optimize(self, run):
        data = yaml.safe_load(run("media", "optimize", "test-media-id").output)

        assert data["optimized_size"] == 819

    def test_media_optimize_missing(self, run):
        result = run("media", "optimize", "nope")

        assert result.exit_code == 1
        assert "Error: Media with ID 'nope' not found" in result.output


class TestConfiguration:
    """Startup failures."""

    def test_missing_credentials(self, monkeypatch):
        """A configuration error is reported without a traceback."""

        def missing():
            raise ConfigurationError("Missing required environment variables: COSMIC_READ_KEY")

        monkeypatch.setattr(cli_main, "get_settings", missing)

        result = CliRunner().invoke(cli, ["types", "list"])

        assert result.exit_code == 1
        assert "Error: Missing required environment variables" in result.output
