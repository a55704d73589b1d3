"""Shared plumbing for Cosmic repositories."""

from typing import Any, NoReturn

import structlog

from cosmic_mcp.cosmic.client import CosmicClient
from cosmic_mcp.errors import CosmicError, create_cosmic_error

# Longer string content is summarized in logs
MAX_LOGGED_CONTENT = 100


def sanitize_for_logging(data: Any) -> Any:
    """Return a copy of `data` with bulky fields summarized.

    `content` over MAX_LOGGED_CONTENT chars becomes "[CONTENT:N chars]" and any
    `file_data` string becomes "[FILE_DATA:N chars]". Other values pass through.
    """
    if not isinstance(data, dict):
        return data

    sanitized = dict(data)
    content = sanitized.get("content")
    if isinstance(content, str) and len(content) > MAX_LOGGED_CONTENT:
        sanitized["content"] = f"[CONTENT:{len(content)} chars]"
    file_data = sanitized.get("file_data")
    if isinstance(file_data, str):
        sanitized["file_data"] = f"[FILE_DATA:{len(file_data)} chars]"
    return sanitized


class BaseRepository:
    """Wraps a CosmicClient with logging and error normalization."""

    def __init__(self, client: CosmicClient):
        self.client = client
        self.logger = structlog.get_logger().bind(repository=type(self).__name__)

    def log_operation(self, operation: str, data: Any = None) -> None:
        self.logger.debug(
            "cosmic_operation", operation=operation, data=sanitize_for_logging(data)
        )

    def log_success(self, operation: str, result: Any = None) -> None:
        self.logger.info(
            "cosmic_operation_succeeded",
            operation=operation,
            result=sanitize_for_logging(result),
        )

    def require(self, response: Any, key: str, operation: str) -> Any:
        """Return `response[key]`, or raise CosmicError when the API left it out."""
        value = response.get(key) if isinstance(response, dict) else None
        if not value:
            raise CosmicError(
                f"Cosmic API returned no '{key}' for {operation}",
                {"operation": operation, "key": key},
            )
        return value

    def handle_error(
        self, error: Exception, operation: str, context: dict[str, Any] | None = None
    ) -> NoReturn:
        """Log a failure and re-raise it as a typed error.

        Typed errors keep their identity; anything else is classified by
        create_cosmic_error.
        """
        self.logger.error(
            "cosmic_operation_failed",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
            context=context,
        )
        typed = create_cosmic_error(error, context)
        if typed is error:
            raise typed
        raise typed from error
