"""Errors raised while talking to the Cosmic API, and the normalizer that maps
arbitrary upstream failures onto them.

The normalizer is a substring heuristic over the error message, not a parser
of the API's error payloads. A message such as "validation of 404 page" will
classify as not-found because that check runs first.
"""

from collections.abc import Mapping
from typing import Any

from .base import BaseError


class CosmicError(BaseError):
    """General Cosmic API error that fits no other category."""

    name = "CosmicError"
    status_code = 500


class CosmicObjectNotFoundError(BaseError):
    """Raised when an object cannot be found."""

    name = "CosmicObjectNotFoundError"
    status_code = 404

    def __init__(self, identifier: str, type: str | None = None):  # noqa: A002
        if type:
            message = f"Object with identifier '{identifier}' of type '{type}' not found"
        else:
            message = f"Object with identifier '{identifier}' not found"
        super().__init__(message, {"identifier": identifier, "type": type})


class CosmicMediaNotFoundError(BaseError):
    """Raised when a media file cannot be found."""

    name = "CosmicMediaNotFoundError"
    status_code = 404

    def __init__(self, media_id: str):
        super().__init__(f"Media with ID '{media_id}' not found", {"media_id": media_id})


class CosmicObjectTypeNotFoundError(BaseError):
    """Raised when an object type cannot be found."""

    name = "CosmicObjectTypeNotFoundError"
    status_code = 404

    def __init__(self, slug: str):
        super().__init__(f"Object type with slug '{slug}' not found", {"slug": slug})


class CosmicAuthenticationError(BaseError):
    """Raised when the bucket keys are rejected."""

    name = "CosmicAuthenticationError"
    status_code = 401

    def __init__(self, message: str = "Invalid Cosmic credentials"):
        super().__init__(message)


class CosmicQuotaExceededError(BaseError):
    """Raised when the account's API quota is used up."""

    name = "CosmicQuotaExceededError"
    status_code = 429

    def __init__(self, message: str = "Cosmic API quota exceeded"):
        super().__init__(message)


class CosmicValidationError(BaseError):
    """Raised when the API rejects a payload."""

    name = "CosmicValidationError"
    status_code = 400

    def __init__(self, message: str, validation_errors: list[str] | None = None):
        super().__init__(message, {"validation_errors": validation_errors})


class CosmicConnectionError(BaseError):
    """Raised when the API cannot be reached."""

    name = "CosmicConnectionError"
    status_code = 503

    def __init__(self, message: str = "Failed to connect to Cosmic API"):
        super().__init__(message)


def create_cosmic_error(
    error: object, context: Mapping[str, Any] | None = None
) -> BaseError:
    """Map an arbitrary error onto the typed taxonomy.

    Typed errors pass through unchanged. Anything else is classified by
    the lower-cased message in priority order: not found, unauthorized,
    quota, validation, connection. Unmatched errors become a CosmicError
    that keeps the message, the context and the original as its cause.
    """
    if isinstance(error, BaseError):
        return error

    context = context or {}
    message = str(error)
    lowered = message.lower()

    if "not found" in lowered or "404" in lowered:
        return CosmicObjectNotFoundError(
            context.get("identifier") or "unknown",
            context.get("type"),
        )

    if "unauthorized" in lowered or "401" in lowered:
        return CosmicAuthenticationError(message)

    if "quota" in lowered or "429" in lowered:
        return CosmicQuotaExceededError(message)

    if "validation" in lowered or "400" in lowered:
        return CosmicValidationError(message)

    if "network" in lowered or "connection" in lowered:
        return CosmicConnectionError(message)

    cause = error if isinstance(error, BaseException) else None
    return CosmicError(message, context, cause=cause)
