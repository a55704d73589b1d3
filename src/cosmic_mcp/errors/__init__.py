"""Typed error taxonomy for Cosmic MCP."""

from .base import (
    ApplicationError,
    BaseError,
    ConfigurationError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from .cosmic import (
    CosmicAuthenticationError,
    CosmicConnectionError,
    CosmicError,
    CosmicMediaNotFoundError,
    CosmicObjectNotFoundError,
    CosmicObjectTypeNotFoundError,
    CosmicQuotaExceededError,
    CosmicValidationError,
    create_cosmic_error,
)
from .validation import ToolInputValidationError, UnknownToolError, format_validation_error

__all__ = [
    "ApplicationError",
    "BaseError",
    "ConfigurationError",
    "CosmicAuthenticationError",
    "CosmicConnectionError",
    "CosmicError",
    "CosmicMediaNotFoundError",
    "CosmicObjectNotFoundError",
    "CosmicObjectTypeNotFoundError",
    "CosmicQuotaExceededError",
    "CosmicValidationError",
    "NotFoundError",
    "RateLimitError",
    "ToolInputValidationError",
    "UnknownToolError",
    "ValidationError",
    "create_cosmic_error",
    "format_validation_error",
]
