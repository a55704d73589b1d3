"""Base error classes shared by every layer."""

import traceback
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, ClassVar


class BaseError(Exception):
    """Base exception for all typed Cosmic MCP errors.

    Contract:
    - `name`, `status_code` and `is_operational` are fixed per class
    - `context` is a read-only mapping of extra detail
    - `cause` holds the wrapped upstream error, if any
    """

    name: ClassVar[str] = "BaseError"
    status_code: ClassVar[int] = 500
    is_operational: ClassVar[bool] = True

    def __init__(
        self,
        message: str,
        context: Mapping[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.context: Mapping[str, Any] = MappingProxyType(dict(context or {}))
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def stack(self) -> str | None:
        """Formatted traceback, available once the error has been raised."""
        if self.__traceback__ is None:
            return None
        return "".join(traceback.format_exception(self))

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging and error responses."""
        return {
            "name": self.name,
            "message": self.message,
            "status_code": self.status_code,
            "context": dict(self.context),
            "stack": self.stack,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ApplicationError(BaseError):
    """Unexpected but handled application failure."""

    name = "ApplicationError"
    status_code = 500


class ValidationError(BaseError):
    """Raised when a business rule rejects the input."""

    name = "ValidationError"
    status_code = 400


class NotFoundError(BaseError):
    """Raised when a requested resource does not exist."""

    name = "NotFoundError"
    status_code = 404


class ConfigurationError(BaseError):
    """Raised when the deployment is misconfigured. Needs a human, not a retry."""

    name = "ConfigurationError"
    status_code = 500
    is_operational = False


class RateLimitError(BaseError):
    """Raised when a caller exceeds its request budget."""

    name = "RateLimitError"
    status_code = 429
