"""Errors raised while validating tool input."""

from pydantic import ValidationError as PydanticValidationError

from .base import BaseError


def format_validation_error(error: PydanticValidationError) -> str:
    """Render every issue as `path: message`, joined into one line."""
    issues = []
    for issue in error.errors():
        path = ".".join(str(part) for part in issue["loc"])
        prefix = f"{path}: " if path else ""
        issues.append(f"{prefix}{issue['msg']}")
    return f"Validation failed: {', '.join(issues)}"


class ToolInputValidationError(BaseError):
    """Raised when tool arguments don't match the tool's schema."""

    name = "ToolInputValidationError"
    status_code = 400

    def __init__(self, tool_name: str, validation_error: str, issue_count: int = 0):
        super().__init__(
            f"Tool '{tool_name}' input validation failed: {validation_error}",
            {
                "tool_name": tool_name,
                "validation_error": validation_error,
                "issue_count": issue_count,
            },
        )

    @classmethod
    def from_pydantic(
        cls, tool_name: str, error: PydanticValidationError
    ) -> "ToolInputValidationError":
        """Build from a pydantic error, keeping every issue."""
        return cls(tool_name, format_validation_error(error), error.error_count())


class UnknownToolError(BaseError):
    """Raised when a tool name has no registered schema or handler."""

    name = "UnknownToolError"
    status_code = 400

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: {tool_name}", {"tool_name": tool_name})
