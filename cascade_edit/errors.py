"""Standardized error codes for cascade_edit.

Error code format: ED-[CATEGORY]-[CODE]

Categories:
- FILE: File access errors (missing, unreadable, protected)
- EDIT: Edit application errors (no match, corrupted proposal, bad input)

The fuzzy resolver itself never raises; these codes belong to the file layer
that reads content, runs the cascade and writes the result back.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class ErrorDefinition:
    """Definition of a standardized error code."""

    code: str
    message: str
    retryable: bool = False


class EditError(Exception):
    """Standardized edit error with code and details."""

    def __init__(
        self,
        code: str,
        message: str,
        retryable: bool = False,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.retryable = retryable
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for tool results."""
        return {
            "error": {
                "code": self.code,
                "message": str(self),
                "retryable": self.retryable,
                "details": self.details,
            }
        }


# =============================================================================
# Edit Error Definitions
# =============================================================================

EDIT_ERRORS: dict[str, ErrorDefinition] = {
    # File errors
    "ED-FILE-001": ErrorDefinition("ED-FILE-001", "File not found"),
    "ED-FILE-002": ErrorDefinition("ED-FILE-002", "Not a file"),
    "ED-FILE-003": ErrorDefinition("ED-FILE-003", "Failed to read file", retryable=True),
    "ED-FILE-004": ErrorDefinition("ED-FILE-004", "Failed to write file", retryable=True),
    "ED-FILE-005": ErrorDefinition("ED-FILE-005", "Path is protected"),

    # Edit errors
    "ED-EDIT-001": ErrorDefinition("ED-EDIT-001", "Search block not found", retryable=True),
    "ED-EDIT-002": ErrorDefinition("ED-EDIT-002", "Corrupted content rejected", retryable=True),
    "ED-EDIT-003": ErrorDefinition("ED-EDIT-003", "Invalid edit block"),
    "ED-EDIT-004": ErrorDefinition("ED-EDIT-004", "No edits provided"),
}


class ErrorRegistry:
    """Registry for creating and managing standardized errors."""

    def __init__(self) -> None:
        self.errors = dict(EDIT_ERRORS)

    def create_error(
        self,
        code: str,
        details: dict[str, Any] | None = None,
        message: str | None = None,
    ) -> EditError:
        """Create an EditError from a code.

        ``message`` overrides the registered message, e.g. to name the file.
        """
        definition = self.errors.get(code)

        if definition is None:
            return EditError(
                code=code,
                message=message or "Unknown error",
                retryable=False,
                details=details,
            )

        return EditError(
            code=definition.code,
            message=message or definition.message,
            retryable=definition.retryable,
            details=details,
        )

    def get_definition(self, code: str) -> ErrorDefinition | None:
        """Get error definition by code."""
        return self.errors.get(code)

    def is_retryable(self, code: str) -> bool:
        """Check if an error is retryable."""
        definition = self.get_definition(code)
        return definition.retryable if definition else False


# Singleton instance
_registry: ErrorRegistry | None = None


def get_error_registry() -> ErrorRegistry:
    """Get the singleton error registry instance."""
    global _registry
    if _registry is None:
        _registry = ErrorRegistry()
    return _registry
