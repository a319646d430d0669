"""Directory provider error hierarchy.

All provider errors inherit from DirectoryError. Errors raised out of a
provider operation carry the operation name and the acting username so the
caller can log them without re-deriving context. The exception type itself
is never changed on the way out.
"""

from __future__ import annotations


class DirectoryError(Exception):
    code: str = "DIRECTORY_ERROR"

    def __init__(self, message: str = "", *, operation: str | None = None, username: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.username = username

    def with_context(self, operation: str, username: str) -> "DirectoryError":
        """Attach operation/username unless an inner layer already did."""
        if self.operation is None:
            self.operation = operation
        if self.username is None:
            self.username = username
        return self

    def __str__(self) -> str:
        if self.operation and self.username is not None:
            return f"{self.operation} for user {self.username!r} failed: {self.message}"
        if self.operation:
            return f"{self.operation} failed: {self.message}"
        return self.message


class DirectoryConnectionError(DirectoryError):
    code = "CONNECTION_ERROR"


class BindError(DirectoryError):
    code = "BIND_ERROR"


class InvalidCredentialsError(BindError):
    """The target user could not bind with the supplied password."""

    code = "INVALID_CREDENTIALS"


class UserNotFoundError(DirectoryError):
    code = "USER_NOT_FOUND"


class AmbiguousUserError(DirectoryError):
    code = "AMBIGUOUS_USER"


class AttributeCardinalityError(DirectoryError):
    code = "ATTRIBUTE_CARDINALITY"


class ConfigurationError(DirectoryError):
    code = "CONFIGURATION_ERROR"


class MissingDNError(ConfigurationError):
    code = "MISSING_DN"


class SearchError(DirectoryError):
    code = "SEARCH_ERROR"


class GroupSearchError(DirectoryError):
    code = "GROUP_SEARCH_ERROR"


class ModifyError(DirectoryError):
    code = "MODIFY_ERROR"
