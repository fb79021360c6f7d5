"""
Domain-specific exceptions for the GraphQL normalization service.

These exceptions cover the boundaries around canonicalization (reading,
parsing and printing queries) and are mapped to HTTP status codes in the
API layer. Canonicalization itself does not fail on a parsed document.
"""

from typing import Any


class NormalizeError(Exception):
    """Base exception for all normalization domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(NormalizeError):
    """
    Raised when a request is well-formed JSON but not acceptable.

    Examples:
    - Query text longer than the configured maximum
    - Either side of a comparison over that limit

    HTTP Status: 400 Bad Request
    """

    pass


class QueryParseError(NormalizeError):
    """
    Raised when query text is not valid GraphQL.

    Details carry the parser message and the line/column locations.

    HTTP Status: 400 Bad Request
    """

    pass


class UnsupportedDefinitionError(NormalizeError):
    """
    Raised when a document holds definitions with no canonical form.

    Examples:
    - Type definitions (`type Query { ... }`)
    - Schema or directive declarations

    HTTP Status: 422 Unprocessable Entity
    """

    pass


class MinifyError(NormalizeError):
    """
    Raised when canonical text cannot be minified.

    HTTP Status: 500 Internal Server Error
    """

    pass


# HTTP Status Code Mapping
ERROR_STATUS_MAP = {
    ValidationError: 400,
    QueryParseError: 400,
    UnsupportedDefinitionError: 422,
    MinifyError: 500,
}


def get_status_code(error: Exception) -> int:
    """
    Get the HTTP status code for a given exception.

    Args:
        error: The exception instance

    Returns:
        HTTP status code (defaults to 500 for unknown errors)
    """
    return ERROR_STATUS_MAP.get(type(error), 500)
