from __future__ import annotations


class AdvisorError(Exception):
    """Base exception for advisor operations."""
    pass


class NotFoundError(AdvisorError):
    """Raised when a symbol or route does not exist."""
    pass


class InvalidInputError(AdvisorError):
    """Raised when a request body or argument fails validation."""
    pass


class InsufficientDataError(AdvisorError):
    """Raised when there are not enough price bars to evaluate."""
    pass


class CatalogLoadError(AdvisorError):
    """Raised when the catalog source cannot be parsed at startup."""
    pass
