"""
Domain exceptions raised by the service layer.

All of them derive from ``ValueError`` so callers that only care about
"the request was wrong" can keep catching ``ValueError``.  Endpoints
map each subclass to an HTTP status code.
"""


class NotFoundError(ValueError):
    """The requested record does not exist."""


class PermissionDeniedError(ValueError):
    """The current user may not perform the operation on this record."""


class ConflictError(ValueError):
    """A store constraint rejected the write (e.g. a duplicate review)."""


class GeocodingError(ValueError):
    """An address could not be resolved to coordinates."""
