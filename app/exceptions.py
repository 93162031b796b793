"""
Domain exceptions for file access control.

Services raise these; app.main translates them into the JSON error
envelope. Each class carries the HTTP status and the short error label
used in that envelope so the mapping lives in one place.
"""


class FileAccessError(Exception):
    """Base exception for file access and sharing operations."""

    status_code: int = 500
    error: str = "Error"

    def __init__(self, message: str, data: dict | None = None):
        self.message = message
        self.data = data
        super().__init__(message)


class NotFoundError(FileAccessError):
    """No matching record, share token or blob."""

    status_code = 404
    error = "Not Found"


class ForbiddenError(FileAccessError):
    """Authenticated (or token-holding) caller is not permitted."""

    status_code = 403
    error = "Forbidden"


class LinkExpiredError(ForbiddenError):
    """Share token was valid once but its timed access has elapsed."""

    def __init__(self, message: str = "Share link has expired"):
        super().__init__(message, data={"reason": "expired"})


class InvalidArgumentError(FileAccessError):
    """Malformed access level, missing or non-positive expiry, bad input."""

    status_code = 400
    error = "Bad Request"


class InvalidStateError(FileAccessError):
    """Operation not allowed in the record's current access state."""

    status_code = 409
    error = "Conflict"


class ConflictError(FileAccessError):
    """Concurrent modification could not be reconciled."""

    status_code = 409
    error = "Conflict"


class UpstreamUnavailableError(FileAccessError):
    """Blob store or cloud mirror failed."""

    status_code = 503
    error = "Service Unavailable"
