"""
Domain exceptions raised by the services layer.
Routers translate them into HTTP responses.
"""


class GalleryError(Exception):
    """Base class for all service-level errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFoundError(GalleryError):
    """A record does not exist or is not owned by the caller."""


class ConflictError(GalleryError):
    """A uniqueness rule would be violated (username, album name, share)."""


class ValidationError(GalleryError):
    """Input was rejected by a business rule."""

    def __init__(self, message: str = "", details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class PermissionDeniedError(GalleryError):
    """The caller is authenticated but may not perform the operation."""


class GoneError(GalleryError):
    """A shared resource existed but is no longer available."""


class StoreError(GalleryError):
    """A JSON collection could not be read or written."""


class PayloadTooLargeError(GalleryError):
    """An uploaded file exceeds the configured size limit."""
