"""Domain exceptions shared by the server and the display client."""


class SlidecastError(Exception):
    """Base class for all Slidecast errors."""


class NotFoundError(SlidecastError):
    pass


class ConflictError(SlidecastError):
    pass


class ProtectedTagError(SlidecastError):
    """Raised on attempts to create, rename or delete the Hidden tag."""


class InvalidUploadError(SlidecastError):
    pass


class ImageLoadError(SlidecastError):

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        message = f"Could not load image from {url}."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)


class CatalogUnavailableError(SlidecastError):
    """The image catalog could not be fetched from the server."""
