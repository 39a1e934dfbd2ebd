from typing import Optional


class ExtractionError(Exception):
    """Base class for every failure an extraction can surface to its caller."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class InvalidRequestError(ExtractionError):
    """Bad post URL or blank credentials. Raised before any job or network call."""


class AuthenticationError(ExtractionError):
    """Reddit refused (or never answered) the client-credentials token exchange."""


class FetchError(ExtractionError):
    """The comment listing came back with a bad status or an unrecognised shape."""


class JobStateError(Exception):
    """A job that already reached completed/failed was asked to change."""
