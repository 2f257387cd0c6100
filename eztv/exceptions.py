"""
EZTV client and stream errors.

Every failure surfaced by the library derives from EZTVError so callers
can tell upstream problems apart from their own bugs.
"""

from typing import Optional


class EZTVError(Exception):
    """Base class for all EZTV library errors."""

    pass


class MissingImdbIDError(EZTVError):
    """Raised (or emitted on a stream) when no IMDb id was given."""

    def __init__(self, message: str = "missing imdb_id"):
        super().__init__(message)


class EZTVRequestError(EZTVError):
    """Transport failure: connection error, timeout, aborted response."""

    pass


class EZTVAPIError(EZTVError):
    """The API answered with a non-200 status."""

    def __init__(self, status: int, url: str, body: Optional[str] = None):
        self.status = status
        self.url = url
        self.body = body
        super().__init__(f"EZTV API error {status}: {url}")


class EZTVResponseError(EZTVError):
    """The API answered 200 but the body is not a valid page of torrents."""

    pass
