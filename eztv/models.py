"""
EZTV Models.

Pydantic models for the get-torrents wire format plus the options and
event types used by the streaming engine.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from eztv.constants import IMDB_ID_PREFIX


def normalize_imdb_id(imdb_id: Optional[str]) -> str:
    """Strip whitespace and the "tt" prefix the API does not recognize."""
    value = (imdb_id or "").strip()
    if value.startswith(IMDB_ID_PREFIX):
        value = value[len(IMDB_ID_PREFIX):]
    return value


# =============================================================================
# Wire Types
# =============================================================================

class Torrent(BaseModel):
    """A single torrent as returned by the API."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    hash: str = ""
    filename: str = ""
    episode_url: str = ""
    torrent_url: str = ""
    magnet_url: str = ""
    title: str = ""
    imdb_id: str = ""
    season: str = ""
    episode: str = ""
    small_screenshot: str = ""
    large_screenshot: str = ""
    seeds: int = 0
    peers: int = 0
    date_released_unix: int = 0
    size_bytes: str = ""

    @property
    def date_released(self) -> Optional[datetime]:
        if not self.date_released_unix:
            return None
        return datetime.fromtimestamp(self.date_released_unix, tz=timezone.utc)


class Page(BaseModel):
    """One page of torrents, newest first."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    imdb_id: str = ""
    torrents_count: int = 0
    limit: int = 0
    page: int = 0
    torrents: List[Torrent] = Field(default_factory=list)

    @field_validator("torrents", mode="before")
    @classmethod
    def null_torrents_as_empty(cls, v):
        # The API omits or nulls the list when a show has no torrents.
        return [] if v is None else v


# =============================================================================
# Request / Stream Options
# =============================================================================

class URLOptions(BaseModel):
    """
    Query options for a get-torrents request.

    Zero or empty values are left out of the query so the API applies its
    own defaults (page 1, limit 30, all shows).
    """
    page: int = Field(default=0, ge=0)
    limit: int = Field(default=0, ge=0)
    imdb_id: str = ""

    def to_query_params(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self.page:
            params["page"] = str(self.page)
        if self.limit:
            params["limit"] = str(self.limit)
        imdb_id = normalize_imdb_id(self.imdb_id)
        if imdb_id:
            params["imdb_id"] = imdb_id
        return params


class StreamOptions(BaseModel):
    """Options for a torrent stream."""

    # Show to follow; required, but validated by the stream so a missing id
    # is reported on the stream itself.
    imdb_id: str = ""
    # Start after this torrent id. 0 replays the full history first.
    last_torrent_id: int = Field(default=0, ge=0)
    # How often to check for new torrents. 0 uses the default interval.
    recheck_interval: timedelta = Field(default=timedelta(0))
    # Emit every torrent added since the last tick, not only the newest.
    catch_up: bool = False

    @field_validator("imdb_id", mode="before")
    @classmethod
    def normalize_imdb(cls, v):
        return normalize_imdb_id(v)

    @field_validator("recheck_interval")
    @classmethod
    def non_negative_interval(cls, v: timedelta) -> timedelta:
        if v < timedelta(0):
            raise ValueError("recheck_interval must not be negative")
        return v


# =============================================================================
# Stream Events
# =============================================================================

@dataclass(frozen=True)
class StreamTorrent:
    """
    One event on a torrent stream: either a new torrent or an error.

    Exactly one of ``torrent`` and ``error`` is set.
    """

    torrent: Optional[Torrent] = None
    error: Optional[BaseException] = None

    def __post_init__(self) -> None:
        if (self.torrent is None) == (self.error is None):
            raise ValueError("StreamTorrent needs exactly one of torrent or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def id(self) -> Optional[int]:
        return self.torrent.id if self.torrent is not None else None
