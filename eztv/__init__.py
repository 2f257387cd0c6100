"""
EZTV Stream Library.

Async client for the EZTV torrents API and a streaming engine that turns
its polling-only, paginated listing into a continuous feed of new torrents.

Usage:
    from eztv import EZTVClient, StreamOptions

    async with EZTVClient() as client:
        async with client.torrent_stream(StreamOptions(imdb_id="tt0944947")) as stream:
            async for event in stream:
                if event.error:
                    ...
                else:
                    print(event.torrent.title)
"""

from eztv.client import EZTVClient, PageFetcher
from eztv.exceptions import (
    EZTVAPIError,
    EZTVError,
    EZTVRequestError,
    EZTVResponseError,
    MissingImdbIDError,
)
from eztv.models import Page, StreamOptions, StreamTorrent, Torrent, URLOptions
from eztv.stream import TorrentStream, open_stream

__version__ = "1.0.0"

__all__ = [
    "EZTVClient",
    "PageFetcher",
    "TorrentStream",
    "open_stream",
    # Models
    "Page",
    "Torrent",
    "StreamTorrent",
    "StreamOptions",
    "URLOptions",
    # Errors
    "EZTVError",
    "EZTVAPIError",
    "EZTVRequestError",
    "EZTVResponseError",
    "MissingImdbIDError",
]
