"""
Async EZTV API Client.

Features:
- Async HTTP with aiohttp
- Connection pooling, shareable across concurrent streams
- Typed pages of torrents via pydantic
"""

import asyncio
import json
from typing import TYPE_CHECKING, Any, Optional, Protocol

import aiohttp
from pydantic import ValidationError

from eztv.config import get_settings
from eztv.constants import GET_TORRENTS_PATH
from eztv.exceptions import EZTVAPIError, EZTVRequestError, EZTVResponseError
from eztv.logging import get_logger
from eztv.models import Page, StreamOptions, URLOptions

if TYPE_CHECKING:
    from eztv.stream import TorrentStream

logger = get_logger(__name__)


class PageFetcher(Protocol):
    """Anything that can fetch one page of torrents for a show."""

    async def get_torrents(self, options: URLOptions) -> Page: ...


class EZTVClient:
    """
    Async client for the EZTV get-torrents API.

    Example:
        async with EZTVClient() as client:
            page = await client.get_torrents(URLOptions(imdb_id="tt0944947", limit=10))
            for torrent in page.torrents:
                print(torrent.title)

    A caller-owned ``session`` may be passed in; it is then used as-is and
    never closed by the client.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = None,
        max_connections: Optional[int] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self.timeout = timeout or settings.request_timeout
        self.max_connections = max_connections or settings.max_connections
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "EZTVClient":
        """Create aiohttp session on context entry."""
        if self._session is None:
            connector = aiohttp.TCPConnector(limit=self.max_connections)
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers={"Accept": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close session on context exit."""
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def get_torrents(self, options: URLOptions) -> Page:
        """
        Fetch one page of torrents.

        The API caps ``limit`` at 100 per page; larger values make it fall
        back to its default of 30.

        Raises:
            EZTVRequestError: the request could not be completed
            EZTVAPIError: the API answered with a non-200 status
            EZTVResponseError: the body is not a valid page
        """
        if self._session is None:
            raise RuntimeError("Client not initialized. Use 'async with' context.")

        url = f"{self.base_url}{GET_TORRENTS_PATH}"
        params = options.to_query_params()

        try:
            async with self._session.get(url, params=params) as response:
                if response.status != 200:
                    text = await response.text(errors="replace")
                    logger.warning("api_error", status=response.status, url=str(response.url))
                    raise EZTVAPIError(response.status, str(response.url), text[:500])
                # The API does not always label its JSON as application/json.
                data: Any = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise EZTVRequestError(f"Request to {url} timed out") from e
        except aiohttp.ClientError as e:
            raise EZTVRequestError(f"Request to {url} failed: {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise EZTVResponseError(f"Invalid JSON from {url}: {e}") from e

        if not isinstance(data, dict):
            raise EZTVResponseError(f"Expected object from {url}, got {type(data).__name__}")

        try:
            page = Page.model_validate(data)
        except ValidationError as e:
            raise EZTVResponseError(f"Unexpected page payload from {url}: {e}") from e

        logger.debug(
            "page_fetched",
            imdb_id=params.get("imdb_id"),
            page=options.page,
            limit=options.limit,
            torrents=len(page.torrents),
            torrents_count=page.torrents_count,
        )
        return page

    def torrent_stream(self, options: StreamOptions) -> "TorrentStream":
        """
        Stream new torrents for a show as they are added to the API.

        With ``last_torrent_id`` of 0 the whole history is replayed first,
        oldest to newest. A missing ``imdb_id`` yields a single
        MissingImdbIDError event and ends the stream.
        """
        from eztv.stream import open_stream

        return open_stream(self, options)
