"""
Torrent Stream Engine.

Turns the paginated, newest-first get-torrents listing into a continuous
stream of new torrents for one show:

1. Full resync: with no starting cursor, replay the whole history oldest
   to newest, page by page from the last page back to the first.
2. Poll loop: every recheck interval fetch the newest torrent and emit it
   if its id is above the cursor.

Errors never end the stream. They are emitted as events in order with the
torrents, and polling carries on with the next tick.

Known limitations:
- Resync reads the total once. Torrents added while it runs shift the page
  window, so a few boundary torrents can be skipped or repeated during that
  single pass.
- The default poll only looks at the newest torrent. When several torrents
  appear between two ticks only the newest is emitted and the cursor jumps
  over the rest. ``StreamOptions.catch_up`` fetches the whole gap instead.
"""

import asyncio
import math
from typing import List, Optional

from eztv.client import PageFetcher
from eztv.config import get_settings
from eztv.constants import MAX_EZTV_API_LIMIT
from eztv.exceptions import MissingImdbIDError
from eztv.logging import bind_context, get_logger
from eztv.models import Page, StreamOptions, StreamTorrent, Torrent, URLOptions

logger = get_logger(__name__)

# Marks the end of the stream in the event queue.
_END = object()


class TorrentStream:
    """
    Async iterator over new torrents for one show.

    Backed by a single background task that owns the filter cursor. The
    event queue holds at most one undelivered event, so a slow consumer holds
    the engine back instead of letting events pile up. ``last_torrent_id``
    only moves when a torrent is returned to the consumer, so it is safe to
    save and resume from after any event.

    Example:
        async with open_stream(client, StreamOptions(imdb_id="tt0944947")) as stream:
            async for event in stream:
                if event.error:
                    log.warning("stream_error", error=event.error)
                    continue
                save(event.torrent)
                cursor = stream.last_torrent_id

    Leaving the ``async with`` block, calling ``aclose()`` or cancelling
    the consuming task stops the background task wherever it is waiting.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        options: StreamOptions,
        *,
        max_page_size: int = MAX_EZTV_API_LIMIT,
    ):
        if max_page_size < 1:
            raise ValueError("max_page_size must be at least 1")

        self.imdb_id = options.imdb_id
        self.catch_up = options.catch_up
        self.recheck_interval = options.recheck_interval or get_settings().recheck_interval
        self.max_page_size = max_page_size

        self._fetcher = fetcher
        # Filter cursor, owned by the engine task.
        self._cursor = options.last_torrent_id
        # Id of the last torrent handed to the consumer.
        self._last_torrent_id = options.last_torrent_id
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._task: Optional[asyncio.Task] = None
        self._started = False
        self._finished = False
        self._closed = False
        self._log = logger.bind(imdb_id=self.imdb_id)

    @property
    def last_torrent_id(self) -> int:
        """Id of the last torrent returned by iteration, or the starting cursor."""
        return self._last_torrent_id

    @property
    def closed(self) -> bool:
        return self._closed

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> "TorrentStream":
        """Start the background task. Called implicitly on first iteration."""
        if self._started or self._closed:
            return self
        self._started = True

        if not self.imdb_id:
            # Nothing to follow: report it on the stream and stop without
            # ever touching the network.
            self._queue.put_nowait(StreamTorrent(error=MissingImdbIDError()))
            self._finished = True
            return self

        self._task = asyncio.create_task(self._run(), name=f"eztv-stream-{self.imdb_id}")
        self._task.add_done_callback(self._on_task_done)
        self._log.info(
            "stream_started",
            last_torrent_id=self._last_torrent_id,
            recheck_interval_seconds=self.recheck_interval.total_seconds(),
            catch_up=self.catch_up,
        )
        return self

    async def aclose(self) -> None:
        """Stop the stream and release the background task."""
        if self._closed:
            return
        self._closed = True

        try:
            if self._task is not None and not self._task.done():
                self._task.cancel()
                # wait() does not raise the task's own cancellation, but a
                # cancellation of the caller still propagates.
                await asyncio.wait({self._task})
        finally:
            # Events produced but not yet delivered are dropped.
            while not self._queue.empty():
                self._queue.get_nowait()
            self._finish()
            self._log.info("stream_closed", last_torrent_id=self._last_torrent_id)

    async def __aenter__(self) -> "TorrentStream":
        return self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def __aiter__(self) -> "TorrentStream":
        return self

    async def __anext__(self) -> StreamTorrent:
        if not self._started and not self._closed:
            self.start()
        if self._finished and self._queue.empty():
            raise StopAsyncIteration

        event = await self._queue.get()
        if event is _END:
            raise StopAsyncIteration
        if event.ok:
            self._last_torrent_id = event.torrent.id
        return event

    def _finish(self) -> None:
        self._finished = True
        # Wake a consumer blocked on get(). A full queue needs no wake-up:
        # its event is delivered and the next __anext__ sees _finished.
        if not self._queue.full():
            self._queue.put_nowait(_END)

    def _on_task_done(self, task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            self._log.error(
                "stream_crashed",
                error=task.exception(),
            )
        if not self._closed:
            self._finish()

    # -------------------------------------------------------------------------
    # Engine
    # -------------------------------------------------------------------------

    async def _run(self) -> None:
        # Fetcher logs inside the task carry the show too.
        with bind_context(imdb_id=self.imdb_id):
            if self._cursor == 0:
                await self._full_resync()
            await self._poll_loop()

    async def _fetch(self, page: int, limit: int) -> Page:
        return await self._fetcher.get_torrents(
            URLOptions(imdb_id=self.imdb_id, page=page, limit=limit)
        )

    async def _emit_error(self, error: BaseException) -> None:
        await self._queue.put(StreamTorrent(error=error))

    async def _emit_torrent(self, torrent: Torrent) -> None:
        await self._queue.put(StreamTorrent(torrent=torrent))
        self._cursor = torrent.id

    async def _full_resync(self) -> None:
        """Replay the whole history, oldest torrent first."""
        try:
            first = await self._fetch(page=1, limit=1)
        except Exception as e:  # noqa: BLE001
            self._log.warning("resync_failed", page=1, error=e)
            await self._emit_error(e)
            return

        if first.torrents_count == 0:
            self._log.info("resync_complete", torrents_count=0)
            return

        pages = math.ceil(first.torrents_count / self.max_page_size)
        self._log.info("resync_started", torrents_count=first.torrents_count, pages=pages)

        # Page 1 holds the newest torrents, so walk backwards.
        for page_number in range(pages, 0, -1):
            try:
                page = await self._fetch(page=page_number, limit=self.max_page_size)
            except Exception as e:  # noqa: BLE001
                self._log.warning(
                    "resync_failed",
                    page=page_number,
                    last_torrent_id=self._cursor,
                    error=e,
                )
                await self._emit_error(e)
                return

            self._log.debug("resync_page_fetched", page=page_number, torrents=len(page.torrents))
            for torrent in reversed(page.torrents):
                await self._emit_torrent(torrent)

        self._log.info("resync_complete", last_torrent_id=self._cursor)

    async def _poll_loop(self) -> None:
        interval = self.recheck_interval.total_seconds()
        while True:
            await asyncio.sleep(interval)

            try:
                if self.catch_up:
                    torrents = await self._fetch_new_since_cursor()
                else:
                    torrents = await self._fetch_newest()
            except Exception as e:  # noqa: BLE001
                self._log.warning("poll_failed", error=e)
                await self._emit_error(e)
                continue

            for torrent in torrents:
                self._log.info("new_torrent", torrent_id=torrent.id, title=torrent.title)
                await self._emit_torrent(torrent)

    async def _fetch_newest(self) -> List[Torrent]:
        page = await self._fetch(page=1, limit=1)
        if not page.torrents or page.torrents[0].id <= self._cursor:
            return []
        return [page.torrents[0]]

    async def _fetch_new_since_cursor(self) -> List[Torrent]:
        """
        Collect every torrent newer than the cursor, oldest first.

        Any failure raises before anything is returned, so a tick either
        emits the whole gap or nothing.
        """
        cursor = self._cursor
        newer: List[Torrent] = []
        page_number = 1
        pages: Optional[int] = None

        while pages is None or page_number <= pages:
            page = await self._fetch(page=page_number, limit=self.max_page_size)
            if pages is None:
                pages = math.ceil(page.torrents_count / self.max_page_size)

            reached_cursor = False
            for torrent in page.torrents:
                if torrent.id <= cursor:
                    reached_cursor = True
                    break
                newer.append(torrent)

            if reached_cursor or len(page.torrents) < self.max_page_size:
                break
            page_number += 1

        # A torrent added mid-scan shifts the pages and can show up twice.
        unique = {torrent.id: torrent for torrent in newer}
        return [unique[torrent_id] for torrent_id in sorted(unique)]


def open_stream(
    fetcher: PageFetcher,
    options: StreamOptions,
    *,
    max_page_size: int = MAX_EZTV_API_LIMIT,
) -> TorrentStream:
    """
    Open a stream of new torrents for ``options.imdb_id``.

    The returned stream starts on first iteration (or ``async with``).
    """
    return TorrentStream(fetcher, options, max_page_size=max_page_size)


__all__ = ["TorrentStream", "open_stream"]
