"""
Pytest fixtures for EZTV tests.

FakeEZTV stands in for the HTTP client: it serves newest-first pages out
of an in-memory list of torrent ids and records every request.
"""

import asyncio
from typing import Iterable, List, Set

import pytest

from eztv.config import get_settings
from eztv.exceptions import EZTVRequestError
from eztv.models import Page, Torrent, URLOptions


class FakeEZTV:
    """In-memory PageFetcher with failure injection by call number."""

    def __init__(self, ids: Iterable[int] = (), fail_calls: Iterable[int] = ()):
        self.ids: List[int] = sorted(ids)
        self.fail_calls: Set[int] = set(fail_calls)
        self.calls: List[URLOptions] = []

    def add(self, *ids: int) -> None:
        self.ids = sorted(set(self.ids) | set(ids))

    @property
    def requested(self) -> List[tuple]:
        return [(c.page, c.limit) for c in self.calls]

    async def get_torrents(self, options: URLOptions) -> Page:
        call_number = len(self.calls)
        self.calls.append(options)
        await asyncio.sleep(0)

        if call_number in self.fail_calls:
            raise EZTVRequestError(f"request {call_number} failed")

        newest_first = list(reversed(self.ids))
        start = (options.page - 1) * options.limit
        chunk = newest_first[start:start + options.limit]
        return Page(
            imdb_id=options.imdb_id,
            torrents_count=len(self.ids),
            page=options.page,
            limit=options.limit,
            torrents=[Torrent(id=i, title=f"Show S01E{i:02d}") for i in chunk],
        )


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Isolate tests from the host environment and the settings cache."""
    for name in (
        "EZTV_BASE_URL",
        "EZTV_REQUEST_TIMEOUT",
        "EZTV_MAX_CONNECTIONS",
        "EZTV_RECHECK_INTERVAL_SECONDS",
        "EZTV_LOG_LEVEL",
        "EZTV_LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_eztv():
    return FakeEZTV
