"""
EZTV command line interface.

Commands:
    stream   Follow a show and print each new torrent as a JSON line
    page     Fetch and print a single page of torrents
"""

import argparse
import asyncio
import json
import math
import sys
from datetime import timedelta

from dotenv import load_dotenv

from eztv.client import EZTVClient
from eztv.config import get_settings
from eztv.constants import DEFAULT_EZTV_API_LIMIT
from eztv.logging import bind_context, configure_logging, get_logger
from eztv.models import StreamOptions, URLOptions

load_dotenv()

logger = get_logger("eztv.cli")


def _non_negative_seconds(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number of seconds: {value!r}") from None
    if not math.isfinite(seconds) or seconds < 0:
        raise argparse.ArgumentTypeError(f"must be a non-negative number of seconds: {value}")
    return seconds


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def _print_json(payload: dict) -> None:
    sys.stdout.write(json.dumps(payload, ensure_ascii=False) + "\n")
    sys.stdout.flush()


async def _run_stream(args) -> int:
    options = StreamOptions(
        imdb_id=args.imdb_id,
        last_torrent_id=args.last_id,
        recheck_interval=timedelta(seconds=args.interval or 0),
        catch_up=args.catch_up,
    )

    async with EZTVClient(args.base_url) as client:
        async with client.torrent_stream(options) as stream:
            with bind_context(imdb_id=options.imdb_id):
                async for event in stream:
                    if event.error is not None:
                        logger.error("stream_error", error=event.error)
                        continue
                    _print_json(event.torrent.model_dump())

    # The stream only ends on its own when it could not start.
    return 1


async def _run_page(args) -> int:
    options = URLOptions(imdb_id=args.imdb_id or "", page=args.page, limit=args.limit)
    async with EZTVClient(args.base_url) as client:
        page = await client.get_torrents(options)
    _print_json(page.model_dump())
    return 0


def cmd_stream(args) -> int:
    """Stream new torrents until interrupted."""
    try:
        return asyncio.run(_run_stream(args))
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 0


def cmd_page(args) -> int:
    """Fetch one page of torrents."""
    return asyncio.run(_run_page(args))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eztv-stream",
        description="Stream new torrents from the EZTV API",
    )
    parser.add_argument("--base-url", help="API root URL (default: EZTV_BASE_URL or https://eztv.re/api)")
    parser.add_argument("--log-level", help="DEBUG/INFO/WARNING/ERROR (default: EZTV_LOG_LEVEL or INFO)")

    subparsers = parser.add_subparsers(dest="command")

    stream_parser = subparsers.add_parser("stream", help="Follow a show and print new torrents")
    stream_parser.add_argument("imdb_id", help='IMDb id of the show, with or without "tt"')
    stream_parser.add_argument(
        "--last-id",
        type=_non_negative_int,
        default=0,
        help="Start after this torrent id (default: replay full history)",
    )
    stream_parser.add_argument(
        "--interval",
        type=_non_negative_seconds,
        help="Seconds between checks, 0 for the default (default: 300)",
    )
    stream_parser.add_argument(
        "--catch-up",
        action="store_true",
        help="Emit every torrent added between checks, not only the newest",
    )

    page_parser = subparsers.add_parser("page", help="Fetch one page of torrents")
    page_parser.add_argument("imdb_id", nargs="?", help="IMDb id of the show (default: all shows)")
    page_parser.add_argument("--page", type=int, default=1)
    page_parser.add_argument("--limit", type=int, default=DEFAULT_EZTV_API_LIMIT, help="1-100 (default: 30)")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level or get_settings().log_level)

    commands = {
        "stream": cmd_stream,
        "page": cmd_page,
    }

    if args.command in commands:
        return commands[args.command](args)
    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
