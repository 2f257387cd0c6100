"""
Structured logging for the EZTV client and stream engine.

Log lines go to stderr under the ``eztv`` logger namespace, so the CLI's
torrent lines on stdout stay machine readable. Terminals and debug mode get
structlog's console renderer; pipes and services get one JSON object per line.

Usage:
    from eztv.logging import bind_context, get_logger

    logger = get_logger(__name__)
    with bind_context(imdb_id="0944947"):
        logger.info("page_fetched", page=1)
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator, MutableMapping

import structlog
from structlog.types import Processor, WrappedLogger

LOGGER_NAMESPACE = "eztv"


def _use_console() -> bool:
    from .config import get_settings

    settings = get_settings()
    if settings.log_format != "auto":
        return settings.log_format == "console"
    return settings.debug or sys.stderr.isatty()


def _expand_error(
    logger: WrappedLogger, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Render ``error=<exception>`` as its message plus ``error_type``."""
    error = event_dict.get("error")
    if isinstance(error, BaseException):
        event_dict["error"] = str(error) or type(error).__name__
        event_dict.setdefault("error_type", type(error).__name__)
    return event_dict


def get_processors(console: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _expand_error,
    ]
    if console:
        return processors + [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]
    return processors + [
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def configure_logging(level: str = "INFO") -> None:
    """
    Send ``eztv`` logs to stderr at ``level``.

    Only the ``eztv`` namespace gets a handler, so an application embedding
    the library keeps its own root logging setup. Calling this again only
    changes the level.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    namespace = logging.getLogger(LOGGER_NAMESPACE)
    if not namespace.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        namespace.addHandler(handler)
        namespace.propagate = False
    namespace.setLevel(numeric_level)

    structlog.configure(
        processors=get_processors(console=_use_console()),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = LOGGER_NAMESPACE) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name)  # type: ignore[no-any-return]


@contextmanager
def bind_context(**values: Any) -> Iterator[None]:
    """
    Tag every log line emitted in the block, including lines logged by
    tasks created inside it.
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield


__all__ = [
    "bind_context",
    "configure_logging",
    "get_logger",
]
