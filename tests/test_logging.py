"""Tests for structured logging setup."""

import logging

import pytest
import structlog

from eztv.config import get_settings
from eztv.exceptions import EZTVAPIError, EZTVRequestError
from eztv.logging import (
    LOGGER_NAMESPACE,
    _expand_error,
    _use_console,
    bind_context,
    configure_logging,
    get_processors,
)


class TestExpandError:
    def test_exception_becomes_message_and_type(self):
        event = _expand_error(None, "warning", {"event": "poll_failed", "error": EZTVRequestError("boom")})

        assert event["error"] == "boom"
        assert event["error_type"] == "EZTVRequestError"

    def test_empty_message_falls_back_to_type(self):
        event = _expand_error(None, "warning", {"error": TimeoutError()})

        assert event["error"] == "TimeoutError"

    def test_explicit_error_type_is_kept(self):
        error = EZTVAPIError(503, "https://eztv.re/api/get-torrents")
        event = _expand_error(None, "error", {"error": error, "error_type": "upstream"})

        assert event["error_type"] == "upstream"

    def test_plain_values_untouched(self):
        event = _expand_error(None, "info", {"error": "already a string"})

        assert event == {"error": "already a string"}


class TestRenderer:
    @pytest.mark.parametrize("log_format, console", [("console", True), ("json", False)])
    def test_explicit_format(self, monkeypatch, log_format, console):
        monkeypatch.setenv("EZTV_LOG_FORMAT", log_format)
        get_settings.cache_clear()

        assert _use_console() is console

    def test_auto_uses_console_in_debug(self, monkeypatch):
        monkeypatch.setenv("DEBUG", "true")
        get_settings.cache_clear()

        assert _use_console() is True

    def test_json_pipeline_ends_with_json_renderer(self):
        processors = get_processors(console=False)

        assert _expand_error in processors
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)


class TestConfigureLogging:
    def test_handler_installed_once_on_namespace(self):
        namespace = logging.getLogger(LOGGER_NAMESPACE)

        configure_logging("DEBUG")
        configure_logging("WARNING")

        assert len(namespace.handlers) == 1
        assert namespace.level == logging.WARNING
        assert namespace.propagate is False

    def test_unknown_level_falls_back_to_info(self):
        configure_logging("chatty")

        assert logging.getLogger(LOGGER_NAMESPACE).level == logging.INFO


class TestBindContext:
    def test_binds_for_block_only(self):
        with bind_context(imdb_id="0944947"):
            assert structlog.contextvars.get_contextvars()["imdb_id"] == "0944947"

        assert "imdb_id" not in structlog.contextvars.get_contextvars()
