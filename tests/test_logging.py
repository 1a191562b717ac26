"""Tests for JSON logging."""

import json
import logging
from io import StringIO

from peer_cache.cache import TTLCache
from peer_cache.logging import JsonFormatter, get_logger, setup_logging


def capture(logger_name: str) -> StringIO:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    logger = logging.getLogger(logger_name)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    return stream


def test_setup_logging_adds_single_handler():
    setup_logging("INFO")
    setup_logging("DEBUG")
    root = logging.getLogger("peer_cache")
    json_handlers = [h for h in root.handlers if isinstance(h.formatter, JsonFormatter)]
    assert len(json_handlers) == 1
    assert root.level == logging.DEBUG


def test_get_logger_returns_logger():
    logger = get_logger("test")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "test"


def test_json_formatter_includes_extra_fields():
    stream = capture("test.json")
    get_logger("test.json").info("Test message", extra={"key": "user:1"})

    parsed = json.loads(stream.getvalue().strip())
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "test.json"
    assert parsed["msg"] == "Test message"
    assert parsed["key"] == "user:1"


def test_cache_logs_hits_and_misses():
    stream = capture("peer_cache.cache")
    cache = TTLCache(60)
    cache.set("a", 1)
    cache.get("a")
    cache.get("b")

    messages = [json.loads(line)["msg"] for line in stream.getvalue().splitlines()]
    assert "Cache hit" in messages
    assert "Cache miss" in messages


def test_cache_logging_can_be_disabled():
    stream = capture("peer_cache.cache")
    cache = TTLCache(60, enable_logging=False)
    cache.set("quiet", 1)
    cache.get("quiet")

    assert "quiet" not in stream.getvalue()


def test_disabled_logging_silences_lifecycle_records():
    stream = capture("peer_cache.cache")
    cache = TTLCache(60, enable_logging=False)
    cache.stop()

    assert stream.getvalue() == ""
