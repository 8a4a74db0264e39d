"""Structured logging helpers."""
from __future__ import annotations

import json
import logging

from relay_providers.base.logging import (
    _FILE_HANDLER_ATTR,
    REQUIRED_NORMALIZED_KEYS,
    LogContext,
    configure_logger,
    get_logger,
    log_event,
    normalized_log_event,
)
from relay_providers.base.log_support import JsonFormatter


def test_child_loggers_share_the_relay_root():
    logger = get_logger("adapters.openai")
    assert logger.name == "relay.adapters.openai"
    assert logger.propagate is True
    assert get_logger("relay.normalizer").name == "relay.normalizer"


def test_normalized_event_has_required_keys(log_capture):
    ctx = LogContext(provider="openai", model="gpt-4o", request_id="m-1")
    normalized_log_event(get_logger("test"), "stream.start", ctx, phase="start", emitted=False, tokens=None)
    payload = log_capture.events("stream.start")[0]
    for key in REQUIRED_NORMALIZED_KEYS:
        if key == "error_code":
            continue
        assert key in payload
    assert "error_code" not in payload
    assert payload["provider"] == "openai" and payload["request_id"] == "m-1"


def test_extra_fields_do_not_override_normalized_values(log_capture):
    normalized_log_event(
        get_logger("test"),
        "stream.normalizer.error",
        phase="finalize",
        error_code="timeout",
        tokens=[("prompt", 1)],
        emitted=True,
        extra_note="kept",
    )
    payload = log_capture.events("stream.normalizer.error")[0]
    assert payload["error_code"] == "timeout"
    assert payload["tokens"] == {"prompt": 1}
    assert payload["extra_note"] == "kept"


def test_log_event_drops_none_fields(log_capture):
    log_event(get_logger("test"), "plain", None, a=1, b=None)
    payload = log_capture.events("plain")[0]
    assert payload == {"event": "plain", "a": 1}


def test_json_formatter_hoists_json_messages():
    record = logging.LogRecord("relay.x", logging.INFO, __file__, 1, json.dumps({"event": "e", "k": 2}), None, None)
    line = json.loads(JsonFormatter().format(record))
    assert line["event"] == "e" and line["k"] == 2 and line["logger"] == "relay.x"


def _managed_files(logger):
    return [h for h in logger.handlers if getattr(h, _FILE_HANDLER_ATTR, False)]


def test_configure_logger_manages_a_single_file_handler(tmp_path):
    path = tmp_path / "logs" / "relay.log"
    logger = configure_logger(level="WARNING", file_path=str(path))
    try:
        assert len(_managed_files(logger)) == 1
        configure_logger(file_path=str(path))
        assert [h.baseFilename for h in _managed_files(logger)] == [str(path)]
    finally:
        configure_logger(level="INFO", file_path=None)
    assert not _managed_files(logger)
