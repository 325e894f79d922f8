"""Unit tests for the structured logging configuration.

Verifies that ``configure_logging()`` produces well-formed JSON, that the
``run_id_var`` context variable is propagated, and that cookie-bearing keys
are redacted before rendering, including in package log events.
"""

from __future__ import annotations

import asyncio
import json
import logging
from io import StringIO

import httpx
import respx
import structlog

from rednote_sync.core.http import build_http_client
from rednote_sync.core.logging_config import configure_logging, run_id_var
from rednote_sync.crawler.client import CrawlerClient
from rednote_sync.crawler.models import CrawlRequest
from tests.conftest import API_BASE, NOTE_URL, RECORD_ID, TEST_COOKIE


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _capture(log_level: str, emit) -> list[dict]:
    """Configure logging, run ``emit()`` and return the parsed JSON records.

    Args:
        log_level: Logging level string (e.g. ``"INFO"``).
        emit: Zero-argument callable that emits log records.

    Returns:
        One dict per JSON line written to the root handler.
    """
    configure_logging(log_level)

    buffer = StringIO()
    root = logging.getLogger()
    original_streams = []
    for handler in root.handlers:
        if hasattr(handler, "stream"):
            original_streams.append((handler, handler.stream))
            handler.stream = buffer

    try:
        emit()
    finally:
        for handler, stream in original_streams:
            handler.flush()
            handler.stream = stream

    lines = [line for line in buffer.getvalue().splitlines() if line.strip()]
    return [json.loads(line) for line in lines]


def _find(records: list[dict], event: str) -> dict | None:
    return next((r for r in records if r.get("event") == event), None)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestConfigureLoggingJson:
    def test_stdlib_record_is_rendered_as_json(self) -> None:
        records = _capture(
            "INFO", lambda: logging.getLogger("test.logging").info("hello_world")
        )

        target = _find(records, "hello_world")
        assert target is not None
        assert target["level"] == "info"
        assert target["logger"] == "test.logging"
        assert "timestamp" in target

    def test_non_ascii_is_not_escaped(self) -> None:
        records = _capture(
            "INFO", lambda: logging.getLogger("test.logging").info("created column 点赞数")
        )

        assert _find(records, "created column 点赞数") is not None

    def test_debug_records_dropped_at_info(self) -> None:
        records = _capture(
            "INFO", lambda: logging.getLogger("test.logging").debug("too_verbose")
        )

        assert _find(records, "too_verbose") is None


class TestRunIdContextVar:
    def test_run_id_appears_in_output(self) -> None:
        token = run_id_var.set("run-1234")
        try:
            records = _capture(
                "INFO", lambda: logging.getLogger("test.logging").info("inside_run")
            )
        finally:
            run_id_var.reset(token)

        target = _find(records, "inside_run")
        assert target is not None
        assert target["run_id"] == "run-1234"

    def test_no_run_id_outside_a_run(self) -> None:
        records = _capture(
            "INFO", lambda: logging.getLogger("test.logging").info("outside_run")
        )

        target = _find(records, "outside_run")
        assert target is not None
        assert target.get("run_id") is None


class TestSecretRedaction:
    def test_cookie_key_is_redacted(self) -> None:
        records = _capture(
            "INFO",
            lambda: structlog.get_logger("test.redaction").info(
                "start_payload", cookies="web_session=secret-value", record_id="rec1"
            ),
        )

        target = _find(records, "start_payload")
        assert target is not None
        assert target["cookies"] == "[REDACTED]"
        assert target["record_id"] == "rec1"

    def test_nested_payload_is_redacted(self) -> None:
        records = _capture(
            "INFO",
            lambda: structlog.get_logger("test.redaction").info(
                "compliance_payload",
                payload={"text": "hello", "ai_api_key": "sk-secret"},
            ),
        )

        target = _find(records, "compliance_payload")
        assert target is not None
        assert target["payload"] == {"text": "hello", "ai_api_key": "[REDACTED]"}

    def test_deeply_nested_secret_is_redacted(self) -> None:
        records = _capture(
            "INFO",
            lambda: structlog.get_logger("test.redaction").info(
                "monitor_payload", payload={"note": {"note_id": "a", "cookies": "a1=x"}}
            ),
        )

        target = _find(records, "monitor_payload")
        assert target is not None
        assert target["payload"] == {"note": {"note_id": "a", "cookies": "[REDACTED]"}}

    def test_crawler_start_payload_cookie_is_redacted(self) -> None:
        request = CrawlRequest(target_url=NOTE_URL, cookie=TEST_COOKIE, record_id=RECORD_ID)

        async def start() -> None:
            with respx.mock:
                respx.post(f"{API_BASE}/crawler/start").mock(
                    return_value=httpx.Response(200, json={"status": "ok"})
                )
                async with build_http_client(API_BASE) as http:
                    await CrawlerClient(http).start(request)

        records = _capture("INFO", lambda: asyncio.run(start()))

        target = _find(records, "crawler.start_accepted")
        assert target is not None
        assert target["logger"] == "rednote_sync.crawler.client"
        assert target["record_id"] == RECORD_ID
        assert target["payload"]["cookies"] == "[REDACTED]"
        assert target["payload"]["specified_ids"] == NOTE_URL
        assert "test-session" not in json.dumps(records, ensure_ascii=False)


class TestConfigureLoggingIdempotent:
    def test_calling_twice_keeps_one_root_handler(self) -> None:
        configure_logging("INFO")
        configure_logging("INFO")

        assert len(logging.getLogger().handlers) == 1

    def test_httpx_is_quieted_outside_debug(self) -> None:
        configure_logging("INFO")

        assert logging.getLogger("httpx").level == logging.WARNING

    def test_unknown_level_means_info(self) -> None:
        configure_logging("chatty")

        assert logging.getLogger().level == logging.INFO
