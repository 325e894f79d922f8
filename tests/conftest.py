"""Shared pytest fixtures for rednote-sync tests.

Fixture summary
---------------
settings:        Settings with test defaults (no .env lookup).
http_client:     httpx.AsyncClient bound to ``API_BASE``; mock it with respx.
memory_store:    In-memory credential store.
session:         CookieSession preloaded with ``TEST_COOKIE``.
table:           InMemoryTable with a url column and a selected row.
no_sleep:        Async sleep stub that records requested delays.

All tests run without a live backend: HTTP traffic is intercepted with
respx and the host table is the in-memory implementation.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio

# ---------------------------------------------------------------------------
# Test environment bootstrap
# ---------------------------------------------------------------------------
# Set before application imports so that a developer's .env or shell
# environment does not leak into the suite.

API_BASE = "http://backend.test/api"
TEST_COOKIE = "a1=test-a1; web_session=test-session"
NOTE_URL = "https://www.xiaohongshu.com/explore/abc123?xsec_token=xyz&xsec_source=pc_search"

_TEST_ENV_DEFAULTS: dict[str, str] = {
    "BACKEND_API_BASE": API_BASE,
    "LOG_LEVEL": "INFO",
    "CRAWL_POLL_INTERVAL_SECONDS": "0",
}

for _key, _default in _TEST_ENV_DEFAULTS.items():
    os.environ[_key] = _default

# ---------------------------------------------------------------------------
# Application imports (after env bootstrap)
# ---------------------------------------------------------------------------

from rednote_sync.config.settings import Settings, get_settings  # noqa: E402
from rednote_sync.core.credentials import CookieSession  # noqa: E402
from rednote_sync.core.http import build_http_client  # noqa: E402
from rednote_sync.table.base import FieldType  # noqa: E402
from rednote_sync.table.memory import InMemoryTable  # noqa: E402

SOURCE_FIELD = "笔记链接"
RECORD_ID = "rec1"


class MemoryCredentialStore:
    """CredentialStore double that keeps the value in memory and counts saves."""

    def __init__(self, value: str = "") -> None:
        self.value = value
        self.saves: list[str] = []

    def load(self) -> str:
        return self.value

    def save(self, value: str) -> None:
        self.value = value
        self.saves.append(value)


class SleepRecorder:
    """Async sleep stub; records each requested delay and returns immediately."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        backend_api_base=API_BASE,
        cookie_store_path=str(tmp_path / "credentials.json"),
        crawl_poll_interval_seconds=0.0,
    )


@pytest_asyncio.fixture
async def http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with build_http_client(API_BASE) as client:
        yield client


@pytest.fixture
def memory_store() -> MemoryCredentialStore:
    return MemoryCredentialStore(TEST_COOKIE)


@pytest.fixture
def session(memory_store: MemoryCredentialStore) -> CookieSession:
    return CookieSession(memory_store)


@pytest.fixture
def table() -> InMemoryTable:
    """Table with one url column holding ``NOTE_URL`` in the selected row."""
    tbl = InMemoryTable()
    source_id = tbl.create_field(FieldType.URL, SOURCE_FIELD)
    tbl.put(source_id, RECORD_ID, [{"type": "url", "text": NOTE_URL, "link": NOTE_URL}])
    tbl.select(RECORD_ID, source_id)
    return tbl


@pytest.fixture
def no_sleep() -> SleepRecorder:
    return SleepRecorder()
