"""Crawler backend endpoints, timeouts and naming conventions.

No secrets are stored here.  The cookie travels inside each start request and
is owned by :class:`~rednote_sync.core.credentials.CookieSession`.
"""

from __future__ import annotations

import re
from typing import Any

# ---------------------------------------------------------------------------
# Endpoints (relative to Settings.backend_api_base)
# ---------------------------------------------------------------------------

CRAWLER_START_PATH: str = "/crawler/start"
CRAWLER_STATUS_PATH: str = "/crawler/status"
DATA_FILES_PATH: str = "/data/files"
"""Artifact listing.  Previews are fetched from ``{DATA_FILES_PATH}/{path}``."""

# ---------------------------------------------------------------------------
# Timeouts (seconds)
# ---------------------------------------------------------------------------

#: Short on purpose: the start call only enqueues the job.
START_TIMEOUT: float = 10.0

STATUS_TIMEOUT: float = 10.0

#: Listing and preview may read large files on the backend.
DATA_TIMEOUT: float = 30.0

# ---------------------------------------------------------------------------
# Start payload
# ---------------------------------------------------------------------------

PLATFORM: str = "xhs"
"""Platform tag understood by the backend and used to list artifacts."""

ARTIFACT_FILE_TYPE: str = "json"

START_PAYLOAD_DEFAULTS: dict[str, Any] = {
    "platform": PLATFORM,
    "login_type": "cookie",
    "crawler_type": "detail",
    "save_option": ARTIFACT_FILE_TYPE,
    "enable_comments": False,
    # Backend containers have no X server.
    "headless": True,
}
"""Fixed fields of a ``/crawler/start`` body; the url and cookie are added per request."""

# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

IDLE_STATUS: str = "idle"

# ---------------------------------------------------------------------------
# Artifact and url conventions
# ---------------------------------------------------------------------------

ARTIFACT_NAME_MARKER: str = "detail_contents"
"""Substring identifying detail-crawl result files (e.g. ``1_detail_contents_2026-01-29.json``)."""

RECORDS_WRAPPER_KEY: str = "data"
"""Key under which some backend versions wrap the preview record list."""

PLATFORM_URL_MARKER: str = "xiaohongshu"
"""A target url must contain this token to be accepted."""

NOTE_ID_PATTERN: re.Pattern[str] = re.compile(r"/explore/([a-zA-Z0-9]+)")
"""Note identifier: the path segment after ``/explore/``."""
