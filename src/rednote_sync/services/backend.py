"""Pass-through client for the auxiliary backend services.

Each method forwards one panel action to the backend and returns the decoded
JSON response unchanged; the plugin does no processing beyond input
validation.  Errors follow the same mapping as the crawler client
(:class:`NetworkError` / :class:`BackendError`, server detail preferred).

Endpoints and timeouts (seconds): count 60, low-fan 120, compliance 60,
monitor add/check/reset 60, monitor list/delete/update 30.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
import pydantic

from rednote_sync.config.settings import Settings
from rednote_sync.core.exceptions import ValidationError
from rednote_sync.core.http import request_json
from rednote_sync.services.schemas import (
    ComplianceCheckRequest,
    CountNotesRequest,
    LowFanViralRequest,
    MonitorAddRequest,
    MonitorNoteAction,
    MonitorUpdateRequest,
    to_payload,
)

logger = logging.getLogger(__name__)

_SHORT_TIMEOUT: float = 30.0
_DEFAULT_TIMEOUT: float = 60.0
_LONG_TIMEOUT: float = 120.0


def build_request(model: type[pydantic.BaseModel], **fields: Any) -> Any:
    """Instantiate a request schema, converting pydantic errors to :class:`ValidationError`."""
    try:
        return model(**fields)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        loc = ".".join(str(part) for part in first.get("loc", ())) or None
        message = first.get("msg", str(exc))
        raise ValidationError(f"{loc}: {message}" if loc else message, field=loc) from exc


class BackendServicesClient:
    """Client for keyword analytics, compliance and monitor endpoints.

    Args:
        http_client: :class:`httpx.AsyncClient` bound to the backend base URL.
        settings: Optional settings; supplies compliance AI overrides.
    """

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings | None = None) -> None:
        self._http = http_client
        self._settings = settings

    async def _post(
        self, path: str, body: pydantic.BaseModel, operation: str, timeout: float
    ) -> dict[str, Any]:
        response = await request_json(
            self._http, "POST", path, operation=operation, timeout=timeout, json=to_payload(body)
        )
        return _as_object(response)

    # ------------------------------------------------------------------
    # Keyword analytics
    # ------------------------------------------------------------------

    async def count_notes_by_time_range(self, request: CountNotesRequest) -> dict[str, Any]:
        """Count notes for a keyword inside a publish-time window.

        Response keys: ``keyword``, ``count``, ``pages_scanned``,
        ``oldest_time_seen_ms``, ``truncated``, ``unknown_time_count``.
        """
        logger.info(
            "services: count keyword=%r range=[%d, %d]",
            request.keyword,
            request.start_time_ms,
            request.end_time_ms,
        )
        return await self._post(
            "/xhs/count_notes_by_time_range", request, "xhs.count_notes", _DEFAULT_TIMEOUT
        )

    async def low_fan_viral(self, request: LowFanViralRequest) -> dict[str, Any]:
        """Find high-engagement notes from low-follower creators.

        Response keys: ``keyword``, ``scanned_notes``, ``viral_candidates``,
        ``creators_queried``, ``results``.
        """
        if not request.cookies:
            logger.warning("services: low_fan_viral without cookie, success rate will be lower")
        return await self._post("/xhs/low_fan_viral", request, "xhs.low_fan_viral", _LONG_TIMEOUT)

    # ------------------------------------------------------------------
    # Compliance
    # ------------------------------------------------------------------

    def compliance_request(self, **fields: Any) -> ComplianceCheckRequest:
        """Build a compliance request, filling AI overrides from settings."""
        settings = self._settings
        if settings is not None:
            fields.setdefault("ai_base_url", settings.compliance_ai_base_url)
            fields.setdefault("ai_api_key", settings.compliance_ai_api_key)
            fields.setdefault("ai_model", settings.compliance_ai_model)
        return build_request(ComplianceCheckRequest, **fields)

    async def compliance_check(self, request: ComplianceCheckRequest) -> dict[str, Any]:
        """Check text and/or a note for compliance risks.

        Response keys: ``text``, ``ai`` (``status``, ``reason``,
        ``risk_categories``, ``evidence``, ``rewrite``, ``suggestions``) and
        ``final`` (``passed``, ``risk_level``, ``categories``).
        """
        return await self._post("/compliance/check", request, "compliance.check", _DEFAULT_TIMEOUT)

    # ------------------------------------------------------------------
    # Monitor
    # ------------------------------------------------------------------

    async def monitor_add_note(self, request: MonitorAddRequest) -> dict[str, Any]:
        return await self._post("/monitor/add_note", request, "monitor.add_note", _DEFAULT_TIMEOUT)

    async def monitor_list(self) -> list[dict[str, Any]]:
        """Return the monitored notes (the response's ``items`` list)."""
        body = await request_json(
            self._http, "GET", "/monitor/list", operation="monitor.list", timeout=_SHORT_TIMEOUT
        )
        items = body.get("items") if isinstance(body, dict) else None
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)]

    async def monitor_check_now(
        self, note_id: str, cookies: str = "", headless: bool = True
    ) -> dict[str, Any]:
        """Check one note immediately.  Response carries ``delta_likes`` and ``delta_comments``."""
        body = build_request(MonitorNoteAction, note_id=note_id, cookies=cookies, headless=headless)
        return await self._post("/monitor/check_now", body, "monitor.check_now", _DEFAULT_TIMEOUT)

    async def monitor_reset_baseline(
        self, note_id: str, cookies: str = "", headless: bool = True
    ) -> dict[str, Any]:
        """Replace the note's baseline counts with its current counts."""
        body = build_request(MonitorNoteAction, note_id=note_id, cookies=cookies, headless=headless)
        return await self._post(
            "/monitor/reset_baseline", body, "monitor.reset_baseline", _DEFAULT_TIMEOUT
        )

    async def monitor_delete_note(self, note_id: str) -> dict[str, Any]:
        if not note_id:
            raise ValidationError("note_id is required", field="note_id")
        response = await request_json(
            self._http,
            "POST",
            "/monitor/delete_note",
            operation="monitor.delete_note",
            timeout=_SHORT_TIMEOUT,
            json={"note_id": note_id},
        )
        return _as_object(response)

    async def monitor_update_note(self, request: MonitorUpdateRequest) -> dict[str, Any]:
        return await self._post(
            "/monitor/update_note", request, "monitor.update_note", _SHORT_TIMEOUT
        )

    async def monitor_toggle(self, item: dict[str, Any]) -> dict[str, Any]:
        """Flip ``is_active`` on a monitored note as listed by :meth:`monitor_list`."""
        body = build_request(
            MonitorUpdateRequest,
            note_id=item.get("note_id") or "",
            is_active=not bool(item.get("is_active")),
        )
        return await self.monitor_update_note(body)


def _as_object(body: Any) -> dict[str, Any]:
    """Return ``body`` if it is a JSON object, else ``{}``.

    Empty 2xx bodies decode to ``None``.
    """
    return body if isinstance(body, dict) else {}


def monitor_cookie(session_cookie: str, item: dict[str, Any] | None) -> str:
    """Pick the cookie for a monitor action.

    The session cookie wins; otherwise the cookie stored with the monitored
    note is reused.
    """
    if session_cookie.strip():
        return session_cookie.strip()
    stored = (item or {}).get("cookies")
    return stored if isinstance(stored, str) else ""
