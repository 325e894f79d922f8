"""Pydantic request schemas for the auxiliary backend endpoints.

Defaults mirror what the plugin panels submit when a form field is left
blank.  Serialize with :func:`to_payload`, which drops ``None`` values so
that the backend applies its own defaults for optional overrides.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

NoteType = Union[Literal["all", "video", "image"], Literal[0, 1, 2]]

SortOrder = Literal[
    "general",
    "popularity",
    "most_popular",
    "latest",
    "popularity_descending",
    "time_descending",
]


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid")


def to_payload(model: BaseModel) -> dict[str, Any]:
    """Return the JSON body for ``model`` without ``None`` values."""
    return model.model_dump(mode="json", exclude_none=True)


# ---------------------------------------------------------------------------
# Keyword analytics
# ---------------------------------------------------------------------------


class CountNotesRequest(_Request):
    """Body of ``POST /xhs/count_notes_by_time_range``.

    Counts notes matching ``keyword`` published inside
    ``[start_time_ms, end_time_ms]``.
    """

    keyword: str = Field(min_length=1)
    cookies: str = Field(default="", repr=False)
    start_time_ms: int = Field(gt=0)
    end_time_ms: int = Field(gt=0)
    note_type: NoteType = "all"
    page_size: int = Field(default=20, ge=1)
    max_pages: int = Field(default=10, ge=1)
    sleep_ms_min: int = Field(default=600, ge=0)
    sleep_ms_max: int = Field(default=1800, ge=0)
    headless: bool = True

    @model_validator(mode="after")
    def _check_ranges(self) -> CountNotesRequest:
        if self.end_time_ms < self.start_time_ms:
            raise ValueError("end_time_ms must be >= start_time_ms")
        if self.sleep_ms_max < self.sleep_ms_min:
            raise ValueError("sleep_ms_max must be >= sleep_ms_min")
        return self


class LowFanViralRequest(_Request):
    """Body of ``POST /xhs/low_fan_viral``.

    Finds notes with at least ``like_threshold`` likes whose authors have at
    most ``fan_threshold`` followers.
    """

    keyword: str = Field(min_length=1)
    cookies: str = Field(default="", repr=False)
    like_threshold: int = Field(default=1000, ge=0)
    fan_threshold: int = Field(default=2000, ge=0)
    sort: SortOrder = "general"
    note_type: NoteType = "all"
    page_size: int = Field(default=20, ge=1)
    max_results: int = Field(default=60, ge=1)
    concurrency: int = Field(default=5, ge=1)
    cache_ttl_seconds: int = Field(default=86400, ge=0)
    headless: bool = True


# ---------------------------------------------------------------------------
# Compliance
# ---------------------------------------------------------------------------


class ComplianceCheckRequest(_Request):
    """Body of ``POST /compliance/check``.

    Either ``text`` or ``xhs_note_url`` (or both) is checked.  The ``ai_*``
    overrides are optional; when omitted the backend uses its own settings.
    """

    text: str = ""
    xhs_note_url: str = ""
    cookies: str = Field(default="", repr=False)
    headless: bool = True
    severity_threshold: int = Field(default=3, ge=1, le=5)
    enable_ai: bool = False
    ai_base_url: Optional[str] = None
    ai_api_key: Optional[str] = Field(default=None, repr=False)
    ai_model: Optional[str] = None
    ai_timeout_seconds: Optional[float] = None
    ai_temperature: Optional[float] = None
    ai_max_tokens: Optional[int] = None

    @model_validator(mode="after")
    def _require_subject(self) -> ComplianceCheckRequest:
        if not self.text.strip() and not self.xhs_note_url.strip():
            raise ValueError("either text or xhs_note_url is required")
        return self


# ---------------------------------------------------------------------------
# Monitor
# ---------------------------------------------------------------------------


class MonitorAddRequest(_Request):
    """Body of ``POST /monitor/add_note``.

    ``note_url`` should include its ``xsec_token`` query parameter so the
    monitor worker can open the note without a search context.
    """

    note_url: Optional[str] = None
    note_id: Optional[str] = None
    xsec_token: Optional[str] = None
    xsec_source: Optional[str] = None
    like_growth_threshold: int = Field(default=100, ge=0)
    comment_growth_threshold: int = Field(default=20, ge=0)
    check_interval_minutes: int = Field(default=120, ge=1)
    is_active: bool = True
    cookies: str = Field(default="", repr=False)
    headless: bool = True
    initialize_baseline: bool = True

    @model_validator(mode="after")
    def _require_note(self) -> MonitorAddRequest:
        if not (self.note_url or "").strip() and not (self.note_id or "").strip():
            raise ValueError("either note_url or note_id is required")
        return self


class MonitorNoteAction(_Request):
    """Body of ``POST /monitor/check_now`` and ``/monitor/reset_baseline``."""

    note_id: str = Field(min_length=1)
    cookies: str = Field(default="", repr=False)
    headless: bool = True


class MonitorUpdateRequest(_Request):
    """Body of ``POST /monitor/update_note``.  Unset fields are left unchanged."""

    note_id: str = Field(min_length=1)
    is_active: Optional[bool] = None
    like_growth_threshold: Optional[int] = Field(default=None, ge=0)
    comment_growth_threshold: Optional[int] = Field(default=None, ge=0)
    check_interval_minutes: Optional[int] = Field(default=None, ge=1)
