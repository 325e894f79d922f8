"""Normalization of raw host cell values.

A url column and a text column return different raw shapes:

- Url columns: ``[{"type": "url", "text": "...", "link": "https://..."}]``
- Rich text columns: ``[{"type": "text", "text": "https://..."}]``
- Some hosts and the in-memory table: a bare string

:func:`normalize_cell` converts any of them into a :class:`CellValue` once,
at ingestion, so the orchestrator never branches on the raw shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from rednote_sync.table.base import FieldMeta, FieldType, HostTable


@dataclass(frozen=True)
class Empty:
    """A cell with no usable content."""

    @property
    def url(self) -> str:
        return ""


@dataclass(frozen=True)
class LinkRef:
    """A hyperlink cell; ``link`` is the target, ``text`` the label."""

    link: str
    text: str = ""

    @property
    def url(self) -> str:
        return self.link


@dataclass(frozen=True)
class PlainText:
    """A text cell, possibly holding a pasted url."""

    text: str

    @property
    def url(self) -> str:
        return self.text.strip()


CellValue = Union[Empty, LinkRef, PlainText]


def normalize_cell(raw: Any) -> CellValue:
    """Convert a raw host cell value to a :class:`CellValue`.

    Only the first segment of a segment list is inspected; a ``link`` wins
    over ``text``.
    """
    if isinstance(raw, str):
        return PlainText(raw) if raw.strip() else Empty()
    if isinstance(raw, list) and raw and isinstance(raw[0], dict):
        first = raw[0]
        link = first.get("link")
        text = first.get("text")
        if isinstance(link, str) and link:
            return LinkRef(link=link, text=text if isinstance(text, str) else "")
        if isinstance(text, str) and text.strip():
            return PlainText(text)
    return Empty()


async def list_source_fields(table: HostTable) -> list[FieldMeta]:
    """Return columns that may hold note urls: text columns first, then url columns."""
    text_fields = await table.get_field_meta_list_by_type(FieldType.TEXT)
    url_fields = await table.get_field_meta_list_by_type(FieldType.URL)
    return [*text_fields, *url_fields]
