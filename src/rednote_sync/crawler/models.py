"""Value types passed between the crawler stages.

All types are immutable.  :class:`NoteRecord` wraps the loosely-typed dict the
backend produces and exposes typed accessors that return ``None`` instead of
raising when a field is missing or has an unexpected type.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class CrawlRequest:
    """One user-triggered crawl.

    Attributes:
        target_url: Note url taken from the selected cell.
        cookie: Opaque RedNote web session cookie.
        record_id: Host-table row that receives the result.
    """

    target_url: str
    cookie: str
    record_id: str

    def __repr__(self) -> str:
        # Keep the cookie out of reprs, tracebacks and test output.
        return (
            f"CrawlRequest(target_url={self.target_url!r}, "
            f"cookie=<{len(self.cookie)} chars>, record_id={self.record_id!r})"
        )


class JobStatus(str, Enum):
    """Crawler job state as reported by ``/crawler/status``.

    Attributes:
        RUNNING: A job is in progress (any status other than ``"idle"``).
        IDLE: No job is running; the last job has finished.
        UNKNOWN: The status check itself failed; the caller keeps waiting.
    """

    RUNNING = "running"
    IDLE = "idle"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ArtifactDescriptor:
    """One result file listed by the backend.

    Attributes:
        name: File name, e.g. ``"1_detail_contents_2026-01-29.json"``.
        path: Backend-relative path used to fetch the preview.
        modified_at: Modification time as reported by the backend.
    """

    name: str
    path: str
    modified_at: float = 0.0


class NoteRecord(Mapping[str, Any]):
    """Read-only view over one extracted note.

    Known fields: ``title``, ``nickname``, ``desc``, ``liked_count``,
    ``time`` (epoch ms), ``note_url``, ``note_id``.  Any other keys the
    backend emits are kept and reachable through the mapping interface.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = dict(data)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"NoteRecord(note_id={self.note_id!r}, title={self.text('title')!r})"

    def text(self, key: str) -> str | None:
        """Return ``key`` as a string, or ``None`` when absent or not a string."""
        value = self._data.get(key)
        return value if isinstance(value, str) else None

    @property
    def note_id(self) -> str | None:
        return self.text("note_id")

    @property
    def note_url(self) -> str | None:
        return self.text("note_url")
