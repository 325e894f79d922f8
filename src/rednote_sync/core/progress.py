"""Append-only progress log emitted by a crawl run.

The orchestrator appends one :class:`ProgressEntry` per step; the
presentation layer (the CLI, or a host-table side panel) subscribes and
renders entries as they arrive.  Entries are never replayed or persisted.

Every entry is also forwarded to the stdlib logger so that the structured
log carries the same timeline as the user-facing console.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

logger = logging.getLogger(__name__)


class ProgressLevel(str, Enum):
    """Severity of a progress entry, used by renderers for colouring."""

    INFO = "info"
    HEARTBEAT = "heartbeat"
    SUCCESS = "success"
    FAILURE = "failure"


_LOG_LEVELS: dict[ProgressLevel, int] = {
    ProgressLevel.INFO: logging.INFO,
    ProgressLevel.HEARTBEAT: logging.DEBUG,
    ProgressLevel.SUCCESS: logging.INFO,
    ProgressLevel.FAILURE: logging.WARNING,
}


@dataclass(frozen=True)
class ProgressEntry:
    """One line of the progress log.

    Attributes:
        seq: Zero-based position in the log.  Strictly increasing.
        timestamp: Wall-clock time at which the entry was appended.
        level: Entry severity.
        message: Human-readable text.
    """

    seq: int
    timestamp: datetime
    level: ProgressLevel
    message: str

    def render(self) -> str:
        return f"[{self.timestamp:%H:%M:%S}] {self.message}"


ProgressListener = Callable[[ProgressEntry], None]


class ProgressLog:
    """Ordered, append-only sequence of :class:`ProgressEntry` objects.

    Args:
        clock: Zero-argument callable returning the current ``datetime``.
            Injected in tests; defaults to :meth:`datetime.now`.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or datetime.now
        self._entries: list[ProgressEntry] = []
        self._listeners: list[ProgressListener] = []

    def subscribe(self, listener: ProgressListener) -> None:
        """Register a callback invoked synchronously for each new entry."""
        self._listeners.append(listener)

    def append(self, message: str, level: ProgressLevel = ProgressLevel.INFO) -> ProgressEntry:
        """Append an entry and notify subscribers.

        A listener that raises is logged and skipped.
        """
        entry = ProgressEntry(
            seq=len(self._entries),
            timestamp=self._clock(),
            level=level,
            message=message,
        )
        self._entries.append(entry)
        logger.log(_LOG_LEVELS[level], "progress: %s", message)
        for listener in self._listeners:
            try:
                listener(entry)
            except Exception:  # noqa: BLE001
                logger.exception("progress: listener %r failed", listener)
        return entry

    def info(self, message: str) -> ProgressEntry:
        return self.append(message, ProgressLevel.INFO)

    def heartbeat(self, message: str) -> ProgressEntry:
        return self.append(message, ProgressLevel.HEARTBEAT)

    def success(self, message: str) -> ProgressEntry:
        return self.append(message, ProgressLevel.SUCCESS)

    def failure(self, message: str) -> ProgressEntry:
        return self.append(message, ProgressLevel.FAILURE)

    @property
    def entries(self) -> tuple[ProgressEntry, ...]:
        return tuple(self._entries)

    def messages(self) -> list[str]:
        return [entry.message for entry in self._entries]

    def render(self) -> list[str]:
        """Return the log as ``[HH:MM:SS] message`` lines."""
        return [entry.render() for entry in self._entries]

    def __iter__(self) -> Iterator[ProgressEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
