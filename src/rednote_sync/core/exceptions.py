"""Application-wide exception hierarchy for rednote-sync.

All custom exceptions subclass ``RednoteSyncError``, enabling a single catch
point in the orchestrator and consistent structured logging.

Hierarchy::

    RednoteSyncError
    ├── ValidationError          (raised before any network call)
    ├── NetworkError             (transport failure, mixed-content blocking)
    ├── PollTimeoutError         (attempts: int)
    ├── NotFoundError            (no artifacts, records or match)
    ├── BackendError             (status_code: int, detail: str | None)
    └── FieldNotFoundError       (name: str)

:class:`ErrorKind` is the stable, serialisable tag the orchestrator attaches
to a failed run.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Failure category reported on a :class:`~rednote_sync.orchestrator.CrawlFailure`.

    Attributes:
        VALIDATION: Input rejected before any remote call.
        NETWORK: The backend could not be reached.
        TIMEOUT: The crawl job did not become idle within the poll bound.
        NOT_FOUND: No artifact, no record, or no matching record.
        BACKEND: The backend answered with a non-2xx response.
        BUSY: The orchestrator instance is already running a crawl.
        HOST: The host table raised an unexpected error.
    """

    VALIDATION = "validation"
    NETWORK = "network"
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    BACKEND = "backend"
    BUSY = "busy"
    HOST = "host"


class RednoteSyncError(Exception):
    """Base class for all rednote-sync exceptions.

    Subclasses set :attr:`kind` so the orchestrator can map an exception to
    an :class:`ErrorKind` without an ``isinstance`` ladder.
    """

    kind: ErrorKind = ErrorKind.HOST


# ---------------------------------------------------------------------------
# Input exceptions
# ---------------------------------------------------------------------------


class ValidationError(RednoteSyncError):
    """Raised when user input is missing or malformed.

    Covers an empty target url, an empty cookie, a url that does not point at
    a note, an empty keyword, or an unparsable/inverted time range.  Always
    raised before any network round trip.

    Args:
        message: Human-readable description shown to the user.
        field: Name of the offending input (e.g. ``"cookie"``).
    """

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


# ---------------------------------------------------------------------------
# Remote exceptions
# ---------------------------------------------------------------------------


class NetworkError(RednoteSyncError):
    """Raised when the backend cannot be reached.

    Args:
        message: Transport-level description of the failure.
        operation: Backend operation that failed (e.g. ``"crawler.start"``).
    """

    kind = ErrorKind.NETWORK

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class BackendError(RednoteSyncError):
    """Raised when the backend answers with a non-2xx status.

    The message is the server-supplied ``detail`` (or ``message``) when the
    body carries one, so that the most specific text reaches the user.

    Args:
        message: Human-readable description.
        status_code: HTTP status code of the response.
        detail: Server-supplied detail text, if any.
        operation: Backend operation that failed.
    """

    kind = ErrorKind.BACKEND

    def __init__(
        self,
        message: str,
        status_code: int,
        detail: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail
        self.operation = operation


class PollTimeoutError(RednoteSyncError):
    """Raised when the crawl job is still running after the last allowed tick.

    Args:
        attempts: Number of status checks issued before giving up.
        interval: Seconds slept before each check.
    """

    kind = ErrorKind.TIMEOUT

    def __init__(self, attempts: int, interval: float) -> None:
        super().__init__(
            f"Crawler did not finish after {attempts} status checks "
            f"(~{attempts * interval:.0f}s); check the backend service"
        )
        self.attempts = attempts
        self.interval = interval


class NotFoundError(RednoteSyncError):
    """Raised when no artifact, no record, or no matching record exists."""

    kind = ErrorKind.NOT_FOUND


# ---------------------------------------------------------------------------
# Host-table exceptions
# ---------------------------------------------------------------------------


class FieldNotFoundError(RednoteSyncError):
    """Raised by a host table when a field lookup misses.

    This is the only lookup failure that makes the reconciler create a field.

    Args:
        name: Display name or id that was looked up.
    """

    kind = ErrorKind.HOST

    def __init__(self, name: str) -> None:
        super().__init__(f"Field not found: {name!r}")
        self.name = name
