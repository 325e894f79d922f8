"""Session cookie persistence.

The RedNote web cookie is the only long-lived piece of state the plugin
owns.  It is loaded once at startup and written back whenever the user
changes it, through an injected :class:`CredentialStore` so that tests and
alternative hosts can swap the persistence backend.

Usage::

    store = JsonFileCredentialStore(settings.cookie_store_path)
    session = CookieSession(store)
    session.update(pasted_cookie)
    orchestrator = CrawlOrchestrator(..., session=session)

Persistence is best-effort: a store that cannot be read yields an empty
cookie and a failed save is logged at WARNING, never raised.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

COOKIE_STORAGE_KEY: str = "xhs_global_cookie"
"""Key under which the cookie is stored inside the credential file."""


class CredentialStore(Protocol):
    """Key-value persistence collaborator bound to a single credential."""

    def load(self) -> str:
        """Return the stored credential, or ``""`` when none is stored."""
        ...

    def save(self, value: str) -> None:
        """Persist ``value``, replacing any previous credential."""
        ...


class JsonFileCredentialStore:
    """Stores credentials as a JSON object in a local file.

    Other keys already present in the file are preserved on save so that
    several credentials can share one file.

    Args:
        path: File path; ``~`` is expanded.  Parent directories are created
            on first save.
        key: JSON key holding this credential.
    """

    def __init__(self, path: str | Path, key: str = COOKIE_STORAGE_KEY) -> None:
        self.path = Path(path).expanduser()
        self.key = key

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("credentials: could not read %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> str:
        value = self._read_all().get(self.key, "")
        return value if isinstance(value, str) else ""

    def save(self, value: str) -> None:
        data = self._read_all()
        data[self.key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            logger.warning("credentials: could not write %s: %s", self.path, exc)


class CookieSession:
    """Holds the current session cookie with load-at-startup/save-on-change semantics.

    Args:
        store: Persistence collaborator.  Read once, at construction.
    """

    def __init__(self, store: CredentialStore) -> None:
        self._store = store
        self._cookie = store.load().strip()

    @property
    def cookie(self) -> str:
        """The current cookie string (may be empty)."""
        return self._cookie

    @property
    def has_cookie(self) -> bool:
        return bool(self._cookie)

    def update(self, value: str) -> bool:
        """Replace the cookie and persist it when it actually changed.

        Args:
            value: New cookie string; surrounding whitespace is stripped.

        Returns:
            ``True`` if the value changed and was saved.
        """
        value = (value or "").strip()
        if value == self._cookie:
            return False
        self._cookie = value
        self._store.save(value)
        logger.info("credentials: cookie updated (length=%d)", len(value))
        return True

    def clear(self) -> bool:
        """Forget the cookie.  Equivalent to ``update("")``."""
        return self.update("")
