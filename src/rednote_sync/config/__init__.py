"""Configuration package for rednote-sync.

Re-exports the settings symbols so that callers can write::

    from rednote_sync.config import get_settings
"""

from __future__ import annotations

from rednote_sync.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
