"""Log output for rednote-sync.

Modules log either through the stdlib API with %-style messages or through
``structlog.get_logger(__name__)`` with key-value events.  Both end up in one
stderr handler rendered by structlog, after :func:`configure_logging` has
been called (the CLI calls it before dispatching a sub-command).

Every record passes through two package processors:

- the current crawl's ``run_id`` (see :data:`run_id_var`) is attached;
- values under cookie, token or key-like names are masked, including inside
  nested payload dicts.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

run_id_var: ContextVar[str | None] = ContextVar("run_id", default=None)
"""Identifier of the crawl run executing in this context, set by the orchestrator."""

REDACTED = "[REDACTED]"

_SECRET_MARKERS: tuple[str, ...] = (
    "cookie",
    "api_key",
    "password",
    "secret",
    "token",
    "credential",
    "authorization",
)


# ---------------------------------------------------------------------------
# Processors
# ---------------------------------------------------------------------------


def _is_secret(key: Any) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in _SECRET_MARKERS)


def _masked(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: REDACTED if _is_secret(k) else _masked(v) for k, v in value.items()}
    return value


def _redact_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Mask secret-named keys at any dict depth, e.g. ``payload["cookies"]``."""
    for key, value in list(event_dict.items()):
        if key == "event":
            continue
        event_dict[key] = REDACTED if _is_secret(key) else _masked(value)
    return event_dict


def _add_run_id(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    run_id = run_id_var.get()
    if run_id is not None:
        event_dict.setdefault("run_id", run_id)
    return event_dict


def _renderer(debug: bool) -> Processor:
    if debug:
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    return structlog.processors.JSONRenderer(ensure_ascii=False)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def configure_logging(log_level: str = "INFO") -> None:
    """Route all package logging to stderr through structlog.

    ``DEBUG`` renders human-readable console lines; any other level renders
    one JSON object per record with ``timestamp``, ``level``, ``logger``,
    ``event`` and, during a crawl, ``run_id``.  Calling it again replaces
    the previous handler.

    Args:
        log_level: Level name, case-insensitive.  Unknown names mean INFO.
    """
    name = log_level.upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        level = logging.INFO
    debug = name == "DEBUG"

    pre_chain: list[Processor] = [
        _add_run_id,
        _redact_secrets,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(debug),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    # Per-request lines from the HTTP stack only at DEBUG.
    transport_level = logging.NOTSET if debug else logging.WARNING
    for transport in ("httpx", "httpcore"):
        logging.getLogger(transport).setLevel(transport_level)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
