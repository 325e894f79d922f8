"""Backend request dispatch shared by the crawler and services clients.

Every backend call goes through :func:`request_json`, which maps httpx
failures onto the application exception hierarchy:

- ``httpx.RequestError`` (connect errors, timeouts, blocked requests)
  → :class:`~rednote_sync.core.exceptions.NetworkError`
- non-2xx responses → :class:`~rednote_sync.core.exceptions.BackendError`
  carrying the server-supplied ``detail`` when the body has one.

Callers own the :class:`httpx.AsyncClient`; :func:`build_http_client` creates
one bound to the configured backend base URL.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from rednote_sync.core.exceptions import BackendError, NetworkError

logger = logging.getLogger(__name__)

USER_AGENT: str = "rednote-sync/0.3 (+bitable plugin)"


def build_http_client(api_base: str, timeout: float = 30.0) -> httpx.AsyncClient:
    """Create an :class:`httpx.AsyncClient` bound to ``api_base``.

    Args:
        api_base: Backend base URL including the ``/api`` prefix.
        timeout: Default timeout in seconds; individual calls override it.
    """
    return httpx.AsyncClient(
        base_url=api_base.rstrip("/"),
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
    )


def extract_detail(response: httpx.Response) -> str | None:
    """Return the most specific error text carried by a backend response.

    Recognises FastAPI's ``{"detail": "..."}`` and
    ``{"detail": [{"msg": "..."}]}`` shapes as well as ``{"message": "..."}``.
    Falls back to a truncated plain-text body.

    Args:
        response: A non-2xx response.

    Returns:
        Detail text, or ``None`` if the body carries nothing usable.
    """
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:200] or None

    if isinstance(body, dict):
        detail = body.get("detail")
        if isinstance(detail, str) and detail:
            return detail
        if isinstance(detail, list):
            msgs = [
                str(item.get("msg"))
                for item in detail
                if isinstance(item, dict) and item.get("msg")
            ]
            if msgs:
                return "; ".join(msgs)
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
    return None


async def request_json(
    client: httpx.AsyncClient,
    method: str,
    path: str,
    *,
    operation: str,
    timeout: float | None = None,
    json: Any = None,
    params: dict[str, Any] | None = None,
) -> Any:
    """Send one backend request and return its decoded JSON body.

    Args:
        client: HTTP client bound to the backend base URL.
        method: HTTP method (``"GET"`` or ``"POST"``).
        path: Endpoint path relative to the base URL.
        operation: Dotted operation label used in errors and logs
            (e.g. ``"crawler.start"``).
        timeout: Per-call timeout in seconds; ``None`` keeps the client default.
        json: Optional JSON request body.
        params: Optional query parameters.

    Returns:
        The decoded JSON body, or ``None`` when the body is empty or not JSON.

    Raises:
        NetworkError: On any transport-level failure.
        BackendError: On a non-2xx response.
    """
    kwargs: dict[str, Any] = {}
    if timeout is not None:
        kwargs["timeout"] = timeout
    if json is not None:
        kwargs["json"] = json
    if params is not None:
        kwargs["params"] = params

    try:
        response = await client.request(method, path, **kwargs)
    except httpx.TimeoutException as exc:
        raise NetworkError(f"{operation}: request timed out", operation=operation) from exc
    except httpx.RequestError as exc:
        raise NetworkError(
            f"{operation}: network error: {exc}", operation=operation
        ) from exc

    if response.is_error:
        detail = extract_detail(response)
        logger.warning(
            "http: %s returned HTTP %d: %s", operation, response.status_code, detail
        )
        raise BackendError(
            detail or f"{operation}: HTTP {response.status_code}",
            status_code=response.status_code,
            detail=detail,
            operation=operation,
        )

    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        logger.debug("http: %s returned a non-JSON body", operation)
        return None
