"""Remote job client for the crawler backend.

Thin, stateless wrapper around two endpoints:

- ``POST /crawler/start``: enqueue a detail crawl for one note url.
- ``GET /crawler/status``: report whether the crawler is idle.

No retries are performed here; the poller owns the waiting policy.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from rednote_sync.core.exceptions import RednoteSyncError
from rednote_sync.core.http import request_json
from rednote_sync.crawler.config import (
    CRAWLER_START_PATH,
    CRAWLER_STATUS_PATH,
    IDLE_STATUS,
    START_PAYLOAD_DEFAULTS,
    START_TIMEOUT,
    STATUS_TIMEOUT,
)
from rednote_sync.crawler.models import CrawlRequest, JobStatus

logger = structlog.get_logger(__name__)


def build_start_payload(request: CrawlRequest) -> dict[str, Any]:
    """Return the ``/crawler/start`` JSON body for ``request``."""
    return {
        **START_PAYLOAD_DEFAULTS,
        "specified_ids": request.target_url,
        "cookies": request.cookie,
    }


class CrawlerClient:
    """Issues job-start and status requests to the crawler backend.

    Args:
        http_client: :class:`httpx.AsyncClient` bound to the backend base URL
            (see :func:`~rednote_sync.core.http.build_http_client`).
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    async def start(self, request: CrawlRequest) -> None:
        """Ask the backend to crawl ``request.target_url``.

        The response body is ignored; any 2xx means the job was accepted.

        Raises:
            NetworkError: If the backend is unreachable or does not answer
                within :data:`START_TIMEOUT`.
            BackendError: On a non-2xx response.
        """
        payload = build_start_payload(request)
        await request_json(
            self._http,
            "POST",
            CRAWLER_START_PATH,
            operation="crawler.start",
            timeout=START_TIMEOUT,
            json=payload,
        )
        logger.info("crawler.start_accepted", record_id=request.record_id, payload=payload)

    async def status(self) -> JobStatus:
        """Return the crawler's current :class:`JobStatus`.

        Never raises: a failed or undecodable status check yields
        :attr:`JobStatus.UNKNOWN` so the poller can keep waiting.
        """
        try:
            body = await request_json(
                self._http,
                "GET",
                CRAWLER_STATUS_PATH,
                operation="crawler.status",
                timeout=STATUS_TIMEOUT,
            )
        except RednoteSyncError as exc:
            logger.warning("crawler.status_failed", error=str(exc), kind=exc.kind.value)
            return JobStatus.UNKNOWN

        if not isinstance(body, dict):
            logger.warning("crawler.status_malformed", body=repr(body))
            return JobStatus.UNKNOWN
        if body.get("status") == IDLE_STATUS:
            return JobStatus.IDLE
        return JobStatus.RUNNING
