"""Crawl orchestration: one user request from cell url to written row.

Sequence for one :class:`~rednote_sync.crawler.models.CrawlRequest`::

    validate → CrawlerClient.start → CompletionPoller.wait
             → ArtifactResolver.resolve → FieldReconciler.write

The orchestrator is the single catch point.  Any stage failure aborts the
run, appends a terminal failure entry to the progress log and is returned as
a :class:`CrawlFailure`; nothing is raised to the caller.  Validation runs
before any network call.

Usage::

    async with build_http_client(settings.backend_api_base) as http:
        orchestrator = CrawlOrchestrator.from_settings(http, table, session, settings)
        outcome = await orchestrator.run_for_selection()
        if outcome.ok:
            ...
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Union

import httpx

from rednote_sync.config.settings import Settings
from rednote_sync.core.credentials import CookieSession
from rednote_sync.core.exceptions import (
    ErrorKind,
    NetworkError,
    NotFoundError,
    RednoteSyncError,
    ValidationError,
)
from rednote_sync.core.logging_config import run_id_var
from rednote_sync.core.progress import ProgressLog
from rednote_sync.crawler.artifacts import ArtifactResolver, extract_note_id
from rednote_sync.crawler.client import CrawlerClient
from rednote_sync.crawler.config import PLATFORM_URL_MARKER
from rednote_sync.crawler.models import ArtifactDescriptor, CrawlRequest, NoteRecord
from rednote_sync.crawler.poller import CompletionPoller, PollPolicy, SleepFn
from rednote_sync.table.base import HostTable
from rednote_sync.table.cells import list_source_fields, normalize_cell
from rednote_sync.table.fields import FieldDeclaration, select_declarations
from rednote_sync.table.reconciler import FieldReconciler, FieldWrite

logger = logging.getLogger(__name__)

MIXED_CONTENT_HINT: str = (
    "Network error: the backend is unreachable. If the host runs on HTTPS, "
    "an http:// backend is blocked as mixed content."
)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CrawlSuccess:
    """A completed run.

    Attributes:
        record: The note record written back.
        artifact: The result file it was read from.
        writes: Cells written, in declaration order.
        log: The run's progress log.
    """

    record: NoteRecord
    artifact: ArtifactDescriptor
    writes: list[FieldWrite]
    log: ProgressLog = field(repr=False)

    ok = True


@dataclass(frozen=True)
class CrawlFailure:
    """An aborted run.

    Attributes:
        kind: Failure category.
        message: Most specific message available, suitable for the user.
        log: The run's progress log.
    """

    kind: ErrorKind
    message: str
    log: ProgressLog = field(repr=False)

    ok = False


CrawlOutcome = Union[CrawlSuccess, CrawlFailure]


def validate_request(request: CrawlRequest) -> None:
    """Reject requests that cannot succeed, without any network call.

    Raises:
        ValidationError: On an empty url, an empty cookie, a url that is not
            a RedNote url, or a url without a note identifier.
    """
    url = request.target_url.strip()
    if not url:
        raise ValidationError("The selected cell has no note url", field="target_url")
    if not request.cookie.strip():
        raise ValidationError("A RedNote cookie is required", field="cookie")
    if PLATFORM_URL_MARKER not in url:
        raise ValidationError(
            "The selected cell is not a valid RedNote (xiaohongshu) link", field="target_url"
        )
    if extract_note_id(url) is None:
        raise ValidationError(
            "The link does not contain a note id (expected .../explore/<id>)",
            field="target_url",
        )
    if not request.record_id:
        raise ValidationError("Select a row in the table first", field="record_id")


def user_message(exc: RednoteSyncError) -> str:
    """Return the user-facing text for ``exc``.

    Backend errors already carry the server detail as their message; network
    errors get a hint about mixed-content blocking.
    """
    if isinstance(exc, NetworkError):
        return f"{MIXED_CONTENT_HINT} ({exc})"
    return str(exc)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class CrawlOrchestrator:
    """Runs crawl requests for one plugin session.

    An instance serves one user at a time: a call made while another run is
    in progress returns a :class:`CrawlFailure` of kind
    :attr:`ErrorKind.BUSY` without touching the network.  Separate instances
    do not coordinate with each other.

    Args:
        client: Remote job client.
        resolver: Artifact resolver.
        table: Host table to read the url from and write the result into.
        session: Cookie session.
        policy: Poll policy.
        sleep: Async sleep used by the poller (injected in tests).
    """

    def __init__(
        self,
        client: CrawlerClient,
        resolver: ArtifactResolver,
        table: HostTable,
        session: CookieSession,
        policy: PollPolicy | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        self._client = client
        self._resolver = resolver
        self._table = table
        self._session = session
        self._policy = policy or PollPolicy()
        self._sleep = sleep
        self.in_progress = False

    @classmethod
    def from_settings(
        cls,
        http_client: httpx.AsyncClient,
        table: HostTable,
        session: CookieSession,
        settings: Settings,
    ) -> CrawlOrchestrator:
        return cls(
            client=CrawlerClient(http_client),
            resolver=ArtifactResolver(http_client, preview_limit=settings.artifact_preview_limit),
            table=table,
            session=session,
            policy=PollPolicy.from_settings(settings),
        )

    async def run_for_selection(
        self,
        source_field_id: str | None = None,
        keys: Iterable[str] | None = None,
        log: ProgressLog | None = None,
    ) -> CrawlOutcome:
        """Crawl the url in the selected row's ``source_field_id`` cell.

        Args:
            source_field_id: Column holding note urls.  When omitted, the
                selected column is used if it is a text or url column,
                otherwise the first such column.
            keys: Record keys to write back; ``None`` writes all.
            log: Progress log to append to; a new one is created if omitted.
        """
        log = log or ProgressLog()
        try:
            selection = await self._table.get_selection()
            if not selection.record_id:
                raise ValidationError("Select a row in the table first", field="record_id")
            record_id = selection.record_id
            log.info(f"Reading record {record_id}")
            if source_field_id is None:
                source_field_id = await self._default_source_field(selection.field_id)
            source = await self._table.get_field(source_field_id)
            cell = normalize_cell(await source.get_value(record_id))
        except RednoteSyncError as exc:
            return self._fail(log, exc.kind, user_message(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("orchestrator: reading the selected cell failed")
            return self._fail(log, ErrorKind.HOST, str(exc) or type(exc).__name__)

        request = CrawlRequest(
            target_url=cell.url,
            cookie=self._session.cookie,
            record_id=record_id,
        )
        return await self.run(request, keys=keys, log=log)

    async def _default_source_field(self, selected_field_id: str | None) -> str:
        candidates = [meta.id for meta in await list_source_fields(self._table)]
        if not candidates:
            raise ValidationError("No text or url column holds a note link", field="source_field")
        if selected_field_id is not None and selected_field_id in candidates:
            return selected_field_id
        return candidates[0]

    async def run(
        self,
        request: CrawlRequest,
        keys: Iterable[str] | None = None,
        log: ProgressLog | None = None,
    ) -> CrawlOutcome:
        """Execute one crawl request end to end.

        Args:
            request: The crawl request.
            keys: Record keys to write back; ``None`` writes all.
            log: Progress log to append to; a new one is created if omitted.

        Returns:
            :class:`CrawlSuccess` or :class:`CrawlFailure`.
        """
        log = log or ProgressLog()
        if self.in_progress:
            return self._fail(log, ErrorKind.BUSY, "A crawl is already running")

        try:
            declarations = select_declarations(keys)
        except ValueError as exc:
            return self._fail(log, ErrorKind.VALIDATION, str(exc))

        self.in_progress = True
        token = run_id_var.set(uuid.uuid4().hex[:12])
        try:
            return await self._run(request, declarations, log)
        finally:
            run_id_var.reset(token)
            self.in_progress = False

    async def _run(
        self,
        request: CrawlRequest,
        declarations: list[FieldDeclaration],
        log: ProgressLog,
    ) -> CrawlOutcome:
        log.info("Crawl task initialised")
        try:
            validate_request(request)
            log.info(f"Captured link: {request.target_url[:30]}...")

            log.info("Sending crawl request")
            await self._client.start(request)

            log.info("Waiting for the crawler")
            poller = CompletionPoller(
                self._client,
                self._policy,
                sleep=self._sleep,
                on_heartbeat=lambda _tick: log.heartbeat("...still crawling"),
            )
            await poller.wait()
            log.info("Crawler finished")

            log.info("Fetching result data")
            artifact, record = await self._resolver.resolve(request.target_url)

            log.info("Writing to the table")
            reconciler = FieldReconciler(
                self._table,
                on_field_created=lambda name: log.info(f"  + created column: {name}"),
            )
            writes = await reconciler.write(record, request.record_id, declarations)
        except NotFoundError as exc:
            return self._fail(
                log, exc.kind, f"No usable data returned, the crawl may have been blocked: {exc}"
            )
        except RednoteSyncError as exc:
            return self._fail(log, exc.kind, user_message(exc))
        except Exception as exc:  # noqa: BLE001
            # Host-table implementations may raise anything.
            logger.exception("orchestrator: unexpected failure")
            return self._fail(log, ErrorKind.HOST, str(exc) or type(exc).__name__)

        log.success("All done")
        logger.info(
            "orchestrator: record=%s note_id=%s fields=%d",
            request.record_id,
            record.note_id,
            len(writes),
        )
        return CrawlSuccess(record=record, artifact=artifact, writes=writes, log=log)

    @staticmethod
    def _fail(log: ProgressLog, kind: ErrorKind, message: str) -> CrawlFailure:
        log.failure(f"Error: {message}")
        logger.warning("orchestrator: run failed kind=%s: %s", kind.value, message)
        return CrawlFailure(kind=kind, message=message, log=log)
