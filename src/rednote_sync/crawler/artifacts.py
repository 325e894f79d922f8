"""Artifact resolution: find the record a crawl produced for one note url.

The crawler backend writes its results to files and exposes them through
``/data/files``.  Resolution runs in four steps:

1. :meth:`ArtifactResolver.list_artifacts` lists result files.
2. :func:`select_latest` picks the newest ``detail_contents`` file.
3. :meth:`ArtifactResolver.fetch_records` reads a bounded preview of it.
4. :func:`match_record` picks the record for the requested note.

The backend is loosely typed: the listing may contain malformed entries, the
preview may be a bare list or ``{"data": [...]}``, and records may miss
fields or carry unexpected types.  All shapes are normalized here, once, so
later stages only see :class:`ArtifactDescriptor` and :class:`NoteRecord`.
Malformed input is dropped or treated as absent, never raised on.
"""

from __future__ import annotations

import logging
import math
import urllib.parse
from collections.abc import Iterable, Sequence
from typing import Any

import httpx

from rednote_sync.core.exceptions import NotFoundError
from rednote_sync.core.http import request_json
from rednote_sync.crawler.config import (
    ARTIFACT_FILE_TYPE,
    ARTIFACT_NAME_MARKER,
    DATA_FILES_PATH,
    DATA_TIMEOUT,
    NOTE_ID_PATTERN,
    PLATFORM,
    RECORDS_WRAPPER_KEY,
)
from rednote_sync.crawler.models import ArtifactDescriptor, NoteRecord

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_LIMIT: int = 2000


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def extract_note_id(url: str) -> str | None:
    """Return the note identifier embedded in ``url``, if any.

    The identifier is the alphanumeric path segment following ``/explore/``;
    query strings and fragments are ignored.  At most one identifier is
    derived per url (the first occurrence).

    >>> extract_note_id("https://www.xiaohongshu.com/explore/abc123?xsec_token=xyz")
    'abc123'
    """
    if not isinstance(url, str):
        return None
    match = NOTE_ID_PATTERN.search(url)
    return match.group(1) if match else None


def _as_timestamp(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if not isinstance(value, (int, float, str)):
        return 0.0
    try:
        result = float(value)
    except (ValueError, OverflowError):
        return 0.0
    # NaN would make max() order-dependent.
    return result if math.isfinite(result) else 0.0


def parse_descriptors(raw_files: Any) -> list[ArtifactDescriptor]:
    """Normalize the ``files`` array of a listing response.

    Entries without a string ``name`` and ``path`` are dropped; a missing,
    non-numeric or non-finite ``modified_at`` becomes ``0``.
    """
    if not isinstance(raw_files, list):
        return []
    descriptors: list[ArtifactDescriptor] = []
    for item in raw_files:
        if not isinstance(item, dict):
            continue
        name, path = item.get("name"), item.get("path")
        if not isinstance(name, str) or not isinstance(path, str) or not path:
            logger.debug("artifacts: dropping malformed listing entry %r", item)
            continue
        descriptors.append(
            ArtifactDescriptor(
                name=name,
                path=path,
                modified_at=_as_timestamp(item.get("modified_at")),
            )
        )
    return descriptors


def normalize_records(raw: Any) -> list[NoteRecord]:
    """Normalize a preview body to a list of :class:`NoteRecord`.

    Accepts a bare list or an object wrapping the list under ``"data"``.
    Items that are not objects are discarded.
    """
    if isinstance(raw, dict):
        raw = raw.get(RECORDS_WRAPPER_KEY)
    if not isinstance(raw, list):
        return []
    return [NoteRecord(item) for item in raw if isinstance(item, dict)]


def select_latest(descriptors: Iterable[ArtifactDescriptor]) -> ArtifactDescriptor:
    """Return the most recently modified detail-result artifact.

    Only names containing :data:`ARTIFACT_NAME_MARKER` are considered.  Ties
    on ``modified_at`` resolve to the first one encountered.

    Raises:
        NotFoundError: If no descriptor matches the naming convention.
    """
    candidates = [d for d in descriptors if ARTIFACT_NAME_MARKER in d.name]
    if not candidates:
        raise NotFoundError(f"No '{ARTIFACT_NAME_MARKER}' result file found")
    # max() keeps the first maximal element, which gives the stable tie-break.
    return max(candidates, key=lambda d: d.modified_at)


def match_record(records: Sequence[NoteRecord], target_url: str) -> NoteRecord | None:
    """Select the record produced for ``target_url``.

    A record matches when its ``note_id`` equals the url's identifier or its
    ``note_url`` contains it.  When no identifier can be extracted or no
    record matches, the last record is returned.

    Returns:
        The matched record, or ``None`` only when ``records`` is empty.
    """
    if not records:
        return None

    note_id = extract_note_id(target_url)
    if note_id:
        for record in records:
            note_url = record.note_url
            if record.note_id == note_id or (note_url and note_id in note_url):
                return record

    # A single-note crawl normally leaves its note last in the file, but this
    # can attach an unrelated note to the row when the match genuinely fails.
    logger.warning(
        "artifacts: no record matched note_id=%s among %d records; using the last one",
        note_id,
        len(records),
    )
    return records[-1]


def encode_artifact_path(path: str) -> str:
    """Percent-encode ``path`` for use in a url while keeping ``/`` separators.

    The backend route is ``/data/files/{file_path:path}``, so encoding the
    slashes would make the file unreachable.
    """
    return urllib.parse.quote(path.lstrip("/"), safe="/")


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class ArtifactResolver:
    """Lists, selects, fetches and matches crawl result artifacts.

    Args:
        http_client: :class:`httpx.AsyncClient` bound to the backend base URL.
        preview_limit: Maximum number of records requested per preview.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        preview_limit: int = DEFAULT_PREVIEW_LIMIT,
    ) -> None:
        self._http = http_client
        self.preview_limit = preview_limit

    async def list_artifacts(
        self,
        platform: str = PLATFORM,
        file_type: str = ARTIFACT_FILE_TYPE,
    ) -> list[ArtifactDescriptor]:
        """List result files for ``platform`` and ``file_type``.

        Raises:
            NotFoundError: If the backend lists no usable files ("no data").
            NetworkError: If the backend is unreachable.
            BackendError: On a non-2xx response.
        """
        body = await request_json(
            self._http,
            "GET",
            DATA_FILES_PATH,
            operation="data.files",
            timeout=DATA_TIMEOUT,
            params={"platform": platform, "file_type": file_type},
        )
        raw_files = body.get("files") if isinstance(body, dict) else None
        descriptors = parse_descriptors(raw_files)
        if not descriptors:
            raise NotFoundError("No data: the backend has no result files yet")
        logger.debug("artifacts: %d files listed for platform=%s", len(descriptors), platform)
        return descriptors

    async def fetch_records(
        self,
        descriptor: ArtifactDescriptor,
        preview_limit: int | None = None,
    ) -> list[NoteRecord]:
        """Fetch a bounded preview of ``descriptor`` and normalize it.

        Raises:
            NotFoundError: If the preview holds no records.
            NetworkError: If the backend is unreachable.
            BackendError: On a non-2xx response.
        """
        limit = preview_limit if preview_limit is not None else self.preview_limit
        body = await request_json(
            self._http,
            "GET",
            f"{DATA_FILES_PATH}/{encode_artifact_path(descriptor.path)}",
            operation="data.preview",
            timeout=DATA_TIMEOUT,
            params={"preview": "true", "limit": limit},
        )
        records = normalize_records(body)
        if not records:
            raise NotFoundError(f"Result file {descriptor.name!r} contains no records")
        logger.info("artifacts: %d records read from %s", len(records), descriptor.name)
        return records

    async def resolve(self, target_url: str) -> tuple[ArtifactDescriptor, NoteRecord]:
        """Run list → select → fetch → match for ``target_url``.

        Returns:
            The artifact that was read and the record selected from it.

        Raises:
            NotFoundError: At any step that yields nothing.
        """
        descriptor = select_latest(await self.list_artifacts())
        records = await self.fetch_records(descriptor)
        record = match_record(records, target_url)
        if record is None:
            raise NotFoundError(f"No record found for {target_url!r}")
        return descriptor, record
