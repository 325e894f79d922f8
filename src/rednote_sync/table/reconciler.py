"""Type-aware write-back of a note record into the requesting row.

For each selected :class:`~rednote_sync.table.fields.FieldDeclaration` the
reconciler resolves the column by display name, creates it when the host
reports it missing, coerces the record value to the declared type and
writes it.

Writes are not transactional.  A failure on one declaration propagates
immediately; columns written before it stay written and later ones are
left untouched.  Running the reconciler twice with the same input yields
the same cell values (overwrite semantics).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from rednote_sync.core.exceptions import FieldNotFoundError
from rednote_sync.crawler.models import NoteRecord
from rednote_sync.table.base import FieldHandle, HostTable
from rednote_sync.table.fields import (
    AVAILABLE_FIELDS,
    CoercionError,
    FieldDeclaration,
    coerce_value,
    is_blank,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldWrite:
    """One cell written by the reconciler.

    Attributes:
        key: Record key that was read.
        field_name: Column display name.
        value: Coerced value that was stored.
        created: ``True`` if the column was created for this write.
    """

    key: str
    field_name: str
    value: Any
    created: bool = False


class FieldReconciler:
    """Writes record fields into one host-table row.

    Args:
        table: Host table to write into.
        on_field_created: Optional callback receiving the display name of
            every column created (used for progress reporting).
    """

    def __init__(
        self,
        table: HostTable,
        on_field_created: Callable[[str], None] | None = None,
    ) -> None:
        self._table = table
        self._on_field_created = on_field_created

    async def ensure_field(self, declaration: FieldDeclaration) -> tuple[FieldHandle, bool]:
        """Resolve the column for ``declaration``, creating it if absent.

        Only :class:`FieldNotFoundError` triggers creation; every other host
        error propagates.

        Returns:
            The field handle and whether it was created.
        """
        try:
            return await self._table.get_field_by_name(declaration.display_name), False
        except FieldNotFoundError:
            pass

        logger.info(
            "reconciler: creating field %r type=%s",
            declaration.display_name,
            declaration.declared_type.value,
        )
        if self._on_field_created is not None:
            self._on_field_created(declaration.display_name)
        field_id = await self._table.add_field(
            declaration.declared_type, declaration.display_name
        )
        return await self._table.get_field(field_id), True

    async def write(
        self,
        record: NoteRecord,
        record_id: str,
        declarations: Iterable[FieldDeclaration] = AVAILABLE_FIELDS,
    ) -> list[FieldWrite]:
        """Write ``record`` into row ``record_id`` for each declaration.

        Blank values (missing, ``None`` or ``""``) and values that cannot be
        coerced to the declared type are skipped without a write.  Columns
        are still ensured for skipped values so that the table layout does
        not depend on what one crawl happened to return.

        Returns:
            The writes performed, in declaration order.
        """
        writes: list[FieldWrite] = []
        for declaration in declarations:
            field, created = await self.ensure_field(declaration)

            raw = record.get(declaration.key)
            if is_blank(raw):
                logger.debug("reconciler: %s is empty, skipped", declaration.key)
                continue
            try:
                value = coerce_value(raw, declaration.declared_type)
            except CoercionError as exc:
                logger.warning(
                    "reconciler: %s skipped, cannot store as %s: %s",
                    declaration.key,
                    declaration.declared_type.value,
                    exc,
                )
                continue

            await field.set_value(record_id, value)
            writes.append(
                FieldWrite(
                    key=declaration.key,
                    field_name=declaration.display_name,
                    value=value,
                    created=created,
                )
            )
        logger.info("reconciler: %d fields written to record=%s", len(writes), record_id)
        return writes
