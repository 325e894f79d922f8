"""In-memory :class:`HostTable` implementation.

Used by the ``rednote-sync crawl`` command to run the full pipeline without a
host application, and by the test suite as a faithful fake.  Field ids are
assigned sequentially (``fld1``, ``fld2``, ...); names are unique.
"""

from __future__ import annotations

import itertools
from typing import Any

from rednote_sync.core.exceptions import FieldNotFoundError
from rednote_sync.table.base import FieldHandle, FieldMeta, FieldType, HostTable, Selection


class InMemoryField(FieldHandle):
    def __init__(self, meta: FieldMeta) -> None:
        self.meta = meta
        self.values: dict[str, Any] = {}

    @property
    def id(self) -> str:
        return self.meta.id

    async def get_value(self, record_id: str) -> Any:
        return self.values.get(record_id)

    async def set_value(self, record_id: str, value: Any) -> None:
        self.values[record_id] = value


class InMemoryTable(HostTable):
    """A dict-backed table with a settable selection.

    Example::

        table = InMemoryTable()
        link_id = table.create_field(FieldType.URL, "链接")
        table.put(link_id, "rec1", [{"text": url, "link": url}])
        table.select("rec1")
    """

    def __init__(self) -> None:
        self._fields: dict[str, InMemoryField] = {}
        self._ids = itertools.count(1)
        self._selection = Selection()

    # -- synchronous helpers for seeding and inspection --------------------

    def create_field(self, field_type: FieldType, name: str) -> str:
        if any(f.meta.name == name for f in self._fields.values()):
            raise ValueError(f"Field {name!r} already exists")
        field_id = f"fld{next(self._ids)}"
        self._fields[field_id] = InMemoryField(FieldMeta(field_id, name, field_type))
        return field_id

    def put(self, field_id: str, record_id: str, value: Any) -> None:
        self._fields[field_id].values[record_id] = value

    def select(self, record_id: str | None, field_id: str | None = None) -> None:
        self._selection = Selection(record_id=record_id, field_id=field_id)

    def field_names(self) -> list[str]:
        return [f.meta.name for f in self._fields.values()]

    def row(self, record_id: str) -> dict[str, Any]:
        """Return ``{field name: value}`` for every populated cell of ``record_id``."""
        return {
            f.meta.name: f.values[record_id]
            for f in self._fields.values()
            if record_id in f.values
        }

    # -- HostTable --------------------------------------------------------

    async def get_field(self, field_id: str) -> InMemoryField:
        try:
            return self._fields[field_id]
        except KeyError:
            raise FieldNotFoundError(field_id) from None

    async def get_field_by_name(self, name: str) -> InMemoryField:
        for field in self._fields.values():
            if field.meta.name == name:
                return field
        raise FieldNotFoundError(name)

    async def add_field(self, field_type: FieldType, name: str) -> str:
        return self.create_field(field_type, name)

    async def get_field_meta_list_by_type(self, field_type: FieldType) -> list[FieldMeta]:
        return [f.meta for f in self._fields.values() if f.meta.type is field_type]

    async def get_selection(self) -> Selection:
        return self._selection
