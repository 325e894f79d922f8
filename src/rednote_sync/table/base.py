"""Abstract host-table interface consumed by the crawl core.

The plugin runs inside a bitable-style host application.  The core never
talks to the host directly; it goes through :class:`HostTable` and
:class:`FieldHandle`, so the same orchestration code can drive the real host
bridge, the :class:`~rednote_sync.table.memory.InMemoryTable` used by the CLI,
or a test double.

Example::

    class MyTable(HostTable):
        async def get_field(self, field_id): ...
        async def get_field_by_name(self, name): ...
        async def add_field(self, field_type, name): ...
        async def get_field_meta_list_by_type(self, field_type): ...
        async def get_selection(self): ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any


class FieldType(str, Enum):
    """Column types the plugin reads from or creates on the host table."""

    TEXT = "text"
    NUMBER = "number"
    DATE_TIME = "date_time"
    URL = "url"


@dataclass(frozen=True)
class FieldMeta:
    """Metadata of one host-table column."""

    id: str
    name: str
    type: FieldType


@dataclass(frozen=True)
class Selection:
    """The host's current cell selection.

    Attributes:
        record_id: Selected row, or ``None`` when nothing is selected.
        field_id: Selected column, if the host reports one.
    """

    record_id: str | None = None
    field_id: str | None = None


class FieldHandle(ABC):
    """Read/write access to one column."""

    @property
    @abstractmethod
    def id(self) -> str: ...

    @abstractmethod
    async def get_value(self, record_id: str) -> Any:
        """Return the raw cell value stored for ``record_id``."""

    @abstractmethod
    async def set_value(self, record_id: str, value: Any) -> None:
        """Overwrite the cell value for ``record_id``."""


class HostTable(ABC):
    """Capabilities of the active host table.

    Implementations must raise
    :class:`~rednote_sync.core.exceptions.FieldNotFoundError` from
    :meth:`get_field_by_name` (and :meth:`get_field`) when the column does not
    exist; any other exception is treated as a genuine host failure.
    """

    @abstractmethod
    async def get_field(self, field_id: str) -> FieldHandle: ...

    @abstractmethod
    async def get_field_by_name(self, name: str) -> FieldHandle: ...

    @abstractmethod
    async def add_field(self, field_type: FieldType, name: str) -> str:
        """Create a column and return its id."""

    @abstractmethod
    async def get_field_meta_list_by_type(self, field_type: FieldType) -> list[FieldMeta]: ...

    @abstractmethod
    async def get_selection(self) -> Selection: ...
