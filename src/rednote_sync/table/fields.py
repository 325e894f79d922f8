"""Static field declarations and type coercion for written-back note fields."""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from rednote_sync.table.base import FieldType


@dataclass(frozen=True)
class FieldDeclaration:
    """Maps a note record key to a host-table column.

    Attributes:
        key: Key in the :class:`~rednote_sync.crawler.models.NoteRecord`.
        display_name: Column name looked up (and created) on the host table.
        declared_type: Column type used at creation and for coercion.
    """

    key: str
    display_name: str
    declared_type: FieldType


AVAILABLE_FIELDS: tuple[FieldDeclaration, ...] = (
    FieldDeclaration("title", "笔记标题", FieldType.TEXT),
    FieldDeclaration("nickname", "博主昵称", FieldType.TEXT),
    FieldDeclaration("desc", "笔记描述", FieldType.TEXT),
    FieldDeclaration("liked_count", "点赞数", FieldType.NUMBER),
    FieldDeclaration("time", "发布时间", FieldType.DATE_TIME),
)

AVAILABLE_KEYS: tuple[str, ...] = tuple(f.key for f in AVAILABLE_FIELDS)


def select_declarations(keys: Iterable[str] | None) -> list[FieldDeclaration]:
    """Return the declarations for ``keys`` in canonical order.

    ``None`` selects every declaration.  Unknown keys are rejected so that a
    typo does not silently write nothing.

    Raises:
        ValueError: If a key is not declared.
    """
    if keys is None:
        return list(AVAILABLE_FIELDS)
    wanted = set(keys)
    unknown = wanted - set(AVAILABLE_KEYS)
    if unknown:
        raise ValueError(f"Unknown field keys: {', '.join(sorted(unknown))}")
    return [f for f in AVAILABLE_FIELDS if f.key in wanted]


class CoercionError(ValueError):
    """A record value cannot be represented in the declared column type."""


def _to_number(value: Any) -> int | float:
    if isinstance(value, bool):
        raise CoercionError(f"boolean {value!r} is not a number")
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError as exc:
            raise CoercionError(f"{value!r} is not numeric") from exc
    else:
        raise CoercionError(f"{type(value).__name__} is not numeric")
    if isinstance(number, float):
        if not math.isfinite(number):
            raise CoercionError(f"{value!r} is not finite")
        if number.is_integer():
            return int(number)
    return number


def coerce_value(value: Any, declared_type: FieldType) -> int | float | str:
    """Cast ``value`` for a column of ``declared_type``.

    Number columns receive an ``int`` when the value is integral, otherwise a
    ``float``.  DateTime columns receive epoch milliseconds as an ``int``.
    Every other type receives text: objects and arrays as JSON with CJK
    characters kept as-is, anything else as ``str(value)``.

    Raises:
        CoercionError: If a Number/DateTime value is not numeric.
    """
    if declared_type is FieldType.NUMBER:
        return _to_number(value)
    if declared_type is FieldType.DATE_TIME:
        return int(_to_number(value))
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def is_blank(value: Any) -> bool:
    """``True`` for values that are skipped instead of written."""
    return value is None or value == ""
