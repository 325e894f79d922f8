"""Tests for FieldReconciler: column creation, coercion and write-back."""

from __future__ import annotations

import pytest

from rednote_sync.crawler.models import NoteRecord
from rednote_sync.table.base import FieldType
from rednote_sync.table.fields import AVAILABLE_FIELDS, FieldDeclaration, select_declarations
from rednote_sync.table.memory import InMemoryField, InMemoryTable
from rednote_sync.table.reconciler import FieldReconciler

RECORD = NoteRecord(
    {
        "note_id": "abc123",
        "title": "Weekend camping",
        "nickname": "outdoor_lin",
        "desc": "Three tips for beginners",
        "liked_count": "1234",
        "time": 1769616000000,
    }
)


class ExplodingField(InMemoryField):
    """Field whose writes always fail."""

    async def set_value(self, record_id, value) -> None:
        raise RuntimeError("host rejected the write")


class TableWithBrokenColumn(InMemoryTable):
    def __init__(self, broken_name: str) -> None:
        super().__init__()
        self._broken_name = broken_name

    async def get_field(self, field_id: str):
        field = await super().get_field(field_id)
        if field.meta.name == self._broken_name:
            broken = ExplodingField(field.meta)
            broken.values = field.values
            return broken
        return field


@pytest.mark.asyncio
class TestFieldReconciler:
    async def test_creates_missing_columns_with_declared_types(self) -> None:
        table = InMemoryTable()
        created: list[str] = []

        writes = await FieldReconciler(table, on_field_created=created.append).write(RECORD, "rec1")

        assert created == [f.display_name for f in AVAILABLE_FIELDS]
        assert all(w.created for w in writes)
        likes = await table.get_field_by_name("点赞数")
        assert likes.meta.type is FieldType.NUMBER
        published = await table.get_field_by_name("发布时间")
        assert published.meta.type is FieldType.DATE_TIME

    async def test_number_string_is_coerced(self) -> None:
        table = InMemoryTable()

        await FieldReconciler(table).write(RECORD, "rec1")

        assert table.row("rec1") == {
            "笔记标题": "Weekend camping",
            "博主昵称": "outdoor_lin",
            "笔记描述": "Three tips for beginners",
            "点赞数": 1234,
            "发布时间": 1769616000000,
        }

    async def test_existing_column_is_reused(self) -> None:
        table = InMemoryTable()
        table.create_field(FieldType.TEXT, "笔记标题")

        writes = await FieldReconciler(table).write(
            RECORD, "rec1", select_declarations(["title"])
        )

        assert table.field_names() == ["笔记标题"]
        assert writes[0].created is False

    async def test_running_twice_is_idempotent(self) -> None:
        table = InMemoryTable()
        reconciler = FieldReconciler(table)

        await reconciler.write(RECORD, "rec1")
        first = table.row("rec1")
        second_writes = await reconciler.write(RECORD, "rec1")

        assert table.row("rec1") == first
        assert len(table.field_names()) == len(AVAILABLE_FIELDS)
        assert not any(w.created for w in second_writes)

    async def test_blank_values_are_skipped_but_columns_exist(self) -> None:
        table = InMemoryTable()
        record = NoteRecord({"title": "", "nickname": None, "liked_count": 5})

        writes = await FieldReconciler(table).write(record, "rec1")

        assert [w.key for w in writes] == ["liked_count"]
        assert table.row("rec1") == {"点赞数": 5}
        assert len(table.field_names()) == len(AVAILABLE_FIELDS)

    async def test_uncoercible_value_is_skipped(self) -> None:
        table = InMemoryTable()
        record = NoteRecord({"title": "ok", "liked_count": "1.2万"})

        writes = await FieldReconciler(table).write(record, "rec1")

        assert [w.key for w in writes] == ["title"]
        assert "点赞数" not in table.row("rec1")

    async def test_structured_text_value_is_written_as_json(self) -> None:
        table = InMemoryTable()
        record = NoteRecord({"desc": {"text": "三个露营技巧", "tags": ["露营"]}})

        await FieldReconciler(table).write(record, "rec1")

        assert table.row("rec1")["笔记描述"] == '{"text": "三个露营技巧", "tags": ["露营"]}'

    async def test_failure_keeps_earlier_writes(self) -> None:
        table = TableWithBrokenColumn("笔记描述")

        with pytest.raises(RuntimeError, match="host rejected"):
            await FieldReconciler(table).write(RECORD, "rec1")

        row = table.row("rec1")
        assert row == {"笔记标题": "Weekend camping", "博主昵称": "outdoor_lin"}

    async def test_custom_declaration(self) -> None:
        table = InMemoryTable()
        declaration = FieldDeclaration("note_url", "原文链接", FieldType.URL)
        record = NoteRecord({"note_url": "https://www.xiaohongshu.com/explore/abc123"})

        writes = await FieldReconciler(table).write(record, "rec1", [declaration])

        assert writes[0].value == "https://www.xiaohongshu.com/explore/abc123"
