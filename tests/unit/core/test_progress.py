"""Tests for the append-only ProgressLog."""

from __future__ import annotations

from datetime import datetime

from rednote_sync.core.progress import ProgressLevel, ProgressLog


def _fixed_clock() -> datetime:
    return datetime(2026, 1, 29, 9, 5, 7)


class TestProgressLog:
    def test_entries_are_ordered_and_sequenced(self) -> None:
        log = ProgressLog(clock=_fixed_clock)

        log.info("first")
        log.heartbeat("second")
        log.success("third")

        assert [e.seq for e in log] == [0, 1, 2]
        assert log.messages() == ["first", "second", "third"]
        assert [e.level for e in log.entries] == [
            ProgressLevel.INFO,
            ProgressLevel.HEARTBEAT,
            ProgressLevel.SUCCESS,
        ]
        assert len(log) == 3

    def test_render_prefixes_wall_clock_time(self) -> None:
        log = ProgressLog(clock=_fixed_clock)

        log.failure("Error: boom")

        assert log.render() == ["[09:05:07] Error: boom"]

    def test_subscribers_receive_each_entry(self) -> None:
        log = ProgressLog(clock=_fixed_clock)
        seen: list[str] = []
        log.subscribe(lambda entry: seen.append(entry.message))

        log.info("a")
        log.info("b")

        assert seen == ["a", "b"]

    def test_failing_subscriber_does_not_break_append(self) -> None:
        log = ProgressLog(clock=_fixed_clock)
        seen: list[str] = []

        def broken(entry) -> None:
            raise RuntimeError("renderer crashed")

        log.subscribe(broken)
        log.subscribe(lambda entry: seen.append(entry.message))

        log.info("still recorded")

        assert log.messages() == ["still recorded"]
        assert seen == ["still recorded"]
