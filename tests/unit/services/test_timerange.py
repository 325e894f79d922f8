"""Tests for user-entered time bound parsing."""

from __future__ import annotations

from datetime import datetime

import pytest

from rednote_sync.core.exceptions import ValidationError
from rednote_sync.services.timerange import build_time_range, format_ms, parse_datetime_to_ms


class TestParseDatetimeToMs:
    def test_millisecond_timestamp_passes_through(self) -> None:
        assert parse_datetime_to_ms("1769616000000") == 1769616000000

    def test_utc_iso_string(self) -> None:
        assert parse_datetime_to_ms("2026-01-29T00:00:00Z") == 1769644800000

    def test_space_separated_local_time(self) -> None:
        expected = int(datetime(2026, 1, 29, 8, 30).timestamp() * 1000)

        assert parse_datetime_to_ms("2026-01-29 08:30:00") == expected

    @pytest.mark.parametrize("text", [None, "", "   ", "yesterday", "2026-13-01"])
    def test_unparsable_is_zero(self, text) -> None:
        assert parse_datetime_to_ms(text) == 0


class TestBuildTimeRange:
    def test_valid_range(self) -> None:
        assert build_time_range("1769616000000", "1769702400000") == (
            1769616000000,
            1769702400000,
        )

    def test_missing_bound(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            build_time_range("", "1769702400000")

        assert exc_info.value.field == "time_range"

    def test_inverted_range(self) -> None:
        with pytest.raises(ValidationError, match="end_time"):
            build_time_range("1769702400000", "1769616000000")


class TestFormatMs:
    def test_renders_local_time_and_raw_value(self) -> None:
        expected = f"{datetime.fromtimestamp(1769616000):%Y-%m-%d %H:%M:%S} (1769616000000)"

        assert format_ms(1769616000000) == expected

    @pytest.mark.parametrize("value", [None, 0, -5, "abc"])
    def test_unusable(self, value) -> None:
        assert format_ms(value) == "-"
