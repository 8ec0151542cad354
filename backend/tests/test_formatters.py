"""Tests for display formatters."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from kubedash.utils.formatters import (
    clamp_percentage,
    figure_percentage,
    format_duration,
    format_percentage,
    format_relative_time,
    parse_timestamp,
    percentage,
)
from kubedash.utils.quantity import Dimension, Quantity, parse_quantity

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


class TestPercentage:
    """Tests for percentage helpers."""

    def test_percentage(self) -> None:
        """Used over total, times 100."""
        used = parse_quantity("220000000n", Dimension.CPU)
        total = parse_quantity("8", Dimension.CPU)
        assert percentage(used, total) == pytest.approx(2.75)

    def test_percentage_zero_total(self) -> None:
        """A zero total yields zero rather than dividing by zero."""
        used = parse_quantity("1", Dimension.CPU)
        assert percentage(used, Quantity.zero(Dimension.CPU)) == 0.0

    def test_percentage_zero_over_zero(self) -> None:
        """Zero usage of a zero total is zero."""
        zero = Quantity.zero(Dimension.MEMORY)
        assert percentage(zero, zero) == 0.0

    @pytest.mark.parametrize(
        ("raw", "dimension"),
        [
            ("1n", Dimension.CPU),
            ("250m", Dimension.CPU),
            ("64", Dimension.CPU),
            ("1", Dimension.MEMORY),
            ("1847100Ki", Dimension.MEMORY),
            ("3Pi", Dimension.STORAGE),
        ],
    )
    def test_percentage_of_itself(self, raw: str, dimension: Dimension) -> None:
        """Any positive quantity is 100 percent of itself."""
        quantity = parse_quantity(raw, dimension)
        assert percentage(quantity, quantity) == 100.0

    def test_percentage_is_not_clamped(self) -> None:
        """Overcommitted figures exceed 100."""
        limited = parse_quantity("12", Dimension.CPU)
        total = parse_quantity("8", Dimension.CPU)
        assert percentage(limited, total) == pytest.approx(150.0)

    def test_percentage_rejects_mixed_dimensions(self) -> None:
        """Usage and total must share a dimension."""
        with pytest.raises(ValueError):
            percentage(parse_quantity("1", Dimension.CPU), parse_quantity("1Gi", Dimension.MEMORY))

    def test_figure_percentage_absent(self) -> None:
        """An absent side makes the percentage absent."""
        total = parse_quantity("8", Dimension.CPU)
        assert figure_percentage(None, total) is None
        assert figure_percentage(total, None) is None

    @pytest.mark.parametrize(("value", "expected"), [(-5.0, 0.0), (42.0, 42.0), (150.0, 100.0)])
    def test_clamp_percentage(self, value: float, expected: float) -> None:
        """Clamping keeps values within 0-100."""
        assert clamp_percentage(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(None, "N/A"), (2.75, "2.8%"), (0.0, "0.0%"), (150.0, "100.0%")],
    )
    def test_format_percentage(self, value, expected: str) -> None:
        """Display percentages are clamped and use one decimal."""
        assert format_percentage(value) == expected


class TestTimestamps:
    """Tests for timestamp parsing and relative rendering."""

    def test_parse_timestamp_zulu(self) -> None:
        """Kubernetes UTC timestamps parse as aware datetimes."""
        assert parse_timestamp("2026-10-18T11:50:00Z") == NOW - timedelta(minutes=10)

    def test_parse_timestamp_microseconds(self) -> None:
        """Event times carry microseconds."""
        parsed = parse_timestamp("2026-10-18T11:50:00.123456Z")
        assert parsed is not None
        assert parsed.microsecond == 123456

    def test_parse_timestamp_naive_datetime(self) -> None:
        """Naive datetimes are taken as UTC."""
        assert parse_timestamp(datetime(2026, 10, 18, 12, 0, 0)) == NOW

    @pytest.mark.parametrize("value", [None, "", "yesterday", 12])
    def test_parse_timestamp_invalid(self, value) -> None:
        """Unparsable values are None."""
        assert parse_timestamp(value) is None

    @pytest.mark.parametrize(
        ("delta", "expected"),
        [
            (timedelta(seconds=30), "just now"),
            (timedelta(minutes=1), "1 minute ago"),
            (timedelta(minutes=45), "45 minutes ago"),
            (timedelta(hours=1), "1 hour ago"),
            (timedelta(hours=5), "5 hours ago"),
            (timedelta(days=1), "1 day ago"),
            (timedelta(days=12), "12 days ago"),
            (timedelta(days=45), "2026-09-03"),
        ],
    )
    def test_format_relative_time(self, delta: timedelta, expected: str) -> None:
        """Relative time picks the largest whole unit."""
        assert format_relative_time(NOW - delta, now=NOW) == expected

    def test_format_relative_time_unknown(self) -> None:
        """Missing timestamps render as unknown."""
        assert format_relative_time(None, now=NOW) == "unknown"


class TestFormatDuration:
    """Tests for format_duration."""

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (45, "45s"),
            (120, "2m"),
            (3600, "1h"),
            (9000, "2h 30m"),
            (86400, "1d"),
            (90000, "1d 1h"),
        ],
    )
    def test_format_duration(self, seconds: int, expected: str) -> None:
        """Durations show at most two units."""
        assert format_duration(seconds) == expected
