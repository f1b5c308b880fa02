"""Tests for service helper functions."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from lockerctl.services._helpers import now_utc, parse_moment


class TestNowUtc:
    def test_is_aware(self) -> None:
        assert now_utc().tzinfo is UTC


class TestParseMoment:
    def test_date_is_midnight_utc(self) -> None:
        assert parse_moment("2025-05-04") == datetime(2025, 5, 4, tzinfo=UTC)

    def test_offset_converted_to_utc(self) -> None:
        assert parse_moment("2025-05-04T10:30:00+02:00") == datetime(
            2025, 5, 4, 8, 30, tzinfo=UTC
        )

    def test_naive_datetime_is_utc(self) -> None:
        assert parse_moment("2025-05-04T10:30:00").tzinfo is UTC

    def test_garbage(self) -> None:
        with pytest.raises(ValueError):
            parse_moment("yesterday")
