# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for small helpers: slugs and UTC date handling."""

from datetime import date, datetime, timedelta, timezone

import pytest

from src.domains.organization.service import slugify
from src.utils.datetime import ensure_utc, utc_day_bounds

pytestmark = pytest.mark.unit


class TestSlugify:
    """Tests for slugify."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Springfield Elementary", "springfield-elementary"),
            ("  St. Mary's High School ", "st-mary-s-high-school"),
            ("School #42", "school-42"),
            ("already-a-slug", "already-a-slug"),
        ],
    )
    def test_slugify(self, name: str, expected: str) -> None:
        assert slugify(name) == expected

    def test_only_punctuation_gives_empty_slug(self) -> None:
        assert slugify("!!!") == ""


class TestEnsureUtc:
    """Tests for ensure_utc."""

    def test_none(self) -> None:
        assert ensure_utc(None) is None

    def test_naive_is_assumed_utc(self) -> None:
        naive = datetime(2025, 1, 1, 12, 0)

        assert ensure_utc(naive) == datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_aware_is_converted(self) -> None:
        plus_two = datetime(2025, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

        result = ensure_utc(plus_two)

        assert result.tzinfo == timezone.utc
        assert result.hour == 12


class TestUtcDayBounds:
    """Tests for utc_day_bounds."""

    def test_explicit_day(self) -> None:
        start, end = utc_day_bounds(date(2025, 3, 14))

        assert start == datetime(2025, 3, 14, tzinfo=timezone.utc)
        assert end == datetime(2025, 3, 15, tzinfo=timezone.utc)

    def test_today(self) -> None:
        start, end = utc_day_bounds()

        assert start <= datetime.now(timezone.utc) < end
        assert end - start == timedelta(days=1)
