# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for paging arithmetic and sort resolution."""

import pytest
from pydantic import ValidationError

from src.domains.query import PageRequest, SortSpec, compute_total_pages
from src.infrastructure.database.models import Quiz

pytestmark = pytest.mark.unit


class TestComputeTotalPages:
    """Tests for compute_total_pages."""

    @pytest.mark.parametrize(
        "total,size,expected",
        [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 5, 5), (7, 1, 7)],
    )
    def test_ceiling_division(self, total: int, size: int, expected: int) -> None:
        assert compute_total_pages(total, size) == expected

    def test_zero_page_size_gives_zero_pages(self) -> None:
        assert compute_total_pages(42, 0) == 0


class TestPageRequest:
    """Tests for PageRequest."""

    def test_defaults(self) -> None:
        request = PageRequest()

        assert request.page == 0
        assert request.items_per_page == 10
        assert request.offset == 0

    def test_offset(self) -> None:
        assert PageRequest(page=3, items_per_page=20).offset == 60

    @pytest.mark.parametrize("field", ["page", "items_per_page"])
    def test_negative_values_are_rejected(self, field: str) -> None:
        with pytest.raises(ValidationError):
            PageRequest(**{field: -1})


class TestSortSpec:
    """Tests for SortSpec.resolve."""

    @pytest.fixture
    def spec(self) -> SortSpec:
        return SortSpec(columns={"title": Quiz.title, "createdAt": Quiz.created_at})

    def test_known_column_uses_requested_direction(self, spec: SortSpec) -> None:
        clause = spec.resolve("title", "asc")

        assert "quizzes.title ASC" in str(clause)

    def test_unknown_column_falls_back_to_default(self, spec: SortSpec) -> None:
        """Test that an unlisted column never reaches the ORDER BY."""
        clause = spec.resolve("password_hash", "asc")

        assert "quizzes.created_at DESC" in str(clause)

    def test_missing_direction_uses_default(self, spec: SortSpec) -> None:
        assert "DESC" in str(spec.resolve("title", None))
