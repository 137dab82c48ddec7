# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Paginated query builder.

Applies free-text search, an allow-listed sort and offset pagination to a
SELECT statement, and counts the filtered result with a separate query.

Example:
    page = await paginate(
        db,
        select(Quiz).where(Quiz.organization_id.in_(org_ids)),
        request,
        search_columns=[Quiz.title, Quiz.description],
        sort_spec=QUIZ_SORT,
        tie_breaker=Quiz.id,
    )
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, Field
from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

T = TypeVar("T")

SortDirection = Literal["asc", "desc"]


class PageRequest(BaseModel):
    """Search, sort and page parameters of a listing.

    Attributes:
        search: Case-insensitive substring to match.
        sort_column: Client-facing sort name, resolved through a SortSpec.
        sort_direction: asc or desc. None uses the sort default.
        page: Zero-based page index.
        items_per_page: Page size. Zero yields an empty page.
    """

    search: str | None = None
    sort_column: str | None = None
    sort_direction: SortDirection | None = None
    page: int = Field(default=0, ge=0)
    items_per_page: int = Field(default=10, ge=0)

    @property
    def offset(self) -> int:
        return self.page * self.items_per_page


@dataclass(frozen=True)
class SortSpec:
    """Allow-list of sortable columns.

    Nested names (e.g. ``userName``) map to a joined entity's column; the
    statement handed to paginate() must already contain that join.

    Attributes:
        columns: Client-facing name to column expression.
        default: Name used when the requested column is unknown.
        default_direction: Direction used when none is requested.
    """

    columns: Mapping[str, Any]
    default: str = "createdAt"
    default_direction: SortDirection = "desc"

    def resolve(
        self,
        column: str | None,
        direction: SortDirection | None,
    ) -> ColumnElement:
        """Resolve a client sort request into an ORDER BY expression."""
        if column in self.columns:
            expression = self.columns[column]
            chosen = direction or self.default_direction
        else:
            expression = self.columns[self.default]
            chosen = self.default_direction
        return expression.asc() if chosen == "asc" else expression.desc()


@dataclass
class Page(Generic[T]):
    """One page of a listing plus totals over the whole filtered result."""

    items: list[T] = field(default_factory=list)
    total_count: int = 0
    total_pages: int = 0


def compute_total_pages(total_count: int, items_per_page: int) -> int:
    """ceil(total_count / items_per_page), defined as 0 for a zero page size."""
    if items_per_page <= 0:
        return 0
    return math.ceil(total_count / items_per_page)


def apply_search(
    statement: Select,
    search: str | None,
    search_columns: Sequence[Any],
) -> Select:
    """OR a case-insensitive substring match across the search columns."""
    term = (search or "").strip()
    if not term or not search_columns:
        return statement
    return statement.where(
        or_(*[column.icontains(term, autoescape=True) for column in search_columns])
    )


async def paginate(
    db: AsyncSession,
    statement: Select,
    request: PageRequest,
    search_columns: Sequence[Any],
    sort_spec: SortSpec,
    tie_breaker: Any,
) -> Page:
    """Run a filtered, ordered, sliced query and its total count.

    The builder does not cap items_per_page; the HTTP layer clamps it.

    Args:
        db: Async database session.
        statement: Base SELECT already restricted to the caller's scope.
        request: Search, sort and page parameters.
        search_columns: Columns matched by request.search.
        sort_spec: Sortable column allow-list.
        tie_breaker: Unique column appended to ORDER BY so that pages
            partition the result deterministically.

    Returns:
        Page with the ORM rows of the requested page.
    """
    filtered = apply_search(statement, request.search, search_columns)

    count_query = select(func.count()).select_from(filtered.order_by(None).subquery())
    total_count = (await db.execute(count_query)).scalar_one()

    items: list = []
    if request.items_per_page > 0:
        ordered = filtered.order_by(
            sort_spec.resolve(request.sort_column, request.sort_direction),
            tie_breaker.asc(),
        )
        result = await db.execute(
            ordered.offset(request.offset).limit(request.items_per_page)
        )
        items = list(result.scalars().all())

    return Page(
        items=items,
        total_count=total_count,
        total_pages=compute_total_pages(total_count, request.items_per_page),
    )
