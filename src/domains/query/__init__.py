# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Search, sort and paginate conventions shared by every listing."""

from src.domains.query.pagination import (
    Page,
    PageRequest,
    SortSpec,
    apply_search,
    compute_total_pages,
    paginate,
)

__all__ = [
    "Page",
    "PageRequest",
    "SortSpec",
    "apply_search",
    "compute_total_pages",
    "paginate",
]
