# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for CampusBoard.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
- numbers: Half-up rounding
"""

from src.utils.datetime import (
    days_from_now,
    ensure_utc,
    utc_day_bounds,
    utc_now,
    utc_today_start,
)
from src.utils.logging import bind_context, clear_context, setup_logging
from src.utils.numbers import round_half_up

__all__ = [
    # Logging
    "setup_logging",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "ensure_utc",
    "utc_today_start",
    "utc_day_bounds",
    "days_from_now",
    # Numbers
    "round_half_up",
]
