# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Numeric helpers."""

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, places: int = 2) -> float:
    """Round half away from zero.

    Python's round() uses banker's rounding and binary floats, so
    round(0.125, 2) gives 0.12. This gives 0.13.

    Example:
        >>> round_half_up(0.125, 2)
        0.13
        >>> round_half_up(12.5, 0)
        13.0
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
