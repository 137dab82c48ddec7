# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""CSV export of quiz responses."""

import csv
import io
import json
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from src.utils.datetime import ensure_utc

CSV_HEADERS = ["User Name", "User Email", "Score", "Completed At", "Answers"]

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class ExportRow:
    user_name: str | None
    user_email: str
    score: float | None
    completed_at: datetime
    answers: dict[str, str]


def format_score(score: float | None) -> str:
    """Score as text: "N/A" when missing, integral values without a decimal part."""
    if score is None:
        return "N/A"
    if float(score).is_integer():
        return str(int(score))
    return repr(float(score))


def render_responses_csv(rows: Iterable[ExportRow]) -> str:
    """Render responses as CSV.

    The header row is written bare; every data field is quoted with embedded
    quotes doubled. Answers are serialized as compact JSON.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        completed_at = ensure_utc(row.completed_at)
        writer.writerow(
            [
                row.user_name or "N/A",
                row.user_email,
                format_score(row.score),
                completed_at.isoformat() if completed_at else "N/A",
                json.dumps(row.answers, ensure_ascii=False, separators=(",", ":")),
            ]
        )

    header = ",".join(CSV_HEADERS)
    body = buffer.getvalue().rstrip("\n")
    return f"{header}\n{body}" if body else header


def export_filename(quiz_title: str, on: datetime) -> str:
    """<title>_responses_<YYYY-MM-DD>.csv with unsafe characters replaced."""
    safe_title = _UNSAFE_FILENAME.sub("_", quiz_title).strip("_") or "quiz"
    return f"{safe_title}_responses_{on.date().isoformat()}.csv"
