# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Store the correct/total breakdown with each quiz response.

Revision ID: 002_response_score_breakdown
Revises: 001_initial_schema
Create Date: 2025-04-14
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "002_response_score_breakdown"
down_revision: Union[str, None] = "001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add correct_count and total_questions to responses."""
    op.add_column(
        "responses",
        sa.Column("correct_count", sa.Integer, nullable=False, server_default="0"),
    )
    op.add_column(
        "responses",
        sa.Column("total_questions", sa.Integer, nullable=False, server_default="0"),
    )


def downgrade() -> None:
    """Drop the breakdown columns."""
    with op.batch_alter_table("responses") as batch:
        batch.drop_column("total_questions")
        batch.drop_column("correct_count")
