# ruff: noqa: I001
"""Consent bookkeeping table.

Revision ID: 0001_consents
Revises: None
Create Date: 2026-01-12
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_consents"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "consents",
        sa.Column("consent_id", sa.String(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("status", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )

    # Listing reads newest first
    op.create_index("ix_consents_created_at", "consents", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_consents_created_at", table_name="consents")
    op.drop_table("consents")
