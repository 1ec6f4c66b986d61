# ruff: noqa: I001
"""Add revenues earned by partners outside the tracked companies.

Revision ID: 0002_external_revenues
Revises: 0001_fiscal_core
Create Date: 2026-10-18
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0002_external_revenues"
down_revision: str | None = "0001_fiscal_core"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "external_revenues",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("cpf", sa.String(11), nullable=False),
        sa.Column("period", sa.String(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )

    # Lookups are by CPF when rolling up a partner's income
    op.create_index("ix_external_revenues_cpf", "external_revenues", ["cpf"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_external_revenues_cpf", table_name="external_revenues")
    op.drop_table("external_revenues")
