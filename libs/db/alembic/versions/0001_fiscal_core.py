# ruff: noqa: I001
"""Fiscal core tables: companies, per-period totals and partners.

Revision ID: 0001_fiscal_core
Revises: None
Create Date: 2026-10-18
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_fiscal_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # companies
    op.create_table(
        "companies",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("cnpj", sa.String(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint("cnpj", name="uq_companies_cnpj"),
    )

    # fiscal_data
    op.create_table(
        "fiscal_data",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("company_id", sa.BigInteger(), nullable=False),
        sa.Column("period", sa.String(), nullable=False),
        sa.Column("purchases", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("revenue", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(
            ["company_id"],
            ["companies.id"],
            name="fk_fiscal_data_company",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("company_id", "period", name="uq_fiscal_data_company_period"),
        sa.CheckConstraint(
            "purchases >= 0 AND revenue >= 0", name="ck_fiscal_data_non_negative"
        ),
    )
    op.create_index("ix_fiscal_data_company_id", "fiscal_data", ["company_id"], unique=False)

    # partners
    op.create_table(
        "partners",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("company_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("cpf", sa.String(11), nullable=False),
        sa.Column("ownership_pct", sa.Numeric(5, 2), nullable=False),
        sa.Column("role", sa.Text(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(
            ["company_id"],
            ["companies.id"],
            name="fk_partners_company",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(
            "ownership_pct >= 0 AND ownership_pct <= 100", name="ck_partners_ownership_pct"
        ),
    )
    op.create_index("ix_partners_company_id", "partners", ["company_id"], unique=False)
    op.create_index("ix_partners_cpf", "partners", ["cpf"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_partners_cpf", table_name="partners")
    op.drop_index("ix_partners_company_id", table_name="partners")
    op.drop_table("partners")
    op.drop_index("ix_fiscal_data_company_id", table_name="fiscal_data")
    op.drop_table("fiscal_data")
    op.drop_table("companies")
