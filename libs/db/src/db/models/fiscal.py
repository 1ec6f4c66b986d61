from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only auto-increments INTEGER PRIMARY KEY; keep BIGINT on Postgres.
_PK = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: companies
# ---------------------------


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    # CNPJ exactly as printed in the declaration (punctuation preserved).
    cnpj: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )


# ---------------------------
# Core: fiscal_data
# ---------------------------


class FiscalData(Base):
    __tablename__ = "fiscal_data"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    # "<Month> <YYYY>", e.g. "Janeiro 2024"
    period: Mapped[str] = mapped_column(String, nullable=False)
    purchases: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    revenue: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    __table_args__ = (
        UniqueConstraint("company_id", "period", name="uq_fiscal_data_company_period"),
        CheckConstraint("purchases >= 0 AND revenue >= 0", name="ck_fiscal_data_non_negative"),
    )


# ---------------------------
# Ownership: partners
# ---------------------------


class Partner(Base):
    __tablename__ = "partners"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    # Digits only.
    cpf: Mapped[str] = mapped_column(String(11), nullable=False)
    ownership_pct: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    role: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Removal is a soft delete (active=false).
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    __table_args__ = (
        CheckConstraint(
            "ownership_pct >= 0 AND ownership_pct <= 100", name="ck_partners_ownership_pct"
        ),
    )


# ---------------------------
# External revenues (per CPF)
# ---------------------------


class ExternalRevenue(Base):
    __tablename__ = "external_revenues"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    cpf: Mapped[str] = mapped_column(String(11), nullable=False)
    period: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )


__all__ = [
    "Base",
    "Company",
    "FiscalData",
    "Partner",
    "ExternalRevenue",
]
