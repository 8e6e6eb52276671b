from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: transactions
# ---------------------------


class LedgerTransaction(Base):
    """One statement transaction as persisted by the SQL transaction store."""

    __tablename__ = "transactions"

    # BIGINT on Postgres; SQLite only autoincrements an INTEGER primary key.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    # Interior spacing is significant (part of the dedup key); never normalized here.
    place: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[str] = mapped_column(String, nullable=False)
    date: Mapped[str] = mapped_column(String, nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, server_default=text("'NZD'"))
    value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    date_iso: Mapped[dt.date] = mapped_column(Date, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False, server_default=text("'Other'"))
    subcategory: Mapped[str] = mapped_column(
        String, nullable=False, server_default=text("'General'")
    )
    statement_id: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    statement_start: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    statement_end: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("value > 0 AND value < 50000", name="ck_transactions_value_bounds"),
        Index("ix_transactions_date_iso", "date_iso"),
        Index("ix_transactions_statement_id", "statement_id"),
    )
