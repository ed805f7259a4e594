"""Materialized block on a bucket that reached its limit."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import DateTime, Integer, Numeric, SmallInteger, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from banca.models.base import Base


class BlockedNumber(Base):
    """Write-once per bucket; cleared only by an administrator."""

    __tablename__ = "blocked_numbers"
    __table_args__ = (
        UniqueConstraint("modality", "prize_tier", "number", "lottery", "draw_time", name="uq_blocked_number_bucket"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    modality: Mapped[str] = mapped_column(String(32), nullable=False)
    prize_tier: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    number: Mapped[str] = mapped_column(String(32), nullable=False)
    lottery: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    draw_time: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    value_at_block: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    limit_at_block: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    blocked_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
