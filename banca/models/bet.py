"""Bet ORM model.

One row per pick. Rows are owned by the bet-placement workflow; the
exposure ledger only reads the pending ones.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import DateTime, Index, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from banca.models.base import Base

STATUS_PENDING = "pending"


class Bet(Base):
    """A single pick of a ticket."""

    __tablename__ = "bets"
    __table_args__ = (Index("ix_bets_exposure_scan", "modality", "status", "lottery", "draw_time"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    modality: Mapped[str] = mapped_column(String(32), nullable=False)
    number: Mapped[str] = mapped_column(String(32), nullable=False)
    position: Mapped[str] = mapped_column(String(16), nullable=False)  # raw token, e.g. "1-5"
    division_type: Mapped[str] = mapped_column(String(8), nullable=False, default="each")
    stake_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    lottery: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    draw_time: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUS_PENDING)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
