"""Descarga alert: a (modality, prize tier, draw) scope that went past its limit.

At most one unresolved alert exists per scope; later crossings refresh its
totals until an administrator resolves it.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Index, Integer, Numeric, SmallInteger, String, func, text
from sqlalchemy.orm import Mapped, mapped_column

from banca.models.base import Base


class ExposureAlert(Base):
    __tablename__ = "exposure_alerts"
    __table_args__ = (
        Index(
            "uq_exposure_alerts_open_scope",
            "modality",
            "prize_tier",
            "lottery",
            "draw_time",
            unique=True,
            postgresql_where=text("NOT resolved"),
            sqlite_where=text("NOT resolved"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    modality: Mapped[str] = mapped_column(String(32), nullable=False)
    prize_tier: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    lottery: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    draw_time: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    limit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_staked: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    excess: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    resolved_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
