"""Exposure limit configured by an administrator.

Empty ``lottery``/``draw_time`` means the limit applies to every draw of
the modality and prize tier.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, Integer, Numeric, SmallInteger, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from banca.models.base import Base


class LimitConfig(Base):
    __tablename__ = "limit_configs"
    __table_args__ = (
        UniqueConstraint("modality", "prize_tier", "lottery", "draw_time", name="uq_limit_config_scope"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    modality: Mapped[str] = mapped_column(String(32), nullable=False)
    prize_tier: Mapped[int] = mapped_column(SmallInteger, nullable=False)  # 1..7
    lottery: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    draw_time: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    limit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
