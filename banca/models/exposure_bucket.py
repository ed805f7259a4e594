"""Lock anchor for a bucket.

The row carries no ledger data; ``SELECT ... FOR UPDATE`` on it serializes
exposure decisions for the bucket across processes.
"""

from __future__ import annotations

from sqlalchemy import Integer, SmallInteger, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from banca.models.base import Base


class ExposureBucket(Base):
    __tablename__ = "exposure_buckets"
    __table_args__ = (
        UniqueConstraint("modality", "prize_tier", "number", "lottery", "draw_time", name="uq_exposure_bucket"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    modality: Mapped[str] = mapped_column(String(32), nullable=False)
    prize_tier: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    number: Mapped[str] = mapped_column(String(32), nullable=False)
    lottery: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    draw_time: Mapped[str] = mapped_column(String(16), nullable=False, default="")
