"""Repository layer for LimitConfig persistence."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from banca.models.limit_config import LimitConfig


class LimitConfigRepository:
    """Limit lookups (ledger) and upserts (administration)."""

    def _find_active(
        self, session: Session, modality: str, prize_tier: int, lottery: str, draw_time: str
    ) -> LimitConfig | None:
        stmt = select(LimitConfig).where(
            LimitConfig.modality == modality,
            LimitConfig.prize_tier == prize_tier,
            LimitConfig.lottery == lottery,
            LimitConfig.draw_time == draw_time,
            LimitConfig.active.is_(True),
        )
        return session.scalars(stmt).first()

    def find_effective_limit(
        self,
        session: Session,
        modality: str,
        prize_tier: int,
        lottery: str = "",
        draw_time: str = "",
    ) -> LimitConfig | None:
        """Most specific active limit for the scope.

        Order: exact lottery + draw time, the lottery for any draw time, the
        draw time for any lottery, then the wildcard for the modality/prize
        tier.
        """

        scopes: list[tuple[str, str]] = []
        if lottery and draw_time:
            scopes.append((lottery, draw_time))
        if lottery:
            scopes.append((lottery, ""))
        if draw_time:
            scopes.append(("", draw_time))
        scopes.append(("", ""))

        for scope_lottery, scope_time in scopes:
            config = self._find_active(session, modality, prize_tier, scope_lottery, scope_time)
            if config is not None:
                return config
        return None

    def get_by_scope(
        self, session: Session, modality: str, prize_tier: int, lottery: str, draw_time: str
    ) -> LimitConfig | None:
        stmt = select(LimitConfig).where(
            LimitConfig.modality == modality,
            LimitConfig.prize_tier == prize_tier,
            LimitConfig.lottery == lottery,
            LimitConfig.draw_time == draw_time,
        )
        return session.scalars(stmt).first()

    def upsert_limit(
        self,
        session: Session,
        *,
        modality: str,
        prize_tier: int,
        limit: Decimal,
        lottery: str = "",
        draw_time: str = "",
        active: bool = True,
    ) -> LimitConfig:
        config = self.get_by_scope(session, modality, prize_tier, lottery, draw_time)
        if config is None:
            config = LimitConfig(
                modality=modality,
                prize_tier=prize_tier,
                lottery=lottery,
                draw_time=draw_time,
                limit=limit,
                active=active,
            )
            session.add(config)
        else:
            config.limit = limit
            config.active = active
        session.flush()
        return config

    def list_limits(
        self,
        session: Session,
        modality: str | None = None,
        prize_tier: int | None = None,
        active_only: bool = False,
    ) -> Sequence[LimitConfig]:
        stmt = select(LimitConfig)
        if modality:
            stmt = stmt.where(LimitConfig.modality == modality)
        if prize_tier:
            stmt = stmt.where(LimitConfig.prize_tier == prize_tier)
        if active_only:
            stmt = stmt.where(LimitConfig.active.is_(True))
        stmt = stmt.order_by(LimitConfig.modality.asc(), LimitConfig.prize_tier.asc(), LimitConfig.id.asc())
        return list(session.scalars(stmt).all())
