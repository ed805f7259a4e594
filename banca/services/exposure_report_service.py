"""Exposure statistics per configured limit (the "descarga" overview)."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.orm import Session

from banca.money import to_decimal, to_money
from banca.positions import covers
from banca.repositories.bet_repository import BetRepository
from banca.repositories.limit_config_repository import LimitConfigRepository


@dataclass(frozen=True)
class ExposureStat:
    modality: str
    prize_tier: int
    lottery: str
    draw_time: str
    total_pending: Decimal
    limit: Decimal
    top_numbers: list[tuple[str, Decimal]] = field(default_factory=list)

    @property
    def excess(self) -> Decimal:
        return max(self.total_pending - self.limit, Decimal("0"))

    @property
    def exceeded(self) -> bool:
        return self.total_pending > self.limit

    def to_dict(self) -> dict:
        return {
            "modality": self.modality,
            "prize_tier": self.prize_tier,
            "lottery": self.lottery,
            "draw_time": self.draw_time,
            "total_pending": str(to_money(self.total_pending)),
            "limit": str(to_money(self.limit)),
            "excess": str(to_money(self.excess)),
            "exceeded": self.exceeded,
            "top_numbers": [{"number": n, "total": str(to_money(v))} for n, v in self.top_numbers],
        }


class ExposureReportService:
    """Pending totals against every active limit, exceeded scopes first."""

    def __init__(
        self,
        bets: BetRepository | None = None,
        limits: LimitConfigRepository | None = None,
        top_n: int = 5,
    ) -> None:
        self._bets = bets or BetRepository()
        self._limits = limits or LimitConfigRepository()
        self._top_n = top_n

    def statistics(
        self,
        session: Session,
        modality: str | None = None,
        prize_tier: int | None = None,
    ) -> list[ExposureStat]:
        stats: list[ExposureStat] = []
        for config in self._limits.list_limits(session, modality=modality, prize_tier=prize_tier, active_only=True):
            bets = self._bets.find_pending_bets(
                session, config.modality, config.lottery or None, config.draw_time or None
            )
            per_number: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
            for bet in bets:
                if covers(bet.position, config.prize_tier):
                    per_number[bet.number] += to_decimal(bet.stake_amount)

            ranked = sorted(per_number.items(), key=lambda kv: (-kv[1], kv[0]))
            stats.append(
                ExposureStat(
                    modality=config.modality,
                    prize_tier=config.prize_tier,
                    lottery=config.lottery,
                    draw_time=config.draw_time,
                    total_pending=sum(per_number.values(), Decimal("0")),
                    limit=to_decimal(config.limit),
                    top_numbers=ranked[: self._top_n],
                )
            )

        return sorted(stats, key=lambda s: (not s.exceeded, -s.excess, s.modality, s.prize_tier))
