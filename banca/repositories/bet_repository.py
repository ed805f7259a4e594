"""Repository layer for Bet persistence."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from banca.models.bet import STATUS_PENDING, Bet


class BetRepository:
    """Pending-bet scans for the ledger, inserts for the placement workflow."""

    def find_pending_bets(
        self,
        session: Session,
        modality: str,
        lottery: str | None = None,
        draw_time: str | None = None,
    ) -> Sequence[Bet]:
        stmt = select(Bet).where(Bet.modality == modality, Bet.status == STATUS_PENDING)
        if lottery:
            stmt = stmt.where(Bet.lottery == lottery)
        if draw_time:
            stmt = stmt.where(Bet.draw_time == draw_time)
        return list(session.scalars(stmt.order_by(Bet.id.asc())).all())

    def create(
        self,
        session: Session,
        *,
        ticket_id: str,
        modality: str,
        number: str,
        position: str,
        division_type: str,
        stake_amount: Decimal,
        lottery: str = "",
        draw_time: str = "",
    ) -> Bet:
        bet = Bet(
            ticket_id=ticket_id,
            modality=modality,
            number=number,
            position=position,
            division_type=division_type,
            stake_amount=stake_amount,
            lottery=lottery,
            draw_time=draw_time,
            status=STATUS_PENDING,
        )
        session.add(bet)
        session.flush()  # assign PK
        return bet
