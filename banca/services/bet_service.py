"""Ticket placement: unit decomposition, exposure gating and persistence."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.orm import Session, sessionmaker

from banca.buckets import BucketKey
from banca.db import transaction
from banca.modalities import Pick
from banca.money import to_money
from banca.positions import format_position, parse_position_range
from banca.repositories.bet_repository import BetRepository
from banca.services.exposure_ledger import ExposureDecision, ExposureLedger, storage_guard
from banca.services.unit_calculator import DivisionType, TicketUnits, compute_ticket

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TicketRequest:
    modality: str
    picks: Sequence[Pick]
    position: str
    stake_amount: object
    division_type: str = DivisionType.EACH.value
    lottery: str | None = None
    draw_time: str | None = None


@dataclass
class PlacementResult:
    accepted: bool
    ticket_id: str | None
    units: TicketUnits
    position: str
    decisions: list[ExposureDecision] = field(default_factory=list)
    bet_ids: list[int] = field(default_factory=list)

    @property
    def reasons(self) -> list[str]:
        return [d.reason for d in self.decisions if d.blocked and d.reason]

    def to_dict(self) -> dict:
        return {
            "accepted": self.accepted,
            "ticket_id": self.ticket_id,
            "bet_ids": self.bet_ids,
            "modality": self.units.modality.value,
            "position": self.position,
            "position_label": format_position(self.units.position_from, self.units.position_to),
            "stake_per_pick": str(to_money(self.units.split.per_pick)),
            "house_remainder": str(self.units.split.remainder),
            "picks": [{"number": number, **result.to_dict()} for number, result in self.units.picks],
            "reasons": self.reasons,
            "decisions": [d.to_dict() for d in self.decisions],
        }


class BetPlacementService:
    """Accepts a ticket only if every (prize tier, pick) bucket stays within its limit."""

    def __init__(self, ledger: ExposureLedger | None = None, bets: BetRepository | None = None) -> None:
        self._ledger = ledger or ExposureLedger()
        self._bets = bets or BetRepository()

    @staticmethod
    def bucket_keys(units: TicketUnits, lottery: str | None, draw_time: str | None) -> list[BucketKey]:
        return [
            BucketKey.of(units.modality, tier, number, lottery, draw_time)
            for number, _ in units.picks
            for tier in range(units.position_from, units.position_to + 1)
        ]

    def place(self, session_factory: sessionmaker[Session], ticket: TicketRequest) -> PlacementResult:
        """Validate, gate and persist a ticket.

        Input errors are raised before anything touches storage. A rejected
        ticket persists nothing but the block records its checks created.
        """

        position_from, position_to = parse_position_range(ticket.position)
        units = compute_ticket(
            ticket.modality,
            list(ticket.picks),
            position_from,
            position_to,
            ticket.stake_amount,
            ticket.division_type,
        )
        keys = self.bucket_keys(units, ticket.lottery, ticket.draw_time)
        stake = to_money(units.split.per_pick)
        # Repeated picks add up on their shared buckets.
        stakes: dict[BucketKey, Decimal] = {}
        for key in keys:
            stakes[key] = stakes.get(key, Decimal("0")) + stake
        result = PlacementResult(accepted=False, ticket_id=None, units=units, position=ticket.position)

        with self._ledger.locks.hold(keys, self._ledger.lock_timeout), storage_guard():
            with transaction(session_factory) as session:
                result.decisions = self._ledger.check_many(session, stakes)
                if any(d.blocked for d in result.decisions):
                    logger.info("Ticket rejected: %s", "; ".join(result.reasons))
                    return result

                ticket_id = str(uuid.uuid4())
                for number, _ in units.picks:
                    bet = self._bets.create(
                        session,
                        ticket_id=ticket_id,
                        modality=units.modality.value,
                        number=number,
                        position=ticket.position.strip(),
                        division_type=str(getattr(ticket.division_type, "value", ticket.division_type)).lower(),
                        stake_amount=stake,
                        lottery=(ticket.lottery or "").strip(),
                        draw_time=(ticket.draw_time or "").strip(),
                    )
                    result.bet_ids.append(bet.id)
                result.ticket_id = ticket_id
                result.accepted = True

        logger.info("Ticket %s accepted with %d pick(s)", result.ticket_id, len(result.bet_ids))
        return result
