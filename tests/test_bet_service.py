from decimal import Decimal

import pytest
from sqlalchemy import select

from banca.buckets import BucketKey
from banca.db import transaction
from banca.errors import InvalidNumber, InvalidPositionRange
from banca.models.bet import Bet
from banca.repositories.blocked_number_repository import BlockedNumberRepository
from banca.services.bet_service import BetPlacementService, TicketRequest


@pytest.fixture
def service(ledger):
    return BetPlacementService(ledger=ledger)


def _placed_bets(session_factory):
    with transaction(session_factory) as session:
        return list(session.scalars(select(Bet).where(Bet.ticket_id != "seed")).all())


def test_accepted_ticket_persists_one_bet_per_pick(service, seed, session_factory):
    seed.limit("MILHAR", 1, "1000")
    result = service.place(
        session_factory,
        TicketRequest(modality="MILHAR", picks=["1234", "5678"], position="1", stake_amount="10", lottery="LOOK", draw_time="11:20"),
    )

    assert result.accepted
    assert len(result.bet_ids) == 2
    bets = _placed_bets(session_factory)
    assert {b.number for b in bets} == {"1234", "5678"}
    assert {b.ticket_id for b in bets} == {result.ticket_id}
    assert all(b.stake_amount == Decimal("10.00") and b.status == "pending" for b in bets)
    assert result.to_dict()["position_label"] == "1º"


def test_division_all_stores_the_rounded_down_share(service, session_factory):
    result = service.place(
        session_factory,
        TicketRequest(modality="DEZENA", picks=["11", "22", "33"], position="1-5", stake_amount="10", division_type="all"),
    )

    assert result.accepted
    assert result.to_dict()["house_remainder"] == "0.01"
    assert {b.stake_amount for b in _placed_bets(session_factory)} == {Decimal("3.33")}


def test_ticket_is_all_or_nothing(service, seed, session_factory):
    seed.limit("MILHAR", 1, "100")
    seed.bet("MILHAR", "5678", "1", "95")

    result = service.place(
        session_factory,
        TicketRequest(modality="MILHAR", picks=["1234", "5678"], position="1", stake_amount="10"),
    )

    assert not result.accepted
    assert result.ticket_id is None
    assert len(result.reasons) == 1
    assert "5678" in result.reasons[0]
    assert _placed_bets(session_factory) == []
    with transaction(session_factory) as session:
        assert BlockedNumberRepository().find(session, BucketKey.of("MILHAR", 1, "5678")) is not None


def test_every_prize_tier_of_the_range_is_checked(service, seed, session_factory):
    seed.limit("CENTENA", 3, "15")

    result = service.place(
        session_factory,
        TicketRequest(modality="CENTENA", picks=["123"], position="1-5", stake_amount="20"),
    )

    assert not result.accepted
    blocked = [d for d in result.decisions if d.blocked]
    assert [d.key.prize_tier for d in blocked] == [3]
    assert "3º prêmio" in result.reasons[0]


def test_repeated_picks_add_up_on_their_bucket(service, seed, session_factory):
    seed.limit("MILHAR", 1, "100")

    result = service.place(
        session_factory,
        TicketRequest(modality="MILHAR", picks=["1234", "1234"], position="1", stake_amount="60"),
    )

    assert not result.accepted
    assert result.decisions[0].exposure_after == Decimal("120")


def test_accepted_bets_count_towards_later_tickets(service, seed, session_factory):
    seed.limit("MILHAR", 1, "1000", lottery="LOOK", draw_time="11:20")
    ticket = dict(modality="MILHAR", picks=["1234"], position="1", lottery="LOOK", draw_time="11:20")

    assert service.place(session_factory, TicketRequest(stake_amount="950", **ticket)).accepted
    assert service.place(session_factory, TicketRequest(stake_amount="40", **ticket)).accepted
    third = service.place(session_factory, TicketRequest(stake_amount="20", **ticket))

    assert not third.accepted
    assert third.decisions[0].exposure_after == Decimal("1010.00")
    assert sum(b.stake_amount for b in _placed_bets(session_factory)) == Decimal("990.00")


def test_invalid_tickets_are_rejected_before_storage(service, session_factory):
    with pytest.raises(InvalidPositionRange):
        service.place(session_factory, TicketRequest(modality="MILHAR", picks=["1234"], position="1-6", stake_amount="10"))
    with pytest.raises(InvalidPositionRange):
        service.place(session_factory, TicketRequest(modality="MILHAR", picks=["1234"], position="first", stake_amount="10"))
    with pytest.raises(InvalidNumber):
        service.place(session_factory, TicketRequest(modality="MILHAR", picks=["1234", "99"], position="1", stake_amount="10"))
    assert _placed_bets(session_factory) == []
