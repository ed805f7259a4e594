from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from banca.buckets import BucketKey
from banca.db import transaction
from banca.errors import InfrastructureError, InvalidNumber, InvalidPositionRange, ValidationError
from banca.models.blocked_number import BlockedNumber
from banca.repositories.bet_repository import BetRepository
from banca.repositories.blocked_number_repository import BlockedNumberRepository
from banca.repositories.exposure_alert_repository import ExposureAlertRepository
from banca.services.bucket_locks import BucketLocks
from banca.services.exposure_ledger import ExposureLedger, normalize_number


def _blocked(session_factory, key):
    with transaction(session_factory) as session:
        return BlockedNumberRepository().find(session, key)


def _exposure(ledger, session_factory, key):
    with transaction(session_factory) as session:
        return ledger.current_exposure(session, key)


def test_limit_reached_scenario(ledger, seed, session_factory):
    seed.limit("MILHAR", 1, "1000.00", lottery="LOOK", draw_time="11:20")
    seed.bet("MILHAR", "1234", "1", "950.00", lottery="LOOK", draw_time="11:20")

    decision = ledger.check(session_factory, "MILHAR", 1, "1234", "LOOK", "11:20", "40.00")
    assert not decision.blocked
    assert decision.exposure_after == Decimal("990.00")
    assert decision.limit == Decimal("1000.00")

    seed.bet("MILHAR", "1234", "1", "40.00", lottery="LOOK", draw_time="11:20")

    decision = ledger.check(session_factory, "MILHAR", 1, "1234", "LOOK", "11:20", "20.00")
    assert decision.blocked
    assert not decision.already_blocked
    assert decision.exposure_after == Decimal("1010.00")
    assert "R$ 1000.00" in decision.reason
    assert "R$ 1010.00" in decision.reason
    assert "LOOK 11:20" in decision.reason

    record = _blocked(session_factory, BucketKey.of("MILHAR", 1, "1234", "LOOK", "11:20"))
    assert record is not None
    assert record.value_at_block == Decimal("1010.00")
    assert record.limit_at_block == Decimal("1000.00")


def test_exact_limit_is_still_accepted(ledger, seed, session_factory):
    seed.limit("DEZENA", 2, "100")
    seed.bet("DEZENA", "45", "2", "60")

    decision = ledger.check(session_factory, "DEZENA", 2, "45", None, None, "40")
    assert not decision.blocked
    assert decision.exposure_after == Decimal("100")


class ExplodingBetRepository(BetRepository):
    def find_pending_bets(self, *args, **kwargs):
        raise AssertionError("blocked buckets must not rescan bets")


def test_blocked_bucket_short_circuits_without_rescan(ledger, seed, session_factory):
    seed.limit("CENTENA", 1, "50")
    seed.bet("CENTENA", "123", "1", "45")
    first = ledger.check(session_factory, "CENTENA", 1, "123", None, None, "10")
    assert first.blocked

    fast = ExposureLedger(bets=ExplodingBetRepository(), locks=BucketLocks())
    for stake in ("0.01", "500"):
        again = fast.check(session_factory, "CENTENA", 1, "123", None, None, stake)
        assert again.blocked
        assert again.already_blocked
        assert again.exposure_after == Decimal("55.00")
        assert "está bloqueado" in again.reason


def test_block_record_is_never_overwritten(ledger, seed, session_factory):
    seed.limit("MILHAR", 1, "100")
    seed.bet("MILHAR", "4321", "1", "90")
    ledger.check(session_factory, "MILHAR", 1, "4321", None, None, "20")
    seed.bet("MILHAR", "4321", "1", "500")
    ledger.check(session_factory, "MILHAR", 1, "4321", None, None, "20")

    record = _blocked(session_factory, BucketKey.of("MILHAR", 1, "4321"))
    assert record.value_at_block == Decimal("110.00")


def test_exposure_grows_monotonically(ledger, seed, session_factory):
    key = BucketKey.of("MILHAR", 1, "1234")
    seen = []
    for stake in ("10", "0.50", "25", "3.33"):
        seed.bet("MILHAR", "1234", "1-5", stake)
        seen.append(_exposure(ledger, session_factory, key))
    assert seen == sorted(seen)
    assert seen[-1] == Decimal("38.83")


def test_exposure_counts_only_covering_positions(ledger, seed, session_factory):
    seed.bet("MILHAR", "1234", "1-5", "10")
    seed.bet("MILHAR", "1234", "1", "20")
    seed.bet("MILHAR", "1234", "3º", "30")
    seed.bet("MILHAR", "1234", "garbage", "1000")

    assert _exposure(ledger, session_factory, BucketKey.of("MILHAR", 1, "1234")) == Decimal("30")
    assert _exposure(ledger, session_factory, BucketKey.of("MILHAR", 2, "1234")) == Decimal("10")
    assert _exposure(ledger, session_factory, BucketKey.of("MILHAR", 3, "1234")) == Decimal("40")
    assert _exposure(ledger, session_factory, BucketKey.of("MILHAR", 6, "1234")) == Decimal("0")


def test_exposure_is_scoped_to_draw_status_and_number(ledger, seed, session_factory):
    seed.bet("MILHAR", "1234", "1", "10", lottery="LOOK", draw_time="11:20")
    seed.bet("MILHAR", "1234", "1", "20", lottery="LOOK", draw_time="14:20")
    seed.bet("MILHAR", "1234", "1", "40", lottery="PT RIO", draw_time="11:20")
    seed.bet("MILHAR", "1234", "1", "80", lottery="LOOK", draw_time="11:20", status="won")
    seed.bet("MILHAR", "9999", "1", "160", lottery="LOOK", draw_time="11:20")
    seed.bet("MILHAR_INVERTIDA", "1234", "1", "320", lottery="LOOK", draw_time="11:20")

    key = BucketKey.of("MILHAR", 1, "1234", "LOOK", "11:20")
    assert _exposure(ledger, session_factory, key) == Decimal("10")


def test_limit_precedence(ledger, seed, session_factory):
    seed.limit("DEZENA", 1, "500")
    seed.limit("DEZENA", 1, "2000", lottery="LOOK")
    seed.limit("DEZENA", 1, "50", lottery="LOOK", draw_time="11:20")
    seed.limit("DEZENA", 1, "1", lottery="PT RIO", active=False)

    assert ledger.check(session_factory, "DEZENA", 1, "45", "LOOK", "11:20", "60").limit == Decimal("50")
    assert ledger.check(session_factory, "DEZENA", 1, "45", "LOOK", "14:20", "60").limit == Decimal("2000")
    assert ledger.check(session_factory, "DEZENA", 1, "45", "PT RIO", "11:20", "60").limit == Decimal("500")
    assert ledger.check(session_factory, "DEZENA", 1, "45", None, None, "60").limit == Decimal("500")


def test_unconfigured_bucket_follows_default_policy(seed, session_factory):
    open_ledger = ExposureLedger(default_policy="open", locks=BucketLocks())
    decision = open_ledger.check(session_factory, "GRUPO", 1, [5], None, None, "1000000")
    assert not decision.blocked
    assert decision.limit is None

    closed_ledger = ExposureLedger(default_policy="closed", locks=BucketLocks())
    decision = closed_ledger.check(session_factory, "GRUPO", 1, [5], None, None, "1")
    assert decision.blocked
    assert "não tem limite" in decision.reason
    assert _blocked(session_factory, BucketKey.of("GRUPO", 1, [5])) is None


def test_unknown_default_policy_is_rejected():
    with pytest.raises(ValueError):
        ExposureLedger(default_policy="maybe")


def test_group_buckets_compare_canonical_numbers(ledger, seed, session_factory):
    seed.limit("DUPLA_GRUPO", 1, "100")
    seed.bet("DUPLA_GRUPO", "05-12", "1", "90")

    decision = ledger.check(session_factory, "DUPLA_GRUPO", 1, [12, 5], None, None, "20")
    assert decision.blocked
    assert decision.key.number == "05-12"


def test_blocks_are_per_bucket(ledger, seed, session_factory):
    seed.limit("MILHAR", 1, "100")
    seed.limit("MILHAR", 2, "100")
    seed.bet("MILHAR", "1234", "1", "100")

    assert ledger.check(session_factory, "MILHAR", 1, "1234", None, None, "1").blocked
    assert not ledger.check(session_factory, "MILHAR", 2, "1234", None, None, "1").blocked
    assert not ledger.check(session_factory, "MILHAR", 1, "1235", None, None, "1").blocked


def test_check_validates_input(ledger, session_factory):
    with pytest.raises(InvalidPositionRange):
        ledger.check(session_factory, "MILHAR", 6, "1234", None, None, "10")
    with pytest.raises(ValidationError):
        ledger.check(session_factory, "MILHAR", 1, "1234", None, None, "0")
    with pytest.raises(ValidationError):
        ledger.check(session_factory, "LOTINHA", 1, "1234", None, None, "10")


class FailingBlockedNumberRepository(BlockedNumberRepository):
    def find(self, session, key):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))


def test_storage_failure_raises_infrastructure_error(seed, session_factory):
    seed.limit("MILHAR", 1, "100")
    ledger = ExposureLedger(blocked=FailingBlockedNumberRepository(), locks=BucketLocks())

    with pytest.raises(InfrastructureError) as exc:
        ledger.check(session_factory, "MILHAR", 1, "1234", None, None, "10")
    assert exc.value.status_code == 503
    assert exc.value.details["retryable"] is True
    assert exc.value.details["bucket"]["number"] == "1234"


def test_lock_timeout_raises_infrastructure_error(session_factory):
    locks = BucketLocks(stripes=1)
    ledger = ExposureLedger(locks=locks, lock_timeout=0.05)
    key = BucketKey.of("MILHAR", 1, "1234")

    with locks.hold([key]):
        with pytest.raises(InfrastructureError):
            ledger.check(session_factory, "MILHAR", 1, "1234", None, None, "10")


@pytest.mark.parametrize(
    "number,digits,expected",
    [
        ("1234", 4, "1234"),
        ("1234", 3, "234"),
        ("1234", 2, "34"),
        ("12-34", 4, "1234"),
        ("12", 3, None),
        ("", 2, None),
        ("05-12", None, "05-12"),
    ],
)
def test_normalize_number(number, digits, expected):
    assert normalize_number(number, digits) == expected


@pytest.mark.parametrize("number", ["abcd", "", "12345", "123", "12.4"])
def test_check_rejects_numbers_that_do_not_fit_the_modality(ledger, seed, session_factory, number):
    seed.limit("MILHAR", 1, "5")

    with pytest.raises(InvalidNumber):
        ledger.check(session_factory, "MILHAR", 1, number, None, None, "10")

    with transaction(session_factory) as session:
        assert session.scalar(select(func.count()).select_from(BlockedNumber)) == 0


def test_check_rejects_bad_group_picks(ledger, session_factory):
    with pytest.raises(InvalidNumber):
        ledger.check(session_factory, "GRUPO", 1, [26], None, None, "10")


def test_zero_digit_target_never_matches():
    assert normalize_number("1234", 0) is None


def test_draw_time_limit_applies_to_every_lottery(ledger, seed, session_factory):
    seed.limit("MILHAR", 1, "5", draw_time="11:20")
    seed.limit("MILHAR", 1, "500")

    decision = ledger.check(session_factory, "MILHAR", 1, "1234", "LOOK", "11:20", "50")
    assert decision.blocked
    assert decision.limit == Decimal("5")

    assert ledger.check(session_factory, "MILHAR", 1, "1234", "LOOK", "14:20", "50").limit == Decimal("500")


def test_lottery_limit_beats_draw_time_limit(ledger, seed, session_factory):
    seed.limit("MILHAR", 1, "5", draw_time="11:20")
    seed.limit("MILHAR", 1, "300", lottery="LOOK")

    assert ledger.check(session_factory, "MILHAR", 1, "1234", "LOOK", "11:20", "50").limit == Decimal("300")


def test_passe_buckets_live_on_the_first_two_prizes(ledger, seed, session_factory):
    seed.limit("PASSE", 2, "10")
    seed.bet("PASSE", "12-05", "1-2", "8")

    decision = ledger.check(session_factory, "PASSE", 2, [12, 5], None, None, "5")
    assert decision.blocked
    assert decision.key.number == "12-05"
    assert "passe 12-05" in decision.reason
    assert not ledger.check(session_factory, "PASSE", 2, [5, 12], None, None, "5").blocked
    with pytest.raises(InvalidPositionRange):
        ledger.check(session_factory, "PASSE", 3, [12, 5], None, None, "5")


def _open_alerts(session_factory):
    with transaction(session_factory) as session:
        return ExposureAlertRepository().list_alerts(session)


def test_crossing_a_limit_opens_one_alert_per_scope(ledger, seed, session_factory):
    seed.limit("DEZENA", 1, "100", lottery="LOOK", draw_time="11:20")
    seed.bet("DEZENA", "45", "1", "90", lottery="LOOK", draw_time="11:20")
    seed.bet("DEZENA", "77", "1", "95", lottery="LOOK", draw_time="11:20")

    assert not ledger.check(session_factory, "DEZENA", 1, "45", "LOOK", "11:20", "5").blocked
    assert _open_alerts(session_factory) == []

    ledger.check(session_factory, "DEZENA", 1, "45", "LOOK", "11:20", "20")
    (alert,) = _open_alerts(session_factory)
    assert (alert.modality, alert.prize_tier, alert.lottery, alert.draw_time) == ("DEZENA", 1, "LOOK", "11:20")
    assert alert.total_staked == Decimal("110.00")
    assert alert.excess == Decimal("10.00")

    ledger.check(session_factory, "DEZENA", 1, "77", "LOOK", "11:20", "30")
    (alert,) = _open_alerts(session_factory)
    assert alert.total_staked == Decimal("125.00")
    assert alert.excess == Decimal("25.00")
    assert alert.limit == Decimal("100.00")


def test_resolved_alert_is_replaced_by_a_new_one(ledger, seed, session_factory):
    seed.limit("CENTENA", 1, "10")
    ledger.check(session_factory, "CENTENA", 1, "123", None, None, "20")
    repo = ExposureAlertRepository()
    with transaction(session_factory) as session:
        (alert,) = repo.list_alerts(session)
        repo.resolve(session, alert, resolved_by="admin")

    ledger.check(session_factory, "CENTENA", 1, "456", None, None, "40")

    with transaction(session_factory) as session:
        (resolved,) = repo.list_alerts(session, resolved=True)
        (fresh,) = repo.list_alerts(session)
    assert resolved.resolved_by == "admin"
    assert resolved.resolved_at is not None
    assert fresh.id != resolved.id
    assert fresh.excess == Decimal("30.00")


def test_alerts_are_listed_by_excess(ledger, seed, session_factory):
    seed.limit("MILHAR", 1, "10")
    seed.limit("MILHAR", 2, "10")
    ledger.check(session_factory, "MILHAR", 1, "1234", None, None, "15")
    ledger.check(session_factory, "MILHAR", 2, "1234", None, None, "50")

    assert [a.prize_tier for a in _open_alerts(session_factory)] == [2, 1]
