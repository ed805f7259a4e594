"""Cumulative house exposure per bucket, with automatic blocking.

A bucket is (modality, prize tier, number, lottery, draw time). Its exposure
is the sum of stakes of pending bets on the same number whose position range
covers the prize tier. Once a candidate stake would push exposure past the
configured limit, a BlockedNumber is materialized (and the scope's descarga
alert opened or refreshed); every later check on the bucket is rejected
without rescanning bets.

Decisions for a bucket must run under its locks (``BucketLocks`` in process,
``ExposureBucketRepository.lock`` in the database) and in the same
transaction that persists the accepted bets; ``check`` and the bet placement
workflow both do this.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from banca.buckets import BucketKey
from banca.db import transaction
from banca.errors import InfrastructureError, ValidationError
from banca.modalities import Modality, Pick, rule_for
from banca.money import format_brl, to_decimal, to_money
from banca.positions import covers
from banca.repositories.bet_repository import BetRepository
from banca.repositories.blocked_number_repository import BlockedNumberRepository
from banca.repositories.exposure_alert_repository import ExposureAlertRepository
from banca.repositories.exposure_bucket_repository import ExposureBucketRepository
from banca.repositories.limit_config_repository import LimitConfigRepository
from banca.services.bucket_locks import BucketLocks, bucket_locks
from banca.services.unit_calculator import validate_pick, validate_prize_tier

logger = logging.getLogger(__name__)


class DefaultPolicy(str, Enum):
    """What to do with a bucket that has no active limit."""

    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class ExposureDecision:
    key: BucketKey
    blocked: bool
    reason: str | None = None
    limit: Decimal | None = None
    exposure_after: Decimal | None = None
    already_blocked: bool = False

    def to_dict(self) -> dict:
        return {
            "modality": self.key.modality,
            "prize_tier": self.key.prize_tier,
            "number": self.key.number,
            "lottery": self.key.lottery,
            "draw_time": self.key.draw_time,
            "blocked": self.blocked,
            "already_blocked": self.already_blocked,
            "reason": self.reason,
            "limit": str(to_money(self.limit)) if self.limit is not None else None,
            "exposure_after": str(to_money(self.exposure_after)) if self.exposure_after is not None else None,
        }


def normalize_number(number: str, target_digits: int | None) -> str | None:
    """Reduce a bet's number to the bucket's digit length.

    Keeps the trailing ``target_digits`` digits ("1234" -> "234" for a
    centena bucket). Numbers shorter than the target never match and give
    ``None``. ``target_digits=None`` (group buckets) compares the text as is.
    """

    if target_digits is None:
        return number.strip()
    if target_digits < 1:
        return None
    digits = re.sub(r"\D", "", number)
    if len(digits) < target_digits:
        return None
    return digits[-target_digits:]


def bucket_digits(key: BucketKey) -> int | None:
    if rule_for(key.modality).is_group:
        return None
    return len(key.number)


@contextmanager
def storage_guard(key: BucketKey | None = None) -> Iterator[None]:
    """Surface storage failures as retryable InfrastructureError."""

    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Exposure storage failure for %s", key or "ticket")
        details = {"bucket": key.as_filter()} if key is not None else None
        raise InfrastructureError(details=details) from exc


class ExposureLedger:
    """Exposure checks and block materialization."""

    def __init__(
        self,
        default_policy: str | DefaultPolicy = DefaultPolicy.OPEN,
        lock_timeout: float | None = 10.0,
        bets: BetRepository | None = None,
        limits: LimitConfigRepository | None = None,
        blocked: BlockedNumberRepository | None = None,
        buckets: ExposureBucketRepository | None = None,
        locks: BucketLocks | None = None,
        alerts: ExposureAlertRepository | None = None,
    ) -> None:
        try:
            self.default_policy = DefaultPolicy(str(getattr(default_policy, "value", default_policy)).lower())
        except ValueError as exc:
            raise ValueError(f"Unknown exposure default policy: {default_policy!r}") from exc
        self.lock_timeout = lock_timeout
        self._bets = bets or BetRepository()
        self._limits = limits or LimitConfigRepository()
        self._blocked = blocked or BlockedNumberRepository()
        self._buckets = buckets or ExposureBucketRepository()
        self._locks = locks or bucket_locks()
        self._alerts = alerts or ExposureAlertRepository()

    @property
    def locks(self) -> BucketLocks:
        return self._locks

    def current_exposure(self, session: Session, key: BucketKey) -> Decimal:
        """Sum of pending stakes on the bucket (incoming stake excluded)."""

        digits = bucket_digits(key)
        target = normalize_number(key.number, digits)
        total = Decimal("0")
        if target is None:
            return total

        for bet in self._bets.find_pending_bets(session, key.modality, key.lottery or None, key.draw_time or None):
            if normalize_number(bet.number, digits) != target:
                continue
            if not covers(bet.position, key.prize_tier):
                continue
            total += to_decimal(bet.stake_amount)
        return total

    def check_and_maybe_block(self, session: Session, key: BucketKey, incoming_stake: Decimal) -> ExposureDecision:
        """Decide one bucket inside the caller's transaction.

        The caller must hold the bucket's locks until the transaction that
        persists the accepted stake commits.

        Raises:
            InfrastructureError: storage failure; the bet must not be treated as accepted.
        """

        with storage_guard(key):
            existing = self._blocked.find(session, key)
            if existing is not None:
                limit = to_decimal(existing.limit_at_block)
                return ExposureDecision(
                    key=key,
                    blocked=True,
                    reason=self._blocked_message(key, limit),
                    limit=limit,
                    exposure_after=to_decimal(existing.value_at_block),
                    already_blocked=True,
                )

            config = self._limits.find_effective_limit(
                session, key.modality, key.prize_tier, key.lottery, key.draw_time
            )
            if config is None:
                if self.default_policy is DefaultPolicy.CLOSED:
                    return ExposureDecision(key=key, blocked=True, reason=self._unconfigured_message(key))
                return ExposureDecision(key=key, blocked=False)

            limit = to_decimal(config.limit)
            exposure_after = self.current_exposure(session, key) + incoming_stake
            if exposure_after <= limit:
                return ExposureDecision(key=key, blocked=False, limit=limit, exposure_after=exposure_after)

            self._blocked.upsert(session, key, to_money(exposure_after), to_money(limit))
            self._alerts.record(
                session,
                key,
                limit=to_money(limit),
                total_staked=to_money(exposure_after),
                excess=to_money(exposure_after - limit),
            )
            logger.info(
                "Blocked %s: exposure %s exceeds limit %s",
                key,
                to_money(exposure_after),
                to_money(limit),
            )
            return ExposureDecision(
                key=key,
                blocked=True,
                reason=self._limit_reached_message(key, limit, exposure_after),
                limit=limit,
                exposure_after=exposure_after,
            )

    def check(
        self,
        session_factory: sessionmaker[Session],
        modality: str | Modality,
        prize_tier: int,
        number: Pick,
        lottery: str | None,
        draw_time: str | None,
        incoming_stake: object,
    ) -> ExposureDecision:
        """Single-bucket check in its own locked transaction.

        Only the block record and the descarga alert (if any) are persisted;
        the incoming stake is not recorded.
        """

        validate_prize_tier(modality, int(prize_tier))
        validate_pick(modality, number)
        stake = to_decimal(incoming_stake, "incoming_stake")
        if stake <= 0:
            raise ValidationError(message="Invalid incoming_stake", details={"incoming_stake": ["Must be positive"]})
        key = BucketKey.of(modality, prize_tier, number, lottery, draw_time)

        with self._locks.hold([key], self.lock_timeout), storage_guard(key):
            with transaction(session_factory) as session:
                self._buckets.lock(session, key)
                return self.check_and_maybe_block(session, key, stake)

    def check_many(self, session: Session, stakes: Mapping[BucketKey, Decimal]) -> list[ExposureDecision]:
        """Lock and decide several buckets; ``stakes`` maps each bucket to its incoming stake."""

        with storage_guard():
            self._buckets.lock_all(session, list(stakes))
        return [self.check_and_maybe_block(session, key, stake) for key, stake in stakes.items()]

    @staticmethod
    def _subject(key: BucketKey) -> str:
        kind = rule_for(key.modality).digit_kind
        return f"O {kind} {key.number} no {key.prize_tier}º prêmio da {key.describe_draw()}"

    def _blocked_message(self, key: BucketKey, limit: Decimal) -> str:
        return f"{self._subject(key)} está bloqueado. Limite atingido: {format_brl(limit)}."

    def _limit_reached_message(self, key: BucketKey, limit: Decimal, exposure_after: Decimal) -> str:
        return f"{self._subject(key)} atingiu o limite de {format_brl(limit)}. Total apostado: {format_brl(exposure_after)}."

    def _unconfigured_message(self, key: BucketKey) -> str:
        return f"{self._subject(key)} não tem limite configurado; apostas recusadas."
