"""Decompose a bet into payable stake units.

units = combinations x positions, unit_value = stake / units. Inverted
modalities count the distinct permutations of the pick's digits, so "1123"
resolves to 12 combinations rather than 4! = 24.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from itertools import permutations

from banca.errors import AppError, InvalidGroupCount, InvalidNumber, InvalidPositionRange, ValidationError
from banca.modalities import (
    GROUP_MAX,
    GROUP_MIN,
    Modality,
    ModalityRule,
    Pick,
    canonical_groups,
    canonical_pick,
    parse_modality,
    rule_for,
)
from banca.money import floor_cents, to_decimal, to_money


class DivisionType(str, Enum):
    ALL = "all"
    EACH = "each"


@dataclass(frozen=True)
class UnitResult:
    combinations: int
    positions: int
    units: int
    unit_value: Decimal

    def to_dict(self) -> dict:
        return {
            "combinations": self.combinations,
            "positions": self.positions,
            "units": self.units,
            "unit_value": str(to_money(self.unit_value)),
        }


@dataclass(frozen=True)
class StakeSplit:
    per_pick: Decimal
    remainder: Decimal


@dataclass(frozen=True)
class TicketUnits:
    modality: Modality
    position_from: int
    position_to: int
    split: StakeSplit
    picks: list[tuple[str, UnitResult]]


def distinct_permutations(number: str) -> int:
    return len(set(permutations(number)))


def validate_positions(modality: str | Modality, position_from: int, position_to: int) -> None:
    rule = rule_for(modality)
    if rule.fixed_positions:
        valid = (position_from, position_to) == (rule.min_position, rule.max_position)
    else:
        valid = rule.min_position <= position_from <= position_to <= rule.max_position
    if not valid:
        raise InvalidPositionRange(
            message="Invalid position range for this modality",
            details={
                "position": [
                    f"{parse_modality(modality).value} accepts prizes "
                    f"{rule.min_position} to {rule.max_position} (got {position_from}-{position_to})"
                ]
            },
        )


def validate_prize_tier(modality: str | Modality, prize_tier: int) -> None:
    """A single prize tier a bucket of this modality can live on."""

    rule = rule_for(modality)
    if not (rule.min_position <= prize_tier <= rule.max_position):
        raise InvalidPositionRange(
            message="Invalid prize tier for this modality",
            details={
                "prize_tier": [
                    f"{parse_modality(modality).value} accepts prizes "
                    f"{rule.min_position} to {rule.max_position} (got {prize_tier})"
                ]
            },
        )


def validate_pick(modality: str | Modality, pick: Pick) -> None:
    """Raise InvalidGroupCount / InvalidNumber unless the pick fits the modality."""

    mod = parse_modality(modality)
    _combinations(mod, rule_for(mod), pick)


def _combinations(modality: Modality, rule: ModalityRule, pick: Pick) -> int:
    if rule.is_group:
        try:
            groups = canonical_groups(pick)
        except (TypeError, ValueError) as exc:
            raise InvalidNumber(
                message="Invalid group",
                details={"number": ["Groups must be numbers"]},
            ) from exc
        if len(groups) != rule.group_arity:
            raise InvalidGroupCount(
                message=f"Invalid group count: expected {rule.group_arity}, got {len(groups)}",
                details={"number": [f"{modality.value} takes exactly {rule.group_arity} group(s)"]},
            )
        bad = [g for g in groups if g < GROUP_MIN or g > GROUP_MAX]
        if bad:
            raise InvalidNumber(
                message="Invalid group",
                details={"number": [f"Groups must be within {GROUP_MIN}..{GROUP_MAX}"]},
            )
        return 1

    number = str(pick).strip()
    if not (number.isascii() and number.isdigit()) or len(number) != rule.digits:
        raise InvalidNumber(
            message="Invalid number",
            details={"number": [f"{modality.value} takes exactly {rule.digits} digits"]},
        )
    if modality is Modality.MILHAR_CENTENA:
        # the thousand plus its trailing hundred
        return 2
    if rule.inverted:
        return distinct_permutations(number)
    return 1


def compute_units(
    modality: str | Modality,
    pick: Pick,
    position_from: int,
    position_to: int,
    stake_amount: object,
) -> UnitResult:
    """Validate one pick and resolve it into units.

    Raises:
        InvalidPositionRange: reversed range or outside the modality's prizes.
        InvalidGroupCount: group pick with the wrong number of groups.
        InvalidNumber: wrong digit count or group outside 1..25.
    """

    mod = parse_modality(modality)
    rule = rule_for(mod)
    validate_positions(mod, position_from, position_to)
    stake = to_decimal(stake_amount, "stake_amount")
    if stake <= 0:
        raise ValidationError(message="Invalid stake_amount", details={"stake_amount": ["Must be positive"]})

    combinations = _combinations(mod, rule, pick)
    positions = 1 if rule.fixed_positions else position_to - position_from + 1
    units = combinations * positions
    if units < 1:
        raise AppError(code="invalid_units", message="Bet resolves to no units", status_code=400)

    return UnitResult(
        combinations=combinations,
        positions=positions,
        units=units,
        unit_value=stake / units,
    )


def split_stake(total: object, pick_count: int, division_type: str | DivisionType) -> StakeSplit:
    """Stake per pick.

    ``each``: the total already applies to every pick. ``all``: the total is
    divided evenly, rounded down to the cent; the remainder stays with the
    house.
    """

    if pick_count < 1:
        raise ValidationError(message="Invalid picks", details={"picks": ["At least one pick is required"]})
    try:
        division = DivisionType(str(getattr(division_type, "value", division_type)).lower())
    except ValueError as exc:
        raise ValidationError(
            message="Invalid division_type",
            details={"division_type": ["Must be one of all|each"]},
        ) from exc

    amount = to_decimal(total, "stake_amount")
    if division is DivisionType.EACH:
        return StakeSplit(per_pick=amount, remainder=Decimal("0"))

    per_pick = floor_cents(amount / pick_count)
    return StakeSplit(per_pick=per_pick, remainder=amount - per_pick * pick_count)


def compute_ticket(
    modality: str | Modality,
    picks: Sequence[Pick],
    position_from: int,
    position_to: int,
    total: object,
    division_type: str | DivisionType,
) -> TicketUnits:
    mod = parse_modality(modality)
    split = split_stake(total, len(picks), division_type)
    resolved = [
        (canonical_pick(mod, pick), compute_units(mod, pick, position_from, position_to, split.per_pick))
        for pick in picks
    ]
    return TicketUnits(
        modality=mod,
        position_from=position_from,
        position_to=position_to,
        split=split,
        picks=resolved,
    )
