"""Bet modalities and their fixed rules."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from banca.errors import ValidationError


class Modality(str, Enum):
    MILHAR = "MILHAR"
    MILHAR_INVERTIDA = "MILHAR_INVERTIDA"
    CENTENA = "CENTENA"
    CENTENA_INVERTIDA = "CENTENA_INVERTIDA"
    DEZENA = "DEZENA"
    DEZENA_INVERTIDA = "DEZENA_INVERTIDA"
    MILHAR_CENTENA = "MILHAR_CENTENA"
    GRUPO = "GRUPO"
    DUPLA_GRUPO = "DUPLA_GRUPO"
    TERNO_GRUPO = "TERNO_GRUPO"
    QUADRA_GRUPO = "QUADRA_GRUPO"
    PASSE = "PASSE"
    PASSE_VAI_E_VEM = "PASSE_VAI_E_VEM"


@dataclass(frozen=True)
class ModalityRule:
    digits: int | None
    min_position: int
    max_position: int
    inverted: bool = False
    group_arity: int = 0
    # Passe bets cover the 1st-2nd pair as a single outcome.
    fixed_positions: bool = False
    # Group order is significant (passe "vai": first group on the 1st prize).
    ordered_groups: bool = False

    @property
    def is_group(self) -> bool:
        return self.group_arity > 0

    @property
    def digit_kind(self) -> str:
        if self.fixed_positions:
            return "passe"
        return DIGIT_KINDS.get(self.digits, "grupo" if self.is_group else "número")


DIGIT_KINDS: dict[int | None, str] = {4: "milhar", 3: "centena", 2: "dezena"}

# Animal groups run 1..25 (4 dezenas each, group 25 ends on 00).
GROUP_MIN = 1
GROUP_MAX = 25

RULES: dict[Modality, ModalityRule] = {
    Modality.MILHAR: ModalityRule(digits=4, min_position=1, max_position=5),
    Modality.MILHAR_INVERTIDA: ModalityRule(digits=4, min_position=1, max_position=5, inverted=True),
    Modality.MILHAR_CENTENA: ModalityRule(digits=4, min_position=1, max_position=5),
    Modality.CENTENA: ModalityRule(digits=3, min_position=1, max_position=7),
    Modality.CENTENA_INVERTIDA: ModalityRule(digits=3, min_position=1, max_position=7, inverted=True),
    Modality.DEZENA: ModalityRule(digits=2, min_position=1, max_position=7),
    Modality.DEZENA_INVERTIDA: ModalityRule(digits=2, min_position=1, max_position=7, inverted=True),
    Modality.GRUPO: ModalityRule(digits=None, min_position=1, max_position=7, group_arity=1),
    Modality.DUPLA_GRUPO: ModalityRule(digits=None, min_position=1, max_position=7, group_arity=2),
    Modality.TERNO_GRUPO: ModalityRule(digits=None, min_position=1, max_position=7, group_arity=3),
    Modality.QUADRA_GRUPO: ModalityRule(digits=None, min_position=1, max_position=7, group_arity=4),
    Modality.PASSE: ModalityRule(
        digits=None, min_position=1, max_position=2, group_arity=2, fixed_positions=True, ordered_groups=True
    ),
    Modality.PASSE_VAI_E_VEM: ModalityRule(
        digits=None, min_position=1, max_position=2, group_arity=2, fixed_positions=True
    ),
}


def parse_modality(value: str | Modality) -> Modality:
    if isinstance(value, Modality):
        return value
    try:
        return Modality(str(value).strip().upper())
    except ValueError as exc:
        raise ValidationError(
            message="Invalid modality",
            details={"modality": [f"Must be one of {'|'.join(m.value for m in Modality)}"]},
        ) from exc


def rule_for(modality: str | Modality) -> ModalityRule:
    return RULES[parse_modality(modality)]


Pick = str | Sequence[int]


def canonical_groups(pick: Pick) -> list[int]:
    if isinstance(pick, str):
        return [int(p) for p in re.split(r"\D+", pick) if p]
    return [int(g) for g in pick]


def canonical_pick(modality: str | Modality, pick: Pick) -> str:
    """Stable text form of a pick, used as the bucket number.

    Groups are sorted and zero-padded ("05-01" -> "01-05") unless their order
    matters (PASSE); digit picks lose any formatting ("12.34" -> "1234").
    """

    rule = rule_for(modality)
    if rule.is_group:
        groups = canonical_groups(pick)
        if not rule.ordered_groups:
            groups = sorted(groups)
        return "-".join(f"{g:02d}" for g in groups)
    return re.sub(r"\D", "", str(pick))
