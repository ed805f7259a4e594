"""Decimal helpers for currency values.

Arithmetic stays unrounded; only persisted or serialized amounts go through
``to_money``.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_HALF_EVEN, Decimal, InvalidOperation

from banca.errors import ValidationError

CENT = Decimal("0.01")


def to_decimal(value: object, field: str = "amount") -> Decimal:
    """Coerce ints, strings and Decimals to Decimal.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")``.
    """

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValidationError(message=f"Invalid {field}", details={field: ["Must be a number"]})
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValidationError(message=f"Invalid {field}", details={field: ["Must be a number"]}) from exc
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise ValidationError(message=f"Invalid {field}", details={field: ["Must be a number"]})

    if not result.is_finite():
        raise ValidationError(message=f"Invalid {field}", details={field: ["Must be finite"]})
    return result


def to_money(value: Decimal) -> Decimal:
    """Round half-to-even to cents (persist/serialize boundary only)."""

    return value.quantize(CENT, rounding=ROUND_HALF_EVEN)


def floor_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_DOWN)


def format_brl(value: Decimal) -> str:
    return f"R$ {to_money(value):.2f}"
