"""Schemas for unit calculation, exposure checks and ticket placement."""

from __future__ import annotations

from decimal import Decimal

from marshmallow import Schema, ValidationError, fields, validate

from banca.modalities import Modality
from banca.services.unit_calculator import DivisionType

MODALITIES = [m.value for m in Modality]
DIVISION_TYPES = [d.value for d in DivisionType]
MIN_STAKE = Decimal("0.01")


class PickField(fields.Field):
    """A digit string ("1234") or a list of animal groups ([1, 5] or "01-05")."""

    def _deserialize(self, value, attr, data, **kwargs):  # type: ignore[no-untyped-def]
        if isinstance(value, str):
            if not value.strip():
                raise ValidationError("Pick cannot be empty")
            return value.strip()
        if isinstance(value, list) and value and all(isinstance(v, int) and not isinstance(v, bool) for v in value):
            return [int(v) for v in value]
        raise ValidationError("Pick must be a digit string or a list of group numbers")


class UnitRequestSchema(Schema):
    modality = fields.String(required=True, validate=validate.OneOf(MODALITIES))
    number = PickField(required=True)
    position_from = fields.Integer(required=True)
    position_to = fields.Integer(required=True)
    stake_amount = fields.Decimal(required=True, validate=validate.Range(min=MIN_STAKE))


class ExposureCheckSchema(Schema):
    modality = fields.String(required=True, validate=validate.OneOf(MODALITIES))
    prize_tier = fields.Integer(required=True, validate=validate.Range(min=1, max=7))
    number = PickField(required=True)
    lottery = fields.String(required=False, load_default="")
    draw_time = fields.String(required=False, load_default="")
    incoming_stake = fields.Decimal(required=True, validate=validate.Range(min=MIN_STAKE))


class TicketSchema(Schema):
    modality = fields.String(required=True, validate=validate.OneOf(MODALITIES))
    picks = fields.List(PickField(), required=True, validate=validate.Length(min=1, max=50))
    position = fields.String(required=True, validate=validate.Length(min=1, max=16))
    stake_amount = fields.Decimal(required=True, validate=validate.Range(min=MIN_STAKE))
    division_type = fields.String(
        required=False,
        load_default=DivisionType.EACH.value,
        validate=validate.OneOf(DIVISION_TYPES),
    )
    lottery = fields.String(required=False, load_default="", validate=validate.Length(max=100))
    draw_time = fields.String(required=False, load_default="", validate=validate.Length(max=16))
