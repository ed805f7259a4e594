"""Schemas for administrative limit, block and alert management."""

from __future__ import annotations

from decimal import Decimal

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from banca.modalities import rule_for
from banca.schemas.bet import MODALITIES


class LimitUpsertSchema(Schema):
    modality = fields.String(required=True, validate=validate.OneOf(MODALITIES))
    prize_tier = fields.Integer(required=True, validate=validate.Range(min=1, max=7))
    limit = fields.Decimal(required=True, validate=validate.Range(min=Decimal("0")))
    lottery = fields.String(required=False, load_default="", validate=validate.Length(max=100))
    draw_time = fields.String(required=False, load_default="", validate=validate.Length(max=16))
    active = fields.Boolean(required=False, load_default=True)

    @validates_schema
    def _validate_prize_tier(self, data, **kwargs):  # type: ignore[no-untyped-def]
        modality = data.get("modality")
        tier = data.get("prize_tier")
        if modality is None or tier is None:
            return
        rule = rule_for(modality)
        if not (rule.min_position <= tier <= rule.max_position):
            raise ValidationError(
                {"prize_tier": [f"{modality} accepts prizes {rule.min_position} to {rule.max_position}"]}
            )


class LimitSchema(Schema):
    id = fields.Int(required=True)
    modality = fields.Str(required=True)
    prize_tier = fields.Int(required=True)
    lottery = fields.Str(required=True)
    draw_time = fields.Str(required=True)
    limit = fields.Decimal(required=True, as_string=True, places=2)
    active = fields.Bool(required=True)


class BlockedNumberSchema(Schema):
    id = fields.Int(required=True)
    modality = fields.Str(required=True)
    prize_tier = fields.Int(required=True)
    number = fields.Str(required=True)
    lottery = fields.Str(required=True)
    draw_time = fields.Str(required=True)
    value_at_block = fields.Decimal(required=True, as_string=True, places=2)
    limit_at_block = fields.Decimal(required=True, as_string=True, places=2)
    blocked_at = fields.DateTime(required=False, allow_none=True)


class ExposureQuerySchema(Schema):
    modality = fields.String(required=False, load_default=None, validate=validate.OneOf(MODALITIES))
    prize_tier = fields.Integer(required=False, load_default=None, validate=validate.Range(min=1, max=7))


class ExposureAlertSchema(Schema):
    id = fields.Int(required=True)
    modality = fields.Str(required=True)
    prize_tier = fields.Int(required=True)
    lottery = fields.Str(required=True)
    draw_time = fields.Str(required=True)
    limit = fields.Decimal(required=True, as_string=True, places=2)
    total_staked = fields.Decimal(required=True, as_string=True, places=2)
    excess = fields.Decimal(required=True, as_string=True, places=2)
    resolved = fields.Bool(required=True)
    resolved_at = fields.DateTime(required=False, allow_none=True)
    resolved_by = fields.Str(required=False, allow_none=True)
    created_at = fields.DateTime(required=False, allow_none=True)
    updated_at = fields.DateTime(required=False, allow_none=True)


class AlertQuerySchema(Schema):
    resolved = fields.Boolean(required=False, load_default=False)


class AlertResolveSchema(Schema):
    resolved_by = fields.String(required=False, load_default=None, allow_none=True, validate=validate.Length(max=100))
