"""Bet routes (controllers). No business logic here."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from banca.db import get_session_factory
from banca.schemas.bet import ExposureCheckSchema, TicketSchema, UnitRequestSchema
from banca.services.bet_service import BetPlacementService, TicketRequest
from banca.services.exposure_ledger import ExposureLedger
from banca.services.unit_calculator import compute_units
from banca.utils.responses import fail, ok

bets_bp = Blueprint("bets", __name__)

_unit_schema = UnitRequestSchema()
_check_schema = ExposureCheckSchema()
_ticket_schema = TicketSchema()


def _ledger() -> ExposureLedger:
    return ExposureLedger(
        default_policy=current_app.config.get("EXPOSURE_DEFAULT_POLICY", "open"),
        lock_timeout=float(current_app.config.get("EXPOSURE_LOCK_TIMEOUT", 10.0)),
    )


@bets_bp.post("/units")
def calculate_units():
    """Resolve one pick into stake units."""

    data = _unit_schema.load(request.get_json(silent=True) or {})
    result = compute_units(
        data["modality"],
        data["number"],
        data["position_from"],
        data["position_to"],
        data["stake_amount"],
    )
    return ok(result.to_dict())


@bets_bp.post("/exposure/check")
def check_exposure():
    """Check (and possibly block) a single bucket without placing a bet."""

    data = _check_schema.load(request.get_json(silent=True) or {})
    decision = _ledger().check(
        get_session_factory(),
        data["modality"],
        data["prize_tier"],
        data["number"],
        data["lottery"],
        data["draw_time"],
        data["incoming_stake"],
    )
    return ok(decision.to_dict())


@bets_bp.post("/bets")
def place_bet():
    """Place a ticket; 409 with the block reasons when any bucket is over its limit."""

    data = _ticket_schema.load(request.get_json(silent=True) or {})
    service = BetPlacementService(ledger=_ledger())
    result = service.place(get_session_factory(), TicketRequest(**data))

    if not result.accepted:
        return fail(
            "bet_blocked",
            result.reasons[0] if result.reasons else "Bet blocked",
            409,
            details={"reasons": result.reasons},
            data=result.to_dict(),
        )
    return ok(result.to_dict(), status_code=201)
