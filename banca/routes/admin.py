"""Administrative routes for limits, blocked numbers, descarga alerts and exposure overview."""

from __future__ import annotations

import logging

from flask import Blueprint, request

from banca.db import get_session
from banca.errors import ConflictError, NotFoundError
from banca.modalities import parse_modality
from banca.money import to_money
from banca.repositories.blocked_number_repository import BlockedNumberRepository
from banca.repositories.exposure_alert_repository import ExposureAlertRepository
from banca.repositories.limit_config_repository import LimitConfigRepository
from banca.schemas.admin import (
    AlertQuerySchema,
    AlertResolveSchema,
    BlockedNumberSchema,
    ExposureAlertSchema,
    ExposureQuerySchema,
    LimitSchema,
    LimitUpsertSchema,
)
from banca.services.exposure_report_service import ExposureReportService
from banca.utils.responses import ok

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__)

_limit_schema = LimitSchema()
_limits_schema = LimitSchema(many=True)
_upsert_schema = LimitUpsertSchema()
_blocked_schema = BlockedNumberSchema(many=True)
_query_schema = ExposureQuerySchema()
_alert_schema = ExposureAlertSchema()
_alerts_schema = ExposureAlertSchema(many=True)
_alert_query_schema = AlertQuerySchema()
_resolve_schema = AlertResolveSchema()
_limits = LimitConfigRepository()
_blocked = BlockedNumberRepository()
_alerts = ExposureAlertRepository()
_report = ExposureReportService()


@admin_bp.get("/limits")
def list_limits():
    session = get_session()
    modality = request.args.get("modality") or None
    return ok(_limits_schema.dump(_limits.list_limits(session, modality=modality)))


@admin_bp.post("/limits")
def upsert_limit():
    """Create or update the limit for a (modality, prize tier, lottery, draw time) scope."""

    data = _upsert_schema.load(request.get_json(silent=True) or {})
    session = get_session()
    config = _limits.upsert_limit(
        session,
        modality=parse_modality(data["modality"]).value,
        prize_tier=data["prize_tier"],
        limit=to_money(data["limit"]),
        lottery=data["lottery"].strip(),
        draw_time=data["draw_time"].strip(),
        active=data["active"],
    )
    logger.info("Limit %s/%s %r %r set to %s", config.modality, config.prize_tier, config.lottery, config.draw_time, config.limit)
    # Commit occurs in teardown if no exception.
    return ok(_limit_schema.dump(config))


@admin_bp.get("/blocked-numbers")
def list_blocked_numbers():
    session = get_session()
    blocked = _blocked.list_blocked(
        session,
        modality=request.args.get("modality") or None,
        lottery=request.args.get("lottery") or None,
    )
    return ok(_blocked_schema.dump(blocked))


@admin_bp.delete("/blocked-numbers/<int:blocked_id>")
def clear_blocked_number(blocked_id: int):
    """Administrator clear: the bucket accepts bets again until it re-blocks."""

    session = get_session()
    blocked = _blocked.get_by_id(session, blocked_id)
    if blocked is None:
        raise NotFoundError(message=f"Blocked number {blocked_id} not found")
    _blocked.delete(session, blocked)
    logger.info("Cleared block %s on %s %s tier %s", blocked_id, blocked.modality, blocked.number, blocked.prize_tier)
    return ok({"id": blocked_id, "cleared": True})


@admin_bp.get("/exposure")
def exposure_statistics():
    query = _query_schema.load(request.args)
    session = get_session()
    stats = _report.statistics(session, modality=query["modality"], prize_tier=query["prize_tier"])
    return ok([s.to_dict() for s in stats])


@admin_bp.get("/alerts")
def list_alerts():
    """Descarga alerts, largest excess first (unresolved unless ``?resolved=true``)."""

    query = _alert_query_schema.load(request.args)
    return ok(_alerts_schema.dump(_alerts.list_alerts(get_session(), resolved=query["resolved"])))


@admin_bp.post("/alerts/<int:alert_id>/resolve")
def resolve_alert(alert_id: int):
    data = _resolve_schema.load(request.get_json(silent=True) or {})
    session = get_session()
    alert = _alerts.get_by_id(session, alert_id)
    if alert is None:
        raise NotFoundError(message=f"Alert {alert_id} not found")
    if alert.resolved:
        raise ConflictError(message=f"Alert {alert_id} is already resolved")
    _alerts.resolve(session, alert, resolved_by=data["resolved_by"])
    logger.info("Alert %s on %s tier %s resolved by %s", alert_id, alert.modality, alert.prize_tier, alert.resolved_by)
    return ok(_alert_schema.dump(alert))
