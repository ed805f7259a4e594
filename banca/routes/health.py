"""Health check routes."""

from __future__ import annotations

from flask import Blueprint
from sqlalchemy import text

from banca.db import get_session
from banca.utils.responses import ok

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health_check():
    """Health check endpoint; touches the database so storage outages surface as 503."""

    get_session().execute(text("SELECT 1"))
    return ok({"status": "ok"})
