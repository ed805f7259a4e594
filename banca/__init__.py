"""Flask application package for the wager units and exposure-limit engine."""

from __future__ import annotations

from typing import Any

from flask import Flask

from dotenv import load_dotenv


def create_app(overrides: dict[str, Any] | None = None) -> Flask:
    """Application factory.

    Args:
        overrides: config values applied after the environment config
            (tests pass DATABASE_URL here).

    Returns:
        Configured Flask application.
    """
    load_dotenv()

    from banca.config import get_config
    from banca.db import init_db
    from banca.error_handlers import register_error_handlers
    from banca.logging_config import configure_logging
    from banca.routes.admin import admin_bp
    from banca.routes.bets import bets_bp
    from banca.routes.health import health_bp

    app = Flask(__name__)
    app.config.from_object(get_config())
    if overrides:
        app.config.update(overrides)

    configure_logging(app)
    init_db(app)
    register_error_handlers(app)

    app.register_blueprint(health_bp)
    app.register_blueprint(bets_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    return app
