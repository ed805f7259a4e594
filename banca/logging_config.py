"""Logging configuration."""

from __future__ import annotations

import logging

from flask import Flask


def configure_logging(app: Flask) -> None:
    """Configure stdlib logging for the app and its services."""

    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logging.getLogger("banca").setLevel(level)

    # Engine echo is too chatty at INFO; exposure decisions already log.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
