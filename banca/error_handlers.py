"""Centralized error handlers."""

from __future__ import annotations

import logging

from flask import Flask
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from banca.errors import AppError, ConflictError, InfrastructureError, ValidationError
from banca.utils.responses import fail

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = "1"


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the Flask app."""

    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        headers = {"Retry-After": RETRY_AFTER_SECONDS} if isinstance(exc, InfrastructureError) else None
        return fail(exc.code, exc.message, exc.status_code, exc.details, headers=headers)

    @app.errorhandler(MarshmallowValidationError)
    def _handle_schema_error(exc: MarshmallowValidationError):
        # exc.messages is a dict of field -> list[str]
        wrapped = ValidationError(details=exc.messages)
        return fail(wrapped.code, wrapped.message, wrapped.status_code, wrapped.details)

    @app.errorhandler(IntegrityError)
    def _handle_integrity_error(exc: IntegrityError):
        logger.info("Integrity error", exc_info=exc)
        wrapped = ConflictError(details=str(exc.orig) if exc.orig else str(exc))
        return fail(wrapped.code, wrapped.message, wrapped.status_code, wrapped.details)

    @app.errorhandler(SQLAlchemyError)
    def _handle_storage_error(exc: SQLAlchemyError):
        logger.exception("Storage error")
        wrapped = InfrastructureError(message="Storage unavailable, retry later")
        return fail(
            wrapped.code,
            wrapped.message,
            wrapped.status_code,
            wrapped.details,
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        )

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        status = int(getattr(exc, "code", 500) or 500)
        if status == 404:
            return fail("not_found", "Not found", 404)

        return fail(
            "http_error",
            getattr(exc, "description", "HTTP error"),
            status,
            details={"name": getattr(exc, "name", "HTTPException")},
        )

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        logger.exception("Unhandled exception")
        return fail("internal_error", "Internal server error", 500)
