"""Helpers for consistent JSON response schema."""

from __future__ import annotations

from typing import Any

from flask import Response, jsonify


def ok(data: Any, status_code: int = 200) -> Response:
    """Success response."""

    return jsonify({"success": True, "data": data, "error": None}), status_code


def fail(
    code: str,
    message: str,
    status_code: int,
    details: Any | None = None,
    data: Any | None = None,
    headers: dict[str, str] | None = None,
) -> Response:
    """Error response.

    ``data`` carries a partial result when the failure is a business
    decision (e.g. a blocked ticket) rather than an exception.
    """

    body = jsonify(
        {
            "success": False,
            "data": data,
            "error": {"code": code, "message": message, "details": details},
        }
    )
    if headers:
        return body, status_code, headers
    return body, status_code
