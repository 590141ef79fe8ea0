"""
JSON envelope shared by the API routes.

    Success: {"data": <payload>, "status": "success"}
    Error:   {"error": {"code": ..., "message": ..., "details": {...}}, "status": "error"}

Errors raised through ``HTTPException`` carry the error envelope as their
``detail``.
"""

from typing import Any, Optional


class ErrorCodes:
    """Machine-readable error codes."""

    # 404
    DOMAIN_NOT_FOUND = "DOMAIN_NOT_FOUND"

    # 409
    DOMAIN_ALREADY_EXISTS = "DOMAIN_ALREADY_EXISTS"

    # 422
    INVALID_DOMAIN = "INVALID_DOMAIN"

    # 500
    INTERNAL_ERROR = "INTERNAL_ERROR"


def success_response(data: Any) -> dict:
    return {"data": data, "status": "success"}


def error_response(code: str, message: str, details: Optional[dict] = None) -> dict:
    error = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"error": error, "status": "error"}
