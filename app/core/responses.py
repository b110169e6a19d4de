"""JSON response helpers shared by handlers and middlewares.

Every error leaving the API has the same envelope::

    {"error": {"code": "...", "message": "..."}}

with an optional ``details`` object.
"""

from __future__ import annotations

from typing import Any, Mapping

from fastapi.responses import JSONResponse


def error_body(code: str, message: str, details: Mapping[str, Any] | None = None) -> dict:
    """Build the error envelope.

    Args:
        code: Stable, machine-readable error code.
        message: Human-readable message.
        details: Optional structured context, omitted when empty.
    """

    error: dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = dict(details)
    return {"error": error}


def error_response(
    status_code: int,
    code: str,
    message: str,
    *,
    details: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Render an error envelope as a JSONResponse."""

    return JSONResponse(
        status_code=status_code,
        content=error_body(code, message, details),
        headers=dict(headers) if headers else None,
    )
