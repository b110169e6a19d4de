"""OpenAPI customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- A shared ``TooManyRequests`` response, documenting the rate-limit headers,
  referenced by every operation when rate limiting is enabled

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_RATE_LIMIT_HEADERS = {
    "X-RateLimit-Limit": "Requests allowed per window.",
    "X-RateLimit-Remaining": "Requests left in the current window.",
    "X-RateLimit-Reset": "UNIX time at which the window frees up.",
    "X-RateLimit-Window": "Window length in seconds.",
    "Retry-After": "Seconds to wait before retrying.",
}


def _too_many_requests_response() -> Dict[str, Any]:
    return {
        "description": "Rate limit exceeded.",
        "headers": {
            name: {"description": description, "schema": {"type": "integer"}}
            for name, description in _RATE_LIMIT_HEADERS.items()
        },
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "RATE_LIMIT_EXCEEDED",
                        "message": "Rate limit exceeded. Try again in 42 seconds.",
                    }
                }
            }
        },
    }


def apply_openapi_customizations(app: FastAPI, *, rate_limited: bool) -> None:
    """Patch FastAPI's OpenAPI generation to add metadata and 429 docs.

    Args:
        app: Application whose schema is patched.
        rate_limited: Whether the rate limit middleware is active.
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Health",
                "description": "Liveness, readiness and runtime information.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        if rate_limited:
            components = schema.setdefault("components", {})
            responses = components.setdefault("responses", {})
            responses.setdefault("TooManyRequests", _too_many_requests_response())

            for methods in schema.get("paths", {}).values():
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj.setdefault("responses", {}).setdefault(
                            "429", {"$ref": "#/components/responses/TooManyRequests"}
                        )

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
