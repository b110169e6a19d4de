"""CORS middleware with strict origin matching.

Allowed origins are exact origins (``https://app.example.com``) or subdomain
patterns (``*.example.com``, optionally scheme-qualified as
``https://*.example.com``). A bare ``*`` is never honoured and the ``null``
origin is always rejected.
"""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

from fastapi import Request, Response

from app.core.config import CORSSettings, parse_csv

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = ("http", "https")


def _subdomain_match(scheme: str, host: str, pattern: str) -> bool:
    required_scheme = None
    for candidate in _ALLOWED_SCHEMES:
        prefix = f"{candidate}://"
        if pattern.startswith(prefix):
            required_scheme = candidate
            pattern = pattern[len(prefix):]
            break

    if not pattern.startswith("*."):
        return False
    domain = pattern[2:]
    if not domain:
        return False
    if required_scheme and scheme != required_scheme:
        return False

    # The dot boundary keeps "attackerexample.com" from matching "*.example.com"
    return host == domain or host.endswith("." + domain)


def is_origin_allowed(origin: str, allowed_origins: list[str]) -> bool:
    """Check an Origin header value against the allow-list.

    Examples:
        >>> is_origin_allowed("https://api.example.com", ["*.example.com"])
        True
        >>> is_origin_allowed("https://evilexample.com", ["*.example.com"])
        False
        >>> is_origin_allowed("https://a.com", ["*"])
        False
    """

    if not origin or origin == "null":
        return False

    try:
        parsed = urlsplit(origin)
    except ValueError:
        return False
    if parsed.scheme not in _ALLOWED_SCHEMES or not parsed.netloc:
        return False

    for allowed in allowed_origins:
        if allowed == "*":
            continue
        if allowed == origin:
            return True
        if "*." in allowed and _subdomain_match(parsed.scheme, parsed.netloc, allowed):
            return True
    return False


class CORSMiddleware:
    """Apply CORS headers for allowed origins and answer preflight requests.

    Preflight (OPTIONS) requests are answered directly: 204 for an allowed
    origin, 403 otherwise. Other requests always reach the next handler;
    only allowed origins get CORS headers on the response.
    """

    def __init__(self, cors_settings: CORSSettings) -> None:
        self.allowed_origins = parse_csv(cors_settings.allowed_origins)
        self.allowed_methods = parse_csv(cors_settings.allowed_methods)
        self.allowed_headers = parse_csv(cors_settings.allowed_headers)
        self.exposed_headers = parse_csv(cors_settings.exposed_headers)
        self.allow_credentials = cors_settings.allow_credentials
        self.max_age = cors_settings.max_age

    def cors_headers(self, origin: str) -> dict[str, str]:
        """Headers sent back to an allowed origin."""

        headers = {"Access-Control-Allow-Origin": origin, "Vary": "Origin"}
        if self.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"
        if self.allowed_methods:
            headers["Access-Control-Allow-Methods"] = ", ".join(self.allowed_methods)
        if self.allowed_headers:
            headers["Access-Control-Allow-Headers"] = ", ".join(self.allowed_headers)
        if self.exposed_headers:
            headers["Access-Control-Expose-Headers"] = ", ".join(self.exposed_headers)
        if self.max_age > 0:
            headers["Access-Control-Max-Age"] = str(self.max_age)
        return headers

    async def __call__(self, request: Request, call_next) -> Response:
        origin = request.headers.get("origin", "")
        allowed = bool(self.allowed_origins) and is_origin_allowed(origin, self.allowed_origins)

        if request.method == "OPTIONS":
            if not allowed:
                logger.info(
                    "cors.preflight_rejected",
                    extra={"origin": origin, "path": request.url.path},
                )
                return Response(status_code=403)
            return Response(status_code=204, headers=self.cors_headers(origin))

        response = await call_next(request)
        if allowed:
            response.headers.update(self.cors_headers(origin))
        return response
