"""Best-effort client IP extraction.

Proxy headers are consulted in order of preference, then the transport peer
address. Values that are not syntactically valid IP addresses are skipped;
the result is unauthenticated and only suitable for grouping requests.
"""

from __future__ import annotations

import ipaddress

from fastapi import Request

# Headers to check in order of preference
IP_HEADERS = ("X-Forwarded-For", "X-Real-IP", "CF-Connecting-IP")


def _valid_ip(value: str | None) -> str | None:
    if not value:
        return None
    candidate = value.strip()
    try:
        ipaddress.ip_address(candidate)
    except ValueError:
        return None
    return candidate


def extract_ip_from_header(header_value: str | None) -> str | None:
    """Return the first address of a (possibly comma-separated) header value.

    Examples:
        >>> extract_ip_from_header("203.0.113.7, 10.0.0.1")
        '203.0.113.7'
        >>> extract_ip_from_header("not-an-ip") is None
        True
    """

    if not header_value:
        return None
    return _valid_ip(header_value.split(",", 1)[0])


def get_client_ip(request: Request) -> str | None:
    """Derive the client identity for a request.

    Returns:
        The first valid IP among the proxy headers and the peer address, or
        None when no usable signal exists.
    """

    for header in IP_HEADERS:
        ip = extract_ip_from_header(request.headers.get(header))
        if ip:
            return ip

    peer = request.client.host if request.client else None
    return _valid_ip(peer)
