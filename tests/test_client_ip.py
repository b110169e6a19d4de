"""Tests for client identity extraction from proxy headers and peer address."""

from __future__ import annotations

import pytest
from starlette.requests import Request

from app.core.client_ip import extract_ip_from_header, get_client_ip


def _request(headers: dict[str, str] | None = None, client: tuple | None = ("192.0.2.10", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("203.0.113.7", "203.0.113.7"),
        ("203.0.113.7, 10.0.0.1, 10.0.0.2", "203.0.113.7"),
        ("  198.51.100.4  ", "198.51.100.4"),
        ("2001:db8::1", "2001:db8::1"),
        ("unknown", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_ip_from_header(value, expected) -> None:
    assert extract_ip_from_header(value) == expected


def test_forwarded_for_wins_over_other_headers() -> None:
    request = _request(
        {
            "X-Forwarded-For": "203.0.113.7, 10.0.0.1",
            "X-Real-IP": "198.51.100.1",
            "CF-Connecting-IP": "198.51.100.2",
        }
    )

    assert get_client_ip(request) == "203.0.113.7"


def test_invalid_header_is_skipped() -> None:
    request = _request({"X-Forwarded-For": "garbage", "X-Real-IP": "198.51.100.1"})

    assert get_client_ip(request) == "198.51.100.1"


def test_cf_connecting_ip_is_last_header_checked() -> None:
    request = _request({"CF-Connecting-IP": "198.51.100.2"})

    assert get_client_ip(request) == "198.51.100.2"


def test_falls_back_to_peer_address() -> None:
    assert get_client_ip(_request()) == "192.0.2.10"


def test_returns_none_without_any_usable_signal() -> None:
    assert get_client_ip(_request(client=None)) is None
    assert get_client_ip(_request(client=("testclient", 50000))) is None
    assert get_client_ip(_request({"X-Real-IP": "nope"}, client=None)) is None
