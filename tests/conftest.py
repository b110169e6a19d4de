"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets the environment before any app module builds its settings.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

os.environ.setdefault("LOG_LEVEL", "warning")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("RATE_LIMIT_REQUESTS_PER_MINUTE", "100")
os.environ.setdefault("CORS_ALLOWED_ORIGINS", "http://localhost:3000,*.example.com")

import pytest  # noqa: E402


class FakeClock:
    """Deterministic clock used to drive sliding windows in tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds

    def set(self, value: float) -> None:
        self.current = value


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
