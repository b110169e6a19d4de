"""Pydantic schemas for health and system information responses."""

from __future__ import annotations

from datetime import datetime
from typing import Dict

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Status of the service as reported by health probes."""

    status: str = Field(..., description="healthy, ready or alive.")
    timestamp: datetime = Field(..., description="Server time of the check (UTC).")
    service: str = Field(..., description="Service name.")
    version: str = Field(..., description="Service version.")
    uptime: str | None = Field(
        default=None,
        description="Time since process start, e.g. '1:02:03.456789'.",
    )
    checks: Dict[str, str] | None = Field(
        default=None,
        description="Per-dependency readiness results.",
    )


class HeartbeatResponse(BaseModel):
    """Minimal liveness signal."""

    status: str = "alive"
    timestamp: datetime
    service: str


class SystemInfoResponse(BaseModel):
    """Runtime information about the serving process."""

    status: str
    timestamp: datetime
    service: str
    version: str
    python_version: str = Field(..., description="Interpreter version.")
    num_cpu: int = Field(..., description="Logical CPUs visible to the process.")
    num_threads: int = Field(..., description="Live threads in the process.")
    memory: Dict[str, int] = Field(
        default_factory=dict,
        description="Allocator and garbage collector counters.",
    )
    uptime: str
