"""Response models for the health, self and metrics endpoints.

Field names match the JSON bodies consumed by existing dashboards, so they
keep the platform's vocabulary (``hi_queue_size``, ``spool_file_count``).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ServiceState(str, Enum):
    UP = "Up"
    DOWN = "Down"


class Verdict(str, Enum):
    HEALTHY = "Healthy"
    UNHEALTHY = "Unhealthy"


class DatabaseConnectionState(str, Enum):
    HEALTHY = "Healthy"
    UNHEALTHY = "Unhealthy"


class SpoolFileCount(BaseModel):
    """A channel whose spool backlog is above the configured limit."""

    description: str
    spool_file_count: int
    directory: str


class HealthReport(BaseModel):
    """Point-in-time results of every enabled check.

    A field is None exactly when its check is disabled in the threshold policy.
    """

    hi_queue_size: int | None = None
    spool_file_count: list[SpoolFileCount] | None = None
    service_state: ServiceState | None = None
    global_cpu_usage_percentage: float | None = None
    used_memory_percentage: float | None = None


class SystemHealth(BaseModel):
    service_state: ServiceState
    global_cpu_usage_percentage: float
    used_memory_percentage: float


class MaedicHealth(BaseModel):
    """Health of maedic itself: can it reach the database at all."""

    database_connection: DatabaseConnectionState
    version_number: str
