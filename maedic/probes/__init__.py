"""Probes: database, OS telemetry and connectivity measurements."""

from .connectivity import ConnectivityProbe
from .database import DatabaseProbe, setup_database_pool
from .system import SystemProbe, ceil_hundredths
