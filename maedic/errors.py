"""Exception types raised by the probes and translated once at the HTTP edge.

Each HealthError carries a ``public_message`` which is the only text a client
ever sees. Driver error text, connection strings and credentials stay in the
logs.
"""

from __future__ import annotations


class ConfigurationError(Exception):
    """Raised when the configuration files are missing or unreadable."""


class HealthError(Exception):
    """Health could not be determined (as opposed to: platform is unhealthy)."""

    public_message = "Something went wrong"


class DatabaseError(HealthError):
    """A query against the monitored database failed."""

    public_message = "Something went wrong with the database queries"


class PoolExhaustedError(DatabaseError):
    """No pooled connection became free before the pool timeout elapsed."""


class ConversionError(HealthError):
    """A row was missing or a column held a value of the wrong type."""

    public_message = "Error when converting a DB value"


class SystemProbeError(HealthError):
    """Reading OS telemetry failed."""

    public_message = "Something went wrong while reading system metrics"
