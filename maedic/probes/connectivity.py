"""Connectivity probe: is the database reachable at all.

Unlike the business probes this one never raises: observing an unreachable
database is its whole job, so every failure resolves to UNHEALTHY.
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine

from maedic.health.models import DatabaseConnectionState

logger = logging.getLogger(__name__)

PING_SQL = text("SELECT 1 AS connection_state")


class ConnectivityProbe:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def ping(self) -> DatabaseConnectionState:
        try:
            with self._engine.connect() as conn:
                row = conn.execute(PING_SQL).first()
        except Exception as e:
            logger.warning("Database ping failed: %s: %s", type(e).__name__, e)
            return DatabaseConnectionState.UNHEALTHY

        # No row and a wrong value mean the same thing here
        if row is not None and row._mapping["connection_state"] == 1:
            return DatabaseConnectionState.HEALTHY
        logger.warning("Database ping returned unexpected result: %r", row)
        return DatabaseConnectionState.UNHEALTHY
