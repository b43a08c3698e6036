"""Database probe: HI_QUEUE depth and per-channel spool backlog.

Both queries are read-only. Every call borrows a connection from a small
bounded pool and hands it back on the way out, errors included.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from pydantic import ValidationError
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.pool import QueuePool

from maedic.config import DatabaseSettings
from maedic.errors import ConversionError, DatabaseError, PoolExhaustedError
from maedic.health.models import SpoolFileCount

logger = logging.getLogger(__name__)

HI_QUEUE_COUNT_SQL = text("SELECT COUNT(*) AS hi_queue_count FROM HI_QUEUE")

UNHEALTHY_CHANNELS_SQL = text(
    "SELECT DESCRP AS description, SPOOL_FILE_COUNT AS spool_file_count, "
    "SPOOL_DIR AS directory "
    "FROM CHANNEL "
    "WHERE INSTALLED = 'Y' AND SPOOL_FILE_COUNT > :limit"
)


# ── Pool ─────────────────────────────────────────────────────────────────────


def connection_url(settings: DatabaseSettings) -> URL:
    """SQL Server URL for pyodbc. The connection always declares read-only intent."""
    query = {
        "driver": settings.driver,
        "ApplicationIntent": "ReadOnly",
    }
    if settings.trust_cert:
        query["TrustServerCertificate"] = "yes"

    return URL.create(
        "mssql+pyodbc",
        username=settings.username,
        password=settings.password.get_secret_value(),
        host=settings.host,
        port=settings.port,
        database=settings.database_name,
        query=query,
    )


def setup_database_pool(settings: DatabaseSettings) -> Engine:
    """Create the shared engine backed by a fixed-size QueuePool (no overflow)."""
    logger.info(
        "Creating database pool for %s:%d/%s (size=%d, timeout=%.1fs)",
        settings.host, settings.port, settings.database_name,
        settings.pool_size, settings.pool_timeout,
    )
    engine = create_engine(
        connection_url(settings),
        poolclass=QueuePool,
        pool_size=settings.pool_size,
        max_overflow=0,
        pool_timeout=settings.pool_timeout,
        pool_pre_ping=True,
    )
    _attach_pool_logging(engine)
    return engine


def _attach_pool_logging(engine: Engine) -> None:
    @event.listens_for(engine, "checkout")
    def on_checkout(dbapi_conn, connection_record, connection_proxy):
        logger.debug("Database connection checked out from pool")

    @event.listens_for(engine, "checkin")
    def on_checkin(dbapi_conn, connection_record):
        logger.debug("Database connection returned to pool")


# ── Probe ────────────────────────────────────────────────────────────────────


class DatabaseProbe:
    """Runs the two business-level queries against the monitored database."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @contextmanager
    def _connection(self, operation: str) -> Iterator[Connection]:
        """Borrow a pooled connection, translating driver errors."""
        try:
            with self._engine.connect() as conn:
                yield conn
        except PoolTimeoutError as e:
            logger.error("Connection pool exhausted during %s", operation, exc_info=True)
            raise PoolExhaustedError(f"No pooled connection available for {operation}") from e
        except SQLAlchemyError as e:
            logger.error("Database error during %s", operation, exc_info=True)
            raise DatabaseError(f"{operation} failed") from e

    def queue_depth(self) -> int:
        """Number of pending items in HI_QUEUE."""
        with self._connection("queue depth query") as conn:
            row = conn.execute(HI_QUEUE_COUNT_SQL).first()

        if row is None:
            logger.error("HI_QUEUE count query returned no row")
            raise ConversionError("HI_QUEUE count query returned no row")

        value = row._mapping["hi_queue_count"]
        if not isinstance(value, int) or isinstance(value, bool):
            logger.error("HI_QUEUE count has unexpected type %s", type(value).__name__)
            raise ConversionError("Failed to convert hi_queue_count")
        return value

    def unhealthy_channels(self, limit: int) -> list[SpoolFileCount]:
        """Installed channels whose spool backlog is strictly above ``limit``."""
        with self._connection("spool file query") as conn:
            rows = conn.execute(UNHEALTHY_CHANNELS_SQL, {"limit": limit}).all()

        channels = []
        for row in rows:
            try:
                channels.append(SpoolFileCount.model_validate(dict(row._mapping)))
            except ValidationError as e:
                logger.error("Malformed CHANNEL row %r: %s", tuple(row), e)
                raise ConversionError("Failed to convert a CHANNEL row") from e
        return channels
