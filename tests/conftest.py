"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool

from maedic.config import ThresholdPolicy
from maedic.health.models import ServiceState, SpoolFileCount


def _make_engine(path: Path, pool_timeout: float = 0.2) -> Engine:
    """SQLite stand-in for the platform database, pooled like production."""
    return create_engine(
        f"sqlite:///{path}",
        poolclass=QueuePool,
        pool_size=2,
        max_overflow=0,
        pool_timeout=pool_timeout,
        connect_args={"check_same_thread": False},
    )


@pytest.fixture
def engine_factory() -> Generator[Callable[..., Engine], None, None]:
    """Build extra pooled SQLite engines; all are disposed after the test."""
    created: list[Engine] = []

    def factory(path: Path, pool_timeout: float = 0.2) -> Engine:
        eng = _make_engine(path, pool_timeout)
        created.append(eng)
        return eng

    yield factory
    for eng in created:
        eng.dispose()


@pytest.fixture
def engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """Pooled engine with empty HI_QUEUE and CHANNEL tables."""
    eng = _make_engine(tmp_path / "hi.db")
    with eng.begin() as conn:
        conn.execute(text("CREATE TABLE HI_QUEUE (ID INTEGER PRIMARY KEY, PAYLOAD TEXT)"))
        conn.execute(text(
            "CREATE TABLE CHANNEL ("
            "ID INTEGER PRIMARY KEY, DESCRP TEXT, SPOOL_FILE_COUNT INTEGER, "
            "SPOOL_DIR TEXT, INSTALLED TEXT)"
        ))
    yield eng
    eng.dispose()


@pytest.fixture
def policy() -> ThresholdPolicy:
    return ThresholdPolicy(
        queue_depth_limit=1000,
        spool_file_limit=10,
        max_cpu_percent=80.0,
        max_ram_percent=80.0,
        check_local_service=True,
        service_name="HIService.exe",
    )


# ── Fake probes ──────────────────────────────────────────────────────────────


class FakeDatabaseProbe:
    """Records calls; returns canned values or raises ``errors[method]``."""

    def __init__(
        self,
        queue: int = 0,
        channels: list[SpoolFileCount] | None = None,
        errors: dict[str, Exception] | None = None,
    ) -> None:
        self.queue = queue
        self.channels = channels or []
        self.errors = errors or {}
        self.calls: list[str] = []

    def _call(self, name: str, value: Any) -> Any:
        self.calls.append(name)
        if name in self.errors:
            raise self.errors[name]
        return value

    def queue_depth(self) -> int:
        return self._call("queue_depth", self.queue)

    def unhealthy_channels(self, limit: int) -> list[SpoolFileCount]:
        self.limit = limit
        return self._call("unhealthy_channels", self.channels)


class FakeSystemProbe:
    def __init__(
        self,
        service: ServiceState = ServiceState.UP,
        cpu: float = 5.0,
        ram: float = 5.0,
        errors: dict[str, Exception] | None = None,
    ) -> None:
        self.service = service
        self.cpu = cpu
        self.ram = ram
        self.errors = errors or {}
        self.calls: list[str] = []

    def _call(self, name: str, value: Any) -> Any:
        self.calls.append(name)
        if name in self.errors:
            raise self.errors[name]
        return value

    def service_state(self, name: str) -> ServiceState:
        self.service_name = name
        return self._call("service_state", self.service)

    def cpu_load(self) -> float:
        return self._call("cpu_load", self.cpu)

    def memory_usage(self) -> float:
        return self._call("memory_usage", self.ram)


@pytest.fixture
def db_probe() -> FakeDatabaseProbe:
    return FakeDatabaseProbe()


@pytest.fixture
def system_probe() -> FakeSystemProbe:
    return FakeSystemProbe()
