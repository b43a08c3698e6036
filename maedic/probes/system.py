"""System probe: process presence, CPU load and memory usage via psutil.

psutil's CPU percentage is measured against the previous sample taken in this
process, so there is exactly one sampler: a single SystemProbe guarded by a
lock. Every reading refreshes first and happens while holding the lock.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from decimal import ROUND_CEILING, Decimal
from typing import Any, TypeVar

import psutil

from maedic.errors import SystemProbeError
from maedic.health.models import ServiceState, SystemHealth

logger = logging.getLogger(__name__)

# Shortest window psutil can turn into a meaningful CPU percentage
MIN_CPU_INTERVAL = 0.2

_HUNDREDTHS = Decimal("0.01")

T = TypeVar("T")


def ceil_hundredths(value: float | Decimal) -> float:
    """Round up at the second decimal: 79.995 -> 80.0, 5.001 -> 5.01."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return float(value.quantize(_HUNDREDTHS, rounding=ROUND_CEILING))


class SystemProbe:
    """Shared, lock-protected view of local OS telemetry."""

    def __init__(self, min_cpu_interval: float = MIN_CPU_INTERVAL) -> None:
        self._lock = threading.Lock()
        self._min_cpu_interval = min_cpu_interval
        with self._lock:
            # Establish the baseline the first cpu_load() is measured against
            psutil.cpu_percent(interval=None)
            self._last_cpu_sample = time.monotonic()

    # ── Unlocked readers (caller holds self._lock) ───────────────────────────

    def _read_service_state(self, name: str) -> ServiceState:
        for proc in psutil.process_iter(["name"]):
            if proc.info.get("name") == name:
                return ServiceState.UP
        return ServiceState.DOWN

    def _read_cpu_load(self) -> float:
        elapsed = time.monotonic() - self._last_cpu_sample
        if elapsed < self._min_cpu_interval:
            time.sleep(self._min_cpu_interval - elapsed)
        load = psutil.cpu_percent(interval=None)
        self._last_cpu_sample = time.monotonic()
        return ceil_hundredths(load)

    def _read_memory_usage(self) -> float:
        mem = psutil.virtual_memory()
        if not mem.total:
            logger.error("psutil reported zero total memory")
            raise SystemProbeError("Total memory reported as zero")
        # Exact ratio; a float quotient can overshoot (7/100*100 == 7.000000000000001)
        return ceil_hundredths(Decimal(mem.used) * 100 / Decimal(mem.total))

    def _locked(self, what: str, reader: Callable[..., T], *args: Any) -> T:
        with self._lock:
            try:
                return reader(*args)
            except psutil.Error as e:
                logger.error("Failed to read %s", what, exc_info=True)
                raise SystemProbeError(f"Failed to read {what}") from e

    # ── Public API ───────────────────────────────────────────────────────────

    def service_state(self, name: str) -> ServiceState:
        """Up iff a running process is named exactly ``name``."""
        return self._locked("process list", self._read_service_state, name)

    def cpu_load(self) -> float:
        """Global CPU usage in percent since the previous sample."""
        return self._locked("CPU load", self._read_cpu_load)

    def memory_usage(self) -> float:
        """Used memory as a percentage of total."""
        return self._locked("memory usage", self._read_memory_usage)

    def sample(self, name: str) -> SystemHealth:
        """All three readings from one lock hold."""
        return self._locked("system metrics", self._sample, name)

    def _sample(self, name: str) -> SystemHealth:
        return SystemHealth(
            service_state=self._read_service_state(name),
            global_cpu_usage_percentage=self._read_cpu_load(),
            used_memory_percentage=self._read_memory_usage(),
        )
