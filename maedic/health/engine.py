"""Health aggregation: runs the enabled checks and reduces them to a verdict.

Each check is independent: disabled checks are never executed and leave their
report field as None, enabled ones run concurrently in a thread pool. If any
probe fails the whole evaluation fails; there is no partial report and no
fallback value.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from concurrent.futures import Executor
from functools import partial
from typing import TYPE_CHECKING, Any

from maedic.config import ThresholdPolicy
from maedic.health.models import HealthReport, ServiceState, Verdict

if TYPE_CHECKING:
    from maedic.probes.database import DatabaseProbe
    from maedic.probes.system import SystemProbe

logger = logging.getLogger(__name__)


def _enabled_checks(
    policy: ThresholdPolicy,
    db_probe: DatabaseProbe,
    system_probe: SystemProbe,
) -> dict[str, Callable[[], Any]]:
    """Map report field -> probe call, for enabled checks only."""
    checks: dict[str, Callable[[], Any]] = {}
    if policy.queue_check_enabled:
        checks["hi_queue_size"] = db_probe.queue_depth
    if policy.spool_check_enabled:
        checks["spool_file_count"] = partial(
            db_probe.unhealthy_channels, policy.spool_file_limit
        )
    if policy.check_local_service:
        checks["service_state"] = partial(system_probe.service_state, policy.service_name)
    if policy.cpu_check_enabled:
        checks["global_cpu_usage_percentage"] = system_probe.cpu_load
    if policy.ram_check_enabled:
        checks["used_memory_percentage"] = system_probe.memory_usage
    return checks


def health_is_good(report: HealthReport, policy: ThresholdPolicy) -> bool:
    """True unless a present field violates its threshold. Limits are inclusive."""
    if report.hi_queue_size is not None and report.hi_queue_size > policy.queue_depth_limit:
        return False
    if report.spool_file_count:
        return False
    if report.service_state == ServiceState.DOWN:
        return False
    if (
        report.global_cpu_usage_percentage is not None
        and report.global_cpu_usage_percentage > policy.max_cpu_percent
    ):
        return False
    if (
        report.used_memory_percentage is not None
        and report.used_memory_percentage > policy.max_ram_percent
    ):
        return False
    return True


async def evaluate(
    policy: ThresholdPolicy,
    db_probe: DatabaseProbe,
    system_probe: SystemProbe,
    executor: Executor | None = None,
) -> tuple[HealthReport, Verdict]:
    """Run every enabled check and return the report with its verdict.

    All enabled probes run to completion even when one of them fails; the
    first failure (in report field order) is then re-raised.
    """
    checks = _enabled_checks(policy, db_probe, system_probe)
    loop = asyncio.get_running_loop()

    results = await asyncio.gather(
        *(loop.run_in_executor(executor, check) for check in checks.values()),
        return_exceptions=True,
    )

    for field_name, result in zip(checks, results):
        if isinstance(result, BaseException):
            logger.debug("Check %s failed: %r", field_name, result)
            raise result

    report = HealthReport(**dict(zip(checks, results)))

    if health_is_good(report, policy):
        return report, Verdict.HEALTHY

    logger.error("Platform reported unhealthy status %s", report.model_dump_json())
    return report, Verdict.UNHEALTHY
