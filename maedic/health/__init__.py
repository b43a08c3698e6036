"""Health subsystem: report models and the aggregation engine."""

from .engine import evaluate, health_is_good
from .models import HealthReport, ServiceState, SpoolFileCount, Verdict
