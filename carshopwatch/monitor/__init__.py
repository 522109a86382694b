"""User-activity anomaly monitor for CarShopWatch."""

from carshopwatch.monitor.detection import ActivityDetector, SweepResult, Escalation
from carshopwatch.monitor.scheduler import MonitorScheduler, MonitorHandle
from carshopwatch.monitor.simulation import simulate_suspicious_activity

__all__ = [
    "ActivityDetector",
    "SweepResult",
    "Escalation",
    "MonitorScheduler",
    "MonitorHandle",
    "simulate_suspicious_activity",
]
