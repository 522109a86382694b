"""Data models for CarShopWatch."""

from carshopwatch.models.audit_record import AuditRecord, AuditAction
from carshopwatch.models.monitored_user import MonitoredUserEntry, MonitoringStatus
from carshopwatch.models.user import User, UserRole
from carshopwatch.models.constants import (
    MonitoredAction,
    ThresholdPolicy,
    ACTIVITY_THRESHOLDS,
    reason_for,
)

__all__ = [
    "AuditRecord",
    "AuditAction",
    "MonitoredUserEntry",
    "MonitoringStatus",
    "User",
    "UserRole",
    "MonitoredAction",
    "ThresholdPolicy",
    "ACTIVITY_THRESHOLDS",
    "reason_for",
]
