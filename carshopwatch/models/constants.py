"""Constants for CarShopWatch.

This module centralizes the activity thresholds and default values used by the monitor.
"""

from enum import Enum
from typing import Dict, NamedTuple


class MonitoredAction(str, Enum):
    """Action types the monitor evaluates, in sweep order."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"


class ThresholdPolicy(NamedTuple):
    """Count/window pair that marks activity as suspicious."""
    count: int
    time_window_minutes: int

    @property
    def time_window_label(self) -> str:
        return f"{self.time_window_minutes} minutes"


ACTIVITY_THRESHOLDS: Dict[MonitoredAction, ThresholdPolicy] = {
    MonitoredAction.CREATE: ThresholdPolicy(count=10, time_window_minutes=5),
    MonitoredAction.UPDATE: ThresholdPolicy(count=15, time_window_minutes=5),
    MonitoredAction.DELETE: ThresholdPolicy(count=5, time_window_minutes=5),
    MonitoredAction.LOGIN: ThresholdPolicy(count=8, time_window_minutes=5),
}


def reason_for(action: MonitoredAction) -> str:
    """Return the monitored-user reason string for an action type."""
    return f"High frequency of {MonitoredAction(action).value} operations"


# Scheduler
DEFAULT_MONITOR_INTERVAL_SECONDS = 60

# Synthetic activity injection
SIMULATION_DEFAULT_ACTION = MonitoredAction.CREATE.value
SIMULATION_DEFAULT_COUNT = 15
SIMULATION_WINDOW_MINUTES = 5
SIMULATION_ENTITY_TYPE = "CAR"
SIMULATION_DETAILS = "Simulated activity for testing"
SIMULATION_IP_ADDRESS = "127.0.0.1"

# Operator console
USER_LOGS_LIMIT = 100  # Latest records returned per user
STATS_WINDOW_HOURS = 24
STATS_TOP_USERS_LIMIT = 10
