"""MonitoredUserEntry data model for CarShopWatch."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class MonitoringStatus(str, Enum):
    """Lifecycle status of a monitored-user entry."""
    ACTIVE = "active"
    RESOLVED = "resolved"
    FALSE_POSITIVE = "false_positive"


class MonitoredUserEntry(BaseModel):
    """Standing flag that a user exceeded a threshold for a given reason."""
    
    id: Optional[int] = Field(None, description="Store-assigned entry identifier")
    user_id: int = Field(..., description="ID of the flagged user")
    reason: str = Field(..., description="Human-readable cause, e.g. 'High frequency of CREATE operations'")
    actions_count: int = Field(0, description="Last observed count within the triggering window")
    time_window: str = Field(..., description="Window description, e.g. '5 minutes'")
    first_detected: datetime = Field(..., description="When the breach was first detected")
    last_updated: datetime = Field(..., description="When the entry was last refreshed")
    status: MonitoringStatus = Field(MonitoringStatus.ACTIVE, description="Entry status")
    
    class Config:
        """Pydantic configuration."""
        use_enum_values = True
