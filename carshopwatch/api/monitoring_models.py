"""Request/response models for monitoring endpoints."""

from typing import List, Optional
from pydantic import BaseModel, Field

from carshopwatch.models.audit_record import AuditRecord
from carshopwatch.models.constants import SIMULATION_DEFAULT_ACTION, SIMULATION_DEFAULT_COUNT
from carshopwatch.models.monitored_user import MonitoredUserEntry, MonitoringStatus


class UserSummary(BaseModel):
    """User fields shown next to monitoring data."""
    id: int
    username: str
    email: str
    role: str


class MonitoredUserView(MonitoredUserEntry):
    """Monitored-user entry with its user attached."""
    user: Optional[UserSummary] = None


class StatusUpdateRequest(BaseModel):
    """Request model for changing a monitored-user entry's status."""
    status: MonitoringStatus = Field(..., description="New status: active, resolved or false_positive")


class StatusUpdateResponse(BaseModel):
    """Response model for a status change."""
    message: str
    monitored_user: MonitoredUserEntry


class SimulateRequest(BaseModel):
    """Request model for synthetic activity injection."""
    action: str = Field(SIMULATION_DEFAULT_ACTION, min_length=1, description="Action tag to inject")
    count: int = Field(SIMULATION_DEFAULT_COUNT, ge=1, le=1000, description="Number of records to inject")
    user_id: Optional[int] = Field(None, description="Target user (defaults to the caller)")


class SimulationDetails(BaseModel):
    user_id: int
    action: str
    count: int


class EscalationView(BaseModel):
    entry_id: int
    user_id: int
    action: str
    actions_count: int
    created: bool


class SimulateResponse(BaseModel):
    """Response model for synthetic activity injection."""
    message: str
    details: SimulationDetails
    escalations: List[EscalationView] = Field(default_factory=list)


class ActionCount(BaseModel):
    action: str
    count: int


class ActiveUserStat(BaseModel):
    user_id: int
    action_count: int
    user: Optional[UserSummary] = None


class ActivityStatsResponse(BaseModel):
    """Response model for activity statistics."""
    recent_activity: List[ActionCount]
    most_active_users: List[ActiveUserStat]


class UserLogsResponse(BaseModel):
    """Response model for a user's audit records."""
    logs: List[AuditRecord]
    count: int
