"""FastAPI web application for CarShopWatch.

Exposes the operator console for the user-activity monitor and runs the
monitor scheduler for the lifetime of the app.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Dict, Iterable, List

from fastapi import FastAPI, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from dotenv import load_dotenv

from carshopwatch import __version__
from carshopwatch.api.activity import record_action
from carshopwatch.api.monitoring_models import (
    ActionCount,
    ActiveUserStat,
    ActivityStatsResponse,
    EscalationView,
    MonitoredUserView,
    SimulateRequest,
    SimulateResponse,
    SimulationDetails,
    StatusUpdateRequest,
    StatusUpdateResponse,
    UserLogsResponse,
    UserSummary,
)
from carshopwatch.auth.dependencies import get_current_user, require_admin
from carshopwatch.database.audit_log_repository import AuditLogRepository
from carshopwatch.database.database import SessionLocal, get_db, init_db
from carshopwatch.database.monitored_user_repository import MonitoredUserRepository
from carshopwatch.database.user_repository import UserRepository
from carshopwatch.models.audit_record import AuditAction
from carshopwatch.models.constants import (
    DEFAULT_MONITOR_INTERVAL_SECONDS,
    STATS_TOP_USERS_LIMIT,
    STATS_WINDOW_HOURS,
    USER_LOGS_LIMIT,
)
from carshopwatch.models.user import User
from carshopwatch.monitor.detection import ActivityDetector
from carshopwatch.monitor.scheduler import MonitorScheduler
from carshopwatch.monitor.simulation import simulate_suspicious_activity

load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the schema and run the monitor scheduler while the app is up."""
    init_db()
    handle = None
    if os.getenv("MONITOR_ENABLED", "True").lower() == "true":
        interval = float(os.getenv("MONITOR_INTERVAL_SECONDS", str(DEFAULT_MONITOR_INTERVAL_SECONDS)))
        handle = MonitorScheduler(app.state.detector, interval_seconds=interval).start()
    app.state.monitor_handle = handle
    try:
        yield
    finally:
        if handle is not None:
            handle.stop()


# Initialize FastAPI app
app = FastAPI(
    title="CarShopWatch API",
    description="User-activity anomaly monitoring for the CarShop marketplace",
    version=__version__,
    lifespan=lifespan,
)
app.state.detector = ActivityDetector(SessionLocal)
app.state.monitor_handle = None


def get_detector(request: Request) -> ActivityDetector:
    """Get the app-wide activity detector (dependency for FastAPI)."""
    return request.app.state.detector


def _user_summaries(db: Session, user_ids: Iterable[int]) -> Dict[int, UserSummary]:
    users = UserRepository(db).get_many(user_ids)
    return {
        user_id: UserSummary(id=user.id, username=user.username, email=user.email, role=user.role)
        for user_id, user in users.items()
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.get("/api/monitoring/monitored", response_model=List[MonitoredUserView])
def list_monitored_users(
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """List active monitored-user entries, most recently updated first."""
    try:
        entries = MonitoredUserRepository(db).list_active()
        summaries = _user_summaries(db, {entry.user_id for entry in entries})
    except Exception as e:
        logger.error(f"Error getting monitored users: {type(e).__name__}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error retrieving monitored users: {str(e)}")

    record_action(db, current_user, AuditAction.VIEW.value, "MONITORED_USERS", request=request)
    return [
        MonitoredUserView(**entry.model_dump(), user=summaries.get(entry.user_id))
        for entry in entries
    ]


@app.patch("/api/monitoring/monitored/{entry_id}", response_model=StatusUpdateResponse)
def update_monitored_user_status(
    entry_id: int,
    body: StatusUpdateRequest,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Set the status of a monitored-user entry (resolve, mark false positive, reopen)."""
    try:
        entry = MonitoredUserRepository(db).update_status(entry_id, body.status)
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Another active entry already exists for this user and reason",
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating status: {str(e)}")
    if entry is None:
        raise HTTPException(status_code=404, detail="Monitored user not found")

    record_action(db, current_user, AuditAction.UPDATE.value, "MONITORED_USER", entity_id=entry_id, request=request,
                  body=body.model_dump(mode="json"))
    return StatusUpdateResponse(message="Status updated successfully", monitored_user=entry)


@app.get("/api/monitoring/stats", response_model=ActivityStatsResponse)
def get_user_activity_stats(
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Action counts and most active users over the last day."""
    since = datetime.utcnow() - timedelta(hours=STATS_WINDOW_HOURS)
    try:
        repo = AuditLogRepository(db)
        action_counts = repo.count_by_action_since(since)
        most_active = repo.most_active_users_since(since, limit=STATS_TOP_USERS_LIMIT)
        summaries = _user_summaries(db, [user_id for user_id, _ in most_active])
    except Exception as e:
        logger.error(f"Error getting user activity stats: {type(e).__name__}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error retrieving activity stats: {str(e)}")

    record_action(db, current_user, AuditAction.VIEW.value, "USER_STATS", request=request)
    return ActivityStatsResponse(
        recent_activity=[
            ActionCount(action=action, count=count)
            for action, count in sorted(action_counts.items())
        ],
        most_active_users=[
            ActiveUserStat(user_id=user_id, action_count=count, user=summaries.get(user_id))
            for user_id, count in most_active
        ],
    )


@app.post("/api/monitoring/simulate", response_model=SimulateResponse)
def simulate_activity(
    request: Request,
    body: SimulateRequest = SimulateRequest(),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
    detector: ActivityDetector = Depends(get_detector),
):
    """Inject a burst of synthetic audit records and sweep immediately."""
    user_id = body.user_id if body.user_id is not None else current_user.id
    if user_id != current_user.id and UserRepository(db).get(user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")

    try:
        result = simulate_suspicious_activity(db, detector, user_id, action=body.action, count=body.count)
    except Exception as e:
        logger.error(f"Error simulating suspicious activity: {type(e).__name__}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error simulating activity: {str(e)}")

    record_action(db, current_user, AuditAction.SIMULATE.value, "USER_ACTIVITY", request=request,
                  body=body.model_dump(mode="json"))
    return SimulateResponse(
        message="Suspicious activity simulated successfully",
        details=SimulationDetails(user_id=user_id, action=body.action, count=body.count),
        escalations=[
            EscalationView(
                entry_id=escalation.entry_id,
                user_id=escalation.user_id,
                action=escalation.action.value,
                actions_count=escalation.actions_count,
                created=escalation.created,
            )
            for escalation in result.escalated
            if escalation.user_id == user_id
        ],
    )


@app.get("/api/monitoring/logs/{user_id}", response_model=UserLogsResponse)
def get_user_logs(
    user_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Latest audit records for a user. Non-admins may only read their own."""
    if not current_user.is_admin and current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: You can only access your own logs",
        )
    try:
        logs = AuditLogRepository(db).get_for_user(user_id, limit=USER_LOGS_LIMIT)
    except Exception as e:
        logger.error(f"Error getting user logs: {type(e).__name__}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error retrieving user logs: {str(e)}")

    record_action(db, current_user, AuditAction.VIEW.value, "USER_LOGS", entity_id=user_id, request=request)
    return UserLogsResponse(logs=logs, count=len(logs))
