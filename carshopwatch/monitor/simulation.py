"""Synthetic activity injection for exercising the detection pipeline end to end."""

import logging
import random
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from carshopwatch.database.audit_log_repository import AuditLogRepository
from carshopwatch.models.audit_record import AuditRecord
from carshopwatch.models.constants import (
    SIMULATION_DEFAULT_ACTION,
    SIMULATION_DEFAULT_COUNT,
    SIMULATION_DETAILS,
    SIMULATION_ENTITY_TYPE,
    SIMULATION_IP_ADDRESS,
    SIMULATION_WINDOW_MINUTES,
)
from carshopwatch.monitor.detection import ActivityDetector, SweepResult

logger = logging.getLogger(__name__)


def simulate_suspicious_activity(
    db: Session,
    detector: ActivityDetector,
    user_id: int,
    action: str = SIMULATION_DEFAULT_ACTION,
    count: int = SIMULATION_DEFAULT_COUNT,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> SweepResult:
    """Insert `count` synthetic audit records for a user, then sweep immediately.
    
    Timestamps are spread uniformly over the trailing simulation window so the
    records are visible to the sweep that follows. Records already committed
    are not removed if the sweep fails.
    
    Args:
        db: Session used to write the synthetic records
        detector: Detector whose sweep runs right after the insert
        user_id: User the records are attributed to
        action: Action tag for every record
        count: Number of records to insert (at least 1)
        now: Reference time (defaults to now)
        rng: Random source for timestamps and entity IDs
        
    Returns:
        SweepResult of the sweep triggered by the injection
    """
    if count < 1:
        raise ValueError(f"count must be at least 1, got {count}")
    if now is None:
        now = datetime.utcnow()
    if rng is None:
        rng = random.Random()
    
    logger.info(f"Simulating suspicious activity for user {user_id}: {count} {action} actions")
    
    window_seconds = SIMULATION_WINDOW_MINUTES * 60
    records = [
        AuditRecord(
            user_id=user_id,
            action=action,
            entity_type=SIMULATION_ENTITY_TYPE,
            entity_id=rng.randrange(100),
            details=SIMULATION_DETAILS,
            ip_address=SIMULATION_IP_ADDRESS,
            timestamp=now - timedelta(seconds=rng.uniform(0, window_seconds)),
        )
        for _ in range(count)
    ]
    AuditLogRepository(db).append_batch(records)
    logger.info(f"Created {count} simulated {action} logs for user {user_id}")
    
    return detector.run_sweep(now=now)
