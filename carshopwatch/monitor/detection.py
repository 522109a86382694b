"""Threshold detection over the audit log.

One sweep walks every configured action type in order. For each one it counts
per-user records in the trailing window and escalates users whose count meets
the threshold into the monitored-user store. Entries are never resolved here;
once active they stay active until an operator changes their status.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from carshopwatch.database.audit_log_repository import AuditLogRepository
from carshopwatch.database.monitored_user_repository import MonitoredUserRepository
from carshopwatch.database.user_repository import UserRepository
from carshopwatch.models.constants import (
    ACTIVITY_THRESHOLDS,
    MonitoredAction,
    ThresholdPolicy,
    reason_for,
)

logger = logging.getLogger(__name__)


class Escalation:
    """A monitored-user entry created or refreshed by a sweep."""
    
    def __init__(self, entry_id: int, user_id: int, action: MonitoredAction, actions_count: int, created: bool):
        self.entry_id = entry_id
        self.user_id = user_id
        self.action = action
        self.actions_count = actions_count
        self.created = created
    
    def __repr__(self) -> str:
        return (
            f"Escalation(entry_id={self.entry_id}, user_id={self.user_id}, action={self.action.value}, "
            f"actions_count={self.actions_count}, created={self.created})"
        )


class SweepResult:
    """Result of one detection sweep."""
    
    def __init__(self, started_at: Optional[datetime] = None, skipped: bool = False):
        self.started_at = started_at
        self.skipped = skipped
        self.escalated: List[Escalation] = []
        self.failed_actions: List[MonitoredAction] = []
        self.failed_users: List[Tuple[MonitoredAction, int]] = []


class ActivityDetector:
    """Evaluates threshold policies against the audit log.
    
    Each sweep opens its own session from `session_factory`. Sweeps are
    serialized by an internal lock: `run_sweep()` waits for it,
    `try_run_sweep()` gives up immediately if another sweep holds it.
    """
    
    def __init__(
        self,
        session_factory: Callable[[], Session],
        thresholds: Optional[Mapping[MonitoredAction, ThresholdPolicy]] = None,
    ):
        self.session_factory = session_factory
        self.thresholds: Dict[MonitoredAction, ThresholdPolicy] = dict(
            thresholds if thresholds is not None else ACTIVITY_THRESHOLDS
        )
        self._sweep_lock = threading.Lock()
    
    @property
    def sweep_in_progress(self) -> bool:
        return self._sweep_lock.locked()
    
    def run_sweep(self, now: Optional[datetime] = None) -> SweepResult:
        """Run one sweep, waiting for any sweep already in progress to finish."""
        with self._sweep_lock:
            return self._sweep(now)
    
    def try_run_sweep(self, now: Optional[datetime] = None) -> SweepResult:
        """Run one sweep unless another is in progress, in which case skip it."""
        if not self._sweep_lock.acquire(blocking=False):
            logger.info("Skipping user activity analysis: previous sweep still in progress")
            return SweepResult(started_at=now, skipped=True)
        try:
            return self._sweep(now)
        finally:
            self._sweep_lock.release()
    
    def _sweep(self, now: Optional[datetime]) -> SweepResult:
        if now is None:
            now = datetime.utcnow()
        result = SweepResult(started_at=now)
        logger.info("Analyzing user activity...")
        
        db = self.session_factory()
        try:
            for action, policy in self.thresholds.items():
                self._evaluate_action(db, MonitoredAction(action), policy, now, result)
        finally:
            db.close()
        
        logger.info(
            f"User activity analysis finished: {len(result.escalated)} escalations, "
            f"{len(result.failed_actions)} failed action types, {len(result.failed_users)} failed users"
        )
        return result
    
    def _evaluate_action(
        self,
        db: Session,
        action: MonitoredAction,
        policy: ThresholdPolicy,
        now: datetime,
        result: SweepResult,
    ) -> None:
        window_start = now - timedelta(minutes=policy.time_window_minutes)
        try:
            activity_counts = AuditLogRepository(db).count_by_user_since(
                action.value, window_start, min_count=policy.count
            )
            users = UserRepository(db).get_many(user_id for user_id, _ in activity_counts)
        except Exception as e:
            db.rollback()
            logger.error(f"Error analyzing {action.value} activity: {type(e).__name__}: {str(e)}")
            result.failed_actions.append(action)
            return
        
        reason = reason_for(action)
        monitored = MonitoredUserRepository(db)
        for user_id, action_count in activity_counts:
            user = users.get(user_id)
            logger.info(
                f"Detected high activity: User {user.username if user else user_id} performed "
                f"{action_count} {action.value} actions in the last {policy.time_window_minutes} minutes"
            )
            try:
                entry, created = monitored.escalate(
                    user_id,
                    reason,
                    action_count,
                    policy.time_window_label,
                    now,
                )
            except Exception as e:
                # The repository has already rolled back; move on to the next user.
                logger.error(f"Error escalating user {user_id} for {action.value}: {type(e).__name__}: {str(e)}")
                result.failed_users.append((action, user_id))
                continue
            
            if created:
                logger.info(
                    f"Added user {user_id} to monitored users: {action_count} {action.value} actions "
                    f"in {policy.time_window_label}"
                )
            else:
                logger.info(f"Updated monitoring for user {user_id}: {action_count} {action.value} actions")
            result.escalated.append(Escalation(entry.id, user_id, action, action_count, created))
