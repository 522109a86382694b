"""Repository for MonitoredUserEntry database operations."""

import logging
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError

from carshopwatch.models.monitored_user import MonitoredUserEntry, MonitoringStatus
from carshopwatch.database.models import MonitoredUserDB

logger = logging.getLogger(__name__)


class MonitoredUserRepository:
    """Repository for MonitoredUserEntry database operations."""
    
    def __init__(self, db: Session):
        self.db = db
    
    def _find_active(self, user_id: int, reason: str) -> Optional[MonitoredUserDB]:
        return (
            self.db.query(MonitoredUserDB)
            .filter(
                MonitoredUserDB.user_id == user_id,
                MonitoredUserDB.reason == reason,
                MonitoredUserDB.status == MonitoringStatus.ACTIVE.value,
            )
            .first()
        )
    
    def get(self, entry_id: int) -> Optional[MonitoredUserEntry]:
        """Get entry by ID."""
        row = self.db.query(MonitoredUserDB).filter(MonitoredUserDB.id == entry_id).first()
        return row.to_pydantic() if row else None
    
    def get_active(self, user_id: int, reason: str) -> Optional[MonitoredUserEntry]:
        """Get the active entry for (user_id, reason), if any."""
        row = self._find_active(user_id, reason)
        return row.to_pydantic() if row else None
    
    def list_active(self) -> List[MonitoredUserEntry]:
        """Get all active entries, most recently updated first."""
        rows = (
            self.db.query(MonitoredUserDB)
            .filter(MonitoredUserDB.status == MonitoringStatus.ACTIVE.value)
            .order_by(desc(MonitoredUserDB.last_updated), desc(MonitoredUserDB.id))
            .all()
        )
        return [row.to_pydantic() for row in rows]
    
    def get_all_for_user(self, user_id: int) -> List[MonitoredUserEntry]:
        """Get every entry for a user, including resolved history."""
        rows = (
            self.db.query(MonitoredUserDB)
            .filter(MonitoredUserDB.user_id == user_id)
            .order_by(MonitoredUserDB.id)
            .all()
        )
        return [row.to_pydantic() for row in rows]
    
    def escalate(
        self,
        user_id: int,
        reason: str,
        actions_count: int,
        time_window: str,
        now: datetime,
    ) -> Tuple[MonitoredUserEntry, bool]:
        """Create or refresh the active entry for (user_id, reason).
        
        An existing active entry is updated in place (actions_count, last_updated).
        Otherwise a new active entry is inserted. If a concurrent writer inserts the
        same active entry first, the unique index rejects ours and the winning row
        is updated instead.
        
        Returns:
            (entry, created) where created is True if a new row was inserted
        """
        try:
            row = self._find_active(user_id, reason)
            if row is not None:
                self._refresh(row, actions_count, now)
                return row.to_pydantic(), False
            
            row = MonitoredUserDB(
                user_id=user_id,
                reason=reason,
                actions_count=actions_count,
                time_window=time_window,
                first_detected=now,
                last_updated=now,
                status=MonitoringStatus.ACTIVE.value,
            )
            self.db.add(row)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                row = self._find_active(user_id, reason)
                if row is None:
                    raise
                logger.info(f"Active entry for user {user_id} ({reason}) was created concurrently; updating it")
                self._refresh(row, actions_count, now)
                return row.to_pydantic(), False
            self.db.refresh(row)
            logger.debug(f"Created monitored-user entry {row.id} for user {user_id}")
            return row.to_pydantic(), True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to escalate user {user_id} ({reason}): {type(e).__name__}: {str(e)}")
            raise
    
    def _refresh(self, row: MonitoredUserDB, actions_count: int, now: datetime) -> None:
        row.actions_count = actions_count
        row.last_updated = now
        self.db.commit()
        self.db.refresh(row)
        logger.debug(f"Refreshed monitored-user entry {row.id}: actions_count={actions_count}")
    
    def update_status(
        self,
        entry_id: int,
        status: MonitoringStatus,
        now: Optional[datetime] = None,
    ) -> Optional[MonitoredUserEntry]:
        """Set the status of an entry (operator action).
        
        Returns:
            Updated entry, or None if no entry has that ID
        """
        try:
            row = self.db.query(MonitoredUserDB).filter(MonitoredUserDB.id == entry_id).first()
            if row is None:
                return None
            row.status = MonitoringStatus(status).value
            row.last_updated = now or datetime.utcnow()
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Set monitored-user entry {entry_id} status to {row.status}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update status of monitored-user entry {entry_id}: {type(e).__name__}: {str(e)}")
            raise
