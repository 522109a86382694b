"""Repository for the append-only audit log (user_logs)."""

import logging
from datetime import datetime
from typing import Dict, List, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import func, desc

from carshopwatch.models.audit_record import AuditRecord
from carshopwatch.database.models import UserLogDB

logger = logging.getLogger(__name__)


class AuditLogRepository:
    """Repository for AuditRecord database operations.

    Records are appended and read; there are deliberately no update or delete operations.
    """
    
    def __init__(self, db: Session):
        self.db = db
    
    def append(self, record: AuditRecord) -> AuditRecord:
        """Append a single audit record."""
        try:
            record_db = UserLogDB.from_pydantic(record)
            self.db.add(record_db)
            self.db.commit()
            self.db.refresh(record_db)
            logger.debug(f"Appended {record_db.action} audit record {record_db.id} for user {record.user_id}")
            return record_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to append audit record for user {record.user_id}: {type(e).__name__}: {str(e)}")
            raise
    
    def append_batch(self, records: List[AuditRecord]) -> int:
        """Append multiple audit records in one transaction.
        
        Returns:
            Number of records written
        """
        if not records:
            return 0
        try:
            self.db.add_all([UserLogDB.from_pydantic(record) for record in records])
            self.db.commit()
            logger.debug(f"Appended {len(records)} audit records")
            return len(records)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to append audit records: {type(e).__name__}: {str(e)}")
            raise
    
    def count_by_user_since(self, action: str, since: datetime, min_count: int) -> List[Tuple[int, int]]:
        """Count `action` records per user with timestamp >= since.
        
        Equivalent to `GROUP BY user_id HAVING COUNT(id) >= min_count`. The lower
        bound is inclusive.
        
        Returns:
            List of (user_id, action_count) ordered by user_id
        """
        action_count = func.count(UserLogDB.id)
        rows = (
            self.db.query(UserLogDB.user_id, action_count)
            .filter(UserLogDB.action == action, UserLogDB.timestamp >= since)
            .group_by(UserLogDB.user_id)
            .having(action_count >= min_count)
            .order_by(UserLogDB.user_id)
            .all()
        )
        return [(int(user_id), int(count)) for user_id, count in rows]
    
    def get_for_user(self, user_id: int, limit: int = 100) -> List[AuditRecord]:
        """Get the most recent audit records for a user, newest first."""
        rows = (
            self.db.query(UserLogDB)
            .filter(UserLogDB.user_id == user_id)
            .order_by(desc(UserLogDB.timestamp), desc(UserLogDB.id))
            .limit(limit)
            .all()
        )
        return [row.to_pydantic() for row in rows]
    
    def count_by_action_since(self, since: datetime) -> Dict[str, int]:
        """Count records per action with timestamp >= since."""
        rows = (
            self.db.query(UserLogDB.action, func.count(UserLogDB.id))
            .filter(UserLogDB.timestamp >= since)
            .group_by(UserLogDB.action)
            .all()
        )
        return {action: int(count) for action, count in rows}
    
    def most_active_users_since(self, since: datetime, limit: int = 10) -> List[Tuple[int, int]]:
        """Return (user_id, action_count) for the busiest users since `since`, busiest first."""
        action_count = func.count(UserLogDB.id).label("action_count")
        rows = (
            self.db.query(UserLogDB.user_id, action_count)
            .filter(UserLogDB.timestamp >= since)
            .group_by(UserLogDB.user_id)
            .order_by(desc(action_count), UserLogDB.user_id)
            .limit(limit)
            .all()
        )
        return [(int(user_id), int(count)) for user_id, count in rows]
