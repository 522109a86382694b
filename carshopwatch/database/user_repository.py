"""Repository for User database operations."""

import logging
from typing import Dict, Iterable, Optional
from sqlalchemy.orm import Session

from carshopwatch.models.user import User
from carshopwatch.database.models import UserDB

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for User database operations."""
    
    def __init__(self, db: Session):
        self.db = db
    
    def get(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        return user_db.to_pydantic() if user_db else None
    
    def get_many(self, user_ids: Iterable[int]) -> Dict[int, User]:
        """Get users by ID, keyed by ID. Unknown IDs are omitted."""
        ids = set(user_ids)
        if not ids:
            return {}
        rows = self.db.query(UserDB).filter(UserDB.id.in_(ids)).all()
        return {row.id: row.to_pydantic() for row in rows}
    
    def create(self, user: User) -> User:
        """Create a new user."""
        try:
            user_db = UserDB.from_pydantic(user)
            self.db.add(user_db)
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Created user {user_db.id}: {user.username}")
            return user_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user {user.username}: {type(e).__name__}: {str(e)}")
            raise
