"""SQLAlchemy database models for CarShopWatch."""

from datetime import datetime
from typing import Union, TypeVar, Type
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, ForeignKey, Index, text

from carshopwatch.database.database import Base
from carshopwatch.models.monitored_user import MonitoringStatus
from carshopwatch.models.user import UserRole

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).
    
    Args:
        enum_obj: Enum instance or string value
        
    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default."""
    if not value:
        return default
    try:
        return enum_class(value)
    except (ValueError, AttributeError):
        return default


class UserDB(Base):
    """Database model for User."""
    
    __tablename__ = "users"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    
    # User profile
    username = Column(String, nullable=False, unique=True)
    email = Column(String, nullable=False, unique=True)
    role = Column(String, nullable=False, default=UserRole.USER.value)
    active = Column(Boolean, nullable=False, default=True)
    
    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from carshopwatch.models.user import User
        return User(
            id=self.id,
            username=self.username,
            email=self.email,
            role=value_to_enum(self.role, UserRole, UserRole.USER),
            active=self.active,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
    
    @classmethod
    def from_pydantic(cls, user):
        """Create database model from Pydantic model."""
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=enum_to_value(user.role),
            active=user.active,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserLogDB(Base):
    """Database model for AuditRecord (append-only)."""
    
    __tablename__ = "user_logs"
    __table_args__ = (
        # Window query: WHERE action = ? AND timestamp >= ? GROUP BY user_id
        Index("ix_user_logs_action_timestamp", "action", "timestamp"),
    )
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    
    action = Column(String, nullable=False, index=True)
    entity_type = Column(String, nullable=True)
    entity_id = Column(Integer, nullable=True)
    details = Column(Text, nullable=True)
    ip_address = Column(String, nullable=True)
    
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    
    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from carshopwatch.models.audit_record import AuditRecord
        return AuditRecord(
            id=self.id,
            user_id=self.user_id,
            action=self.action,
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            details=self.details,
            ip_address=self.ip_address,
            timestamp=self.timestamp,
        )
    
    @classmethod
    def from_pydantic(cls, record):
        """Create database model from Pydantic model (id is store-assigned)."""
        return cls(
            user_id=record.user_id,
            action=enum_to_value(record.action),
            entity_type=record.entity_type,
            entity_id=record.entity_id,
            details=record.details,
            ip_address=record.ip_address,
            timestamp=record.timestamp,
        )


class MonitoredUserDB(Base):
    """Database model for MonitoredUserEntry."""
    
    __tablename__ = "monitored_users"
    __table_args__ = (
        # At most one active entry per (user, reason). Resolved and false-positive
        # rows are kept as history and do not participate.
        Index(
            "uq_monitored_users_active_reason",
            "user_id",
            "reason",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    
    reason = Column(String, nullable=False)
    actions_count = Column(Integer, nullable=False, default=0)
    time_window = Column(String, nullable=False)
    
    first_detected = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_updated = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    
    status = Column(String, nullable=False, default=MonitoringStatus.ACTIVE.value, index=True)
    
    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from carshopwatch.models.monitored_user import MonitoredUserEntry
        return MonitoredUserEntry(
            id=self.id,
            user_id=self.user_id,
            reason=self.reason,
            actions_count=self.actions_count,
            time_window=self.time_window,
            first_detected=self.first_detected,
            last_updated=self.last_updated,
            status=value_to_enum(self.status, MonitoringStatus, MonitoringStatus.ACTIVE),
        )
