"""AuditRecord data model for CarShopWatch."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class AuditAction(str, Enum):
    """Well-known audit actions written by the backend.

    The ``action`` column is free text; producers may append tags that are
    not listed here.
    """
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    AUTHENTICATED = "AUTHENTICATED"
    REGISTER = "REGISTER"
    VIEW = "VIEW"
    SIMULATE = "SIMULATE"


class AuditRecord(BaseModel):
    """One user action, appended once and never changed."""
    
    id: Optional[int] = Field(None, description="Store-assigned record identifier")
    user_id: int = Field(..., description="ID of the user who performed the action")
    action: str = Field(..., description="Action tag (CREATE, UPDATE, DELETE, LOGIN, ...)")
    entity_type: Optional[str] = Field(None, description="Kind of entity the action touched")
    entity_id: Optional[int] = Field(None, description="ID of the entity the action touched")
    details: Optional[str] = Field(None, description="Opaque details text")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="When the action happened")
