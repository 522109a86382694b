"""User data model for CarShopWatch."""

from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """User role enumeration."""
    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    """User model for CarShopWatch."""
    
    id: int = Field(..., description="Unique user identifier")
    username: str = Field(..., description="Unique login name")
    email: str = Field(..., description="User email address")
    role: UserRole = Field(UserRole.USER, description="Authorization role")
    active: bool = Field(True, description="Whether the account is enabled")
    created_at: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="User last update timestamp")
    
    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value
