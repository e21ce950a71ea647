"""User data model for famquiz."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """User role enumeration."""
    GRANDPARENT = "grandparent"
    FAMILY = "family"


class User(BaseModel):
    """User model for famquiz."""
    
    id: str = Field(..., description="Unique user identifier (UUID v4)")
    line_id: str = Field(..., description="LINE user ID (external identity)")
    display_name: str = Field("", description="User display name")
    role: Optional[UserRole] = Field(None, description="User role (unset before onboarding)")
    points: int = Field(0, ge=0, description="Point balance earned by correct answers")
    created_at: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="User last update timestamp")
    
    class Config:
        """Pydantic configuration."""
        use_enum_values = True
