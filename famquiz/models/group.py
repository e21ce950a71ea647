"""Group and membership data models for famquiz."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class Group(BaseModel):
    """A family group joined via code + password."""
    
    id: str = Field(..., description="Unique group identifier (UUID v4)")
    group_code: str = Field(..., description="Human-readable 8-character join code")
    group_name: str = Field(..., description="Group display name")
    password_hash: str = Field(..., description="bcrypt hash of the group password")
    alert_frequency_days: float = Field(..., ge=0.5, description="Max days between quizzes before alerting")
    created_at: datetime = Field(..., description="Group creation timestamp")


class GroupMember(BaseModel):
    """Membership of a user in a group."""
    
    id: str = Field(..., description="Unique membership identifier")
    user_id: str = Field(..., description="Member user ID")
    group_id: str = Field(..., description="Group ID (internal)")
    is_owner: bool = Field(False, description="Whether the member created the group")
    joined_at: datetime = Field(..., description="Join timestamp")


class MemberProfile(BaseModel):
    """Member user fields needed for fan-out and stats."""
    
    user_id: str
    line_id: Optional[str] = None
    display_name: str = ""
    role: Optional[str] = None
    is_owner: bool = False


class MemberAnswerStats(BaseModel):
    """Answer counts of a member within their group."""
    
    user_id: str
    display_name: str = ""
    total_answers: int = 0
    correct_answers: int = 0
