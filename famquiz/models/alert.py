"""AlertHistory data model for famquiz."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class AlertType(str, Enum):
    """Alert type enumeration."""
    EMERGENCY = "emergency"
    NO_QUIZ = "no_quiz"
    GRANDPARENT_QUIZ_REMINDER = "grandparent_quiz_reminder"


class AlertHistory(BaseModel):
    """Append-only alert log entry (audit trail and batch de-duplication marker)."""
    
    id: str = Field(..., description="Unique alert history identifier")
    group_id: str = Field(..., description="Alerted group ID")
    type: AlertType = Field(..., description="Type of alert")
    triggered_by_user_id: Optional[str] = Field(None, description="Triggering user (null for batch)")
    created_at: datetime = Field(..., description="When the alert was recorded")
    
    class Config:
        """Pydantic configuration."""
        use_enum_values = True
