"""QuizRequest data model for famquiz."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class RequestType(str, Enum):
    """Request type enumeration."""
    QUIZ = "quiz"
    OTHER = "other"


class QuizRequest(BaseModel):
    """A point-costing ask from a family member."""
    
    id: str = Field(..., description="Unique request identifier")
    user_id: str = Field(..., description="Requesting user ID")
    group_id: str = Field(..., description="Group ID of the requester")
    request_type: RequestType = Field(..., description="quiz theme or other favor")
    content: str = Field(..., description="Request text")
    is_handled: bool = Field(False, description="Whether a quiz fulfilled this request")
    handled_quiz_id: Optional[str] = Field(None, description="Quiz that fulfilled the request")
    created_at: datetime = Field(..., description="Request timestamp")
    requester_name: Optional[str] = Field(None, description="Requester display name (joined)")
    requester_line_id: Optional[str] = Field(None, description="Requester LINE ID (joined)")
    
    class Config:
        """Pydantic configuration."""
        use_enum_values = True
