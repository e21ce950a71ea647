"""Quiz, option and answer data models for famquiz."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class QuizOption(BaseModel):
    """A selectable answer of a quiz."""
    
    id: str = Field(..., description="Unique option identifier")
    quiz_id: str = Field(..., description="Owning quiz ID")
    option_text: str = Field(..., description="Option label")
    is_correct: bool = Field(False, description="Whether this option is a correct answer")


class Quiz(BaseModel):
    """A quiz authored by a grandparent for their group."""
    
    id: str = Field(..., description="Unique quiz identifier (UUID v4)")
    group_id: str = Field(..., description="Group the quiz was posted to")
    grandparent_id: str = Field(..., description="Author user ID")
    question_text: str = Field(..., max_length=100, description="Question text (max 100 chars)")
    created_at: datetime = Field(..., description="Quiz creation timestamp")
    options: List[QuizOption] = Field(default_factory=list, description="Options in creation order")
    author_name: Optional[str] = Field(None, description="Author display name (joined)")
    answers: List["Answer"] = Field(default_factory=list, description="Answers (loaded for history only)")

    def correct_option_id(self) -> Optional[str]:
        """ID of the first correct option, if any."""
        for option in self.options:
            if option.is_correct:
                return option.id
        return None


class NewQuizOption(BaseModel):
    """Option input for quiz creation."""
    
    option_text: str
    is_correct: bool = False


class Answer(BaseModel):
    """A family member's answer to a quiz."""
    
    id: str = Field(..., description="Unique answer identifier")
    quiz_id: str = Field(..., description="Answered quiz ID")
    family_member_id: str = Field(..., description="Answering user ID")
    selected_option_id: str = Field(..., description="Chosen option ID")
    is_correct: bool = Field(..., description="Copied from the chosen option")
    message: Optional[str] = Field(None, description="Optional note to the author")
    created_at: datetime = Field(..., description="Answer timestamp")
    family_member_name: Optional[str] = Field(None, description="Answering user display name (joined)")


Quiz.model_rebuild()
