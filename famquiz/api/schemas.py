"""Request/response models for the famquiz HTTP API.

JSON uses camelCase (the frontend contract); Python attributes stay snake_case.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        """Pydantic configuration."""
        alias_generator = to_camel
        populate_by_name = True


# Auth / users

class LineLoginRequest(CamelModel):
    """Either an authorization code or an ID token from LINE Login."""
    code: Optional[str] = Field(None, description="LINE Login authorization code")
    id_token: Optional[str] = Field(None, description="LINE ID token")


class LoginResponse(CamelModel):
    is_new_user: bool


class MeResponse(CamelModel):
    user_id: str
    line_id: str
    display_name: str
    role: Optional[str]
    points: int
    has_group: bool
    group_id: Optional[str] = Field(None, description="Join code of the user's group")


class ProfileUpdateRequest(CamelModel):
    display_name: str = Field(..., description="Name shown to the family")
    role: str = Field(..., description="grandparent or family")


class ProfileResponse(CamelModel):
    user_id: str
    display_name: str
    role: Optional[str]


# Groups

class GroupCreateRequest(CamelModel):
    group_name: str
    password: str
    alert_frequency_days: float = Field(
        ..., allow_inf_nan=False, description="Max days between quizzes before alerting"
    )


class GroupJoinRequest(CamelModel):
    group_id: str = Field(..., description="8-character group code")
    password: str


class GroupResponse(CamelModel):
    id: str
    group_id: str = Field(..., description="8-character group code")
    group_name: str


class MemberStat(CamelModel):
    user_id: str
    display_name: str
    correct_rate: float


class MemberStatsResponse(CamelModel):
    members: List[MemberStat]


# Quizzes

class QuizOptionInput(CamelModel):
    option_text: str
    is_correct: bool = False


class QuizCreateRequest(CamelModel):
    question_text: str
    options: List[QuizOptionInput]


class QuizCreateResponse(CamelModel):
    quiz_id: str
    message: str


class PersonRef(CamelModel):
    id: str
    display_name: str


class PendingOption(CamelModel):
    id: str
    option_text: str


class PendingQuizResponse(CamelModel):
    """A quiz to answer; correctness is not revealed."""
    quiz_id: str
    question_text: str
    options: List[PendingOption]
    grandparent: PersonRef
    created_at: datetime


class AnswerRequest(CamelModel):
    selected_option_id: str
    message: Optional[str] = None


class AnswerResponse(CamelModel):
    is_correct: bool
    correct_option_id: Optional[str]


class HistoryOption(CamelModel):
    id: str
    option_text: str
    is_correct: bool


class HistoryAnswer(CamelModel):
    answer_id: str
    family_member: PersonRef
    selected_option_id: str
    is_correct: bool
    message: Optional[str]
    created_at: datetime


class HistoryQuiz(CamelModel):
    quiz_id: str
    question_text: str
    created_at: datetime
    grandparent: PersonRef
    options: List[HistoryOption]
    answers: List[HistoryAnswer]


class QuizHistoryResponse(CamelModel):
    quizzes: List[HistoryQuiz]
    total: int
    page: int
    limit: int


# Requests

class RequestCreateRequest(CamelModel):
    request_type: str = Field(..., description="quiz or other")
    content: str


class RequestCreateResponse(CamelModel):
    request_id: str
    remaining_points: int


class PendingRequest(CamelModel):
    request_id: str
    content: str
    requester_name: str
    created_at: datetime


class PendingRequestsResponse(CamelModel):
    requests: List[PendingRequest]


class HealthResponse(BaseModel):
    status: str
    version: str
