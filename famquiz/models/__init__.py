"""Data models for famquiz."""

from famquiz.models.user import User, UserRole
from famquiz.models.group import Group, GroupMember, MemberProfile, MemberAnswerStats
from famquiz.models.quiz import Quiz, QuizOption, NewQuizOption, Answer
from famquiz.models.alert import AlertHistory, AlertType
from famquiz.models.request import QuizRequest, RequestType

__all__ = [
    "User",
    "UserRole",
    "Group",
    "GroupMember",
    "MemberProfile",
    "MemberAnswerStats",
    "Quiz",
    "QuizOption",
    "NewQuizOption",
    "Answer",
    "AlertHistory",
    "AlertType",
    "QuizRequest",
    "RequestType",
]
