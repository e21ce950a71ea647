"""SQLAlchemy database models for famquiz."""

from datetime import datetime
import uuid
from typing import Union, TypeVar, Type
from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from famquiz.database.database import Base
from famquiz.models.alert import AlertType
from famquiz.models.request import RequestType
from famquiz.models.user import UserRole

T = TypeVar('T')


def _new_id() -> str:
    return str(uuid.uuid4())


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
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


class UserDB(Base):
    """Database model for User."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=_new_id)
    line_id = Column(String, nullable=False, unique=True, index=True)
    display_name = Column(String, nullable=False, default="")
    # NULL until profile setup
    role = Column(String, nullable=True)
    points = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from famquiz.models.user import User
        return User(
            id=self.id,
            line_id=self.line_id,
            display_name=self.display_name or "",
            role=value_to_enum(self.role, UserRole, None),
            points=self.points or 0,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class GroupDB(Base):
    """Database model for Group."""

    __tablename__ = "groups"

    id = Column(String, primary_key=True, default=_new_id)
    # 8-character join code shown to users
    group_code = Column(String(8), nullable=False, unique=True, index=True)
    group_name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    alert_frequency_days = Column(Float, nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    members = relationship("GroupMemberDB", back_populates="group")

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from famquiz.models.group import Group
        return Group(
            id=self.id,
            group_code=self.group_code,
            group_name=self.group_name,
            password_hash=self.password_hash,
            alert_frequency_days=self.alert_frequency_days,
            created_at=self.created_at,
        )


class GroupMemberDB(Base):
    """Database model for GroupMember."""

    __tablename__ = "group_members"
    __table_args__ = (
        UniqueConstraint("user_id", "group_id", name="uq_group_member_user_group"),
    )

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    is_owner = Column(Boolean, nullable=False, default=False)
    joined_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("UserDB")
    group = relationship("GroupDB", back_populates="members")

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from famquiz.models.group import GroupMember
        return GroupMember(
            id=self.id,
            user_id=self.user_id,
            group_id=self.group_id,
            is_owner=self.is_owner,
            joined_at=self.joined_at,
        )

    def to_profile(self):
        """Convert to a MemberProfile (requires the user relationship)."""
        from famquiz.models.group import MemberProfile
        return MemberProfile(
            user_id=self.user_id,
            line_id=self.user.line_id if self.user else None,
            display_name=(self.user.display_name or "") if self.user else "",
            role=self.user.role if self.user else None,
            is_owner=self.is_owner,
        )


class QuizDB(Base):
    """Database model for Quiz."""

    __tablename__ = "quizzes"
    __table_args__ = (
        Index("ix_quizzes_group_created", "group_id", "created_at"),
    )

    id = Column(String, primary_key=True, default=_new_id)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    grandparent_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(String(100), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    options = relationship(
        "QuizOptionDB",
        back_populates="quiz",
        order_by="QuizOptionDB.position",
        cascade="all, delete-orphan",
    )
    answers = relationship("AnswerDB", back_populates="quiz", order_by="AnswerDB.created_at")
    grandparent = relationship("UserDB")

    def to_pydantic(self, include_answers: bool = False):
        """Convert database model to Pydantic model."""
        from famquiz.models.quiz import Quiz
        return Quiz(
            id=self.id,
            group_id=self.group_id,
            grandparent_id=self.grandparent_id,
            question_text=self.question_text,
            created_at=self.created_at,
            options=[option.to_pydantic() for option in self.options],
            author_name=self.grandparent.display_name if self.grandparent else None,
            answers=[answer.to_pydantic() for answer in self.answers] if include_answers else [],
        )


class QuizOptionDB(Base):
    """Database model for QuizOption."""

    __tablename__ = "quiz_options"

    id = Column(String, primary_key=True, default=_new_id)
    quiz_id = Column(String, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    option_text = Column(String, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)
    # Preserves the author's ordering
    position = Column(Integer, nullable=False, default=0)

    quiz = relationship("QuizDB", back_populates="options")

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from famquiz.models.quiz import QuizOption
        return QuizOption(
            id=self.id,
            quiz_id=self.quiz_id,
            option_text=self.option_text,
            is_correct=self.is_correct,
        )


class AnswerDB(Base):
    """Database model for Answer."""

    __tablename__ = "answers"
    __table_args__ = (
        # One answer per (quiz, user), also under concurrent submissions.
        UniqueConstraint("quiz_id", "family_member_id", name="uq_answer_quiz_member"),
    )

    id = Column(String, primary_key=True, default=_new_id)
    quiz_id = Column(String, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    family_member_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    selected_option_id = Column(String, ForeignKey("quiz_options.id", ondelete="CASCADE"), nullable=False)
    is_correct = Column(Boolean, nullable=False)
    message = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    quiz = relationship("QuizDB", back_populates="answers")
    family_member = relationship("UserDB")

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from famquiz.models.quiz import Answer
        return Answer(
            id=self.id,
            quiz_id=self.quiz_id,
            family_member_id=self.family_member_id,
            selected_option_id=self.selected_option_id,
            is_correct=self.is_correct,
            message=self.message,
            created_at=self.created_at,
            family_member_name=self.family_member.display_name if self.family_member else None,
        )


class AlertHistoryDB(Base):
    """Database model for AlertHistory (append-only)."""

    __tablename__ = "alert_history"
    __table_args__ = (
        Index("ix_alert_history_group_type_created", "group_id", "type", "created_at"),
    )

    id = Column(String, primary_key=True, default=_new_id)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)
    triggered_by_user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from famquiz.models.alert import AlertHistory
        return AlertHistory(
            id=self.id,
            group_id=self.group_id,
            type=value_to_enum(self.type, AlertType, AlertType.EMERGENCY),
            triggered_by_user_id=self.triggered_by_user_id,
            created_at=self.created_at,
        )


class QuizRequestDB(Base):
    """Database model for QuizRequest."""

    __tablename__ = "quiz_requests"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    request_type = Column(String, nullable=False)
    content = Column(String, nullable=False)
    is_handled = Column(Boolean, nullable=False, default=False, index=True)
    handled_quiz_id = Column(String, ForeignKey("quizzes.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("UserDB")

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from famquiz.models.request import QuizRequest
        return QuizRequest(
            id=self.id,
            user_id=self.user_id,
            group_id=self.group_id,
            request_type=value_to_enum(self.request_type, RequestType, RequestType.OTHER),
            content=self.content,
            is_handled=self.is_handled,
            handled_quiz_id=self.handled_quiz_id,
            created_at=self.created_at,
            requester_name=self.user.display_name if self.user else None,
            requester_line_id=self.user.line_id if self.user else None,
        )
