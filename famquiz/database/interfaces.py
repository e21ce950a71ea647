"""Repository interfaces consumed by the service layer.

Each protocol has exactly one SQLAlchemy implementation in this package; tests
may substitute fakes that satisfy the same shape.
"""

from datetime import datetime
from typing import List, Optional, Protocol, Tuple

from famquiz.models.alert import AlertHistory, AlertType
from famquiz.models.group import Group, GroupMember, MemberAnswerStats, MemberProfile
from famquiz.models.quiz import Answer, NewQuizOption, Quiz, QuizOption
from famquiz.models.request import QuizRequest, RequestType
from famquiz.models.user import User, UserRole


class DuplicateAnswerError(Exception):
    """Raised when the storage layer rejects a second answer for (quiz, user)."""


class UserRepositoryInterface(Protocol):
    def get(self, user_id: str) -> Optional[User]: ...

    def get_by_line_id(self, line_id: str) -> Optional[User]: ...

    def create(self, line_id: str, display_name: str, role: Optional[UserRole]) -> User: ...

    def update_profile(self, user_id: str, display_name: str, role: UserRole) -> User: ...

    def add_points(self, user_id: str, delta: int) -> int: ...

    def spend_points(self, user_id: str, amount: int) -> Optional[int]: ...


class GroupRepositoryInterface(Protocol):
    def get(self, group_id: str) -> Optional[Group]: ...

    def get_by_code(self, group_code: str) -> Optional[Group]: ...

    def create(self, group_code: str, group_name: str, password_hash: str, alert_frequency_days: float) -> Group: ...

    def add_member(self, user_id: str, group_id: str, is_owner: bool) -> GroupMember: ...

    def get_member(self, user_id: str, group_id: str) -> Optional[GroupMember]: ...

    def get_membership(self, user_id: str) -> Optional[GroupMember]: ...

    def list_members(self, group_id: str) -> List[MemberProfile]: ...

    def list_family_members(self, group_id: str) -> List[MemberProfile]: ...

    def list_grandparents(self, group_id: str) -> List[MemberProfile]: ...

    def get_member_answer_stats(self, group_id: str) -> List[MemberAnswerStats]: ...


class QuizRepositoryInterface(Protocol):
    def create(self, group_id: str, grandparent_id: str, question_text: str, options: List[NewQuizOption]) -> Quiz: ...

    def get(self, quiz_id: str) -> Optional[Quiz]: ...

    def get_option(self, option_id: str) -> Optional[QuizOption]: ...

    def get_answer(self, quiz_id: str, user_id: str) -> Optional[Answer]: ...

    def create_answer(
        self,
        quiz_id: str,
        family_member_id: str,
        selected_option_id: str,
        is_correct: bool,
        message: Optional[str] = None,
    ) -> Answer: ...

    def get_pending_for_user(self, user_id: str, group_id: str) -> Optional[Quiz]: ...

    def get_history(self, group_id: str, page: int, limit: int) -> Tuple[List[Quiz], int]: ...


class AlertRepositoryInterface(Protocol):
    def list_groups_with_latest_quiz(self) -> List[Tuple[Group, Optional[Quiz]]]: ...

    def get_latest(self, group_id: str, alert_type: AlertType) -> Optional[AlertHistory]: ...

    def rollback(self) -> None: ...

    def create(
        self,
        group_id: str,
        alert_type: AlertType,
        triggered_by_user_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> AlertHistory: ...


class RequestRepositoryInterface(Protocol):
    def create(self, user_id: str, group_id: str, request_type: RequestType, content: str) -> QuizRequest: ...

    def get_oldest_pending_quiz_request(self, group_id: str) -> Optional[QuizRequest]: ...

    def list_pending_quiz_requests(self, group_id: str) -> List[QuizRequest]: ...

    def mark_handled(self, request_id: str, quiz_id: str) -> Optional[QuizRequest]: ...
