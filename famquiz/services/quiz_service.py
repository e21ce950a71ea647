"""Quiz creation, answering and history."""

import logging
from typing import Dict, List, Optional, Tuple

from famquiz.database.interfaces import (
    DuplicateAnswerError,
    GroupRepositoryInterface,
    QuizRepositoryInterface,
    RequestRepositoryInterface,
    UserRepositoryInterface,
)
from famquiz.integrations.line_messages import (
    build_quiz_notification_message,
    build_request_fulfilled_message,
)
from famquiz.integrations.line_messaging import Messenger
from famquiz.models.constants import (
    DEFAULT_HISTORY_PAGE_SIZE,
    MAX_HISTORY_PAGE_SIZE,
    MIN_OPTIONS,
    POINTS_PER_CORRECT_ANSWER,
    QUESTION_TEXT_MAX_LENGTH,
)
from famquiz.models.quiz import NewQuizOption, Quiz
from famquiz.models.user import UserRole
from famquiz.services.errors import ErrorKind, ServiceError, bad_request, not_in_group
from famquiz.services.post_commit import PostCommitHooks

logger = logging.getLogger(__name__)


def validate_quiz_input(question_text: Optional[str], options: Optional[List[NewQuizOption]]) -> str:
    """Check question and options; returns the trimmed question text.

    Raises:
        ServiceError: BAD_REQUEST on the first rule that fails
    """
    question_text = (question_text or "").strip()
    if not question_text:
        raise bad_request("questionText is required.", field="questionText")
    if len(question_text) > QUESTION_TEXT_MAX_LENGTH:
        raise bad_request(
            f"questionText must be at most {QUESTION_TEXT_MAX_LENGTH} characters.", field="questionText"
        )
    if not options or len(options) < MIN_OPTIONS:
        raise bad_request(f"At least {MIN_OPTIONS} options are required.", field="options")
    if not any(option.is_correct for option in options):
        raise bad_request("At least one option must be correct.", field="options")
    if any(not (option.option_text or "").strip() for option in options):
        raise bad_request("Every option needs text.", field="options")
    return question_text


class QuizService:
    """Business rules for quizzes and answers."""

    def __init__(
        self,
        user_repository: UserRepositoryInterface,
        group_repository: GroupRepositoryInterface,
        quiz_repository: QuizRepositoryInterface,
        request_repository: RequestRepositoryInterface,
        messenger: Messenger,
    ):
        self.users = user_repository
        self.groups = group_repository
        self.quizzes = quiz_repository
        self.requests = request_repository
        self.messenger = messenger

    def _group_id_of(self, user_id: str) -> str:
        membership = self.groups.get_membership(user_id)
        if not membership:
            raise not_in_group()
        return membership.group_id

    def create_new_quiz(self, user_id: str, question_text: Optional[str], options: Optional[List[NewQuizOption]]) -> Quiz:
        """Create a quiz, then fulfil a pending quiz request and notify the family."""
        user = self.users.get(user_id)
        if not user or user.role != UserRole.GRANDPARENT:
            raise ServiceError(ErrorKind.FORBIDDEN, "Only grandparents can create quizzes.")

        group_id = self._group_id_of(user_id)
        question_text = validate_quiz_input(question_text, options)
        options = [
            NewQuizOption(option_text=option.option_text.strip(), is_correct=option.is_correct)
            for option in options
        ]

        quiz = self.quizzes.create(group_id, user_id, question_text, options)
        logger.info(f"Grandparent {user_id} created quiz {quiz.id} in group {group_id}")

        hooks = PostCommitHooks()
        hooks.add("fulfil quiz request", lambda: self._fulfil_oldest_request(group_id, quiz))
        hooks.add("notify family", lambda: self._notify_family(group_id, quiz, user.display_name))
        hooks.run()
        return quiz

    def _fulfil_oldest_request(self, group_id: str, quiz: Quiz) -> None:
        request = self.requests.get_oldest_pending_quiz_request(group_id)
        if not request:
            return
        self.requests.mark_handled(request.id, quiz.id)
        logger.info(f"Quiz {quiz.id} fulfilled request {request.id}")
        if request.requester_line_id:
            self.messenger.push_message(
                request.requester_line_id,
                build_request_fulfilled_message(request.content, quiz.question_text),
            )

    def _notify_family(self, group_id: str, quiz: Quiz, grandparent_name: str) -> None:
        line_ids = [m.line_id for m in self.groups.list_family_members(group_id) if m.line_id]
        if not line_ids:
            return
        result = self.messenger.send_bulk(
            line_ids, build_quiz_notification_message(quiz.question_text, grandparent_name)
        )
        logger.info(
            f"New quiz {quiz.id} notification: {result.success_count} sent, {result.failure_count} failed"
        )

    def get_pending_quiz(self, user_id: str) -> Optional[Quiz]:
        """Newest quiz of the caller's group they have not answered yet."""
        group_id = self._group_id_of(user_id)
        return self.quizzes.get_pending_for_user(user_id, group_id)

    def answer_quiz(self, user_id: str, quiz_id: str, selected_option_id: str, message: Optional[str] = None) -> Dict:
        """Record a one-shot answer and award a point when it is correct.

        Returns:
            {"is_correct": bool, "correct_option_id": str or None}
        """
        quiz = self.quizzes.get(quiz_id)
        if not quiz:
            raise ServiceError(ErrorKind.NOT_FOUND, "Quiz not found.")

        option = self.quizzes.get_option(selected_option_id)
        if not option:
            raise ServiceError(ErrorKind.NOT_FOUND, "Option not found.")
        if option.quiz_id != quiz_id:
            raise bad_request("The selected option does not belong to this quiz.", field="selectedOptionId")

        if self.quizzes.get_answer(quiz_id, user_id):
            raise ServiceError(ErrorKind.CONFLICT, "You have already answered this quiz.")

        message = (message or "").strip() or None
        try:
            self.quizzes.create_answer(quiz_id, user_id, selected_option_id, option.is_correct, message)
        except DuplicateAnswerError:
            raise ServiceError(ErrorKind.CONFLICT, "You have already answered this quiz.")

        if option.is_correct:
            balance = self.users.add_points(user_id, POINTS_PER_CORRECT_ANSWER)
            logger.debug(f"User {user_id} answered quiz {quiz_id} correctly, balance {balance}")

        return {"is_correct": option.is_correct, "correct_option_id": quiz.correct_option_id()}

    def get_quiz_history(
        self, user_id: str, page: int = 1, limit: int = DEFAULT_HISTORY_PAGE_SIZE
    ) -> Tuple[List[Quiz], int]:
        """Quizzes of the caller's group, newest first, with all answers."""
        if page < 1:
            raise bad_request("page must be 1 or greater.", field="page")
        if limit < 1 or limit > MAX_HISTORY_PAGE_SIZE:
            raise bad_request(f"limit must be between 1 and {MAX_HISTORY_PAGE_SIZE}.", field="limit")
        group_id = self._group_id_of(user_id)
        return self.quizzes.get_history(group_id, page, limit)
