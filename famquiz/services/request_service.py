"""Point-costing requests from family members."""

import logging
from typing import List, Optional, Tuple

from famquiz.database.interfaces import GroupRepositoryInterface, RequestRepositoryInterface, UserRepositoryInterface
from famquiz.integrations.line_messages import build_request_notification_message
from famquiz.integrations.line_messaging import Messenger
from famquiz.models.constants import REQUEST_CONTENT_MAX_LENGTH, REQUEST_COST_POINTS
from famquiz.models.request import QuizRequest, RequestType
from famquiz.services.errors import ErrorKind, ServiceError, bad_request, not_in_group
from famquiz.services.post_commit import PostCommitHooks

logger = logging.getLogger(__name__)


class RequestService:
    """Spends points on requests and routes them to grandparents."""

    def __init__(
        self,
        user_repository: UserRepositoryInterface,
        group_repository: GroupRepositoryInterface,
        request_repository: RequestRepositoryInterface,
        messenger: Messenger,
    ):
        self.users = user_repository
        self.groups = group_repository
        self.requests = request_repository
        self.messenger = messenger

    def send_request(self, user_id: str, request_type: Optional[str], content: Optional[str]) -> Tuple[QuizRequest, int]:
        """Spend points on a request.

        `quiz` requests wait for the next quiz; `other` requests are pushed to
        the group's grandparents right away.

        Returns:
            (request, remaining point balance)
        """
        try:
            request_type = RequestType(request_type)
        except ValueError:
            raise bad_request("requestType must be 'quiz' or 'other'.", field="requestType")

        content = (content or "").strip()
        if not content:
            raise bad_request("content is required.", field="content")
        if len(content) > REQUEST_CONTENT_MAX_LENGTH:
            raise bad_request(
                f"content must be at most {REQUEST_CONTENT_MAX_LENGTH} characters.", field="content"
            )

        user = self.users.get(user_id)
        if not user:
            raise ServiceError(ErrorKind.NOT_FOUND, "User not found.")
        membership = self.groups.get_membership(user_id)
        if not membership:
            raise not_in_group()

        remaining = self.users.spend_points(user_id, REQUEST_COST_POINTS)
        if remaining is None:
            raise ServiceError(
                ErrorKind.INSUFFICIENT_POINTS,
                f"You need at least {REQUEST_COST_POINTS} points to send a request.",
                field="points",
            )

        request = self.requests.create(user_id, membership.group_id, request_type, content)
        logger.info(f"User {user_id} sent {request_type.value} request {request.id}, {remaining} points left")

        if request_type == RequestType.OTHER:
            hooks = PostCommitHooks()
            hooks.add(
                "notify grandparents",
                lambda: self._notify_grandparents(membership.group_id, user.display_name, content),
            )
            hooks.run()

        return request, remaining

    def _notify_grandparents(self, group_id: str, requester_name: str, content: str) -> None:
        line_ids = [m.line_id for m in self.groups.list_grandparents(group_id) if m.line_id]
        if line_ids:
            self.messenger.send_bulk(line_ids, build_request_notification_message(requester_name, content))

    def get_pending_quiz_requests(self, user_id: str) -> List[QuizRequest]:
        membership = self.groups.get_membership(user_id)
        if not membership:
            raise not_in_group()
        return self.requests.list_pending_quiz_requests(membership.group_id)
