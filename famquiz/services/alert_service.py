"""Emergency alerts triggered by grandparents."""

import logging

from famquiz.database.interfaces import AlertRepositoryInterface, GroupRepositoryInterface, UserRepositoryInterface
from famquiz.integrations.line_messages import build_emergency_alert_message
from famquiz.integrations.line_messaging import Messenger
from famquiz.models.alert import AlertHistory, AlertType
from famquiz.models.user import UserRole
from famquiz.services.errors import ErrorKind, ServiceError, not_in_group
from famquiz.services.post_commit import PostCommitHooks

logger = logging.getLogger(__name__)


class AlertService:
    def __init__(
        self,
        user_repository: UserRepositoryInterface,
        group_repository: GroupRepositoryInterface,
        alert_repository: AlertRepositoryInterface,
        messenger: Messenger,
    ):
        self.users = user_repository
        self.groups = group_repository
        self.alerts = alert_repository
        self.messenger = messenger

    def send_emergency_alert(self, user_id: str) -> AlertHistory:
        """Record an emergency alert and broadcast it to the rest of the group."""
        user = self.users.get(user_id)
        if not user or user.role != UserRole.GRANDPARENT:
            raise ServiceError(ErrorKind.FORBIDDEN, "Only grandparents can send emergency alerts.")

        membership = self.groups.get_membership(user_id)
        if not membership:
            raise not_in_group()

        alert = self.alerts.create(membership.group_id, AlertType.EMERGENCY, triggered_by_user_id=user_id)
        logger.warning(f"Emergency alert {alert.id} from user {user_id} in group {membership.group_id}")

        def broadcast():
            line_ids = [
                m.line_id for m in self.groups.list_members(membership.group_id)
                if m.line_id and m.user_id != user_id
            ]
            result = self.messenger.send_bulk(line_ids, build_emergency_alert_message(user.display_name))
            logger.info(f"Emergency alert {alert.id}: {result.success_count} sent, {result.failure_count} failed")

        hooks = PostCommitHooks()
        hooks.add("broadcast emergency", broadcast)
        hooks.run()
        return alert
