"""Scheduled scan that sends missed-quiz alerts.

For every group the latest quiz is the baseline. Family members get a
``no_quiz`` alert once the group's alert frequency has elapsed; grandparents
get a reminder a little earlier. Each alert type fires at most once per quiz,
using the alert history as the record of what was already sent.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from famquiz.database.interfaces import AlertRepositoryInterface, GroupRepositoryInterface
from famquiz.engine.alerting import already_alerted, elapsed_days, is_alert_due
from famquiz.integrations.line_messages import build_grandparent_reminder_message, build_no_quiz_alert_message
from famquiz.integrations.line_messaging import Messenger
from famquiz.models.alert import AlertType
from famquiz.models.group import Group, MemberProfile
from famquiz.models.quiz import Quiz

logger = logging.getLogger(__name__)


def _empty_counters() -> Dict[str, int]:
    return {"totalGroups": 0, "alertSent": 0, "skipped": 0, "lineSuccess": 0, "lineFailure": 0}


class BatchAlertService:
    """Runs one pass of an alert type over all groups."""

    def __init__(
        self,
        alert_repository: AlertRepositoryInterface,
        group_repository: GroupRepositoryInterface,
        messenger: Messenger,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.alerts = alert_repository
        self.groups = group_repository
        self.messenger = messenger
        self.clock = clock

    def check_and_send_quiz_alerts(self) -> Dict[str, int]:
        """Alert family members of groups whose grandparent has gone quiet."""
        return self._run(AlertType.NO_QUIZ)

    def check_and_send_grandparent_quiz_reminders(self) -> Dict[str, int]:
        """Remind grandparents shortly before their family would be alerted."""
        return self._run(AlertType.GRANDPARENT_QUIZ_REMINDER)

    def _audience(self, alert_type: AlertType, group_id: str) -> List[MemberProfile]:
        if alert_type == AlertType.NO_QUIZ:
            return self.groups.list_family_members(group_id)
        return self.groups.list_grandparents(group_id)

    @staticmethod
    def _message(alert_type: AlertType, days: float) -> List[Dict]:
        if alert_type == AlertType.NO_QUIZ:
            return build_no_quiz_alert_message(days)
        return build_grandparent_reminder_message(days)

    def _run(self, alert_type: AlertType) -> Dict[str, int]:
        now = self.clock()
        counters = _empty_counters()
        groups = self.alerts.list_groups_with_latest_quiz()
        counters["totalGroups"] = len(groups)
        logger.info(f"Checking {alert_type.value} alerts for {len(groups)} groups")

        for group, latest_quiz in groups:
            try:
                self._process_group(alert_type, group, latest_quiz, now, counters)
            except Exception as e:
                logger.error(
                    f"Failed {alert_type.value} check for group {group.id}: {type(e).__name__}: {str(e)}"
                )
                self.alerts.rollback()

        logger.info(
            f"{alert_type.value} run done: {counters['alertSent']} sent, {counters['skipped']} skipped, "
            f"LINE {counters['lineSuccess']} ok / {counters['lineFailure']} failed"
        )
        return counters

    def _process_group(
        self,
        alert_type: AlertType,
        group: Group,
        latest_quiz: Optional[Quiz],
        now: datetime,
        counters: Dict[str, int],
    ) -> None:
        if latest_quiz is None:
            logger.debug(f"Group {group.id} has no quiz yet")
            counters["skipped"] += 1
            return

        days = elapsed_days(now, latest_quiz.created_at)
        if not is_alert_due(alert_type, group.alert_frequency_days, days):
            counters["skipped"] += 1
            return

        if already_alerted(self.alerts.get_latest(group.id, alert_type), latest_quiz.created_at):
            logger.debug(f"Group {group.id} already got a {alert_type.value} alert for quiz {latest_quiz.id}")
            counters["skipped"] += 1
            return

        line_ids = [m.line_id for m in self._audience(alert_type, group.id) if m.line_id]
        if not line_ids:
            logger.info(f"Group {group.id} has no {alert_type.value} recipients")
            counters["skipped"] += 1
            return

        result = self.messenger.send_bulk(line_ids, self._message(alert_type, days))
        counters["lineSuccess"] += result.success_count
        counters["lineFailure"] += result.failure_count

        self.alerts.create(group.id, alert_type, created_at=now)
        counters["alertSent"] += 1
        logger.info(
            f"Sent {alert_type.value} alert to group {group.id} ({days:.1f} days since quiz {latest_quiz.id})"
        )
