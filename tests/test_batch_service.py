"""Tests for the scheduled missed-quiz alert batch."""

from datetime import datetime, timedelta

import pytest

from famquiz.database.alert_repository import AlertRepository
from famquiz.database.models import AlertHistoryDB
from famquiz.models.alert import AlertType
from famquiz.models.user import UserRole
from famquiz.services.batch_service import BatchAlertService

NOW = datetime(2026, 10, 19, 12, 0, 0)


@pytest.fixture
def clock():
    state = {"now": NOW}

    def _clock():
        return state["now"]
    _clock.state = state
    return _clock


@pytest.fixture
def batch_service(alert_repository, group_repository, messenger, clock):
    return BatchAlertService(alert_repository, group_repository, messenger, clock=clock)


def _history(db_session, group_id, alert_type):
    return (
        db_session.query(AlertHistoryDB)
        .filter(AlertHistoryDB.group_id == group_id, AlertHistoryDB.type == alert_type.value)
        .all()
    )


class TestNoQuizAlerts:
    def test_overdue_group_alerts_family(self, batch_service, family_group, grandparent, make_quiz,
                                         messenger, db_session):
        """Frequency 2 days, last quiz 2.5 days ago, no earlier alert."""
        make_quiz(family_group, grandparent, created_at=NOW - timedelta(days=2.5))

        result = batch_service.check_and_send_quiz_alerts()

        assert result == {"totalGroups": 1, "alertSent": 1, "skipped": 0, "lineSuccess": 1, "lineFailure": 0}
        assert messenger.recipients() == ["U-taro"]
        rows = _history(db_session, family_group.id, AlertType.NO_QUIZ)
        assert len(rows) == 1
        assert rows[0].created_at == NOW
        assert rows[0].triggered_by_user_id is None

    def test_second_run_does_not_resend(self, batch_service, family_group, grandparent, make_quiz,
                                        messenger, db_session, clock):
        make_quiz(family_group, grandparent, created_at=NOW - timedelta(days=2.5))

        batch_service.check_and_send_quiz_alerts()
        clock.state["now"] = NOW + timedelta(hours=1)
        second = batch_service.check_and_send_quiz_alerts()

        assert second["alertSent"] == 0
        assert second["skipped"] == 1
        assert len(messenger.pushes) == 1
        assert len(_history(db_session, family_group.id, AlertType.NO_QUIZ)) == 1

    def test_new_quiz_makes_group_eligible_again(self, batch_service, family_group, grandparent, make_quiz,
                                                 db_session, clock):
        make_quiz(family_group, grandparent, created_at=NOW - timedelta(days=2.5))
        batch_service.check_and_send_quiz_alerts()

        make_quiz(family_group, grandparent, created_at=NOW + timedelta(hours=1))
        clock.state["now"] = NOW + timedelta(days=3)
        result = batch_service.check_and_send_quiz_alerts()

        assert result["alertSent"] == 1
        assert len(_history(db_session, family_group.id, AlertType.NO_QUIZ)) == 2

    def test_recent_quiz_is_skipped(self, batch_service, family_group, grandparent, make_quiz, messenger):
        make_quiz(family_group, grandparent, created_at=NOW - timedelta(days=1))

        result = batch_service.check_and_send_quiz_alerts()

        assert result["alertSent"] == 0
        assert result["skipped"] == 1
        assert messenger.pushes == []

    def test_group_without_quiz_is_skipped(self, batch_service, family_group, messenger):
        result = batch_service.check_and_send_quiz_alerts()

        assert result == {"totalGroups": 1, "alertSent": 0, "skipped": 1, "lineSuccess": 0, "lineFailure": 0}
        assert messenger.pushes == []

    def test_group_without_family_is_skipped(self, batch_service, make_group, grandparent, make_quiz, db_session):
        group = make_group(grandparent)
        make_quiz(group, grandparent, created_at=NOW - timedelta(days=5))

        result = batch_service.check_and_send_quiz_alerts()

        assert result["skipped"] == 1
        assert _history(db_session, group.id, AlertType.NO_QUIZ) == []


class TestFailureIsolation:
    def test_line_failures_counted_history_written(self, alert_repository, group_repository, make_group,
                                                   grandparent, make_user, make_quiz, db_session, clock,
                                                   make_messenger):
        alice = make_user("U-alice", "Alice")
        bob = make_user("U-bob", "Bob")
        group = make_group(grandparent, [alice, bob])
        make_quiz(group, grandparent, created_at=NOW - timedelta(days=3))
        messenger = make_messenger(failing_ids={"U-bob"})
        service = BatchAlertService(alert_repository, group_repository, messenger, clock=clock)

        result = service.check_and_send_quiz_alerts()

        assert result["lineSuccess"] == 1
        assert result["lineFailure"] == 1
        assert result["alertSent"] == 1
        assert len(_history(db_session, group.id, AlertType.NO_QUIZ)) == 1

    def test_failing_group_does_not_stop_the_batch(self, alert_repository, group_repository, make_group,
                                                   grandparent, make_user, make_quiz, db_session, clock,
                                                   make_messenger):
        broken = make_group(grandparent, [make_user("U-broken", "Broken")])
        healthy_grandparent = make_user("U-grandpa", "Grandpa", UserRole.GRANDPARENT)
        healthy = make_group(healthy_grandparent, [make_user("U-hana", "Hana")])
        make_quiz(broken, grandparent, created_at=NOW - timedelta(days=3))
        make_quiz(healthy, healthy_grandparent, created_at=NOW - timedelta(days=3))

        class ExplodingMessenger(make_messenger):
            def send_bulk(self, line_user_ids, messages):
                if "U-broken" in line_user_ids:
                    raise RuntimeError("LINE is down")
                return super().send_bulk(line_user_ids, messages)

        messenger = ExplodingMessenger()
        service = BatchAlertService(alert_repository, group_repository, messenger, clock=clock)

        result = service.check_and_send_quiz_alerts()

        assert result["totalGroups"] == 2
        assert result["alertSent"] == 1
        assert messenger.recipients() == ["U-hana"]
        assert _history(db_session, broken.id, AlertType.NO_QUIZ) == []
        assert len(_history(db_session, healthy.id, AlertType.NO_QUIZ)) == 1

    def test_failed_read_is_rolled_back_before_next_group(self, db_session, group_repository, make_group,
                                                          grandparent, make_user, make_quiz, clock, messenger):
        broken = make_group(grandparent, [make_user("U-broken", "Broken")])
        healthy_grandparent = make_user("U-grandpa", "Grandpa", UserRole.GRANDPARENT)
        healthy = make_group(healthy_grandparent, [make_user("U-hana", "Hana")])
        make_quiz(broken, grandparent, created_at=NOW - timedelta(days=3))
        make_quiz(healthy, healthy_grandparent, created_at=NOW - timedelta(days=3))

        class AbortingAlertRepository(AlertRepository):
            """Refuses every read after a failure until the transaction is rolled back."""

            aborted = False
            rollbacks = 0

            def get_latest(self, group_id, alert_type):
                if self.aborted:
                    raise RuntimeError("current transaction is aborted")
                if group_id == broken.id:
                    self.aborted = True
                    raise RuntimeError("connection reset")
                return super().get_latest(group_id, alert_type)

            def rollback(self):
                self.rollbacks += 1
                self.aborted = False
                super().rollback()

        alerts = AbortingAlertRepository(db_session)
        service = BatchAlertService(alerts, group_repository, messenger, clock=clock)

        result = service.check_and_send_quiz_alerts()

        assert alerts.rollbacks == 1
        assert result["alertSent"] == 1
        assert messenger.recipients() == ["U-hana"]
        assert len(_history(db_session, healthy.id, AlertType.NO_QUIZ)) == 1


class TestGrandparentReminders:
    def test_reminder_fires_before_family_alert(self, batch_service, make_group, grandparent, family_member,
                                                make_quiz, messenger, db_session):
        group = make_group(grandparent, [family_member], alert_frequency_days=1)
        make_quiz(group, grandparent, created_at=NOW - timedelta(days=0.8))

        family_result = batch_service.check_and_send_quiz_alerts()
        reminder_result = batch_service.check_and_send_grandparent_quiz_reminders()

        assert family_result["alertSent"] == 0
        assert reminder_result["alertSent"] == 1
        assert messenger.recipients() == ["U-grandma"]
        assert len(_history(db_session, group.id, AlertType.GRANDPARENT_QUIZ_REMINDER)) == 1

    def test_reminder_not_due_yet(self, batch_service, make_group, grandparent, family_member, make_quiz):
        group = make_group(grandparent, [family_member], alert_frequency_days=1)
        make_quiz(group, grandparent, created_at=NOW - timedelta(days=0.7))

        result = batch_service.check_and_send_grandparent_quiz_reminders()

        assert result["alertSent"] == 0

    def test_alert_types_deduplicate_independently(self, batch_service, family_group, grandparent, make_quiz,
                                                   messenger):
        make_quiz(family_group, grandparent, created_at=NOW - timedelta(days=3))

        assert batch_service.check_and_send_grandparent_quiz_reminders()["alertSent"] == 1
        assert batch_service.check_and_send_quiz_alerts()["alertSent"] == 1
        assert sorted(messenger.recipients()) == ["U-grandma", "U-taro"]
