"""Tests for the missed-quiz alert thresholds."""

from datetime import datetime, timedelta

import pytest

from famquiz.engine.alerting import (
    alert_threshold_days,
    already_alerted,
    elapsed_days,
    is_alert_due,
    reminder_lead_days,
)
from famquiz.models.alert import AlertHistory, AlertType


NOW = datetime(2026, 10, 19, 12, 0, 0)


def _alert(created_at: datetime) -> AlertHistory:
    return AlertHistory(id="a1", group_id="g1", type=AlertType.NO_QUIZ, created_at=created_at)


class TestThresholds:
    def test_elapsed_days_is_fractional(self):
        assert elapsed_days(NOW, NOW - timedelta(hours=36)) == pytest.approx(1.5)

    def test_reminder_for_one_day_period(self):
        assert reminder_lead_days(1) == pytest.approx(0.25)
        assert alert_threshold_days(AlertType.GRANDPARENT_QUIZ_REMINDER, 1) == pytest.approx(0.75)

    def test_reminder_lead_floor_at_minimum_period(self):
        # a quarter of half a day is exactly the 3 hour floor
        assert reminder_lead_days(0.5) == pytest.approx(0.125)
        assert alert_threshold_days(AlertType.GRANDPARENT_QUIZ_REMINDER, 0.5) == pytest.approx(0.375)

    def test_reminder_lead_floor_applies_below_quarter(self):
        assert reminder_lead_days(0.4) == pytest.approx(3 / 24)

    def test_no_quiz_threshold_is_the_frequency(self):
        assert alert_threshold_days(AlertType.NO_QUIZ, 2) == 2

    def test_emergency_has_no_threshold(self):
        with pytest.raises(ValueError):
            alert_threshold_days(AlertType.EMERGENCY, 2)

    def test_is_alert_due_is_inclusive(self):
        assert is_alert_due(AlertType.NO_QUIZ, 2, 2.0)
        assert is_alert_due(AlertType.NO_QUIZ, 2, 2.5)
        assert not is_alert_due(AlertType.NO_QUIZ, 2, 1.99)
        assert is_alert_due(AlertType.GRANDPARENT_QUIZ_REMINDER, 1, 0.75)
        assert not is_alert_due(AlertType.GRANDPARENT_QUIZ_REMINDER, 1, 0.7)


class TestAlreadyAlerted:
    def test_no_previous_alert(self):
        assert already_alerted(None, NOW) is False

    def test_alert_after_quiz_blocks_resend(self):
        assert already_alerted(_alert(NOW), NOW - timedelta(days=3)) is True

    def test_alert_at_same_instant_blocks_resend(self):
        assert already_alerted(_alert(NOW), NOW) is True

    def test_new_quiz_resets_eligibility(self):
        assert already_alerted(_alert(NOW - timedelta(days=5)), NOW - timedelta(days=3)) is False
