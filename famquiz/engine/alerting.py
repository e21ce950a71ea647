"""Threshold and de-duplication rules for the missed-quiz alerts.

Two alert types are driven by the time elapsed since a group's latest quiz:

- ``no_quiz`` goes to family members once ``elapsed >= alert_frequency_days``.
- ``grandparent_quiz_reminder`` goes to grandparents a little earlier, once
  ``elapsed >= alert_frequency_days - lead`` where the lead is a quarter of the
  period, but never less than 3 hours.

An alert is sent at most once per quiz interval: if the latest alert of the
same type was recorded at or after the triggering quiz, it is not sent again.
"""

from datetime import datetime
from typing import Optional

from famquiz.models.alert import AlertHistory, AlertType
from famquiz.models.constants import REMINDER_LEAD_FLOOR_DAYS, REMINDER_LEAD_FRACTION

SECONDS_PER_DAY = 86_400


def elapsed_days(now: datetime, since: datetime) -> float:
    """Fractional days between two timestamps."""
    return (now - since).total_seconds() / SECONDS_PER_DAY


def reminder_lead_days(alert_frequency_days: float) -> float:
    """How long before the no-quiz alert the grandparent reminder fires."""
    return max(alert_frequency_days * REMINDER_LEAD_FRACTION, REMINDER_LEAD_FLOOR_DAYS)


def alert_threshold_days(alert_type: AlertType, alert_frequency_days: float) -> float:
    """Elapsed days at which an alert type becomes due.

    Raises:
        ValueError: For alert types the batch does not send (emergency)
    """
    if alert_type == AlertType.NO_QUIZ:
        return alert_frequency_days
    if alert_type == AlertType.GRANDPARENT_QUIZ_REMINDER:
        return alert_frequency_days - reminder_lead_days(alert_frequency_days)
    raise ValueError(f"No elapsed-time threshold for alert type {alert_type}")


def is_alert_due(alert_type: AlertType, alert_frequency_days: float, days_elapsed: float) -> bool:
    return days_elapsed >= alert_threshold_days(alert_type, alert_frequency_days)


def already_alerted(last_alert: Optional[AlertHistory], quiz_created_at: datetime) -> bool:
    """Whether an alert was already recorded for the current quiz interval."""
    return last_alert is not None and last_alert.created_at >= quiz_created_at
