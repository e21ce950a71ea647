"""Pure alerting and scheduling logic for famquiz."""

from famquiz.engine.alerting import (
    elapsed_days,
    reminder_lead_days,
    alert_threshold_days,
    is_alert_due,
    already_alerted,
)
from famquiz.engine.cron import CronSchedule, CronExpressionError

__all__ = [
    "elapsed_days",
    "reminder_lead_days",
    "alert_threshold_days",
    "is_alert_due",
    "already_alerted",
    "CronSchedule",
    "CronExpressionError",
]
