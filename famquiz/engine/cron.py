"""Five-field cron expressions (minute hour day-of-month month day-of-week).

Supports ``*``, single values, ``a-b`` ranges, ``,`` lists and ``/step`` on
``*``, ranges or a start value. Day-of-week is 0-6 with Sunday = 0 (7 is
accepted as Sunday too). When both day fields are restricted a day matches if
either one does, as in classic cron; a field starting with ``*`` (such as
``*/2``) counts as unrestricted.
"""

from datetime import datetime, timedelta
from typing import FrozenSet, List, Tuple

# (name, min, max) per field
_FIELDS: List[Tuple[str, int, int]] = [
    ("minute", 0, 59),
    ("hour", 0, 23),
    ("day of month", 1, 31),
    ("month", 1, 12),
    ("day of week", 0, 7),
]

# Long enough to reach the next Feb 29
_SEARCH_HORIZON = timedelta(days=366 * 5)


class CronExpressionError(ValueError):
    """Raised for an unparseable cron expression."""


def _parse_int(token: str, name: str, low: int, high: int) -> int:
    if not token.isdigit():
        raise CronExpressionError(f"Invalid {name} value: {token!r}")
    value = int(token)
    if value < low or value > high:
        raise CronExpressionError(f"{name} value {value} out of range {low}-{high}")
    return value


def _parse_field(text: str, name: str, low: int, high: int) -> Tuple[FrozenSet[int], bool]:
    """Parse one field; returns (allowed values, whether the field starts with '*')."""
    values = set()
    for part in text.split(","):
        if not part:
            raise CronExpressionError(f"Empty list item in {name} field: {text!r}")

        step = 1
        if "/" in part:
            part, step_token = part.split("/", 1)
            step = _parse_int(step_token, f"{name} step", 1, high)

        if part == "*":
            start, end = low, high
        elif "-" in part:
            start_token, end_token = part.split("-", 1)
            start = _parse_int(start_token, name, low, high)
            end = _parse_int(end_token, name, low, high)
            if start > end:
                raise CronExpressionError(f"Descending range in {name} field: {part!r}")
        else:
            start = _parse_int(part, name, low, high)
            # "5/15" means every 15 starting at 5
            end = high if step > 1 else start

        values.update(range(start, end + 1, step))
    return frozenset(values), text.startswith("*")


class CronSchedule:
    """A parsed cron expression that can compute its next fire time."""

    def __init__(self, expression: str):
        self.expression = expression
        parts = expression.split()
        if len(parts) != len(_FIELDS):
            raise CronExpressionError(
                f"Cron expression must have {len(_FIELDS)} fields, got {len(parts)}: {expression!r}"
            )

        parsed = [_parse_field(part, name, low, high) for part, (name, low, high) in zip(parts, _FIELDS)]
        self.minutes, _ = parsed[0]
        self.hours, _ = parsed[1]
        self.days_of_month, self._dom_any = parsed[2]
        self.months, _ = parsed[3]
        days_of_week, self._dow_any = parsed[4]
        # Fold 7 onto Sunday
        self.days_of_week = frozenset(0 if d == 7 else d for d in days_of_week)

    @classmethod
    def is_valid(cls, expression: str) -> bool:
        try:
            cls(expression)
        except CronExpressionError:
            return False
        return True

    def _day_matches(self, moment: datetime) -> bool:
        dom_ok = moment.day in self.days_of_month
        # Python: Monday=0; cron: Sunday=0
        dow_ok = (moment.weekday() + 1) % 7 in self.days_of_week
        if self._dom_any or self._dow_any:
            return dom_ok and dow_ok
        return dom_ok or dow_ok

    def matches(self, moment: datetime) -> bool:
        return (
            moment.minute in self.minutes
            and moment.hour in self.hours
            and moment.month in self.months
            and self._day_matches(moment)
        )

    def next_after(self, moment: datetime) -> datetime:
        """First matching minute strictly after `moment` (wall-clock, tzinfo preserved)."""
        candidate = moment.replace(second=0, microsecond=0) + timedelta(minutes=1)
        limit = candidate + _SEARCH_HORIZON
        while candidate < limit:
            if candidate.month not in self.months:
                year, month = (candidate.year + 1, 1) if candidate.month == 12 else (candidate.year, candidate.month + 1)
                candidate = candidate.replace(year=year, month=month, day=1, hour=0, minute=0)
                continue
            if not self._day_matches(candidate):
                candidate = candidate.replace(hour=0, minute=0) + timedelta(days=1)
                continue
            if candidate.hour not in self.hours:
                candidate = candidate.replace(minute=0) + timedelta(hours=1)
                continue
            if candidate.minute not in self.minutes:
                candidate += timedelta(minutes=1)
                continue
            return candidate
        raise CronExpressionError(f"Cron expression never fires: {self.expression!r}")

    def __repr__(self) -> str:
        return f"CronSchedule({self.expression!r})"
