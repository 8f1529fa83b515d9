"""
Cadence Rule

Computes the next due date for a reporting schedule from a reference instant.
Pure functions of (schedule, from_dt); all dates are local wall-clock.

Rules:
- daily:   end of the calendar day containing from_dt
- weekly:  end of the next occurrence of day_of_week, strictly after from_dt's day
- monthly: end of day_of_month in from_dt's month, or the next month once that
           day has been reached; clamped to the length of the target month
"""
import calendar
from datetime import datetime, time, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from ...models.schedule import ReportingInterval, ReportingLink, ReportingSchedule


END_OF_DAY = time(23, 59, 59, 999000)

DEFAULT_DAY_OF_WEEK = 0   # Sunday
DEFAULT_DAY_OF_MONTH = 1


def end_of_day(dt: datetime) -> datetime:
    """23:59:59.999 on dt's calendar date."""
    return datetime.combine(dt.date(), END_OF_DAY)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def weekday_index(dt: datetime) -> int:
    """Weekday numbered 0 (Sunday) .. 6 (Saturday)."""
    return dt.isoweekday() % 7


def compute_next_due(
    schedule: ReportingSchedule,
    from_dt: Optional[datetime] = None,
) -> Optional[datetime]:
    """
    Next due date for a schedule, or None when no schedule is active.

    from_dt defaults to now.
    """
    if not schedule.is_active:
        return None

    now = from_dt if from_dt is not None else datetime.now()

    if schedule.interval == ReportingInterval.DAILY:
        return end_of_day(now)

    if schedule.interval == ReportingInterval.WEEKLY:
        target = schedule.day_of_week if schedule.day_of_week is not None else DEFAULT_DAY_OF_WEEK
        days_until = target - weekday_index(now)
        if days_until <= 0:
            days_until += 7
        return end_of_day(now + timedelta(days=days_until))

    if schedule.interval == ReportingInterval.MONTHLY:
        target = schedule.day_of_month if schedule.day_of_month is not None else DEFAULT_DAY_OF_MONTH
        month_start = now.replace(day=1)
        if now.day >= target:
            month_start = month_start + relativedelta(months=1)
        day = min(target, days_in_month(month_start.year, month_start.month))
        return end_of_day(month_start.replace(day=day))

    raise ValueError(f"Unhandled reporting interval: {schedule.interval}")


def apply_schedule(
    link: ReportingLink,
    schedule: ReportingSchedule,
    from_dt: Optional[datetime] = None,
) -> ReportingLink:
    """Replace a link's schedule and recompute its due date. Streak and history are kept."""
    return link.evolve(
        schedule=schedule,
        next_due_date=compute_next_due(schedule, from_dt),
    )
