"""
Compliance Classifier

Maps a link's due date to a status tier relative to now.
Read-only; safe to call on every page view.
"""
import math
from datetime import datetime, timedelta
from typing import Optional

from ...models.schedule import ComplianceResult, ComplianceStatus, ReportingLink


DUE_SOON_DAYS = 3

ONE_DAY = timedelta(days=1)


def days_until_due(due_date: datetime, now: datetime) -> int:
    """
    Whole days between now and the due date.

    Partial days count as a full day in either direction: 1 ms ahead is 1,
    1 ms behind is -1.
    """
    days = (due_date - now) / ONE_DAY
    if days < 0:
        return math.floor(days)
    return math.ceil(days)


def classify(link: ReportingLink, now: Optional[datetime] = None) -> ComplianceResult:
    if not link.schedule.is_active or link.next_due_date is None:
        return ComplianceResult(ComplianceStatus.NO_SCHEDULE, None, "No schedule set")

    if now is None:
        now = datetime.now()
    diff_days = days_until_due(link.next_due_date, now)

    if diff_days < 0:
        late = abs(diff_days)
        plural = "s" if late != 1 else ""
        return ComplianceResult(ComplianceStatus.OVERDUE, diff_days, f"OVERDUE by {late} day{plural}")
    if diff_days == 0:
        return ComplianceResult(ComplianceStatus.DUE_TODAY, 0, "Due TODAY")
    if diff_days == 1:
        return ComplianceResult(ComplianceStatus.DUE_SOON, 1, "Due tomorrow")
    if diff_days <= DUE_SOON_DAYS:
        return ComplianceResult(ComplianceStatus.DUE_SOON, diff_days, f"Due in {diff_days} days")
    return ComplianceResult(ComplianceStatus.ON_TRACK, diff_days, f"Due in {diff_days} days")
