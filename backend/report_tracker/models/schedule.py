"""
Report Tracker - Reporting Schedule Models

Immutable value types for the compliance-scheduling engine.
Every transition (reschedule, submission) produces a new ReportingLink;
nothing in this module is mutated in place.

Persisted layout (see ReportingLink.to_record):
    {orgId, projectId, reportingInterval, reportingDayOfWeek,
     reportingDayOfMonth, nextDueDate, streak, history}
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple


# Most recent submissions kept per link (newest first)
HISTORY_LIMIT = 12


# =============================================================================
# ENUMS
# =============================================================================

class ReportingInterval(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ReportingInterval":
        """Persisted records use null for 'no schedule'."""
        if value is None or value == "":
            return cls.NONE
        try:
            return cls(value)
        except ValueError:
            raise InvalidSchedule(f"Unknown reporting interval: {value!r}")


class ComplianceStatus(str, Enum):
    NO_SCHEDULE = "no-schedule"
    OVERDUE = "overdue"
    DUE_TODAY = "due-today"
    DUE_SOON = "due-soon"
    ON_TRACK = "on-track"


class InvalidSchedule(ValueError):
    """Schedule fields outside their allowed range."""


# =============================================================================
# SCHEDULE
# =============================================================================

@dataclass(frozen=True)
class ReportingSchedule:
    """
    How often a report is due.

    day_of_week: 0 (Sunday) .. 6 (Saturday), weekly only.
    day_of_month: 1 .. 31, monthly only.
    Unset day fields are allowed; the cadence rule substitutes 0 / 1.
    """
    interval: ReportingInterval = ReportingInterval.NONE
    day_of_week: Optional[int] = None
    day_of_month: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.interval, ReportingInterval):
            object.__setattr__(self, "interval", ReportingInterval.parse(self.interval))
        for name in ("day_of_week", "day_of_month"):
            value = getattr(self, name)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
                raise InvalidSchedule(f"{name} must be an integer, got {value!r}")
        if self.day_of_week is not None and not 0 <= self.day_of_week <= 6:
            raise InvalidSchedule(f"day_of_week must be 0-6, got {self.day_of_week}")
        if self.day_of_month is not None and not 1 <= self.day_of_month <= 31:
            raise InvalidSchedule(f"day_of_month must be 1-31, got {self.day_of_month}")

    @classmethod
    def from_fields(
        cls,
        interval: Optional[str],
        day_of_week: Optional[int] = None,
        day_of_month: Optional[int] = None,
    ) -> "ReportingSchedule":
        """
        Build a schedule from user-supplied fields.

        Out-of-range values are rejected even when the interval would ignore
        them. Day fields that do not apply to the interval are cleared.
        """
        parsed = cls(ReportingInterval.parse(interval), day_of_week, day_of_month)
        return cls(
            interval=parsed.interval,
            day_of_week=day_of_week if parsed.interval == ReportingInterval.WEEKLY else None,
            day_of_month=day_of_month if parsed.interval == ReportingInterval.MONTHLY else None,
        )

    @property
    def is_active(self) -> bool:
        return self.interval != ReportingInterval.NONE


# =============================================================================
# SUBMISSION HISTORY
# =============================================================================

@dataclass(frozen=True)
class SubmissionRecord:
    """One past submission, embedded in a link's history."""
    due_date: Optional[datetime]
    submitted_date: datetime
    was_on_time: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "submittedDate": self.submitted_date.isoformat(),
            "wasOnTime": self.was_on_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubmissionRecord":
        due = data.get("dueDate")
        return cls(
            due_date=_parse_timestamp(due) if due else None,
            submitted_date=_parse_timestamp(data["submittedDate"]),
            was_on_time=bool(data.get("wasOnTime", False)),
        )


@dataclass(frozen=True)
class SubmissionHistory:
    """Newest-first submission history, never longer than HISTORY_LIMIT."""
    entries: Tuple[SubmissionRecord, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "entries", tuple(self.entries)[:HISTORY_LIMIT])

    def prepend(self, record: SubmissionRecord) -> "SubmissionHistory":
        bounded = deque(self.entries, maxlen=HISTORY_LIMIT)
        bounded.appendleft(record)  # a full deque drops the oldest entry
        return SubmissionHistory(tuple(bounded))

    @property
    def latest(self) -> Optional[SubmissionRecord]:
        return self.entries[0] if self.entries else None

    def __iter__(self) -> Iterator[SubmissionRecord]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> SubmissionRecord:
        return self.entries[index]


# =============================================================================
# REPORTING LINK
# =============================================================================

@dataclass(frozen=True)
class ReportingLink:
    """
    Organization-project pairing with an optional reporting schedule.

    Invariant: whenever the interval is not NONE, next_due_date is set.
    """
    org_id: str
    project_id: str
    schedule: ReportingSchedule = field(default_factory=ReportingSchedule)
    next_due_date: Optional[datetime] = None
    streak: int = 0
    history: SubmissionHistory = field(default_factory=SubmissionHistory)

    def __post_init__(self):
        if not isinstance(self.history, SubmissionHistory):
            object.__setattr__(self, "history", SubmissionHistory(tuple(self.history)))
        if self.streak < 0:
            raise ValueError(f"streak must be >= 0, got {self.streak}")

    @property
    def key(self) -> Tuple[str, str]:
        return (self.org_id, self.project_id)

    @property
    def reporting_interval(self) -> ReportingInterval:
        return self.schedule.interval

    def evolve(self, **changes) -> "ReportingLink":
        return replace(self, **changes)

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the persisted field layout."""
        interval = self.schedule.interval
        return {
            "orgId": self.org_id,
            "projectId": self.project_id,
            "reportingInterval": None if interval == ReportingInterval.NONE else interval.value,
            "reportingDayOfWeek": self.schedule.day_of_week,
            "reportingDayOfMonth": self.schedule.day_of_month,
            "nextDueDate": self.next_due_date.isoformat() if self.next_due_date else None,
            "streak": self.streak,
            "history": [entry.to_dict() for entry in self.history],
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ReportingLink":
        next_due = record.get("nextDueDate")
        return cls(
            org_id=record["orgId"],
            project_id=record["projectId"],
            schedule=ReportingSchedule(
                interval=ReportingInterval.parse(record.get("reportingInterval")),
                day_of_week=_parse_day(record.get("reportingDayOfWeek")),
                day_of_month=_parse_day(record.get("reportingDayOfMonth")),
            ),
            next_due_date=_parse_timestamp(next_due) if next_due else None,
            streak=record.get("streak") or 0,
            history=tuple(
                SubmissionRecord.from_dict(entry) for entry in record.get("history") or []
            ),
        )


# =============================================================================
# COMPLIANCE RESULT
# =============================================================================

@dataclass(frozen=True)
class ComplianceResult:
    status: ComplianceStatus
    days_until: Optional[int]
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "days_until": self.days_until,
            "message": self.message,
        }


def _parse_day(value: Any) -> Any:
    # Browser-era records may hold form values such as "3"; anything else is left for validation
    if isinstance(value, str):
        text = value.strip()
        if text == "":
            return None
        if text.lstrip("-").isdigit():
            return int(text)
    return value


def _parse_timestamp(value: str) -> datetime:
    # Records written by browsers carry a trailing 'Z'; scheduling is local wall-clock.
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed
