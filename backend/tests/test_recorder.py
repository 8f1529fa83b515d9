"""
Tests for submission recording.

Tests the submission flow:
1. No schedule → nothing recorded, link untouched
2. On-time / late classification against the due date in effect
3. Streak increments on time, resets on any late submission
4. History is newest-first and capped at 12 entries
5. Next due date re-anchored to the submission instant
6. SubmissionRecorder read-modify-write through the link store
"""
import pytest
from datetime import datetime, timedelta
from unittest.mock import MagicMock

from report_tracker.models.schedule import (
    HISTORY_LIMIT,
    ReportingInterval,
    ReportingLink,
    ReportingSchedule,
)
from report_tracker.services.compliance.cadence import compute_next_due
from report_tracker.services.compliance.link_store import (
    InMemoryLinkStore,
    LinkNotFound,
    StoreUnavailable,
)
from report_tracker.services.compliance.recorder import SubmissionRecorder, record_submission


DAILY = ReportingSchedule(ReportingInterval.DAILY)
WEDNESDAYS = ReportingSchedule(ReportingInterval.WEEKLY, day_of_week=3)


def scheduled_link(schedule=DAILY, created=datetime(2024, 1, 1, 9, 0), **kwargs):
    return ReportingLink(
        "org-1", "proj-1", schedule,
        next_due_date=compute_next_due(schedule, created),
        **kwargs,
    )


# =============================================================================
# TEST: PURE RECORDING
# =============================================================================

class TestRecordSubmission:

    def test_no_schedule_records_nothing(self):
        link = ReportingLink("org-1", "proj-1", streak=3)
        assert record_submission(link, datetime(2024, 1, 1)) is None
        assert link.streak == 3
        assert len(link.history) == 0

    def test_on_time_submission(self):
        link = scheduled_link()
        submitted = datetime(2024, 1, 1, 15, 0)

        updated = record_submission(link, submitted)

        assert updated.streak == 1
        entry = updated.history[0]
        assert entry.was_on_time is True
        assert entry.due_date == link.next_due_date
        assert entry.submitted_date == submitted

    def test_submission_exactly_at_due_date_is_on_time(self):
        link = scheduled_link()
        updated = record_submission(link, link.next_due_date)
        assert updated.history[0].was_on_time is True

    def test_late_submission_resets_streak(self):
        link = scheduled_link(streak=7)
        updated = record_submission(link, datetime(2024, 1, 2, 0, 0, 1))

        assert updated.streak == 0
        assert updated.history[0].was_on_time is False

    def test_input_link_not_mutated(self):
        link = scheduled_link()
        record_submission(link, datetime(2024, 1, 1, 15, 0))
        assert link.streak == 0
        assert len(link.history) == 0
        assert link.next_due_date == datetime(2024, 1, 1, 23, 59, 59, 999000)

    def test_next_due_anchored_to_submission_time(self):
        # Due Jan 3 (daily cadence from Jan 3); submitted late on Jan 6
        link = scheduled_link(created=datetime(2024, 1, 3, 8, 0))
        updated = record_submission(link, datetime(2024, 1, 6, 10, 0))
        assert updated.next_due_date == datetime(2024, 1, 6, 23, 59, 59, 999000)

    def test_streak_increases_by_one_per_on_time_submission(self):
        # Weekly on Wednesdays, submitted every Wednesday
        link = scheduled_link(WEDNESDAYS)
        moment = datetime(2024, 1, 3, 12, 0)
        for expected in range(1, 6):
            link = record_submission(link, moment)
            assert link.streak == expected
            moment += timedelta(days=7)

    def test_late_submission_after_long_streak(self):
        link = scheduled_link(WEDNESDAYS)
        moment = datetime(2024, 1, 3, 12, 0)
        for _ in range(4):
            link = record_submission(link, moment)
            moment += timedelta(days=7)
        assert link.streak == 4
        assert link.next_due_date == datetime(2024, 1, 31, 23, 59, 59, 999000)

        # Thursday after the due Wednesday
        link = record_submission(link, datetime(2024, 2, 1, 9, 0))
        assert link.streak == 0
        assert link.next_due_date == datetime(2024, 2, 7, 23, 59, 59, 999000)

        link = record_submission(link, datetime(2024, 2, 2, 18, 0))
        assert link.streak == 1

    def test_daily_submission_next_day_is_late(self):
        # Daily due dates stay on the submission day until the next submission
        link = scheduled_link(DAILY)
        link = record_submission(link, datetime(2024, 1, 1, 12, 0))
        assert link.next_due_date == datetime(2024, 1, 1, 23, 59, 59, 999000)

        link = record_submission(link, datetime(2024, 1, 2, 12, 0))
        assert link.history[0].was_on_time is False
        assert link.streak == 0

    def test_history_capped_at_twelve(self):
        link = scheduled_link(WEDNESDAYS)
        moment = datetime(2024, 1, 3, 12, 0)
        for _ in range(15):
            link = record_submission(link, moment)
            moment += timedelta(days=7)

        last = moment - timedelta(days=7)
        assert len(link.history) == HISTORY_LIMIT == 12
        assert link.history[0].submitted_date == last
        assert link.history[-1].submitted_date == last - timedelta(days=7 * 11)
        assert link.streak == 15

    def test_weekly_end_to_end(self):
        # Created Monday → due that Wednesday
        link = scheduled_link(WEDNESDAYS, created=datetime(2024, 1, 1, 9, 0))
        assert link.next_due_date == datetime(2024, 1, 3, 23, 59, 59, 999000)

        # Submitted Tuesday → on time; next Wednesday from Tuesday is the next day
        updated = record_submission(link, datetime(2024, 1, 2, 14, 0))
        assert updated.history[0].was_on_time is True
        assert updated.streak == 1
        assert updated.next_due_date == datetime(2024, 1, 3, 23, 59, 59, 999000)

        # Submitted on the Wednesday itself → next due rolls a full week
        again = record_submission(updated, datetime(2024, 1, 3, 9, 0))
        assert again.streak == 2
        assert again.next_due_date == datetime(2024, 1, 10, 23, 59, 59, 999000)


# =============================================================================
# TEST: SUBMISSION RECORDER SERVICE
# =============================================================================

class TestSubmissionRecorder:

    def test_submit_persists_updated_link(self):
        store = InMemoryLinkStore()
        store.create("org-1", "proj-1", DAILY, datetime(2024, 1, 1, 9, 0))
        recorder = SubmissionRecorder(store)

        updated = recorder.submit("org-1", "proj-1", datetime(2024, 1, 1, 10, 0))

        stored = store.get("org-1", "proj-1")
        assert stored == updated
        assert stored.streak == 1
        assert len(stored.history) == 1

    def test_submit_without_schedule_returns_none(self):
        store = InMemoryLinkStore()
        store.create("org-1", "proj-1")
        recorder = SubmissionRecorder(store)

        assert recorder.submit("org-1", "proj-1", datetime(2024, 1, 1)) is None
        assert store.get("org-1", "proj-1").history.latest is None

    def test_submit_unknown_link_raises(self):
        recorder = SubmissionRecorder(InMemoryLinkStore())
        with pytest.raises(LinkNotFound):
            recorder.submit("nope", "nope", datetime(2024, 1, 1))

    def test_store_errors_propagate_unchanged(self):
        store = InMemoryLinkStore()
        store.create("org-1", "proj-1", DAILY, datetime(2024, 1, 1, 9, 0))
        error = StoreUnavailable("disk full")
        store.put = MagicMock(side_effect=error)

        recorder = SubmissionRecorder(store)
        with pytest.raises(StoreUnavailable) as excinfo:
            recorder.submit("org-1", "proj-1", datetime(2024, 1, 1, 10, 0))
        assert excinfo.value is error
        assert store.put.call_count == 1

    def test_reschedule_recomputes_due_date(self):
        store = InMemoryLinkStore()
        store.create("org-1", "proj-1", DAILY, datetime(2024, 1, 1, 9, 0))
        recorder = SubmissionRecorder(store)
        recorder.submit("org-1", "proj-1", datetime(2024, 1, 1, 10, 0))

        updated = recorder.reschedule(
            "org-1", "proj-1",
            ReportingSchedule(ReportingInterval.MONTHLY, day_of_month=31),
            datetime(2024, 4, 15, 9, 0),
        )

        assert updated.next_due_date == datetime(2024, 4, 30, 23, 59, 59, 999000)
        assert updated.streak == 1
        assert store.get("org-1", "proj-1").next_due_date == updated.next_due_date
