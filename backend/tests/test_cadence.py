"""
Tests for the cadence rule (due date computation).

Covers:
1. No schedule → no due date
2. Daily: end of the current day, stable within a day
3. Weekly: next occurrence of the target weekday, never today
4. Monthly: same month until the target day is reached, clamped to month length
5. Schedule boundary validation and field normalization
"""
import pytest
from datetime import datetime, timedelta

from report_tracker.models.schedule import (
    InvalidSchedule,
    ReportingInterval,
    ReportingLink,
    ReportingSchedule,
    SubmissionRecord,
)
from report_tracker.services.compliance.cadence import (
    apply_schedule,
    compute_next_due,
    days_in_month,
    end_of_day,
    weekday_index,
)


def daily():
    return ReportingSchedule(ReportingInterval.DAILY)


def weekly(day=None):
    return ReportingSchedule(ReportingInterval.WEEKLY, day_of_week=day)


def monthly(day=None):
    return ReportingSchedule(ReportingInterval.MONTHLY, day_of_month=day)


# =============================================================================
# TEST: HELPERS
# =============================================================================

class TestHelpers:

    def test_end_of_day(self):
        assert end_of_day(datetime(2024, 5, 6, 0, 0)) == datetime(2024, 5, 6, 23, 59, 59, 999000)

    def test_days_in_month_leap_february(self):
        assert days_in_month(2024, 2) == 29
        assert days_in_month(2023, 2) == 28
        assert days_in_month(2024, 4) == 30

    def test_weekday_index_starts_on_sunday(self):
        assert weekday_index(datetime(2024, 1, 7)) == 0  # Sunday
        assert weekday_index(datetime(2024, 1, 1)) == 1  # Monday
        assert weekday_index(datetime(2024, 1, 6)) == 6  # Saturday


# =============================================================================
# TEST: NO SCHEDULE
# =============================================================================

class TestNoSchedule:

    def test_none_interval_has_no_due_date(self):
        assert compute_next_due(ReportingSchedule(), datetime(2024, 1, 1)) is None

    def test_from_defaults_to_now(self):
        due = compute_next_due(daily())
        assert due == end_of_day(datetime.now()) or due == end_of_day(datetime.now() - timedelta(seconds=1))


# =============================================================================
# TEST: DAILY
# =============================================================================

class TestDaily:

    def test_due_end_of_same_day(self):
        assert compute_next_due(daily(), datetime(2024, 3, 10, 8, 0)) == datetime(2024, 3, 10, 23, 59, 59, 999000)

    def test_same_day_calls_are_identical(self):
        morning = compute_next_due(daily(), datetime(2024, 3, 10, 0, 0, 1))
        evening = compute_next_due(daily(), datetime(2024, 3, 10, 23, 59, 59))
        assert morning == evening

    def test_next_day_is_one_day_later(self):
        first = compute_next_due(daily(), datetime(2024, 3, 10, 12, 0))
        second = compute_next_due(daily(), datetime(2024, 3, 11, 6, 0))
        assert second - first == timedelta(days=1)

    def test_no_adjustment_late_in_day(self):
        late = datetime(2024, 3, 10, 23, 59, 59, 999000)
        assert compute_next_due(daily(), late) == late


# =============================================================================
# TEST: WEEKLY
# =============================================================================

class TestWeekly:

    def test_later_weekday_same_week(self):
        # Monday → Wednesday
        due = compute_next_due(weekly(3), datetime(2024, 1, 1, 9, 0))
        assert due == datetime(2024, 1, 3, 23, 59, 59, 999000)

    def test_target_today_rolls_full_week(self):
        # Wednesday → next Wednesday, never today
        due = compute_next_due(weekly(3), datetime(2024, 1, 3, 8, 0))
        assert due == datetime(2024, 1, 10, 23, 59, 59, 999000)

    def test_earlier_weekday_wraps_to_next_week(self):
        # Friday → Tuesday
        due = compute_next_due(weekly(2), datetime(2024, 1, 5, 12, 0))
        assert due == datetime(2024, 1, 9, 23, 59, 59, 999000)

    def test_unset_day_defaults_to_sunday(self):
        due = compute_next_due(weekly(None), datetime(2024, 1, 3, 12, 0))
        assert due == datetime(2024, 1, 7, 23, 59, 59, 999000)
        assert weekday_index(due) == 0

    @pytest.mark.parametrize("target", range(7))
    def test_due_is_within_one_to_seven_days_on_target(self, target):
        # Every weekday of one week, from the target's own day
        for offset in range(7):
            start = datetime(2024, 1, 7, 10, 15) + timedelta(days=offset)
            due = compute_next_due(weekly(target), start)
            assert due > start
            assert weekday_index(due) == target
            day_gap = (due.date() - start.date()).days
            assert 1 <= day_gap <= 7


# =============================================================================
# TEST: MONTHLY
# =============================================================================

class TestMonthly:

    def test_target_later_this_month(self):
        due = compute_next_due(monthly(20), datetime(2024, 6, 5, 12, 0))
        assert due == datetime(2024, 6, 20, 23, 59, 59, 999000)

    def test_target_reached_moves_to_next_month(self):
        due = compute_next_due(monthly(5), datetime(2024, 6, 5, 1, 0))
        assert due == datetime(2024, 7, 5, 23, 59, 59, 999000)

    def test_day_31_clamped_in_april(self):
        due = compute_next_due(monthly(31), datetime(2024, 4, 15, 9, 0))
        assert due == datetime(2024, 4, 30, 23, 59, 59, 999000)

    def test_day_31_from_last_day_of_april(self):
        # 30 < 31, so April is the computed month; clamped to its last day
        due = compute_next_due(monthly(31), datetime(2024, 4, 30, 9, 0))
        assert due == datetime(2024, 4, 30, 23, 59, 59, 999000)

    def test_day_one_always_next_month(self):
        for day in (1, 15, 30):
            due = compute_next_due(monthly(1), datetime(2024, 4, day, 9, 0))
            assert due == datetime(2024, 5, 1, 23, 59, 59, 999000)

    def test_unset_day_defaults_to_first(self):
        due = compute_next_due(monthly(None), datetime(2024, 4, 10))
        assert due == datetime(2024, 5, 1, 23, 59, 59, 999000)

    def test_december_rolls_into_next_year(self):
        due = compute_next_due(monthly(10), datetime(2024, 12, 15, 9, 0))
        assert due == datetime(2025, 1, 10, 23, 59, 59, 999000)

    def test_leap_year_february_29(self):
        due = compute_next_due(monthly(29), datetime(2024, 1, 31, 9, 0))
        assert due == datetime(2024, 2, 29, 23, 59, 59, 999000)

    def test_non_leap_february_clamped_to_28(self):
        due = compute_next_due(monthly(30), datetime(2023, 1, 30, 9, 0))
        assert due == datetime(2023, 2, 28, 23, 59, 59, 999000)

    def test_day_31_from_january_31_lands_in_february(self):
        due = compute_next_due(monthly(31), datetime(2024, 1, 31, 9, 0))
        assert due == datetime(2024, 2, 29, 23, 59, 59, 999000)


# =============================================================================
# TEST: SCHEDULE BOUNDARY
# =============================================================================

class TestScheduleBoundary:

    @pytest.mark.parametrize("day", [-1, 7, 10])
    def test_day_of_week_out_of_range_rejected(self, day):
        with pytest.raises(InvalidSchedule):
            ReportingSchedule.from_fields("weekly", day_of_week=day)

    @pytest.mark.parametrize("day", [0, 32])
    def test_day_of_month_out_of_range_rejected(self, day):
        with pytest.raises(InvalidSchedule):
            ReportingSchedule.from_fields("monthly", day_of_month=day)

    def test_out_of_range_rejected_even_when_unused(self):
        with pytest.raises(InvalidSchedule):
            ReportingSchedule.from_fields("daily", day_of_month=40)

    def test_unknown_interval_rejected(self):
        with pytest.raises(InvalidSchedule):
            ReportingSchedule.from_fields("hourly")

    def test_irrelevant_day_fields_cleared(self):
        schedule = ReportingSchedule.from_fields("weekly", day_of_week=2, day_of_month=15)
        assert schedule.day_of_week == 2
        assert schedule.day_of_month is None

        schedule = ReportingSchedule.from_fields("monthly", day_of_week=2, day_of_month=15)
        assert schedule.day_of_week is None
        assert schedule.day_of_month == 15

    def test_missing_interval_means_no_schedule(self):
        assert ReportingSchedule.from_fields(None).interval == ReportingInterval.NONE
        assert ReportingSchedule.from_fields("").is_active is False

    def test_direct_construction_fails_fast(self):
        with pytest.raises(InvalidSchedule):
            ReportingSchedule(ReportingInterval.WEEKLY, day_of_week=9)

    @pytest.mark.parametrize("day", ["3", 3.0, False])
    def test_non_integer_day_rejected(self, day):
        with pytest.raises(InvalidSchedule):
            ReportingSchedule(ReportingInterval.WEEKLY, day_of_week=day)


# =============================================================================
# TEST: APPLY SCHEDULE
# =============================================================================

class TestApplySchedule:

    def test_recomputes_due_date_and_keeps_progress(self):
        entry = SubmissionRecord(datetime(2024, 1, 1, 23, 59), datetime(2024, 1, 1, 10, 0), True)
        link = ReportingLink("org", "proj", daily(), datetime(2024, 1, 1, 23, 59), streak=4, history=(entry,))

        updated = apply_schedule(link, monthly(15), datetime(2024, 1, 2, 8, 0))

        assert updated.schedule == monthly(15)
        assert updated.next_due_date == datetime(2024, 1, 15, 23, 59, 59, 999000)
        assert updated.streak == 4
        assert list(updated.history) == [entry]
        assert link.schedule == daily()

    def test_clearing_schedule_clears_due_date(self):
        link = ReportingLink("org", "proj", daily(), datetime(2024, 1, 1, 23, 59))
        updated = apply_schedule(link, ReportingSchedule(), datetime(2024, 1, 2))
        assert updated.next_due_date is None
