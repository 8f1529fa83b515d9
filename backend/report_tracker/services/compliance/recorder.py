"""
Submission Recorder

Records that a report was submitted for a link: appends to history,
updates the on-time streak, and advances the schedule.

The next due date is anchored to the submission instant, not to the due
date that was just met. An early submission shortens the cycle; a late one
does not catch up to the original grid.
"""
import logging
from datetime import datetime
from typing import Optional

from ...models.schedule import ReportingLink, ReportingSchedule, SubmissionRecord
from .cadence import apply_schedule, compute_next_due
from .link_store import LinkStore

logger = logging.getLogger(__name__)


def record_submission(link: ReportingLink, now: Optional[datetime] = None) -> Optional[ReportingLink]:
    """
    Return the link as it stands after a submission at `now`.

    Returns None (nothing recorded) when the link has no active schedule.
    The input link is never modified.
    """
    if not link.schedule.is_active:
        return None

    if now is None:
        now = datetime.now()
    due_date = link.next_due_date
    was_on_time = due_date is not None and now <= due_date

    entry = SubmissionRecord(due_date=due_date, submitted_date=now, was_on_time=was_on_time)

    return link.evolve(
        history=link.history.prepend(entry),
        streak=link.streak + 1 if was_on_time else 0,
        next_due_date=compute_next_due(link.schedule, now),
    )


class SubmissionRecorder:
    """
    Applies schedule transitions to stored links.

    Each operation is a single read-modify-write performed under the
    store's per-link lock. Store errors propagate unchanged.
    """

    def __init__(self, store: LinkStore):
        self.store = store

    def submit(
        self,
        org_id: str,
        project_id: str,
        now: Optional[datetime] = None,
    ) -> Optional[ReportingLink]:
        """Record a submission. Returns None when the link has no schedule."""
        now = now or datetime.now()
        with self.store.locked(org_id, project_id):
            link = self.store.get(org_id, project_id)
            updated = record_submission(link, now)
            if updated is None:
                logger.warning(
                    f"Submission for org {org_id} / project {project_id} ignored: no active schedule"
                )
                return None
            self.store.put(updated)

        latest = updated.history.latest
        logger.info(
            f"Recorded submission for org {org_id} / project {project_id}: "
            f"on_time={latest.was_on_time}, streak={updated.streak}, "
            f"next_due={updated.next_due_date.isoformat()}"
        )
        return updated

    def reschedule(
        self,
        org_id: str,
        project_id: str,
        schedule: ReportingSchedule,
        now: Optional[datetime] = None,
    ) -> ReportingLink:
        """Change a link's schedule and recompute its due date from `now`."""
        with self.store.locked(org_id, project_id):
            link = self.store.get(org_id, project_id)
            updated = apply_schedule(link, schedule, now)
            self.store.put(updated)

        logger.info(
            f"Rescheduled org {org_id} / project {project_id}: "
            f"interval={schedule.interval.value}, next_due={updated.next_due_date}"
        )
        return updated
