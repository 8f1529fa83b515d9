"""
Link Store

Persistence port for organization-project reporting links.
The scheduling functions never touch storage directly; services receive a
LinkStore and go through it for every read and write.

Implementations:
- SqlLinkStore: SQLAlchemy session over the org_project_links table
- InMemoryLinkStore: JSON records in a dict, one lock per (org, project) pair
"""
import json
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models.db_models import OrgProjectLinkDB
from ...models.schedule import (
    ReportingInterval, ReportingLink, ReportingSchedule, SubmissionHistory, SubmissionRecord,
)
from .cadence import compute_next_due

logger = logging.getLogger(__name__)


class LinkNotFound(KeyError):
    """No link exists for the (org, project) pair."""

    def __init__(self, org_id: str, project_id: str):
        super().__init__(f"No link between organization {org_id} and project {project_id}")
        self.org_id = org_id
        self.project_id = project_id


class StoreUnavailable(RuntimeError):
    """The backing store failed; callers decide whether to retry."""


class LinkStore(ABC):
    """
    Persistence port for ReportingLink records.

    Writers that read-modify-write a link must do so inside
    locked(org_id, project_id); implementations serialize those blocks per key.
    """

    @abstractmethod
    def get(self, org_id: str, project_id: str) -> ReportingLink:
        """Return the link or raise LinkNotFound."""

    @abstractmethod
    def put(self, link: ReportingLink) -> ReportingLink:
        """Persist an existing link."""

    @abstractmethod
    def _insert(self, link: ReportingLink) -> ReportingLink:
        """Persist a new link."""

    @abstractmethod
    def delete(self, org_id: str, project_id: str) -> bool:
        """Remove a link. Returns False when there was nothing to remove."""

    @abstractmethod
    def list_for_org(self, org_id: str) -> List[ReportingLink]:
        pass

    @abstractmethod
    def list_for_project(self, project_id: str) -> List[ReportingLink]:
        pass

    @abstractmethod
    def locked(self, org_id: str, project_id: str):
        """Context manager serializing writers of one link."""

    def find(self, org_id: str, project_id: str) -> Optional[ReportingLink]:
        try:
            return self.get(org_id, project_id)
        except LinkNotFound:
            return None

    def create(
        self,
        org_id: str,
        project_id: str,
        schedule: Optional[ReportingSchedule] = None,
        now: Optional[datetime] = None,
    ) -> ReportingLink:
        """
        Create the link for a pair, computing its first due date.

        At most one link exists per pair: an existing link is returned unchanged.
        """
        schedule = schedule or ReportingSchedule()
        with self.locked(org_id, project_id):
            existing = self.find(org_id, project_id)
            if existing is not None:
                return existing
            link = ReportingLink(
                org_id=org_id,
                project_id=project_id,
                schedule=schedule,
                next_due_date=compute_next_due(schedule, now),
            )
            logger.info(
                f"Linked organization {org_id} to project {project_id} "
                f"(interval={schedule.interval.value})"
            )
            return self._insert(link)


# =============================================================================
# SQLALCHEMY STORE
# =============================================================================

class SqlLinkStore(LinkStore):
    """LinkStore backed by a SQLAlchemy session. Each write commits."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def _row(self, org_id: str, project_id: str, for_update: bool = False) -> Optional[OrgProjectLinkDB]:
        query = self.db.query(OrgProjectLinkDB).filter(
            OrgProjectLinkDB.org_id == org_id,
            OrgProjectLinkDB.project_id == project_id,
        )
        if for_update:
            # Refresh rows already in the identity map with the locked values
            query = query.with_for_update().populate_existing()
        return query.first()

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Link store {action} failed: {e}")
            raise StoreUnavailable(f"Link store {action} failed") from e

    def get(self, org_id: str, project_id: str) -> ReportingLink:
        with self._guard("read"):
            row = self._row(org_id, project_id)
        if row is None:
            raise LinkNotFound(org_id, project_id)
        return row_to_link(row)

    def put(self, link: ReportingLink) -> ReportingLink:
        with self._guard("write"):
            row = self._row(link.org_id, link.project_id)
            if row is None:
                raise LinkNotFound(link.org_id, link.project_id)
            copy_link_to_row(link, row)
            self.db.commit()
        return link

    def _insert(self, link: ReportingLink) -> ReportingLink:
        with self._guard("write"):
            row = OrgProjectLinkDB(org_id=link.org_id, project_id=link.project_id)
            copy_link_to_row(link, row)
            self.db.add(row)
            self.db.commit()
        return link

    def delete(self, org_id: str, project_id: str) -> bool:
        with self._guard("delete"):
            row = self._row(org_id, project_id)
            if row is None:
                return False
            self.db.delete(row)
            self.db.commit()
        return True

    def list_for_org(self, org_id: str) -> List[ReportingLink]:
        with self._guard("read"):
            rows = self.db.query(OrgProjectLinkDB).filter(
                OrgProjectLinkDB.org_id == org_id
            ).all()
        return [row_to_link(r) for r in rows]

    def list_for_project(self, project_id: str) -> List[ReportingLink]:
        with self._guard("read"):
            rows = self.db.query(OrgProjectLinkDB).filter(
                OrgProjectLinkDB.project_id == project_id
            ).all()
        return [row_to_link(r) for r in rows]

    @contextmanager
    def locked(self, org_id: str, project_id: str) -> Iterator[None]:
        # Row lock held until the next commit/rollback (no-op on SQLite)
        with self._guard("lock"):
            self._row(org_id, project_id, for_update=True)
        try:
            yield
        except Exception:
            self.db.rollback()
            raise


def row_to_link(row: OrgProjectLinkDB) -> ReportingLink:
    return ReportingLink(
        org_id=row.org_id,
        project_id=row.project_id,
        schedule=ReportingSchedule(
            interval=ReportingInterval.parse(row.reporting_interval),
            day_of_week=row.reporting_day_of_week,
            day_of_month=row.reporting_day_of_month,
        ),
        next_due_date=row.next_due_date,
        streak=row.streak or 0,
        history=SubmissionHistory(
            tuple(SubmissionRecord.from_dict(entry) for entry in row.history or [])
        ),
    )


def copy_link_to_row(link: ReportingLink, row: OrgProjectLinkDB) -> None:
    record = link.to_record()
    row.reporting_interval = record["reportingInterval"]
    row.reporting_day_of_week = record["reportingDayOfWeek"]
    row.reporting_day_of_month = record["reportingDayOfMonth"]
    row.next_due_date = link.next_due_date
    row.streak = record["streak"]
    row.history = record["history"]


# =============================================================================
# IN-MEMORY STORE
# =============================================================================

class InMemoryLinkStore(LinkStore):
    """
    LinkStore keeping JSON-encoded records in the persisted field layout.
    Used by tests and by callers without a database.
    """

    def __init__(self):
        self._records: Dict[Tuple[str, str], str] = {}
        self._locks: Dict[Tuple[str, str], threading.RLock] = {}
        self._registry_lock = threading.Lock()

    def get(self, org_id: str, project_id: str) -> ReportingLink:
        raw = self._records.get((org_id, project_id))
        if raw is None:
            raise LinkNotFound(org_id, project_id)
        return ReportingLink.from_record(json.loads(raw))

    def put(self, link: ReportingLink) -> ReportingLink:
        if link.key not in self._records:
            raise LinkNotFound(link.org_id, link.project_id)
        self._records[link.key] = json.dumps(link.to_record())
        return link

    def _insert(self, link: ReportingLink) -> ReportingLink:
        self._records[link.key] = json.dumps(link.to_record())
        return link

    def delete(self, org_id: str, project_id: str) -> bool:
        return self._records.pop((org_id, project_id), None) is not None

    def list_for_org(self, org_id: str) -> List[ReportingLink]:
        return [self.get(*key) for key in list(self._records) if key[0] == org_id]

    def list_for_project(self, project_id: str) -> List[ReportingLink]:
        return [self.get(*key) for key in list(self._records) if key[1] == project_id]

    @contextmanager
    def locked(self, org_id: str, project_id: str) -> Iterator[None]:
        with self._registry_lock:
            lock = self._locks.setdefault((org_id, project_id), threading.RLock())
        with lock:
            yield
