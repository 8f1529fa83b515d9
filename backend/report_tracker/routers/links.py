"""
Report Tracker - Reporting Links Router

Organization-project links with their reporting schedule, compliance
status, submission history and on-time streak.

Compliance is computed on read against the request's wall-clock instant;
nothing here runs on a timer.
"""
from datetime import datetime
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.db_models import OrganizationDB
from ..models.schedule import ReportingInterval, ReportingLink, ReportingSchedule
from ..auth import get_current_org, require_wrangler, ensure_org_access
from ..dependencies import get_now, get_link_store, get_recorder
from ..services.compliance import LinkStore, LinkNotFound, SubmissionRecorder, classify
from .organizations import get_org_or_404
from .projects import get_project_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/links", tags=["links"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class ScheduleRequest(BaseModel):
    """Reporting schedule. Omit the interval (or send "none") for no schedule."""
    reporting_interval: Optional[str] = None  # daily, weekly, monthly, none
    reporting_day_of_week: Optional[int] = None  # 0 (Sunday) - 6, weekly only
    reporting_day_of_month: Optional[int] = None  # 1 - 31, monthly only

    @field_validator('reporting_interval')
    @classmethod
    def validate_interval(cls, v):
        if v is not None:
            valid = [i.value for i in ReportingInterval]
            if v.lower() not in valid:
                raise ValueError(f'Invalid reporting interval. Must be one of: {", ".join(valid)}')
            return v.lower()
        return v

    def to_schedule(self) -> ReportingSchedule:
        return ReportingSchedule.from_fields(
            self.reporting_interval,
            self.reporting_day_of_week,
            self.reporting_day_of_month,
        )


class LinkRequest(ScheduleRequest):
    org_id: str
    project_id: str


class SubmissionEntry(BaseModel):
    due_date: Optional[str]
    submitted_date: str
    was_on_time: bool


class ComplianceResponse(BaseModel):
    status: str
    days_until: Optional[int]
    message: str


class LinkResponse(BaseModel):
    org_id: str
    project_id: str
    reporting_interval: str
    reporting_day_of_week: Optional[int]
    reporting_day_of_month: Optional[int]
    next_due_date: Optional[str]
    streak: int
    history: List[SubmissionEntry]
    compliance: ComplianceResponse


class SubmissionResponse(BaseModel):
    recorded: bool
    message: str
    link: LinkResponse


def to_response(link: ReportingLink, now: datetime) -> LinkResponse:
    return LinkResponse(
        org_id=link.org_id,
        project_id=link.project_id,
        reporting_interval=link.schedule.interval.value,
        reporting_day_of_week=link.schedule.day_of_week,
        reporting_day_of_month=link.schedule.day_of_month,
        next_due_date=link.next_due_date.isoformat() if link.next_due_date else None,
        streak=link.streak,
        history=[
            SubmissionEntry(
                due_date=entry.due_date.isoformat() if entry.due_date else None,
                submitted_date=entry.submitted_date.isoformat(),
                was_on_time=entry.was_on_time,
            )
            for entry in link.history
        ],
        compliance=ComplianceResponse(**classify(link, now).to_dict()),
    )


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("", response_model=LinkResponse, status_code=201)
async def link_org_to_project(
    request: LinkRequest,
    _: OrganizationDB = Depends(require_wrangler),
    db: Session = Depends(get_db),
    store: LinkStore = Depends(get_link_store),
    now: datetime = Depends(get_now),
):
    """Link an organization to a project. An existing link is returned unchanged."""
    get_org_or_404(db, request.org_id)
    get_project_or_404(db, request.project_id)

    link = store.create(request.org_id, request.project_id, request.to_schedule(), now)
    return to_response(link, now)


@router.get("/organization/{org_id}", response_model=List[LinkResponse])
async def list_links_for_org(
    org_id: str,
    current_org: OrganizationDB = Depends(get_current_org),
    store: LinkStore = Depends(get_link_store),
    now: datetime = Depends(get_now),
):
    """All of an organization's reporting links with current compliance."""
    ensure_org_access(current_org, org_id)
    return [to_response(link, now) for link in store.list_for_org(org_id)]


@router.get("/project/{project_id}", response_model=List[LinkResponse])
async def list_links_for_project(
    project_id: str,
    _: OrganizationDB = Depends(require_wrangler),
    store: LinkStore = Depends(get_link_store),
    now: datetime = Depends(get_now),
):
    return [to_response(link, now) for link in store.list_for_project(project_id)]


@router.get("/{org_id}/{project_id}", response_model=LinkResponse)
async def get_link(
    org_id: str,
    project_id: str,
    current_org: OrganizationDB = Depends(get_current_org),
    store: LinkStore = Depends(get_link_store),
    now: datetime = Depends(get_now),
):
    ensure_org_access(current_org, org_id)
    return to_response(store.get(org_id, project_id), now)


@router.put("/{org_id}/{project_id}/schedule", response_model=LinkResponse)
async def update_schedule(
    org_id: str,
    project_id: str,
    request: ScheduleRequest,
    _: OrganizationDB = Depends(require_wrangler),
    recorder: SubmissionRecorder = Depends(get_recorder),
    now: datetime = Depends(get_now),
):
    """Set or change a link's schedule. The due date is recomputed from now."""
    link = recorder.reschedule(org_id, project_id, request.to_schedule(), now)
    return to_response(link, now)


@router.post("/{org_id}/{project_id}/submissions", response_model=SubmissionResponse)
async def record_submission(
    org_id: str,
    project_id: str,
    current_org: OrganizationDB = Depends(get_current_org),
    store: LinkStore = Depends(get_link_store),
    recorder: SubmissionRecorder = Depends(get_recorder),
    now: datetime = Depends(get_now),
):
    """
    Record that a report was submitted.

    Links without a schedule are left untouched and reported as not recorded.
    """
    ensure_org_access(current_org, org_id)

    updated = recorder.submit(org_id, project_id, now)
    if updated is None:
        return SubmissionResponse(
            recorded=False,
            message="No reporting schedule set; nothing recorded",
            link=to_response(store.get(org_id, project_id), now),
        )

    latest = updated.history.latest
    return SubmissionResponse(
        recorded=True,
        message="Submitted on time" if latest.was_on_time else "Submitted late",
        link=to_response(updated, now),
    )


@router.delete("/{org_id}/{project_id}")
async def unlink_org_from_project(
    org_id: str,
    project_id: str,
    _: OrganizationDB = Depends(require_wrangler),
    store: LinkStore = Depends(get_link_store),
):
    if not store.delete(org_id, project_id):
        raise LinkNotFound(org_id, project_id)

    logger.info(f"Unlinked organization {org_id} from project {project_id}")
    return {"deleted": True, "org_id": org_id, "project_id": project_id}
