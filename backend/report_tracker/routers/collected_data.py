"""
Report Tracker - Collected Data Router

Organizations submit rows of data for a project's expectations.
Every accepted row counts as a report submission for the organization's
link to the project (when that link has a schedule).
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.db_models import (
    OrganizationDB,
    CollectedDataDB,
    ProjectExpectationLinkDB,
)
from ..auth import get_current_org, require_wrangler, ensure_org_access
from ..dependencies import get_now, get_link_store, get_recorder
from ..services.compliance import LinkStore, SubmissionRecorder
from ..services.validation import validate_data
from .expectations import get_expectation_or_404
from .links import LinkResponse, to_response as link_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/data", tags=["data"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class DataSubmissionRequest(BaseModel):
    project_id: str
    expectation_id: str
    values: Dict[str, Any]
    org_id: Optional[str] = None  # Wranglers may submit on behalf of an organization


class CollectedDataResponse(BaseModel):
    id: str
    org_id: str
    project_id: str
    expectation_id: Optional[str]
    values: Dict[str, Any]
    timestamp: str


class DataSubmissionResponse(BaseModel):
    data: CollectedDataResponse
    submission_recorded: bool
    link: LinkResponse


def to_response(entry: CollectedDataDB) -> CollectedDataResponse:
    return CollectedDataResponse(
        id=entry.id,
        org_id=entry.org_id,
        project_id=entry.project_id,
        expectation_id=entry.expectation_id,
        values=entry.values,
        timestamp=entry.timestamp.isoformat(),
    )


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("", response_model=DataSubmissionResponse, status_code=201)
async def submit_data(
    request: DataSubmissionRequest,
    current_org: OrganizationDB = Depends(get_current_org),
    db: Session = Depends(get_db),
    store: LinkStore = Depends(get_link_store),
    recorder: SubmissionRecorder = Depends(get_recorder),
    now: datetime = Depends(get_now),
):
    """
    Validate and store a row of data, then record the report submission.

    Rejected with 422 and per-column errors when any value breaks its column rules.
    """
    org_id = request.org_id or current_org.id
    ensure_org_access(current_org, org_id)

    link = store.find(org_id, request.project_id)
    if link is None:
        raise HTTPException(status_code=403, detail="Organization is not linked to this project")

    expectation = get_expectation_or_404(db, request.expectation_id)
    attached = db.query(ProjectExpectationLinkDB).filter(
        ProjectExpectationLinkDB.project_id == request.project_id,
        ProjectExpectationLinkDB.expectation_id == request.expectation_id,
    ).first()
    if attached is None:
        raise HTTPException(status_code=400, detail="Expectation is not attached to this project")

    check = validate_data(request.values, expectation.columns or [])
    if not check.valid:
        raise HTTPException(status_code=422, detail={"errors": check.errors})

    column_names = [c["name"] for c in expectation.columns or []]
    entry = CollectedDataDB(
        id=str(uuid4()),
        org_id=org_id,
        project_id=request.project_id,
        expectation_id=request.expectation_id,
        values={name: request.values.get(name) for name in column_names},
        timestamp=now,
    )
    # The row is committed together with the link update; a store failure keeps neither
    db.add(entry)
    try:
        db.flush()
        updated = recorder.submit(org_id, request.project_id, now)
        if updated is None:
            db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Stored data {entry.id} from org {org_id} for project {request.project_id}")

    return DataSubmissionResponse(
        data=to_response(entry),
        submission_recorded=updated is not None,
        link=link_response(updated or link, now),
    )


@router.get("/project/{project_id}", response_model=List[CollectedDataResponse])
async def list_project_data(
    project_id: str,
    current_org: OrganizationDB = Depends(get_current_org),
    db: Session = Depends(get_db),
):
    """Wranglers see every row for the project; organizations see their own."""
    query = db.query(CollectedDataDB).filter(CollectedDataDB.project_id == project_id)
    if not current_org.is_wrangler:
        query = query.filter(CollectedDataDB.org_id == current_org.id)
    return [to_response(e) for e in query.order_by(CollectedDataDB.timestamp.desc()).all()]


@router.delete("/{data_id}")
async def delete_data(
    data_id: str,
    _: OrganizationDB = Depends(require_wrangler),
    db: Session = Depends(get_db),
):
    entry = db.query(CollectedDataDB).filter(CollectedDataDB.id == data_id).first()
    if entry is None:
        raise HTTPException(status_code=404, detail="Data entry not found")

    db.delete(entry)
    db.commit()
    return {"deleted": True, "id": data_id}
