"""
Report Tracker - Projects Router

Projects and the data set expectations attached to them.
Deleting a project removes its organization links, expectation links
and collected data.
"""
from typing import List, Optional
from uuid import uuid4
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.db_models import (
    OrganizationDB,
    ProjectDB,
    OrgProjectLinkDB,
    ProjectExpectationLinkDB,
)
from ..auth import get_current_org, require_wrangler
from .expectations import ExpectationResponse, get_expectation_or_404, to_response as expectation_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class ProjectRequest(BaseModel):
    name: str
    description: Optional[str] = None


class ProjectUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class ProjectResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]


def to_response(project: ProjectDB) -> ProjectResponse:
    return ProjectResponse(id=project.id, name=project.name, description=project.description)


def get_project_or_404(db: Session, project_id: str) -> ProjectDB:
    project = db.query(ProjectDB).filter(ProjectDB.id == project_id).first()
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def _ensure_project_access(db: Session, current_org: OrganizationDB, project_id: str) -> None:
    if current_org.is_wrangler:
        return
    linked = db.query(OrgProjectLinkDB).filter(
        OrgProjectLinkDB.org_id == current_org.id,
        OrgProjectLinkDB.project_id == project_id,
    ).first()
    if linked is None:
        raise HTTPException(status_code=403, detail="Organization is not linked to this project")


# =============================================================================
# PROJECT ENDPOINTS
# =============================================================================

@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    current_org: OrganizationDB = Depends(get_current_org),
    db: Session = Depends(get_db),
):
    """Wranglers see every project; organizations see the projects they are linked to."""
    query = db.query(ProjectDB)
    if not current_org.is_wrangler:
        query = query.join(OrgProjectLinkDB).filter(OrgProjectLinkDB.org_id == current_org.id)
    return [to_response(p) for p in query.order_by(ProjectDB.name).all()]


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    request: ProjectRequest,
    _: OrganizationDB = Depends(require_wrangler),
    db: Session = Depends(get_db),
):
    project = ProjectDB(id=str(uuid4()), name=request.name, description=request.description)
    db.add(project)
    db.commit()

    logger.info(f"Created project {project.id} ({project.name})")
    return to_response(project)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    current_org: OrganizationDB = Depends(get_current_org),
    db: Session = Depends(get_db),
):
    project = get_project_or_404(db, project_id)
    _ensure_project_access(db, current_org, project_id)
    return to_response(project)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    request: ProjectUpdateRequest,
    _: OrganizationDB = Depends(require_wrangler),
    db: Session = Depends(get_db),
):
    project = get_project_or_404(db, project_id)
    if request.name is not None:
        project.name = request.name
    if request.description is not None:
        project.description = request.description
    db.commit()
    return to_response(project)


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    _: OrganizationDB = Depends(require_wrangler),
    db: Session = Depends(get_db),
):
    """Delete a project together with every link and data row that references it."""
    project = get_project_or_404(db, project_id)
    db.delete(project)
    db.commit()

    logger.info(f"Deleted project {project_id}")
    return {"deleted": True, "id": project_id}


# =============================================================================
# EXPECTATION LINK ENDPOINTS
# =============================================================================

@router.get("/{project_id}/expectations", response_model=List[ExpectationResponse])
async def list_project_expectations(
    project_id: str,
    current_org: OrganizationDB = Depends(get_current_org),
    db: Session = Depends(get_db),
):
    project = get_project_or_404(db, project_id)
    _ensure_project_access(db, current_org, project_id)
    return [expectation_response(link.expectation) for link in project.expectation_links]


@router.post("/{project_id}/expectations/{expectation_id}", status_code=201)
async def link_expectation(
    project_id: str,
    expectation_id: str,
    _: OrganizationDB = Depends(require_wrangler),
    db: Session = Depends(get_db),
):
    """Attach an expectation to a project. Linking twice is a no-op."""
    get_project_or_404(db, project_id)
    get_expectation_or_404(db, expectation_id)

    existing = db.query(ProjectExpectationLinkDB).filter(
        ProjectExpectationLinkDB.project_id == project_id,
        ProjectExpectationLinkDB.expectation_id == expectation_id,
    ).first()
    if existing is None:
        db.add(ProjectExpectationLinkDB(project_id=project_id, expectation_id=expectation_id))
        db.commit()

    return {"project_id": project_id, "expectation_id": expectation_id, "linked": True}


@router.delete("/{project_id}/expectations/{expectation_id}")
async def unlink_expectation(
    project_id: str,
    expectation_id: str,
    _: OrganizationDB = Depends(require_wrangler),
    db: Session = Depends(get_db),
):
    removed = db.query(ProjectExpectationLinkDB).filter(
        ProjectExpectationLinkDB.project_id == project_id,
        ProjectExpectationLinkDB.expectation_id == expectation_id,
    ).delete()
    db.commit()

    return {"project_id": project_id, "expectation_id": expectation_id, "linked": False, "removed": removed}
