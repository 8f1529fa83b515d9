"""
Report Tracker - Organizations Router

Wrangler-managed registry of reporting organizations.
Deleting an organization removes its project links and collected data.
"""
from typing import List, Optional
from uuid import uuid4
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.db_models import OrganizationDB
from ..auth import get_current_org, require_wrangler, ensure_org_access

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations", tags=["organizations"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class OrganizationRequest(BaseModel):
    name: str
    email: EmailStr
    is_wrangler: bool = False


class OrganizationUpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    is_wrangler: Optional[bool] = None


class OrganizationResponse(BaseModel):
    id: str
    name: str
    email: str
    is_wrangler: bool


def to_response(org: OrganizationDB) -> OrganizationResponse:
    return OrganizationResponse(id=org.id, name=org.name, email=org.email, is_wrangler=org.is_wrangler)


def get_org_or_404(db: Session, org_id: str) -> OrganizationDB:
    org = db.query(OrganizationDB).filter(OrganizationDB.id == org_id).first()
    if org is None:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org


def _ensure_email_free(db: Session, email: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(OrganizationDB).filter(func.lower(OrganizationDB.email) == email.lower())
    if exclude_id:
        query = query.filter(OrganizationDB.id != exclude_id)
    if query.first() is not None:
        raise HTTPException(status_code=409, detail="An organization with that email already exists")


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.get("", response_model=List[OrganizationResponse])
async def list_organizations(
    _: OrganizationDB = Depends(require_wrangler),
    db: Session = Depends(get_db),
):
    orgs = db.query(OrganizationDB).order_by(OrganizationDB.name).all()
    return [to_response(o) for o in orgs]


@router.post("", response_model=OrganizationResponse, status_code=201)
async def create_organization(
    request: OrganizationRequest,
    _: OrganizationDB = Depends(require_wrangler),
    db: Session = Depends(get_db),
):
    _ensure_email_free(db, request.email)

    org = OrganizationDB(
        id=str(uuid4()),
        name=request.name,
        email=request.email.lower(),
        is_wrangler=request.is_wrangler,
    )
    db.add(org)
    db.commit()

    logger.info(f"Created organization {org.id} ({org.name})")
    return to_response(org)


@router.get("/{org_id}", response_model=OrganizationResponse)
async def get_organization(
    org_id: str,
    current_org: OrganizationDB = Depends(get_current_org),
    db: Session = Depends(get_db),
):
    ensure_org_access(current_org, org_id)
    return to_response(get_org_or_404(db, org_id))


@router.put("/{org_id}", response_model=OrganizationResponse)
async def update_organization(
    org_id: str,
    request: OrganizationUpdateRequest,
    _: OrganizationDB = Depends(require_wrangler),
    db: Session = Depends(get_db),
):
    org = get_org_or_404(db, org_id)

    if request.email is not None:
        _ensure_email_free(db, request.email, exclude_id=org_id)
        org.email = request.email.lower()
    if request.name is not None:
        org.name = request.name
    if request.is_wrangler is not None:
        org.is_wrangler = request.is_wrangler

    db.commit()
    return to_response(org)


@router.delete("/{org_id}")
async def delete_organization(
    org_id: str,
    current_org: OrganizationDB = Depends(require_wrangler),
    db: Session = Depends(get_db),
):
    """Delete an organization together with its links and collected data."""
    if org_id == current_org.id:
        raise HTTPException(status_code=400, detail="Cannot delete the organization you are logged in as")

    org = get_org_or_404(db, org_id)
    db.delete(org)
    db.commit()

    logger.info(f"Deleted organization {org_id}")
    return {"deleted": True, "id": org_id}
