"""
Report Tracker - Authentication Router
Handles organization login and session verification.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.db_models import OrganizationDB
from ..auth import create_access_token, get_current_org, role_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class LoginRequest(BaseModel):
    email: EmailStr


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str


class SessionResponse(BaseModel):
    id: str
    name: str
    email: str
    is_wrangler: bool
    role: str


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Log in as the organization registered under this email."""
    org = db.query(OrganizationDB).filter(
        func.lower(OrganizationDB.email) == request.email.lower()
    ).first()

    if org is None:
        logger.info(f"Login rejected for unknown email {request.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Organization not found with that email.",
        )

    role = role_for(org)
    token = create_access_token(org.id, org.email, role)
    logger.info(f"Organization {org.id} logged in as {role}")
    return TokenResponse(access_token=token, role=role)


@router.get("/me", response_model=SessionResponse)
async def get_session(current_org: OrganizationDB = Depends(get_current_org)):
    """Return the logged-in organization."""
    return SessionResponse(
        id=current_org.id,
        name=current_org.name,
        email=current_org.email,
        is_wrangler=current_org.is_wrangler,
        role=role_for(current_org),
    )
