"""
Report Tracker - Authentication Utilities
JWT tokens and auth dependencies. Organizations log in by email.
"""
import os
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from .database import get_db
from .models.db_models import OrganizationDB

# Configuration
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "report-tracker-secret-key-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS = int(os.getenv("ACCESS_TOKEN_EXPIRE_HOURS", "24"))

ROLE_WRANGLER = "wrangler"
ROLE_ORGANIZATION = "organization"

# Bearer token security
security = HTTPBearer()


def role_for(org: OrganizationDB) -> str:
    return ROLE_WRANGLER if org.is_wrangler else ROLE_ORGANIZATION


def create_access_token(org_id: str, email: str, role: str = ROLE_ORGANIZATION) -> str:
    """Create a JWT access token with role claim."""
    expire = datetime.utcnow() + timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS)
    to_encode = {
        "sub": org_id,
        "email": email,
        "role": role,
        "exp": expire
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT token. Expired tokens fail validation."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None


async def get_current_org(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> OrganizationDB:
    """
    Dependency to get the logged-in organization.
    Validates JWT token and fetches the organization from database.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    org_id: str = payload.get("sub")
    if org_id is None:
        raise credentials_exception

    org = db.query(OrganizationDB).filter(OrganizationDB.id == org_id).first()
    if org is None:
        raise credentials_exception

    return org


async def require_wrangler(current_org: OrganizationDB = Depends(get_current_org)) -> OrganizationDB:
    """
    Dependency to require the wrangler role.
    Use this on administration routes.
    """
    if not current_org.is_wrangler:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Wrangler access required"
        )
    return current_org


def ensure_org_access(current_org: OrganizationDB, org_id: str) -> None:
    """Organizations may only act on their own records; wranglers on any."""
    if not current_org.is_wrangler and current_org.id != org_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to access another organization's records"
        )
