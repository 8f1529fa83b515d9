"""
Report Tracker - Data Set Expectations Router

An expectation describes the columns an organization must submit for a
project, with per-column rules (required, integer-only).
"""
from typing import List, Optional
from uuid import uuid4
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.db_models import OrganizationDB, DataSetExpectationDB
from ..auth import get_current_org, require_wrangler
from ..services.validation import column_requirements

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/expectations", tags=["expectations"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class ColumnSpec(BaseModel):
    name: str
    nulls_ok: bool = False
    must_be_int: bool = False

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Column name cannot be empty')
        return v.strip()


class ColumnResponse(ColumnSpec):
    requirements: str


class ExpectationRequest(BaseModel):
    name: str
    description: Optional[str] = None
    columns: List[ColumnSpec]

    @field_validator('columns')
    @classmethod
    def validate_unique_columns(cls, v):
        names = [c.name for c in v]
        if len(names) != len(set(names)):
            raise ValueError('Column names must be unique')
        return v


class ExpectationResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    columns: List[ColumnResponse]


def to_response(expectation: DataSetExpectationDB) -> ExpectationResponse:
    return ExpectationResponse(
        id=expectation.id,
        name=expectation.name,
        description=expectation.description,
        columns=[
            ColumnResponse(**column, requirements=column_requirements(column))
            for column in expectation.columns or []
        ],
    )


def get_expectation_or_404(db: Session, expectation_id: str) -> DataSetExpectationDB:
    expectation = db.query(DataSetExpectationDB).filter(
        DataSetExpectationDB.id == expectation_id
    ).first()
    if expectation is None:
        raise HTTPException(status_code=404, detail="Expectation not found")
    return expectation


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.get("", response_model=List[ExpectationResponse])
async def list_expectations(
    _: OrganizationDB = Depends(get_current_org),
    db: Session = Depends(get_db),
):
    expectations = db.query(DataSetExpectationDB).order_by(DataSetExpectationDB.name).all()
    return [to_response(e) for e in expectations]


@router.post("", response_model=ExpectationResponse, status_code=201)
async def create_expectation(
    request: ExpectationRequest,
    _: OrganizationDB = Depends(require_wrangler),
    db: Session = Depends(get_db),
):
    expectation = DataSetExpectationDB(
        id=str(uuid4()),
        name=request.name,
        description=request.description,
        columns=[c.model_dump() for c in request.columns],
    )
    db.add(expectation)
    db.commit()

    logger.info(f"Created expectation {expectation.id} with {len(request.columns)} columns")
    return to_response(expectation)


@router.get("/{expectation_id}", response_model=ExpectationResponse)
async def get_expectation(
    expectation_id: str,
    _: OrganizationDB = Depends(get_current_org),
    db: Session = Depends(get_db),
):
    return to_response(get_expectation_or_404(db, expectation_id))


@router.put("/{expectation_id}", response_model=ExpectationResponse)
async def update_expectation(
    expectation_id: str,
    request: ExpectationRequest,
    _: OrganizationDB = Depends(require_wrangler),
    db: Session = Depends(get_db),
):
    expectation = get_expectation_or_404(db, expectation_id)
    expectation.name = request.name
    expectation.description = request.description
    expectation.columns = [c.model_dump() for c in request.columns]
    db.commit()
    return to_response(expectation)


@router.delete("/{expectation_id}")
async def delete_expectation(
    expectation_id: str,
    _: OrganizationDB = Depends(require_wrangler),
    db: Session = Depends(get_db),
):
    """Delete an expectation and detach it from every project."""
    expectation = get_expectation_or_404(db, expectation_id)
    db.delete(expectation)
    db.commit()

    logger.info(f"Deleted expectation {expectation_id}")
    return {"deleted": True, "id": expectation_id}
