"""
Report Tracker - Shared FastAPI Dependencies
"""
from datetime import datetime

from fastapi import Depends
from sqlalchemy.orm import Session

from .database import get_db
from .services.compliance import LinkStore, SqlLinkStore, SubmissionRecorder


def get_now() -> datetime:
    """Local wall-clock instant used for all scheduling decisions."""
    return datetime.now()


def get_link_store(db: Session = Depends(get_db)) -> LinkStore:
    return SqlLinkStore(db)


def get_recorder(store: LinkStore = Depends(get_link_store)) -> SubmissionRecorder:
    return SubmissionRecorder(store)
