"""
Compliance Scheduling Services

Cadence rule → due dates
Classifier   → status tier relative to now
Recorder     → submission history, streak, schedule advance
Link store   → persistence port for reporting links
"""

from .cadence import compute_next_due, apply_schedule, end_of_day
from .classifier import classify
from .recorder import record_submission, SubmissionRecorder
from .link_store import (
    LinkStore,
    SqlLinkStore,
    InMemoryLinkStore,
    LinkNotFound,
    StoreUnavailable,
)

__all__ = [
    'compute_next_due',
    'apply_schedule',
    'end_of_day',
    'classify',
    'record_submission',
    'SubmissionRecorder',
    # Persistence port
    'LinkStore',
    'SqlLinkStore',
    'InMemoryLinkStore',
    'LinkNotFound',
    'StoreUnavailable',
]
