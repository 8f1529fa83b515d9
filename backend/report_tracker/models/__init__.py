"""Report Tracker - Data Models"""
from .schedule import (
    # Enums
    ReportingInterval, ComplianceStatus,
    # Errors
    InvalidSchedule,
    # Value types
    ReportingSchedule, SubmissionRecord, SubmissionHistory, ReportingLink, ComplianceResult,
    HISTORY_LIMIT,
)

__all__ = [
    "ReportingInterval", "ComplianceStatus",
    "InvalidSchedule",
    "ReportingSchedule", "SubmissionRecord", "SubmissionHistory", "ReportingLink", "ComplianceResult",
    "HISTORY_LIMIT",
]
