"""Pydantic schemas for API request/response."""

from tappark.schemas.reconciliation import SectionReconciliation
from tappark.schemas.sweep import (
    AuditEventResponse,
    SweepStatusResponse,
    SweepSummaryResponse,
)

__all__ = [
    "SweepSummaryResponse",
    "SweepStatusResponse",
    "AuditEventResponse",
    "SectionReconciliation",
]
