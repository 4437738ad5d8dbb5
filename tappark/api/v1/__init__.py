"""API v1 routers package."""

from tappark.api.v1.audit_events import router as audit_events_router
from tappark.api.v1.sections import router as sections_router
from tappark.api.v1.sweeps import router as sweeps_router

__all__ = [
    "sweeps_router",
    "audit_events_router",
    "sections_router",
]
