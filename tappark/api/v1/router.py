"""API v1 main router."""

from fastapi import APIRouter

from tappark.api.v1.audit_events import router as audit_events_router
from tappark.api.v1.sections import router as sections_router
from tappark.api.v1.sweeps import router as sweeps_router

router = APIRouter(prefix="/v1")

router.include_router(sweeps_router, prefix="/sweeps", tags=["Sweeps"])
router.include_router(audit_events_router, prefix="/audit-events", tags=["Audit Events"])
router.include_router(sections_router, prefix="/sections", tags=["Sections"])
