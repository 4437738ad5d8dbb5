"""API dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from tappark.database import get_db
from tappark.services.audit_service import AuditService
from tappark.services.reconciliation_service import ReconciliationService
from tappark.services.sweep_service import SweepCoordinator
from tappark.tasks import BackgroundTaskManager, background_tasks

# Type aliases
DBSession = Annotated[AsyncSession, Depends(get_db)]


def get_task_manager() -> BackgroundTaskManager:
    """Get the background task manager."""
    return background_tasks


TaskManager = Annotated[BackgroundTaskManager, Depends(get_task_manager)]


def get_sweep_coordinator(manager: TaskManager) -> SweepCoordinator:
    """Get the running sweep coordinator."""
    if manager.coordinator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Expiration engine is not running",
        )
    return manager.coordinator


def get_audit_service(db: DBSession) -> AuditService:
    """Get audit service."""
    return AuditService(db)


def get_reconciliation_service(db: DBSession) -> ReconciliationService:
    """Get reconciliation service."""
    return ReconciliationService(db)


# Annotated dependencies
SweepCoordinatorDep = Annotated[SweepCoordinator, Depends(get_sweep_coordinator)]
AuditServiceDep = Annotated[AuditService, Depends(get_audit_service)]
ReconciliationServiceDep = Annotated[
    ReconciliationService, Depends(get_reconciliation_service)
]
