"""Sweep API endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, HTTPException, status

from tappark.api.v1.dependencies import SweepCoordinatorDep, TaskManager
from tappark.schemas.sweep import SweepStatusResponse, SweepSummaryResponse

router = APIRouter()


@router.post(
    "",
    response_model=SweepSummaryResponse,
    summary="Run a sweep now",
)
async def run_sweep(coordinator: SweepCoordinatorDep) -> SweepSummaryResponse:
    """
    Run one grace period sweep immediately.

    Returns a skipped summary if a sweep is already running.
    """
    summary = await coordinator.run_sweep()
    return SweepSummaryResponse(**asdict(summary))


@router.get(
    "/last",
    response_model=SweepSummaryResponse,
    summary="Get the last sweep summary",
)
async def get_last_sweep(coordinator: SweepCoordinatorDep) -> SweepSummaryResponse:
    """Get the summary of the most recent completed sweep."""
    if coordinator.last_summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No sweep has completed yet",
        )
    return SweepSummaryResponse(**asdict(coordinator.last_summary))


@router.get(
    "/status",
    response_model=SweepStatusResponse,
    summary="Get expiration engine status",
)
async def get_sweep_status(
    coordinator: SweepCoordinatorDep,
    manager: TaskManager,
) -> SweepStatusResponse:
    """Get configuration and state of the expiration engine."""
    scheduler = manager.scheduler
    last = coordinator.last_summary
    return SweepStatusResponse(
        running=coordinator.is_running,
        grace_period_minutes=coordinator.grace_period_minutes,
        interval_seconds=scheduler.interval_seconds if scheduler else 0,
        scheduler_active=bool(scheduler and scheduler.is_active),
        last_summary=SweepSummaryResponse(**asdict(last)) if last else None,
    )
