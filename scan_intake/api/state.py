from fastapi import APIRouter, Depends

from scan_intake.dependencies import get_intake_config, get_intake_service
from scan_intake.core.domain_objects import IntakeConfiguration
from scan_intake.models import IntakeStatisticsSnapshot
from scan_intake.services.intake_service import IntakeService

router = APIRouter(prefix="/api/state", tags=["state"])


@router.get("", response_model=IntakeStatisticsSnapshot)
async def get_state(
    service: IntakeService = Depends(get_intake_service),
) -> IntakeStatisticsSnapshot:
    """Counters per outcome and reason, queue depth and watcher status."""
    return service.snapshot()


@router.get("/config")
async def get_config(
    config: IntakeConfiguration = Depends(get_intake_config),
) -> dict:
    return {
        "directories": {role: str(path) for role, path in config.directories},
        "accepted_extensions": list(config.accepted_extensions),
        "poll_timeout_ms": config.poll_timeout_ms,
        "reconcile_interval_seconds": config.reconcile_interval_seconds,
        "stability": {
            "interval_seconds": config.stability.interval_seconds,
            "min_idle_seconds": config.stability.min_idle_seconds,
            "max_attempts": config.stability.max_attempts,
            "consecutive_matches": config.stability.consecutive_matches,
        },
        "worker_count": config.worker_count,
        "queue_capacity": config.queue_capacity,
        "shutdown_grace_seconds": config.shutdown_grace_seconds,
        "render_dpi": config.render_dpi,
    }
