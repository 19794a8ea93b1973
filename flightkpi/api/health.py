"""Liveness endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends

from flightkpi.api.dependencies import get_simulator
from flightkpi.config import settings
from flightkpi.services import HttpTrajectorySimulator

router = APIRouter(tags=["health"])


@router.get("/healthz", summary="Health check")
def health_check(
    simulator: Optional[HttpTrajectorySimulator] = Depends(get_simulator),
) -> dict[str, str]:
    """Report liveness, the environment and whether densification can use the simulator."""
    return {
        "status": "ok",
        "env": settings.flightkpi_env,
        "simulator": "enabled" if simulator is not None else "disabled",
    }
