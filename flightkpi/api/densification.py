from typing import Optional

from fastapi import APIRouter, Depends, Query

from flightkpi.api.dependencies import get_analysis_service
from flightkpi.models.analysis import (
    DensificationBatchRequest,
    DensificationBatchResult,
    DensificationOutcome,
)
from flightkpi.services import FlightAnalysisService

router = APIRouter(prefix="/api/v1/densification", tags=["densification"])

_TARGET_DESCRIPTION = "Target element count; defaults to the real flight's tracking point count"


@router.post(
    "/batch",
    response_model=DensificationBatchResult,
    summary="Densify several predicted routes",
)
def densify_batch(
    request: DensificationBatchRequest,
    target: Optional[int] = Query(default=None, ge=1, description=_TARGET_DESCRIPTION),
    service: FlightAnalysisService = Depends(get_analysis_service),
) -> DensificationBatchResult:
    return service.densify_batch(request.plan_ids, target_point_count=target)


@router.post(
    "/{plan_id}",
    response_model=DensificationOutcome,
    summary="Densify one predicted route",
)
def densify_flight(
    plan_id: int,
    target: Optional[int] = Query(default=None, ge=1, description=_TARGET_DESCRIPTION),
    service: FlightAnalysisService = Depends(get_analysis_service),
) -> DensificationOutcome:
    return service.densify(plan_id, target_point_count=target)
