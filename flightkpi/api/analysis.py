import logging

from fastapi import APIRouter, Depends

from flightkpi.api.dependencies import get_analysis_service
from flightkpi.models.analysis import AccuracyResult, PunctualityResult, QualificationSummary
from flightkpi.services import FlightAnalysisService

router = APIRouter(prefix="/api/v1", tags=["analysis"])

logger = logging.getLogger("flightkpi.api.analysis")


@router.get(
    "/punctuality/qualification",
    response_model=QualificationSummary,
    summary="Report how stored predictions fare in route and ground-proximity qualification",
)
def get_qualification(
    service: FlightAnalysisService = Depends(get_analysis_service),
) -> QualificationSummary:
    return service.qualification_report()


@router.post(
    "/punctuality/analysis",
    response_model=PunctualityResult,
    summary="Run the arrival punctuality (ICAO KPI14) analysis",
)
def run_punctuality_analysis(
    service: FlightAnalysisService = Depends(get_analysis_service),
) -> PunctualityResult:
    result = service.run_punctuality_analysis()
    logger.info(
        "Punctuality analysis: matched=%s analyzed=%s skipped=%s",
        result.total_matched,
        result.total_analyzed,
        result.total_skipped,
    )
    return result


@router.post(
    "/accuracy/analysis",
    response_model=AccuracyResult,
    summary="Run the trajectory accuracy (MSE/RMSE) analysis",
)
def run_accuracy_analysis(
    service: FlightAnalysisService = Depends(get_analysis_service),
) -> AccuracyResult:
    result = service.run_accuracy_analysis()
    logger.info(
        "Accuracy analysis: qualified=%s analyzed=%s skipped=%s",
        result.total_qualified_flights,
        result.total_analyzed_flights,
        result.total_skipped_flights,
    )
    return result
