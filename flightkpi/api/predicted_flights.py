import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from flightkpi.api.dependencies import get_ingestion_service, get_store
from flightkpi.ingestors import parse_predicted_flight, parse_predicted_payload
from flightkpi.models.flights import PredictedFlight
from flightkpi.models.ingestion import BatchProcessingResult, PredictedFlightProcessingResult
from flightkpi.services import FlightIngestionService, FlightStore
from flightkpi.services.flight_store import DEFAULT_SEARCH_LIMIT

router = APIRouter(prefix="/api/v1/predicted-flights", tags=["predicted-flights"])

logger = logging.getLogger("flightkpi.api.predicted_flights")


@router.post(
    "",
    response_model=PredictedFlightProcessingResult,
    summary="Insert or replace one predicted flight",
)
def upsert_predicted_flight(
    payload: Any = Body(...),
    service: FlightIngestionService = Depends(get_ingestion_service),
) -> PredictedFlightProcessingResult:
    try:
        flight = parse_predicted_flight(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    result = service.upsert_predicted(flight)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
    return result


@router.post(
    "/batch",
    response_model=BatchProcessingResult,
    summary="Insert new predicted flights, skipping existing instance ids",
)
def process_predicted_batch(
    payload: Any = Body(...),
    service: FlightIngestionService = Depends(get_ingestion_service),
) -> BatchProcessingResult:
    if not isinstance(payload, list):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Batch payload must be a JSON array",
        )

    parsed = parse_predicted_payload(payload)
    result = service.process_predicted_batch(parsed.flights)
    if parsed.rejected:
        result.total_received += parsed.rejected
        result.total_failed += parsed.rejected
        result.errors.extend(parsed.errors)
    return result


@router.get("/stats", summary="Number of stored predicted flights")
def get_predicted_stats(store: FlightStore = Depends(get_store)) -> dict[str, int]:
    return {"totalPredictedFlights": store.count_predicted()}


@router.get(
    "/search",
    response_model=list[PredictedFlight],
    summary="Search predicted flights by call sign, origin or destination",
)
def search_predicted_flights(
    indicative: Optional[str] = Query(default=None),
    origin: Optional[str] = Query(default=None, description="Departure aerodrome code"),
    destination: Optional[str] = Query(default=None, description="Arrival aerodrome code"),
    limit: int = Query(default=DEFAULT_SEARCH_LIMIT, ge=1, le=500),
    store: FlightStore = Depends(get_store),
) -> list[PredictedFlight]:
    criteria = {
        name: value.strip()
        for name, value in (
            ("indicative", indicative),
            ("origin", origin),
            ("destination", destination),
        )
        if value and value.strip()
    }
    if not criteria:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one search criterion is required",
        )
    return store.search_predicted(limit=limit, **criteria)


@router.get(
    "/{instance_id}",
    response_model=PredictedFlight,
    summary="Look up a predicted flight by instance id",
)
def get_predicted_flight(
    instance_id: int, store: FlightStore = Depends(get_store)
) -> PredictedFlight:
    flight = store.find_predicted(instance_id)
    if flight is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Predicted flight {instance_id} not found",
        )
    return flight
