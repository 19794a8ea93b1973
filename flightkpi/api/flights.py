from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from flightkpi.api.dependencies import get_ingestion_service, get_store
from flightkpi.models.flights import RealFlight
from flightkpi.models.ingestion import FlightSearchStats
from flightkpi.services import FlightIngestionService, FlightStore
from flightkpi.services.flight_store import DEFAULT_SEARCH_LIMIT

router = APIRouter(prefix="/api/v1/flights", tags=["flights"])


def _clean(value: Optional[str]) -> Optional[str]:
    value = value.strip() if value else None
    return value or None


@router.get(
    "",
    response_model=list[RealFlight],
    summary="Search real flights by call sign",
)
def search_flights_by_indicative(
    indicative: Optional[str] = Query(
        default=None, description="Call sign; every flight sharing it is returned"
    ),
    store: FlightStore = Depends(get_store),
) -> list[RealFlight]:
    if not indicative:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The indicative query parameter is required",
        )
    return store.find_flights_by_indicative(indicative.strip())


@router.get(
    "/search",
    response_model=list[RealFlight],
    summary="Search real flights by plan id prefix, call sign, origin or destination",
)
def search_flights(
    plan_id_prefix: Optional[str] = Query(
        default=None, alias="planIdPrefix", description="Leading digits of the plan id"
    ),
    indicative: Optional[str] = Query(default=None),
    origin: Optional[str] = Query(default=None, description="Departure aerodrome code"),
    destination: Optional[str] = Query(default=None, description="Arrival aerodrome code"),
    limit: int = Query(default=DEFAULT_SEARCH_LIMIT, ge=1, le=500),
    store: FlightStore = Depends(get_store),
) -> list[RealFlight]:
    prefix = _clean(plan_id_prefix)
    if prefix is not None and not prefix.isdigit():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="planIdPrefix must contain digits only",
        )
    criteria = {
        "plan_id_prefix": prefix,
        "indicative": _clean(indicative),
        "origin": _clean(origin),
        "destination": _clean(destination),
    }
    if all(value is None for value in criteria.values()):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one search criterion is required",
        )
    return store.search_flights(limit=limit, **criteria)


@router.get(
    "/stats",
    response_model=FlightSearchStats,
    summary="Real and predicted flight counts with distinct call signs",
)
def get_search_stats(
    service: FlightIngestionService = Depends(get_ingestion_service),
) -> FlightSearchStats:
    return service.get_search_stats()


@router.get(
    "/{plan_id}",
    response_model=RealFlight,
    summary="Look up a real flight by plan id",
)
def get_flight(plan_id: int, store: FlightStore = Depends(get_store)) -> RealFlight:
    flight = store.find_flight(plan_id)
    if flight is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Flight {plan_id} not found"
        )
    return flight
