import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from flightkpi.api.dependencies import get_ingestion_service, get_store
from flightkpi.ingestors import parse_replay_packet
from flightkpi.models.ingestion import (
    DuplicateCleanupResult,
    DuplicateIndicativeAnalysis,
    FlightStoreStats,
    IngestionResult,
)
from flightkpi.services import FlightIngestionService, FlightStore

router = APIRouter(prefix="/api/v1/streaming", tags=["streaming"])

logger = logging.getLogger("flightkpi.api.streaming")


@router.post(
    "/packet",
    response_model=IngestionResult,
    summary="Ingest one replay packet of flight intentions and tracking pings",
)
def ingest_packet(
    payload: Any = Body(...),
    service: FlightIngestionService = Depends(get_ingestion_service),
) -> IngestionResult:
    try:
        packet = parse_replay_packet(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    result = service.process_packet(packet)
    logger.info(
        "Packet ingested: new=%s updated=%s attached=%s discarded=%s",
        result.new_flights,
        result.updated_flights,
        result.attached_points,
        result.discarded_points,
    )
    return result


@router.get(
    "/stats",
    response_model=FlightStoreStats,
    summary="Summary of stored real flights",
)
def get_stats(
    service: FlightIngestionService = Depends(get_ingestion_service),
) -> FlightStoreStats:
    return service.get_stats()


@router.get(
    "/duplicate-indicatives",
    response_model=DuplicateIndicativeAnalysis,
    summary="Call signs shared by several stored flights",
)
def get_duplicate_indicatives(
    service: FlightIngestionService = Depends(get_ingestion_service),
) -> DuplicateIndicativeAnalysis:
    return service.analyze_duplicate_indicatives()


@router.get(
    "/plan-ids",
    response_model=list[int],
    summary="Plan ids of every stored real flight, ascending",
)
def list_plan_ids(store: FlightStore = Depends(get_store)) -> list[int]:
    return store.list_flight_keys()


@router.post(
    "/cleanup-duplicates",
    response_model=DuplicateCleanupResult,
    summary="Remove repeated tracking points from stored flights",
)
def cleanup_duplicates(
    service: FlightIngestionService = Depends(get_ingestion_service),
) -> DuplicateCleanupResult:
    return service.cleanup_duplicate_tracking_points()
