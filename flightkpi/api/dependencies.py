"""FastAPI dependencies wiring stores and services per request."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from flightkpi.config import settings
from flightkpi.db import get_db
from flightkpi.services import (
    Densifier,
    DisambiguationConfig,
    Disambiguator,
    FlightAnalysisService,
    FlightIngestionService,
    FlightStore,
    HttpTrajectorySimulator,
    SqlFlightStore,
)


def get_store(db: Session = Depends(get_db)) -> FlightStore:
    return SqlFlightStore(db, batch_size=settings.batch_size)


def get_simulator(request: Request) -> Optional[HttpTrajectorySimulator]:
    """Simulator adapter created at startup, or None when disabled."""

    return getattr(request.app.state, "simulator", None)


def get_ingestion_service(store: FlightStore = Depends(get_store)) -> FlightIngestionService:
    return FlightIngestionService(
        store,
        Disambiguator(DisambiguationConfig.from_settings(settings)),
        batch_size=settings.batch_size,
    )


def get_analysis_service(
    store: FlightStore = Depends(get_store),
    simulator: Optional[HttpTrajectorySimulator] = Depends(get_simulator),
) -> FlightAnalysisService:
    return FlightAnalysisService.from_settings(
        store, densifier=Densifier(primary=simulator), config=settings
    )


__all__ = [
    "get_analysis_service",
    "get_ingestion_service",
    "get_simulator",
    "get_store",
]
