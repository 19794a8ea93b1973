"""API routers for the FlightKPI backend."""

from fastapi import APIRouter

from .analysis import router as analysis_router
from .densification import router as densification_router
from .flights import router as flights_router
from .health import router as health_router
from .predicted_flights import router as predicted_flights_router
from .streaming import router as streaming_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(streaming_router)
api_router.include_router(predicted_flights_router)
api_router.include_router(flights_router)
api_router.include_router(analysis_router)
api_router.include_router(densification_router)

__all__ = ["api_router"]
