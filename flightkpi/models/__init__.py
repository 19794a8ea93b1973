"""Pydantic models for the FlightKPI backend."""

from .analysis import (
    AccuracyResult,
    AggregateAccuracyMetrics,
    DensificationBatchError,
    DensificationBatchRequest,
    DensificationBatchResult,
    DensificationOutcome,
    FlightAccuracyMetrics,
    PunctualityFlightDetail,
    PunctualityResult,
    QualificationSummary,
    ToleranceWindowResult,
)
from .flights import PredictedFlight, RealFlight, RouteElement, RouteSegment, TrackingPoint
from .ingestion import (
    BatchProcessingResult,
    DuplicateCleanupResult,
    DuplicateIndicativeAnalysis,
    FlightIntention,
    FlightSearchStats,
    FlightStoreStats,
    IngestionResult,
    PredictedFlightProcessingResult,
    RealPathPing,
    ReplayPacket,
)

__all__ = [
    "AccuracyResult",
    "AggregateAccuracyMetrics",
    "BatchProcessingResult",
    "DensificationBatchError",
    "DensificationBatchRequest",
    "DensificationBatchResult",
    "DensificationOutcome",
    "DuplicateCleanupResult",
    "DuplicateIndicativeAnalysis",
    "FlightAccuracyMetrics",
    "FlightIntention",
    "FlightSearchStats",
    "FlightStoreStats",
    "IngestionResult",
    "PredictedFlight",
    "PredictedFlightProcessingResult",
    "PunctualityFlightDetail",
    "PunctualityResult",
    "QualificationSummary",
    "RealFlight",
    "RealPathPing",
    "ReplayPacket",
    "RouteElement",
    "RouteSegment",
    "ToleranceWindowResult",
    "TrackingPoint",
]
