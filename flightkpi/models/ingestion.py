"""Typed ingestion records and ingestion result models."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from flightkpi.models.flights import CamelModel, UtcTimestamp


class FlightIntention(CamelModel):
    """Flight plan record announcing a real flight."""

    plan_id: int = Field(..., description="Unique flight plan identifier; 0 means invalid")
    indicative: Optional[str] = None
    eobt: UtcTimestamp = None
    eta: UtcTimestamp = None
    flight_plan_date: UtcTimestamp = None
    current_date_time_of_arrival: UtcTimestamp = None
    start_point_indicative: Optional[str] = None
    end_point_indicative: Optional[str] = None
    aircraft_type: Optional[str] = None
    airline: Optional[str] = None
    finished: bool = False


class RealPathPing(CamelModel):
    """Raw tracking ping keyed by call sign; timestamped by its packet."""

    indicative_safe: Optional[str] = None
    latitude: float = Field(..., description="Latitude in radians")
    longitude: float = Field(..., description="Longitude in radians")
    flight_level: int = 0
    speed: int = 0
    speed_bearing: Optional[float] = None
    seq_num: int = 0
    detector_source: Optional[str] = None
    ssr_registration: Optional[str] = None
    transponder_code: Optional[int] = None


class ReplayPacket(CamelModel):
    """A normalised streaming packet."""

    flight_intentions: list[FlightIntention] = Field(default_factory=list)
    real_path: list[RealPathPing] = Field(default_factory=list)
    packet_stored_timestamp: Optional[int] = Field(
        default=None, description="Packet arrival time, epoch milliseconds"
    )
    rejected_records: int = Field(
        default=0, description="Entries dropped during normalisation"
    )


class IngestionResult(CamelModel):
    """Counts describing the outcome of ingesting one packet."""

    new_flights: int = 0
    updated_flights: int = 0
    processed_points: int = 0
    attached_points: int = 0
    discarded_points: int = 0
    duplicate_points: int = 0
    rejected_records: int = 0
    discard_reasons: dict[str, int] = Field(default_factory=dict)
    message: str = ""


class BatchProcessingResult(CamelModel):
    """Outcome of a batch upsert of predicted flights."""

    total_received: int = 0
    total_processed: int = 0
    total_skipped: int = 0
    total_failed: int = 0
    processing_time_ms: int = 0
    message: str = ""
    errors: list[str] = Field(default_factory=list)
    skipped_details: list[str] = Field(default_factory=list)
    skip_reasons: dict[str, int] = Field(default_factory=dict)


class PredictedFlightProcessingResult(CamelModel):
    """Outcome of a single predicted-flight upsert."""

    success: bool
    created: bool = False
    instance_id: Optional[int] = None
    message: str


class FlightStoreStats(CamelModel):
    """Summary of the real-flight collection."""

    total_flights: int
    flights_with_tracking: int
    total_tracking_points: int
    total_predicted_flights: int = 0


class DuplicateIndicativeAnalysis(CamelModel):
    """Call signs shared by more than one stored flight."""

    duplicate_indicatives: int
    affected_flights: int
    duplicates: dict[str, list[int]] = Field(
        default_factory=dict, description="Call sign -> plan ids sharing it"
    )

    @property
    def has_duplicates(self) -> bool:
        return self.duplicate_indicatives > 0


class FlightSearchStats(CamelModel):
    """Store-wide counts backing the search screens."""

    total_real_flights: int
    total_predicted_flights: int
    unique_real_indicatives: int
    unique_predicted_indicatives: int
    matching_rate: float = Field(
        0.0, description="Predicted flights per hundred real flights; 0 with no real flights"
    )


class DuplicateCleanupResult(CamelModel):
    """Outcome of a duplicate tracking point sweep."""

    flights_scanned: int = 0
    flights_updated: int = 0
    points_removed: int = 0
    message: str = ""


__all__ = [
    "BatchProcessingResult",
    "DuplicateCleanupResult",
    "DuplicateIndicativeAnalysis",
    "FlightIntention",
    "FlightSearchStats",
    "FlightStoreStats",
    "IngestionResult",
    "PredictedFlightProcessingResult",
    "RealPathPing",
    "ReplayPacket",
]
