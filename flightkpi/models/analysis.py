"""Analysis request and response models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from flightkpi.domain import DensificationStatus
from flightkpi.models.flights import CamelModel


class QualificationSummary(CamelModel):
    """Counts produced by the route, identity and geographic qualification."""

    total_predicted: int = Field(..., description="Predicted flights examined")
    total_route_matched: int = Field(..., description="Passed the route/AERODROME filter")
    total_matched: int = Field(..., description="Route matched and paired with a real flight")
    total_qualified: int = Field(..., description="Passed geographic and altitude validation")
    rejections: dict[str, int] = Field(default_factory=dict)
    direction_counts: dict[str, int] = Field(
        default_factory=dict, description="Qualified flights per 'FROM->TO' direction"
    )
    message: str = ""


class ToleranceWindowResult(CamelModel):
    """KPI row for one punctuality tolerance window."""

    tolerance_minutes: int
    window_description: str
    flights_within_tolerance: int
    percentage_within_tolerance: float
    kpi_output: str


class PunctualityFlightDetail(CamelModel):
    """Per-flight punctuality figures."""

    plan_id: int
    indicative: Optional[str] = None
    predicted_duration_ms: int
    actual_duration_ms: int
    time_difference_ms: int
    time_difference_minutes: float
    within_windows: list[int] = Field(default_factory=list)


class PunctualityResult(CamelModel):
    """Arrival punctuality (ICAO KPI14) analysis result."""

    total_matched: int = Field(..., description="Qualified pairs entering the analysis")
    total_analyzed: int = Field(..., description="Pairs with usable durations")
    total_skipped: int = 0
    skip_reasons: dict[str, int] = Field(default_factory=dict)
    tolerance_windows: list[ToleranceWindowResult] = Field(default_factory=list)
    flight_results: list[PunctualityFlightDetail] = Field(default_factory=list)
    qualification: Optional[QualificationSummary] = None
    analysis_timestamp: datetime = Field(default_factory=datetime.utcnow)
    message: str = ""


class FlightAccuracyMetrics(CamelModel):
    """Trajectory error figures for one equal-length predicted/real pair."""

    plan_id: int
    predicted_indicative: Optional[str] = None
    real_indicative: Optional[str] = None
    point_count: int
    horizontal_mse: float = Field(..., description="Squared radians")
    horizontal_rmse: float = Field(..., description="Radians")
    horizontal_mse_meters: float = Field(..., description="Square meters")
    horizontal_rmse_meters: float = Field(..., description="Meters")
    mean_horizontal_error: float = Field(..., description="Radians")
    max_horizontal_error: float = Field(..., description="Radians")
    mean_horizontal_error_meters: float
    max_horizontal_error_meters: float
    vertical_mse: float = Field(..., description="Square meters")
    vertical_rmse: float = Field(..., description="Meters")
    mean_vertical_error: float = Field(..., description="Mean absolute error, meters")
    max_vertical_error: float = Field(..., description="Meters")


class AggregateAccuracyMetrics(CamelModel):
    """Point-weighted (pooled) accuracy over all analyzed flights."""

    total_points: int = 0
    average_points_per_flight: float = 0.0
    horizontal_mse: float = 0.0
    horizontal_rmse: float = 0.0
    horizontal_mse_meters: float = 0.0
    horizontal_rmse_meters: float = 0.0
    min_horizontal_rmse: float = 0.0
    max_horizontal_rmse: float = 0.0
    min_horizontal_rmse_meters: float = 0.0
    max_horizontal_rmse_meters: float = 0.0
    vertical_mse: float = 0.0
    vertical_rmse: float = 0.0
    min_vertical_rmse: float = 0.0
    max_vertical_rmse: float = 0.0


class AccuracyResult(CamelModel):
    """Trajectory accuracy (MSE/RMSE) analysis result."""

    total_qualified_flights: int = 0
    total_analyzed_flights: int = 0
    total_skipped_flights: int = 0
    skipped_plan_ids: list[int] = Field(default_factory=list)
    aggregate_metrics: AggregateAccuracyMetrics = Field(
        default_factory=AggregateAccuracyMetrics
    )
    flight_results: list[FlightAccuracyMetrics] = Field(default_factory=list)
    qualification: Optional[QualificationSummary] = None
    processing_time_ms: int = 0
    message: str = ""


class DensificationOutcome(CamelModel):
    """Result of densifying one predicted route."""

    plan_id: int
    status: DensificationStatus
    message: str = ""
    original_element_count: int = 0
    final_element_count: int = 0
    target_point_count: int = 0
    simulated_points: int = 0
    linear_points: int = 0
    simulation_success_rate: float = 0.0
    processing_time_ms: int = 0
    processed_at: datetime = Field(default_factory=datetime.utcnow)
    error_details: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status == DensificationStatus.SUCCESS


class DensificationBatchRequest(CamelModel):
    """Plan identifiers to densify."""

    plan_ids: list[int] = Field(..., description="Plan identifiers to densify")


class DensificationBatchError(CamelModel):
    plan_id: int
    error: str


class DensificationBatchResult(CamelModel):
    """Aggregate outcome of a batch densification."""

    total_requested: int = 0
    total_processed: int = 0
    total_success: int = 0
    total_no_action: int = 0
    total_not_found: int = 0
    total_errors: int = 0
    processing_time_ms: int = 0
    outcomes: list[DensificationOutcome] = Field(default_factory=list)
    errors: list[DensificationBatchError] = Field(default_factory=list)
    message: str = ""


__all__ = [
    "AccuracyResult",
    "AggregateAccuracyMetrics",
    "DensificationBatchError",
    "DensificationBatchRequest",
    "DensificationBatchResult",
    "DensificationOutcome",
    "FlightAccuracyMetrics",
    "PunctualityFlightDetail",
    "PunctualityResult",
    "QualificationSummary",
    "ToleranceWindowResult",
]
