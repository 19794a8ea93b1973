"""Trajectory accuracy (MSE/RMSE) between predicted routes and real tracks.

Horizontal error is the planar small-angle form
``(dlat)^2 + (dlon)^2`` in radians, converted to meters with the mean Earth
radius. Longitude differences are not scaled by ``cos(latitude)``, so
east-west error is overstated by ``1 / cos(lat)`` (about 9% around 23S).
The bias is left uncorrected.
"""

from __future__ import annotations

from collections.abc import Iterable
import logging
import math
import time
from typing import Optional

from flightkpi.models.analysis import (
    AccuracyResult,
    AggregateAccuracyMetrics,
    FlightAccuracyMetrics,
)
from flightkpi.models.flights import PredictedFlight, RealFlight
from flightkpi.services.flight_matcher import QualifiedPair
from flightkpi.services.geo_math import EARTH_RADIUS_M, flight_level_to_meters

logger = logging.getLogger("flightkpi.accuracy")


def flight_accuracy(predicted: PredictedFlight, real: RealFlight) -> FlightAccuracyMetrics | None:
    """Per-flight metrics, or ``None`` when point counts differ or are zero."""

    elements = predicted.route_elements
    points = real.tracking_points
    n = len(points)
    if n == 0 or len(elements) != n:
        return None

    h_sq_sum = 0.0
    h_abs_sum = 0.0
    h_max = 0.0
    v_sq_sum = 0.0
    v_abs_sum = 0.0
    v_max = 0.0
    for element, point in zip(elements, points):
        dlat = point.latitude - math.radians(element.latitude)
        dlon = point.longitude - math.radians(element.longitude)
        h_sq = dlat * dlat + dlon * dlon
        h_sq_sum += h_sq
        h_abs = math.sqrt(h_sq)
        h_abs_sum += h_abs
        h_max = max(h_max, h_abs)

        v_err = flight_level_to_meters(point.flight_level) - element.level_meters
        v_sq_sum += v_err * v_err
        v_abs_sum += abs(v_err)
        v_max = max(v_max, abs(v_err))

    h_mse = h_sq_sum / n
    v_mse = v_sq_sum / n
    return FlightAccuracyMetrics(
        plan_id=real.plan_id,
        predicted_indicative=predicted.indicative,
        real_indicative=real.indicative,
        point_count=n,
        horizontal_mse=h_mse,
        horizontal_rmse=math.sqrt(h_mse),
        horizontal_mse_meters=h_mse * EARTH_RADIUS_M**2,
        horizontal_rmse_meters=math.sqrt(h_mse) * EARTH_RADIUS_M,
        mean_horizontal_error=h_abs_sum / n,
        max_horizontal_error=h_max,
        mean_horizontal_error_meters=h_abs_sum / n * EARTH_RADIUS_M,
        max_horizontal_error_meters=h_max * EARTH_RADIUS_M,
        vertical_mse=v_mse,
        vertical_rmse=math.sqrt(v_mse),
        mean_vertical_error=v_abs_sum / n,
        max_vertical_error=v_max,
    )


def aggregate_accuracy(flights: list[FlightAccuracyMetrics]) -> AggregateAccuracyMetrics:
    """Pool squared errors across flights (point-count weighted)."""

    if not flights:
        return AggregateAccuracyMetrics()

    total_points = sum(f.point_count for f in flights)
    h_mse = sum(f.horizontal_mse * f.point_count for f in flights) / total_points
    v_mse = sum(f.vertical_mse * f.point_count for f in flights) / total_points
    h_rmses = [f.horizontal_rmse for f in flights]
    v_rmses = [f.vertical_rmse for f in flights]
    return AggregateAccuracyMetrics(
        total_points=total_points,
        average_points_per_flight=total_points / len(flights),
        horizontal_mse=h_mse,
        horizontal_rmse=math.sqrt(h_mse),
        horizontal_mse_meters=h_mse * EARTH_RADIUS_M**2,
        horizontal_rmse_meters=math.sqrt(h_mse) * EARTH_RADIUS_M,
        min_horizontal_rmse=min(h_rmses),
        max_horizontal_rmse=max(h_rmses),
        min_horizontal_rmse_meters=min(h_rmses) * EARTH_RADIUS_M,
        max_horizontal_rmse_meters=max(h_rmses) * EARTH_RADIUS_M,
        vertical_mse=v_mse,
        vertical_rmse=math.sqrt(v_mse),
        min_vertical_rmse=min(v_rmses),
        max_vertical_rmse=max(v_rmses),
    )


def analyze_accuracy(
    pairs: Iterable[QualifiedPair], total_qualified: Optional[int] = None
) -> AccuracyResult:
    started = time.perf_counter()
    results: list[FlightAccuracyMetrics] = []
    skipped: list[int] = []
    seen = 0

    for pair in pairs:
        seen += 1
        metrics = flight_accuracy(pair.predicted, pair.real)
        if metrics is None:
            skipped.append(pair.plan_id)
            logger.debug(
                "Plan %s skipped: %s predicted vs %s real points",
                pair.plan_id,
                len(pair.predicted.route_elements),
                len(pair.real.tracking_points),
            )
            continue
        results.append(metrics)

    qualified = seen if total_qualified is None else total_qualified
    message = (
        f"Analysis completed: {qualified} qualified flights matched, {len(results)} analyzed "
        f"successfully, {len(skipped)} skipped due to point count mismatch"
    )
    logger.info(message)
    return AccuracyResult(
        total_qualified_flights=qualified,
        total_analyzed_flights=len(results),
        total_skipped_flights=len(skipped),
        skipped_plan_ids=skipped,
        aggregate_metrics=aggregate_accuracy(results),
        flight_results=results,
        processing_time_ms=int((time.perf_counter() - started) * 1000),
        message=message,
    )


__all__ = ["aggregate_accuracy", "analyze_accuracy", "flight_accuracy"]
