"""Arrival punctuality KPI (ICAO KPI14) over tolerance windows."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
from typing import Optional

from flightkpi.models.analysis import (
    PunctualityFlightDetail,
    PunctualityResult,
    ToleranceWindowResult,
)
from flightkpi.services.time_extractor import DurationPair

logger = logging.getLogger("flightkpi.punctuality")

DEFAULT_WINDOWS: tuple[int, ...] = (3, 5, 15)


def _percentage(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(count / total * 100, 1)


def analyze_punctuality(
    durations: Sequence[DurationPair],
    windows: Sequence[int] = DEFAULT_WINDOWS,
    total_matched: Optional[int] = None,
    skip_reasons: Optional[Mapping] = None,
) -> PunctualityResult:
    """Count flights whose duration error falls within each window.

    Windows are independent and cumulative: a flight within 3 minutes is also
    counted within 5 and 15. ``total_matched`` defaults to the number of
    durations when the caller has no separate qualification count.
    """

    windows = sorted(set(windows))
    total_analyzed = len(durations)
    matched = total_analyzed if total_matched is None else total_matched
    counts = {window: 0 for window in windows}
    details: list[PunctualityFlightDetail] = []

    for duration in durations:
        delta = duration.delta_minutes
        within = [window for window in windows if delta <= window]
        for window in within:
            counts[window] += 1
        details.append(
            PunctualityFlightDetail(
                plan_id=duration.plan_id,
                indicative=duration.indicative,
                predicted_duration_ms=duration.predicted_duration_ms,
                actual_duration_ms=duration.actual_duration_ms,
                time_difference_ms=abs(
                    duration.predicted_duration_ms - duration.actual_duration_ms
                ),
                time_difference_minutes=round(delta, 2),
                within_windows=within,
            )
        )

    window_results = []
    for window in windows:
        percentage = _percentage(counts[window], total_analyzed)
        window_results.append(
            ToleranceWindowResult(
                tolerance_minutes=window,
                window_description=f"±{window} minutes",
                flights_within_tolerance=counts[window],
                percentage_within_tolerance=percentage,
                kpi_output=f"{percentage:.1f}% of flights within ±{window} minutes",
            )
        )
        logger.info("±%smin: %s/%s (%.1f%%)", window, counts[window], total_analyzed, percentage)

    reasons = {
        getattr(reason, "value", str(reason)): count
        for reason, count in (skip_reasons or {}).items()
    }
    total_skipped = sum(reasons.values())
    message = (
        f"Punctuality analysis completed: {matched} matched flights, "
        f"{total_analyzed} analyzed, {total_skipped} skipped"
    )
    logger.info(message)
    return PunctualityResult(
        total_matched=matched,
        total_analyzed=total_analyzed,
        total_skipped=total_skipped,
        skip_reasons=reasons,
        tolerance_windows=window_results,
        flight_results=details,
        message=message,
    )


__all__ = ["DEFAULT_WINDOWS", "analyze_punctuality"]
