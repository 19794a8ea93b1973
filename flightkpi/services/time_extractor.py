"""Derive predicted and actual flight durations from qualified pairs."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
import logging
from typing import Iterable, Optional

from flightkpi.domain import DurationSkipReason, parse_epoch_ms
from flightkpi.models.flights import PredictedFlight
from flightkpi.services.flight_matcher import QualifiedPair

logger = logging.getLogger("flightkpi.time_extractor")

MS_PER_MINUTE = 60_000


@dataclass(frozen=True)
class DurationPair:
    plan_id: int
    indicative: Optional[str]
    predicted_duration_ms: int
    actual_duration_ms: int

    @property
    def delta_minutes(self) -> float:
        return abs(self.predicted_duration_ms - self.actual_duration_ms) / MS_PER_MINUTE


@dataclass
class DurationExtraction:
    durations: list[DurationPair] = field(default_factory=list)
    skipped: Counter = field(default_factory=Counter)

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped.values())


def parse_time_window(raw: str | None) -> tuple[int, int] | None:
    """Parse ``"[start,end]"`` into epoch milliseconds.

    Returns ``None`` unless both ends parse and the end is not before the start.
    """

    if not raw:
        return None
    body = raw.strip()
    if body.startswith("["):
        body = body[1:]
    if body.endswith("]"):
        body = body[:-1]
    parts = body.split(",")
    if len(parts) != 2:
        return None
    start = parse_epoch_ms(parts[0])
    end = parse_epoch_ms(parts[1])
    if start is None or end is None or end < start:
        return None
    return start, end


def predicted_duration_ms(flight: PredictedFlight) -> int | None:
    """Predicted duration from the time window, else the summed EET minutes."""

    window = parse_time_window(flight.time_window)
    if window is not None:
        return window[1] - window[0]

    total_minutes = sum(element.eet_minutes for element in flight.route_elements)
    if total_minutes <= 0:
        return None
    logger.debug(
        "Instance %s: unparseable time window %r, using summed EET",
        flight.instance_id,
        flight.time_window,
    )
    return int(round(total_minutes * MS_PER_MINUTE))


def extract_durations(
    pair: QualifiedPair, skipped: Counter | None = None
) -> DurationPair | None:
    """Return both durations, or ``None`` (recording why in ``skipped``)."""

    def skip(reason: DurationSkipReason) -> None:
        if skipped is not None:
            skipped[reason] += 1
        logger.debug("Plan %s skipped for punctuality: %s", pair.plan_id, reason.value)

    departed = pair.departure_point.timestamp
    arrived = pair.arrival_point.timestamp
    if departed is None or arrived is None:
        skip(DurationSkipReason.MISSING_TIMESTAMP)
        return None
    if arrived < departed:
        skip(DurationSkipReason.NON_MONOTONIC)
        return None

    predicted = predicted_duration_ms(pair.predicted)
    if predicted is None:
        skip(DurationSkipReason.UNPARSEABLE_PREDICTION)
        return None

    return DurationPair(
        plan_id=pair.plan_id,
        indicative=pair.real.indicative or pair.predicted.indicative,
        predicted_duration_ms=predicted,
        actual_duration_ms=arrived - departed,
    )


def extract_all(pairs: Iterable[QualifiedPair]) -> DurationExtraction:
    extraction = DurationExtraction()
    for pair in pairs:
        duration = extract_durations(pair, extraction.skipped)
        if duration is not None:
            extraction.durations.append(duration)
    return extraction


__all__ = [
    "DurationExtraction",
    "DurationPair",
    "MS_PER_MINUTE",
    "extract_all",
    "extract_durations",
    "parse_time_window",
    "predicted_duration_ms",
]
