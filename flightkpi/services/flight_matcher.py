"""Pair predicted routes with real flights and validate their airport ends.

``qualify`` is the single qualification pipeline shared by the punctuality
and accuracy analyses, so both reports always see the same flight set.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import logging
import math
from typing import Sequence

from flightkpi.config import Settings, settings as default_settings
from flightkpi.domain import AERODROME_TYPE, RejectionReason
from flightkpi.models.analysis import QualificationSummary
from flightkpi.models.flights import PredictedFlight, RealFlight, TrackingPoint
from flightkpi.services.geo_math import KM_PER_NM, haversine_km

logger = logging.getLogger("flightkpi.flight_matcher")


@dataclass(frozen=True)
class MatchingConfig:
    """Route pairs (matched in both directions) and ground-proximity limits."""

    route_pairs: tuple[tuple[str, str], ...] = (("SBSP", "SBRJ"),)
    max_distance_nm: float = 2.0
    max_flight_level: int = 4

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "MatchingConfig":
        config = config or default_settings
        return cls(
            route_pairs=tuple(tuple(pair) for pair in config.route_pairs),
            max_distance_nm=config.qualification_max_distance_nm,
            max_flight_level=config.qualification_max_flight_level,
        )

    def matches_route(self, start: str | None, end: str | None) -> bool:
        if not start or not end:
            return False
        start, end = start.upper(), end.upper()
        return any(
            (start, end) == (a, b) or (start, end) == (b, a) for a, b in self.route_pairs
        )


@dataclass
class QualifiedPair:
    """A predicted route and real flight that passed every qualification step."""

    predicted: PredictedFlight
    real: RealFlight
    departure_point: TrackingPoint
    arrival_point: TrackingPoint
    departure_distance_km: float
    arrival_distance_km: float
    origin: str
    destination: str

    @property
    def plan_id(self) -> int:
        return self.real.plan_id

    @property
    def departure_distance_nm(self) -> float:
        return self.departure_distance_km / KM_PER_NM

    @property
    def arrival_distance_nm(self) -> float:
        return self.arrival_distance_km / KM_PER_NM

    @property
    def direction(self) -> str:
        return f"{self.origin}->{self.destination}"


@dataclass
class QualificationResult:
    """Qualified pairs plus the bookkeeping needed for reporting."""

    pairs: list[QualifiedPair] = field(default_factory=list)
    total_predicted: int = 0
    total_route_matched: int = 0
    total_matched: int = 0
    rejections: Counter = field(default_factory=Counter)

    @property
    def total_qualified(self) -> int:
        return len(self.pairs)

    def direction_counts(self) -> dict[str, int]:
        return dict(sorted(Counter(pair.direction for pair in self.pairs).items()))

    def merge(self, other: "QualificationResult") -> "QualificationResult":
        """Fold another chunk's result into this one and return self."""

        self.pairs.extend(other.pairs)
        self.total_predicted += other.total_predicted
        self.total_route_matched += other.total_route_matched
        self.total_matched += other.total_matched
        self.rejections.update(other.rejections)
        return self

    def summary(self) -> QualificationSummary:
        return QualificationSummary(
            total_predicted=self.total_predicted,
            total_route_matched=self.total_route_matched,
            total_matched=self.total_matched,
            total_qualified=self.total_qualified,
            rejections={reason.value: count for reason, count in sorted(self.rejections.items())},
            direction_counts=self.direction_counts(),
            message=(
                f"{self.total_qualified} of {self.total_predicted} predicted flights qualified "
                f"({self.total_route_matched} route matches, {self.total_matched} with a real flight)"
            ),
        )


def is_route_candidate(flight: PredictedFlight, config: MatchingConfig) -> bool:
    """Route filter: configured airport pair and AERODROME elements at both ends."""

    elements = flight.route_elements
    if len(elements) < 2:
        return False
    if elements[0].element_type != AERODROME_TYPE or elements[-1].element_type != AERODROME_TYPE:
        return False
    start, end = flight.endpoint_indicatives()
    return config.matches_route(start, end)


def _point_degrees(point: TrackingPoint) -> tuple[float, float]:
    return math.degrees(point.latitude), math.degrees(point.longitude)


def qualify(
    predicted_flights: Iterable[PredictedFlight],
    real_flights: Mapping[int, RealFlight],
    config: MatchingConfig | None = None,
) -> QualificationResult:
    """Run route filter, identity match and ground-proximity validation.

    ``real_flights`` maps ``plan_id`` to the real flight. Pairs keep the order
    of ``predicted_flights``. Distances are checked before flight levels, so
    a pair failing both is counted under ``DISTANCE_EXCEEDED``.
    """

    config = config or MatchingConfig()
    result = QualificationResult()

    for predicted in predicted_flights:
        result.total_predicted += 1
        if not is_route_candidate(predicted, config):
            result.rejections[RejectionReason.NOT_ROUTE_MATCH] += 1
            continue
        result.total_route_matched += 1

        real = real_flights.get(predicted.instance_id)
        if real is None:
            result.rejections[RejectionReason.NO_REAL_FLIGHT] += 1
            logger.debug("No real flight for predicted instance %s", predicted.instance_id)
            continue
        result.total_matched += 1

        pair = _validate(predicted, real, config, result.rejections)
        if pair is not None:
            result.pairs.append(pair)

    logger.info(
        "Qualification: %s predicted, %s route matched, %s matched, %s qualified, rejections=%s",
        result.total_predicted,
        result.total_route_matched,
        result.total_matched,
        result.total_qualified,
        {reason.value: count for reason, count in result.rejections.items()},
    )
    return result


def _validate(
    predicted: PredictedFlight,
    real: RealFlight,
    config: MatchingConfig,
    rejections: Counter,
) -> QualifiedPair | None:
    points: Sequence[TrackingPoint] = real.tracking_points
    if not points:
        rejections[RejectionReason.NO_TRACKING_DATA] += 1
        return None

    departure = predicted.route_elements[0]
    arrival = predicted.route_elements[-1]
    first, last = points[0], points[-1]

    first_lat, first_lon = _point_degrees(first)
    last_lat, last_lon = _point_degrees(last)
    departure_km = haversine_km(first_lat, first_lon, departure.latitude, departure.longitude)
    arrival_km = haversine_km(last_lat, last_lon, arrival.latitude, arrival.longitude)

    max_km = config.max_distance_nm * KM_PER_NM
    if departure_km > max_km or arrival_km > max_km:
        rejections[RejectionReason.DISTANCE_EXCEEDED] += 1
        logger.debug(
            "Plan %s rejected: departure %.2f NM, arrival %.2f NM",
            real.plan_id,
            departure_km / KM_PER_NM,
            arrival_km / KM_PER_NM,
        )
        return None

    if first.flight_level > config.max_flight_level or last.flight_level > config.max_flight_level:
        rejections[RejectionReason.ALTITUDE_EXCEEDED] += 1
        logger.debug(
            "Plan %s rejected: first FL%s, last FL%s",
            real.plan_id,
            first.flight_level,
            last.flight_level,
        )
        return None

    origin, destination = predicted.endpoint_indicatives()
    return QualifiedPair(
        predicted=predicted,
        real=real,
        departure_point=first,
        arrival_point=last,
        departure_distance_km=departure_km,
        arrival_distance_km=arrival_km,
        origin=(origin or "").upper(),
        destination=(destination or "").upper(),
    )


__all__ = [
    "MatchingConfig",
    "QualificationResult",
    "QualifiedPair",
    "is_route_candidate",
    "qualify",
]
