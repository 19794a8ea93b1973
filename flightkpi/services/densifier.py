"""Expand sparse predicted routes to a target point count.

New points are spread over the route's segments in proportion to each
segment's share of estimated elapsed time, then produced by a primary point
generator (normally the external trajectory simulator) with a deterministic
linear fallback for every point the primary could not deliver.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
import logging
import time
from typing import Optional, Protocol, Sequence

from flightkpi.domain import (
    LINEAR_ELEMENT_TYPE,
    SIMULATED_ELEMENT_TYPE,
    DensificationStatus,
)
from flightkpi.models.analysis import DensificationOutcome
from flightkpi.models.flights import PredictedFlight, RouteElement, RouteSegment
from flightkpi.services.geo_math import haversine_nm, interpolate_along_bearing, lerp

logger = logging.getLogger("flightkpi.densifier")


class SimulationError(Exception):
    """Raised by a point generator that could not produce any points."""


@dataclass(frozen=True)
class GeneratedPoint:
    """An intermediate route point; coordinates in degrees, altitude in meters."""

    latitude: float
    longitude: float
    level_meters: float
    speed_meter_per_second: float
    eet_minutes: float


class PointGenerator(Protocol):
    """Produces ``count`` intermediate points between two route elements.

    Slot ``i`` of the returned sequence is the point at fraction
    ``(i + 1) / (count + 1)`` of the segment's elapsed-time span; its EET is
    reassigned from that fraction whatever the generator returns. A ``None``
    entry, or a sequence shorter than ``count``, marks points that failed.
    """

    def generate(
        self,
        flight: PredictedFlight,
        start: RouteElement,
        end: RouteElement,
        count: int,
    ) -> Sequence[Optional[GeneratedPoint]]:
        ...


class LinearInterpolator:
    """Great-circle position and linear altitude/speed interpolation."""

    def point_at(self, start: RouteElement, end: RouteElement, fraction: float) -> GeneratedPoint:
        latitude, longitude = interpolate_along_bearing(
            start.latitude, start.longitude, end.latitude, end.longitude, fraction
        )
        return GeneratedPoint(
            latitude=latitude,
            longitude=longitude,
            level_meters=lerp(start.level_meters, end.level_meters, fraction),
            speed_meter_per_second=lerp(
                start.speed_meter_per_second, end.speed_meter_per_second, fraction
            ),
            eet_minutes=lerp(start.eet_minutes, end.eet_minutes, fraction),
        )

    def generate(
        self,
        flight: PredictedFlight,
        start: RouteElement,
        end: RouteElement,
        count: int,
    ) -> list[GeneratedPoint]:
        return [self.point_at(start, end, (i + 1) / (count + 1)) for i in range(count)]


@dataclass
class DensificationRun:
    """The densified flight (or the untouched input) and its outcome."""

    flight: PredictedFlight
    outcome: DensificationOutcome

    @property
    def changed(self) -> bool:
        return self.outcome.status == DensificationStatus.SUCCESS


def allocate_points(eet_minutes: Sequence[float], extra: int) -> list[int]:
    """Split ``extra`` new points over ``len(eet_minutes) - 1`` segments.

    Each segment receives ``floor(extra * span / total_span)``; the rounding
    remainder is dropped, never redistributed. Negative spans count as zero
    and a route without any elapsed-time spread is split evenly.
    """

    segment_count = len(eet_minutes) - 1
    if segment_count <= 0 or extra <= 0:
        return [0] * max(segment_count, 0)

    spans = [max(0.0, eet_minutes[i + 1] - eet_minutes[i]) for i in range(segment_count)]
    total = sum(spans)
    if total <= 0:
        spans = [1.0] * segment_count
        total = float(segment_count)
    return [int(extra * span / total) for span in spans]


def _inserted_element(point: GeneratedPoint, element_type: str) -> RouteElement:
    return RouteElement(
        element_type=element_type,
        latitude=point.latitude,
        longitude=point.longitude,
        level_meters=point.level_meters,
        speed_meter_per_second=point.speed_meter_per_second,
        eet_minutes=point.eet_minutes,
        interpolated=True,
    )


def renumber(elements: list[RouteElement]) -> list[RouteSegment]:
    """Assign sequential ids and sequence numbers; return rebuilt segments."""

    for index, element in enumerate(elements, start=1):
        element.id = index
        element.sequence_number = index

    segments = []
    for index in range(len(elements) - 1):
        a, b = elements[index], elements[index + 1]
        segments.append(
            RouteSegment(
                id=index + 1,
                element_a_id=a.id,
                element_b_id=b.id,
                distance=haversine_nm(a.latitude, a.longitude, b.latitude, b.longitude),
            )
        )
    return segments


class Densifier:
    """Try-primary-then-fallback densification of predicted routes."""

    def __init__(
        self,
        primary: PointGenerator | None = None,
        fallback: LinearInterpolator | None = None,
    ) -> None:
        self.primary = primary
        self.fallback = fallback or LinearInterpolator()

    def densify(self, flight: PredictedFlight, target_point_count: int) -> DensificationRun:
        started = time.perf_counter()
        original = flight.route_elements
        original_count = len(original)

        def outcome(status: DensificationStatus, message: str, **extra) -> DensificationOutcome:
            return DensificationOutcome(
                plan_id=flight.instance_id,
                status=status,
                message=message,
                original_element_count=original_count,
                target_point_count=target_point_count,
                processing_time_ms=int((time.perf_counter() - started) * 1000),
                processed_at=datetime.utcnow(),
                **extra,
            )

        if original_count >= target_point_count:
            return DensificationRun(
                flight=flight,
                outcome=outcome(
                    DensificationStatus.NO_ACTION_NEEDED,
                    f"Route already has {original_count} elements (target {target_point_count})",
                    final_element_count=original_count,
                ),
            )
        if original_count < 2:
            return DensificationRun(
                flight=flight,
                outcome=outcome(
                    DensificationStatus.ERROR,
                    "Route needs at least two elements to densify",
                    final_element_count=original_count,
                    error_details=f"{original_count} route elements",
                ),
            )

        allocation = allocate_points(
            [element.eet_minutes for element in original], target_point_count - original_count
        )
        densified = flight.model_copy(deep=True)
        elements: list[RouteElement] = []
        simulated = 0
        linear = 0

        for index, count in enumerate(allocation):
            start = densified.route_elements[index]
            end = densified.route_elements[index + 1]
            elements.append(start)
            if count == 0:
                continue
            points, from_primary = self._generate(densified, start, end, count)
            for point, primary_point in zip(points, from_primary):
                element_type = SIMULATED_ELEMENT_TYPE if primary_point else LINEAR_ELEMENT_TYPE
                elements.append(_inserted_element(point, element_type))
            simulated += sum(from_primary)
            linear += count - sum(from_primary)
        elements.append(densified.route_elements[-1])

        densified.route_elements = elements
        densified.route_segments = renumber(elements)

        final_count = len(elements)
        generated = simulated + linear
        rate = simulated / generated * 100 if generated else 0.0
        message = (
            f"Densified from {original_count} to {final_count} elements "
            f"(target {target_point_count}); {simulated} simulated, {linear} linear"
        )
        if final_count < target_point_count:
            message += f"; {target_point_count - final_count} short from rounding"
        logger.info("Plan %s: %s", flight.instance_id, message)

        return DensificationRun(
            flight=densified,
            outcome=outcome(
                DensificationStatus.SUCCESS,
                message,
                final_element_count=final_count,
                simulated_points=simulated,
                linear_points=linear,
                simulation_success_rate=rate,
            ),
        )

    def _generate(
        self,
        flight: PredictedFlight,
        start: RouteElement,
        end: RouteElement,
        count: int,
    ) -> tuple[list[GeneratedPoint], list[bool]]:
        primary_points: Sequence[Optional[GeneratedPoint]] = []
        if self.primary is not None:
            try:
                primary_points = self.primary.generate(flight, start, end, count)
            except SimulationError as exc:
                logger.warning(
                    "Simulator failed for plan %s segment %s->%s: %s",
                    flight.instance_id,
                    start.indicative,
                    end.indicative,
                    exc,
                )
                primary_points = []

        points: list[GeneratedPoint] = []
        from_primary: list[bool] = []
        for slot in range(count):
            fraction = (slot + 1) / (count + 1)
            candidate = primary_points[slot] if slot < len(primary_points) else None
            if candidate is not None:
                # elapsed time always follows the slot position
                points.append(
                    replace(candidate, eet_minutes=lerp(start.eet_minutes, end.eet_minutes, fraction))
                )
                from_primary.append(True)
            else:
                points.append(self.fallback.point_at(start, end, fraction))
                from_primary.append(False)
        return points, from_primary


__all__ = [
    "DensificationRun",
    "Densifier",
    "GeneratedPoint",
    "LinearInterpolator",
    "PointGenerator",
    "SimulationError",
    "allocate_points",
    "renumber",
]
