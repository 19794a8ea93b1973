"""Builders for flights and routes used across the test suite."""

from __future__ import annotations

from datetime import datetime, timezone
import math
from typing import Iterable, Optional

from flightkpi.domain import AERODROME_TYPE, to_epoch_ms
from flightkpi.models.flights import (
    PredictedFlight,
    RealFlight,
    RouteElement,
    TrackingPoint,
)

SBSP = (-23.6261, -46.6564)
SBRJ = (-22.9105, -43.1631)
MIDPOINT = (-23.30, -44.90)


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def ms(value: datetime) -> int:
    return to_epoch_ms(value)


def make_point(
    lat_deg: float,
    lon_deg: float,
    flight_level: int = 0,
    timestamp: Optional[int] = None,
    indicative: str = "TAM100",
) -> TrackingPoint:
    return TrackingPoint(
        indicative_safe=indicative,
        latitude=math.radians(lat_deg),
        longitude=math.radians(lon_deg),
        flight_level=flight_level,
        timestamp=timestamp,
    )


def make_real_flight(
    plan_id: int,
    indicative: str = "TAM100",
    start: Optional[datetime] = None,
    arrival: Optional[datetime] = None,
    points: Iterable[TrackingPoint] = (),
) -> RealFlight:
    return RealFlight(
        plan_id=plan_id,
        indicative=indicative,
        flight_plan_date=start,
        current_date_time_of_arrival=arrival,
        start_point_indicative="SBSP",
        end_point_indicative="SBRJ",
        tracking_points=list(points),
    )


def make_element(
    indicative: str,
    lat: float,
    lon: float,
    eet: float,
    element_type: str = "FIX",
    level_meters: float = 0.0,
    speed: float = 0.0,
) -> RouteElement:
    return RouteElement(
        indicative=indicative,
        element_type=element_type,
        latitude=lat,
        longitude=lon,
        eet_minutes=eet,
        level_meters=level_meters,
        speed_meter_per_second=speed,
    )


def sbsp_sbrj_elements(total_eet: float = 50.0) -> list[RouteElement]:
    return [
        make_element("SBSP", *SBSP, eet=0.0, element_type=AERODROME_TYPE),
        make_element("MID01", *MIDPOINT, eet=total_eet / 2, level_meters=7000.0),
        make_element("SBRJ", *SBRJ, eet=total_eet, element_type=AERODROME_TYPE),
    ]


def make_predicted(
    instance_id: int,
    elements: Optional[list[RouteElement]] = None,
    start: Optional[str] = "SBSP",
    end: Optional[str] = "SBRJ",
    time_window: Optional[str] = None,
    indicative: str = "TAM100",
) -> PredictedFlight:
    return PredictedFlight(
        instance_id=instance_id,
        indicative=indicative,
        start_point_indicative=start,
        end_point_indicative=end,
        time_window=time_window,
        route_elements=elements if elements is not None else sbsp_sbrj_elements(),
    )


def qualifying_real_flight(
    plan_id: int,
    departure_ms: int,
    arrival_ms: int,
    indicative: str = "TAM100",
) -> RealFlight:
    """Real flight whose first/last pings sit on SBSP/SBRJ at ground level."""

    return make_real_flight(
        plan_id,
        indicative=indicative,
        points=[
            make_point(*SBSP, flight_level=2, timestamp=departure_ms, indicative=indicative),
            make_point(*MIDPOINT, flight_level=230, timestamp=departure_ms + 60_000, indicative=indicative),
            make_point(*SBRJ, flight_level=1, timestamp=arrival_ms, indicative=indicative),
        ],
    )
