"""Stored flight documents: real flights, tracking points and predicted routes."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from flightkpi.domain.timeutils import parse_timestamp

UtcTimestamp = Annotated[Optional[datetime], BeforeValidator(parse_timestamp)]


class CamelModel(BaseModel):
    """Base model using camelCase field names on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class TrackingPoint(CamelModel):
    """One radar/ADS-B ping attached to a real flight."""

    indicative_safe: Optional[str] = Field(
        default=None, description="Call sign carried by the ping"
    )
    latitude: float = Field(..., description="Latitude in radians")
    longitude: float = Field(..., description="Longitude in radians")
    flight_level: int = Field(default=0, description="Flight level (hundreds of feet)")
    speed: int = Field(default=0, description="Ground speed")
    speed_bearing: Optional[float] = Field(default=None, description="Track bearing")
    seq_num: int = Field(default=0, description="Source sequence number (metadata only)")
    timestamp: Optional[int] = Field(
        default=None, description="Packet arrival timestamp, epoch milliseconds"
    )
    detector_source: Optional[str] = None
    ssr_registration: Optional[str] = None
    transponder_code: Optional[int] = None


class RealFlight(CamelModel):
    """A real flight instance keyed by its unique plan identifier."""

    plan_id: int = Field(..., description="Unique flight plan identifier")
    indicative: Optional[str] = Field(
        default=None, description="Call sign; not unique across time"
    )
    eobt: UtcTimestamp = None
    eta: UtcTimestamp = None
    flight_plan_date: UtcTimestamp = Field(
        default=None, description="Start of the flight's matching window"
    )
    current_date_time_of_arrival: UtcTimestamp = Field(
        default=None, description="Current arrival estimate; end of the matching window"
    )
    start_point_indicative: Optional[str] = None
    end_point_indicative: Optional[str] = None
    aircraft_type: Optional[str] = None
    airline: Optional[str] = None
    finished: bool = False
    last_packet_timestamp: Optional[int] = Field(
        default=None, description="Arrival timestamp of the last packet touching this flight"
    )
    tracking_points: list[TrackingPoint] = Field(default_factory=list)

    @property
    def total_tracking_points(self) -> int:
        return len(self.tracking_points)

    @property
    def has_tracking_data(self) -> bool:
        return bool(self.tracking_points)


class RouteElement(CamelModel):
    """A point of a predicted route (airport, fix or densified point)."""

    id: Optional[int] = None
    indicative: Optional[str] = None
    element_type: Optional[str] = Field(
        default=None, description="AERODROME, en-route fix type, or INTERPOLATED*"
    )
    latitude: float = Field(..., description="Latitude in decimal degrees")
    longitude: float = Field(..., description="Longitude in decimal degrees")
    level_meters: float = Field(default=0.0, description="Altitude in meters")
    speed_meter_per_second: float = Field(default=0.0, description="Speed in m/s")
    eet_minutes: float = Field(
        default=0.0, description="Cumulative estimated elapsed time in minutes"
    )
    sequence_number: Optional[int] = None
    coordinate_text: Optional[str] = None
    interpolated: bool = Field(
        default=False, description="True for points added by densification"
    )


class RouteSegment(CamelModel):
    """Distance between two consecutive route elements, referenced by id."""

    id: Optional[int] = None
    element_a_id: Optional[int] = None
    element_b_id: Optional[int] = None
    distance: float = Field(default=0.0, description="Great-circle distance in NM")


class PredictedFlight(CamelModel):
    """A predicted route; ``instance_id`` equals a real flight's ``plan_id``."""

    instance_id: int = Field(..., description="Matches RealFlight.plan_id when one exists")
    route_id: Optional[int] = None
    indicative: Optional[str] = None
    time_window: Optional[str] = Field(
        default=None,
        alias="time",
        description="Bracketed predicted window, e.g. '[start,end]'",
    )
    start_point_indicative: Optional[str] = None
    end_point_indicative: Optional[str] = None
    distance: Optional[float] = None
    route_elements: list[RouteElement] = Field(default_factory=list)
    route_segments: list[RouteSegment] = Field(default_factory=list)

    @property
    def departure_element(self) -> RouteElement | None:
        return self.route_elements[0] if self.route_elements else None

    @property
    def arrival_element(self) -> RouteElement | None:
        return self.route_elements[-1] if self.route_elements else None

    def endpoint_indicatives(self) -> tuple[str | None, str | None]:
        """Declared (start, end) airports, falling back to the route's ends."""

        start = self.start_point_indicative
        end = self.end_point_indicative
        if not start and self.departure_element is not None:
            start = self.departure_element.indicative
        if not end and self.arrival_element is not None:
            end = self.arrival_element.indicative
        return start, end


__all__ = [
    "CamelModel",
    "PredictedFlight",
    "RealFlight",
    "RouteElement",
    "RouteSegment",
    "TrackingPoint",
    "UtcTimestamp",
]
