"""HTTP adapter for the external trajectory simulator."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from flightkpi.config import settings
from flightkpi.models.flights import PredictedFlight, RouteElement
from flightkpi.services.densifier import GeneratedPoint, SimulationError

logger = logging.getLogger("flightkpi.simulator")


def _element_payload(element: RouteElement) -> dict[str, Any]:
    return element.model_dump(
        by_alias=True,
        include={
            "indicative",
            "element_type",
            "latitude",
            "longitude",
            "level_meters",
            "speed_meter_per_second",
            "eet_minutes",
        },
    )


def _parse_point(entry: Any) -> Optional[GeneratedPoint]:
    if not isinstance(entry, dict):
        return None
    try:
        return GeneratedPoint(
            latitude=float(entry["latitude"]),
            longitude=float(entry["longitude"]),
            level_meters=float(entry.get("levelMeters", 0.0)),
            speed_meter_per_second=float(entry.get("speedMeterPerSecond", 0.0)),
            eet_minutes=float(entry["eetMinutes"]),
        )
    except (KeyError, TypeError, ValueError):
        logger.debug("Dropping malformed simulator point: %s", entry)
        return None


class HttpTrajectorySimulator:
    """Point generator backed by ``POST {base_url}/simulate``.

    Transport failures, HTTP errors and unusable payloads raise
    ``SimulationError``; individual malformed points come back as ``None``
    so the densifier fills just those slots.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.client = client or httpx.Client(
            base_url=base_url or settings.simulator_base_url,
            timeout=timeout or settings.simulator_timeout,
        )

    def generate(
        self,
        flight: PredictedFlight,
        start: RouteElement,
        end: RouteElement,
        count: int,
    ) -> list[Optional[GeneratedPoint]]:
        payload = {
            "instanceId": flight.instance_id,
            "indicative": flight.indicative,
            "start": _element_payload(start),
            "end": _element_payload(end),
            "count": count,
            "flight": flight.model_dump(mode="json", by_alias=True),
        }

        try:
            response = self.client.post("/simulate", json=payload)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise SimulationError(f"Simulator request timed out: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise SimulationError(
                f"Simulator returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.RequestError as exc:
            raise SimulationError(f"Simulator request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise SimulationError("Simulator returned invalid JSON") from exc

        raw_points = body.get("points") if isinstance(body, dict) else None
        if not isinstance(raw_points, list):
            raise SimulationError("Simulator response has no points list")

        points = [_parse_point(entry) for entry in raw_points[:count]]
        logger.debug(
            "Simulator returned %s/%s usable points for plan %s",
            sum(point is not None for point in points),
            count,
            flight.instance_id,
        )
        return points

    def close(self) -> None:
        self.client.close()


__all__ = ["HttpTrajectorySimulator"]
