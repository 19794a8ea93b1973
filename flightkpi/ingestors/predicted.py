"""Normalise predicted-route JSON into ``PredictedFlight`` models."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any

from pydantic import ValidationError

from flightkpi.models.flights import PredictedFlight

logger = logging.getLogger("flightkpi.ingestors.predicted")


@dataclass
class PredictedParseResult:
    flights: list[PredictedFlight] = field(default_factory=list)
    rejected: int = 0
    errors: list[str] = field(default_factory=list)


def parse_predicted_flight(entry: Any) -> PredictedFlight:
    """Validate one predicted flight; a missing ``instanceId`` becomes 0."""

    if not isinstance(entry, dict):
        raise ValueError("Predicted flight must be a JSON object")
    data = dict(entry)
    if data.get("instanceId") is None and data.get("instance_id") is None:
        data["instanceId"] = 0
    return PredictedFlight.model_validate(data)


def parse_predicted_payload(raw: Any) -> PredictedParseResult:
    """Accept a single predicted flight or a list of them."""

    entries = raw if isinstance(raw, list) else [raw]
    result = PredictedParseResult()
    for index, entry in enumerate(entries):
        try:
            result.flights.append(parse_predicted_flight(entry))
        except (ValidationError, ValueError) as exc:
            result.rejected += 1
            result.errors.append(f"Entry {index}: {exc}")
            logger.warning("Rejected predicted flight entry %s: %s", index, exc)
    return result


__all__ = ["PredictedParseResult", "parse_predicted_flight", "parse_predicted_payload"]
