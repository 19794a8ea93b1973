"""Ingestion boundary normalisers for FlightKPI."""

from .predicted import PredictedParseResult, parse_predicted_flight, parse_predicted_payload
from .replay import parse_replay_packet

__all__ = [
    "PredictedParseResult",
    "parse_predicted_flight",
    "parse_predicted_payload",
    "parse_replay_packet",
]
