"""Status and reason codes shared by the ingestion and analysis pipeline."""

from __future__ import annotations

from enum import Enum


class AttachOutcome(str, Enum):
    """Result of resolving a tracking ping against same-call-sign flights."""

    ATTACHED = "ATTACHED"
    DISCARDED = "DISCARDED"


class DiscardReason(str, Enum):
    """Why a tracking ping was not attached to any flight."""

    NO_CANDIDATES = "NO_CANDIDATES"
    OUTSIDE_WINDOW = "OUTSIDE_WINDOW"


class RejectionReason(str, Enum):
    """Why a predicted flight did not become a qualified pair."""

    NOT_ROUTE_MATCH = "NOT_ROUTE_MATCH"
    NO_REAL_FLIGHT = "NO_REAL_FLIGHT"
    NO_TRACKING_DATA = "NO_TRACKING_DATA"
    DISTANCE_EXCEEDED = "DISTANCE_EXCEEDED"
    ALTITUDE_EXCEEDED = "ALTITUDE_EXCEEDED"


class DurationSkipReason(str, Enum):
    """Why a qualified pair was excluded from punctuality analysis."""

    MISSING_TIMESTAMP = "MISSING_TIMESTAMP"
    NON_MONOTONIC = "NON_MONOTONIC"
    UNPARSEABLE_PREDICTION = "UNPARSEABLE_PREDICTION"


class DensificationStatus(str, Enum):
    """Outcome status of a densification request."""

    SUCCESS = "SUCCESS"
    NO_ACTION_NEEDED = "NO_ACTION_NEEDED"
    NOT_FOUND = "NOT_FOUND"
    ERROR = "ERROR"


AERODROME_TYPE = "AERODROME"
SIMULATED_ELEMENT_TYPE = "INTERPOLATED"
LINEAR_ELEMENT_TYPE = "INTERPOLATED_LINEAR"

__all__ = [
    "AERODROME_TYPE",
    "AttachOutcome",
    "DensificationStatus",
    "DiscardReason",
    "DurationSkipReason",
    "LINEAR_ELEMENT_TYPE",
    "RejectionReason",
    "SIMULATED_ELEMENT_TYPE",
]
