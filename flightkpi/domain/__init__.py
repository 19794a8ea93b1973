"""Domain constants and helpers for the FlightKPI pipeline."""

from .statuses import (
    AERODROME_TYPE,
    LINEAR_ELEMENT_TYPE,
    SIMULATED_ELEMENT_TYPE,
    AttachOutcome,
    DensificationStatus,
    DiscardReason,
    DurationSkipReason,
    RejectionReason,
)
from .timeutils import parse_epoch_ms, parse_timestamp, to_epoch_ms

__all__ = [
    "AERODROME_TYPE",
    "LINEAR_ELEMENT_TYPE",
    "SIMULATED_ELEMENT_TYPE",
    "AttachOutcome",
    "DensificationStatus",
    "DiscardReason",
    "DurationSkipReason",
    "RejectionReason",
    "parse_epoch_ms",
    "parse_timestamp",
    "to_epoch_ms",
]
