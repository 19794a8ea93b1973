"""Timestamp helpers shared by ingestion and analysis.

Upstream feeds mix several encodings for the same instant: epoch
milliseconds (as numbers or digit strings), ISO 8601 strings with ``Z``,
``+0000`` or ``+00:00`` offsets, and the ``Thu Jul 10 22:25:00 UTC 2025``
form produced by the route predictor. All of them normalise to timezone
aware UTC datetimes here.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import re
from typing import Any

logger = logging.getLogger("flightkpi.timeutils")

_OFFSET_RE = re.compile(r"([+-]\d{2})(\d{2})$")
_LEGACY_FORMAT = "%a %b %d %H:%M:%S %Y"


def _from_epoch_ms(value: float) -> datetime | None:
    try:
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        logger.debug("Epoch value out of range: %s", value)
        return None


def _parse_legacy(raw: str) -> datetime | None:
    # "Thu Jul 10 22:25:00 UTC 2025": only UTC/GMT zone names are accepted.
    parts = raw.split()
    if len(parts) != 6 or parts[4].upper() not in {"UTC", "GMT", "Z"}:
        return None
    try:
        parsed = datetime.strptime(" ".join(parts[:4] + parts[5:]), _LEGACY_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc)


def parse_timestamp(raw: Any) -> datetime | None:
    """Parse a timestamp in any of the supported encodings.

    Returns ``None`` for empty or unparseable input instead of raising.
    """

    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw if raw.tzinfo else raw.replace(tzinfo=timezone.utc)
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return _from_epoch_ms(raw)
    if not isinstance(raw, str):
        return None

    cleaned = raw.strip()
    if not cleaned:
        return None
    if cleaned.lstrip("-").isdigit():
        return _from_epoch_ms(int(cleaned))

    iso = cleaned
    if iso.endswith("Z"):
        iso = iso[:-1] + "+00:00"
    iso = _OFFSET_RE.sub(r"\1:\2", iso)
    try:
        parsed = datetime.fromisoformat(iso)
    except ValueError:
        parsed = _parse_legacy(cleaned)
        if parsed is None:
            logger.debug("Failed to parse timestamp: %s", raw)
        return parsed

    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def to_epoch_ms(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are UTC)."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(round(value.timestamp() * 1000))


def parse_epoch_ms(raw: Any) -> int | None:
    """Parse any supported encoding straight to epoch milliseconds."""

    parsed = parse_timestamp(raw)
    return to_epoch_ms(parsed) if parsed is not None else None


__all__ = ["parse_epoch_ms", "parse_timestamp", "to_epoch_ms"]
