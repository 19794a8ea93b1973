"""Normalise raw streaming replay packets into typed records."""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError

from flightkpi.domain import parse_epoch_ms
from flightkpi.models.ingestion import FlightIntention, RealPathPing, ReplayPacket

logger = logging.getLogger("flightkpi.ingestors.replay")


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _int_or_zero(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _normalize_intention(entry: Any) -> Optional[FlightIntention]:
    if not isinstance(entry, dict):
        return None

    route = _as_dict(entry.get("simpleRoute"))
    try:
        return FlightIntention(
            plan_id=_int_or_zero(entry.get("planId")),
            indicative=entry.get("indicative"),
            eobt=entry.get("eobt"),
            eta=entry.get("eta"),
            flight_plan_date=entry.get("flightPlanDate"),
            current_date_time_of_arrival=entry.get("currentDateTimeOfArrival"),
            start_point_indicative=entry.get("startPointIndicative")
            or route.get("startPointIndicative"),
            end_point_indicative=entry.get("endPointIndicative")
            or route.get("endPointIndicative"),
            aircraft_type=entry.get("aircraftType"),
            airline=entry.get("airline"),
            finished=bool(entry.get("finished", False)),
        )
    except ValidationError as exc:
        logger.debug("Rejecting flight intention %s: %s", entry.get("planId"), exc)
        return None


def _normalize_ping(entry: Any) -> Optional[RealPathPing]:
    if not isinstance(entry, dict):
        return None

    kinematic = _as_dict(entry.get("kinematic"))
    position = _as_dict(kinematic.get("position"))
    ssr = _as_dict(entry.get("ssr"))
    transponder = _as_dict(ssr.get("transponder"))

    latitude = position.get("latitude", entry.get("latitude"))
    longitude = position.get("longitude", entry.get("longitude"))
    if latitude is None or longitude is None:
        return None

    try:
        return RealPathPing(
            indicative_safe=entry.get("indicativeSafe"),
            latitude=latitude,
            longitude=longitude,
            flight_level=entry.get("flightLevel") or 0,
            speed=kinematic.get("speed", entry.get("speed")) or 0,
            speed_bearing=kinematic.get("speedBearing", entry.get("speedBearing")),
            seq_num=entry.get("seqNum") or 0,
            detector_source=kinematic.get("detectorSource"),
            ssr_registration=ssr.get("registration"),
            transponder_code=transponder.get("code"),
        )
    except ValidationError as exc:
        logger.debug("Rejecting tracking ping %s: %s", entry.get("indicativeSafe"), exc)
        return None


def parse_replay_packet(raw: Any) -> ReplayPacket:
    """Build a ``ReplayPacket`` from a raw packet dict.

    Entries that cannot be normalised are dropped and counted in
    ``rejected_records``. A payload that is not an object raises ``ValueError``.
    """

    if not isinstance(raw, dict):
        raise ValueError("Replay packet must be a JSON object")

    rejected = 0
    intentions: list[FlightIntention] = []
    for entry in raw.get("listFlightIntention") or []:
        intention = _normalize_intention(entry)
        if intention is None:
            rejected += 1
            continue
        intentions.append(intention)

    pings: list[RealPathPing] = []
    for entry in raw.get("listRealPath") or []:
        ping = _normalize_ping(entry)
        if ping is None:
            rejected += 1
            continue
        pings.append(ping)

    packet_ts = parse_epoch_ms(raw.get("packetStoredTimestamp"))
    if packet_ts is None and raw.get("packetStoredTimestamp") is not None:
        logger.warning("Unparseable packet timestamp: %r", raw.get("packetStoredTimestamp"))

    if rejected:
        logger.warning("Rejected %s malformed records in replay packet", rejected)
    return ReplayPacket(
        flight_intentions=intentions,
        real_path=pings,
        packet_stored_timestamp=packet_ts,
        rejected_records=rejected,
    )


__all__ = ["parse_replay_packet"]
