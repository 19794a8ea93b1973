"""Streaming packet ingestion and predicted-flight upserts."""

from __future__ import annotations

from collections import Counter
import logging
import time
from typing import Optional

from flightkpi.domain import DiscardReason
from flightkpi.models.flights import PredictedFlight, RealFlight, TrackingPoint
from flightkpi.models.ingestion import (
    BatchProcessingResult,
    DuplicateCleanupResult,
    DuplicateIndicativeAnalysis,
    FlightIntention,
    FlightSearchStats,
    FlightStoreStats,
    IngestionResult,
    PredictedFlightProcessingResult,
    RealPathPing,
    ReplayPacket,
)
from flightkpi.services.disambiguator import Disambiguator
from flightkpi.services.flight_store import DEFAULT_BATCH_SIZE, FlightStore

logger = logging.getLogger("flightkpi.ingestion")

DUPLICATE_INSTANCE_REASON = "Duplicate instanceId"
DUPLICATE_IN_BATCH_REASON = "Duplicate instanceId in batch"


def tracking_point_key(
    timestamp: Optional[int], latitude: float, longitude: float, indicative_safe: Optional[str]
) -> tuple:
    """Identity of a tracking point: timestamp, ~1 m rounded position, call sign."""

    return (timestamp, round(latitude, 6), round(longitude, 6), indicative_safe)


def _flight_from_intention(intention: FlightIntention, packet_timestamp: Optional[int]) -> RealFlight:
    return RealFlight(
        plan_id=intention.plan_id,
        indicative=intention.indicative.strip() if intention.indicative else None,
        eobt=intention.eobt,
        eta=intention.eta,
        flight_plan_date=intention.flight_plan_date,
        current_date_time_of_arrival=intention.current_date_time_of_arrival,
        start_point_indicative=intention.start_point_indicative,
        end_point_indicative=intention.end_point_indicative,
        aircraft_type=intention.aircraft_type,
        airline=intention.airline,
        finished=intention.finished,
        last_packet_timestamp=packet_timestamp,
    )


def _tracking_point(ping: RealPathPing, packet_timestamp: Optional[int]) -> TrackingPoint:
    return TrackingPoint(
        indicative_safe=ping.indicative_safe.strip() if ping.indicative_safe else None,
        latitude=ping.latitude,
        longitude=ping.longitude,
        flight_level=ping.flight_level,
        speed=ping.speed,
        speed_bearing=ping.speed_bearing,
        seq_num=ping.seq_num,
        timestamp=packet_timestamp,
        detector_source=ping.detector_source,
        ssr_registration=ping.ssr_registration,
        transponder_code=ping.transponder_code,
    )


class FlightIngestionService:
    """Writes flight intentions, tracking points and predictions into a store."""

    def __init__(
        self,
        store: FlightStore,
        disambiguator: Disambiguator | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self.store = store
        self.disambiguator = disambiguator or Disambiguator()
        self.batch_size = max(1, batch_size)

    # Streaming packets

    def process_packet(self, packet: ReplayPacket) -> IngestionResult:
        """Create flights from intentions, then attach the packet's pings.

        Every ping in a packet carries the packet arrival time, so all pings
        of one call sign share a single disambiguation decision.
        """

        result = IngestionResult(rejected_records=packet.rejected_records)
        packet_ts = packet.packet_stored_timestamp
        discard_reasons: Counter[str] = Counter()

        for intention in packet.flight_intentions:
            if intention.plan_id == 0:
                logger.debug("Skipping flight intention without plan id: %s", intention.indicative)
                result.rejected_records += 1
                continue
            if self._process_intention(intention, packet_ts):
                result.new_flights += 1

        groups: dict[str, list[RealPathPing]] = {}
        for ping in packet.real_path:
            result.processed_points += 1
            indicative = (ping.indicative_safe or "").strip()
            if not indicative:
                result.discarded_points += 1
                discard_reasons[DiscardReason.NO_CANDIDATES.value] += 1
                continue
            groups.setdefault(indicative, []).append(ping)

        for indicative, pings in groups.items():
            candidates = self.store.find_flights_by_indicative(indicative)
            decision = self.disambiguator.attach(packet_ts, candidates)
            if not decision.attached:
                result.discarded_points += len(pings)
                discard_reasons[decision.reason.value] += len(pings)
                logger.warning(
                    "Discarded %s points for %s (%s, %s candidates)",
                    len(pings),
                    indicative,
                    decision.reason.value,
                    len(candidates),
                )
                continue

            target = next(flight for flight in candidates if flight.plan_id == decision.plan_id)
            added, duplicates = self._append_points(target, pings, packet_ts)
            result.attached_points += added
            result.duplicate_points += duplicates
            if added:
                self.store.upsert_flight(target)
                result.updated_flights += 1
                logger.debug(
                    "Attached %s points to plan %s (%s) from %s candidates",
                    added,
                    target.plan_id,
                    indicative,
                    len(candidates),
                )

        result.discard_reasons = dict(discard_reasons)
        result.message = (
            f"Processed {result.new_flights} new flights, updated {result.updated_flights} "
            f"flights; {result.attached_points} of {result.processed_points} points attached, "
            f"{result.discarded_points} discarded, {result.duplicate_points} duplicates"
        )
        logger.info(result.message)
        return result

    def _process_intention(self, intention: FlightIntention, packet_ts: Optional[int]) -> bool:
        existing = self.store.find_flight(intention.plan_id)
        if existing is None:
            self.store.upsert_flight(_flight_from_intention(intention, packet_ts))
            logger.info(
                "Created flight plan_id=%s indicative=%s", intention.plan_id, intention.indicative
            )
            return True

        if packet_ts is not None:
            existing.last_packet_timestamp = packet_ts
            self.store.upsert_flight(existing)
        return False

    def _append_points(
        self, flight: RealFlight, pings: list[RealPathPing], packet_ts: Optional[int]
    ) -> tuple[int, int]:
        seen = {
            tracking_point_key(p.timestamp, p.latitude, p.longitude, p.indicative_safe)
            for p in flight.tracking_points
        }
        added = 0
        duplicates = 0
        for ping in pings:
            point = _tracking_point(ping, packet_ts)
            key = tracking_point_key(
                point.timestamp, point.latitude, point.longitude, point.indicative_safe
            )
            if key in seen:
                duplicates += 1
                continue
            seen.add(key)
            flight.tracking_points.append(point)
            added += 1
        if added and packet_ts is not None:
            flight.last_packet_timestamp = packet_ts
        return added, duplicates

    # Store inspection

    def get_stats(self) -> FlightStoreStats:
        total = 0
        with_tracking = 0
        points = 0
        for flight in self.store.iter_flights():
            total += 1
            if flight.has_tracking_data:
                with_tracking += 1
            points += flight.total_tracking_points
        return FlightStoreStats(
            total_flights=total,
            flights_with_tracking=with_tracking,
            total_tracking_points=points,
            total_predicted_flights=self.store.count_predicted(),
        )

    def analyze_duplicate_indicatives(self) -> DuplicateIndicativeAnalysis:
        """Report call signs currently shared by more than one flight."""

        by_indicative: dict[str, list[int]] = {}
        for flight in self.store.iter_flights():
            if flight.indicative:
                by_indicative.setdefault(flight.indicative, []).append(flight.plan_id)

        duplicates = {
            indicative: sorted(plan_ids)
            for indicative, plan_ids in sorted(by_indicative.items())
            if len(plan_ids) > 1
        }
        return DuplicateIndicativeAnalysis(
            duplicate_indicatives=len(duplicates),
            affected_flights=sum(len(ids) for ids in duplicates.values()),
            duplicates=duplicates,
        )

    def get_search_stats(self) -> FlightSearchStats:
        real_indicatives: set[str] = set()
        total_real = 0
        for flight in self.store.iter_flights():
            total_real += 1
            if flight.indicative:
                real_indicatives.add(flight.indicative)

        predicted_indicatives: set[str] = set()
        total_predicted = 0
        for chunk in self.store.iter_predicted():
            total_predicted += len(chunk)
            predicted_indicatives.update(f.indicative for f in chunk if f.indicative)

        return FlightSearchStats(
            total_real_flights=total_real,
            total_predicted_flights=total_predicted,
            unique_real_indicatives=len(real_indicatives),
            unique_predicted_indicatives=len(predicted_indicatives),
            matching_rate=total_predicted / total_real * 100 if total_real else 0.0,
        )

    def cleanup_duplicate_tracking_points(self) -> DuplicateCleanupResult:
        """Drop repeated tracking points from every stored flight.

        Points are compared with ``tracking_point_key``; the first occurrence
        wins and the original order is preserved. Only flights that actually
        lose points are written back.
        """

        result = DuplicateCleanupResult()
        for flight in self.store.iter_flights():
            result.flights_scanned += 1
            seen: set[tuple] = set()
            kept: list[TrackingPoint] = []
            for point in flight.tracking_points:
                key = tracking_point_key(
                    point.timestamp, point.latitude, point.longitude, point.indicative_safe
                )
                if key not in seen:
                    seen.add(key)
                    kept.append(point)

            removed = len(flight.tracking_points) - len(kept)
            if not removed:
                continue
            flight.tracking_points = kept
            self.store.upsert_flight(flight)
            result.flights_updated += 1
            result.points_removed += removed
            logger.info(
                "Removed %s duplicate tracking points from flight %s", removed, flight.plan_id
            )

        result.message = (
            f"Cleanup completed: {result.points_removed} duplicate tracking points removed "
            f"from {result.flights_updated} flights"
        )
        logger.info(result.message)
        return result

    # Predicted flights

    def upsert_predicted(self, flight: PredictedFlight) -> PredictedFlightProcessingResult:
        if flight.instance_id == 0:
            return PredictedFlightProcessingResult(
                success=False,
                message=f"Missing instanceId for predicted flight: {flight.indicative}",
            )

        created = self.store.upsert_predicted(flight)
        if not created:
            logger.warning("Predicted flight %s already existed; replaced", flight.instance_id)
        logger.info(
            "Stored predicted flight instance_id=%s indicative=%s elements=%s segments=%s",
            flight.instance_id,
            flight.indicative,
            len(flight.route_elements),
            len(flight.route_segments),
        )
        return PredictedFlightProcessingResult(
            success=True,
            created=created,
            instance_id=flight.instance_id,
            message=(
                f"Successfully processed predicted flight: {flight.indicative} "
                f"(instanceId: {flight.instance_id})"
            ),
        )

    def process_predicted_batch(self, flights: list[PredictedFlight]) -> BatchProcessingResult:
        """Insert new predictions, skipping ids that already exist."""

        started = time.perf_counter()
        result = BatchProcessingResult(total_received=len(flights))
        if not flights:
            result.message = "No predicted flights to process"
            return result

        skip_reasons: Counter[str] = Counter()
        seen: set[int] = set()
        pending: list[PredictedFlight] = []

        for flight in flights:
            if flight.instance_id == 0:
                result.total_failed += 1
                result.errors.append(f"PredictedFlight missing instanceId: {flight.indicative}")
                continue
            if flight.instance_id in seen:
                reason = DUPLICATE_IN_BATCH_REASON
            elif self.store.predicted_exists(flight.instance_id):
                reason = DUPLICATE_INSTANCE_REASON
            else:
                reason = None
            if reason is not None:
                result.total_skipped += 1
                skip_reasons[reason] += 1
                result.skipped_details.append(
                    f"Skipped instanceId {flight.instance_id} (indicative: {flight.indicative}) - {reason}"
                )
                continue

            seen.add(flight.instance_id)
            pending.append(flight)
            if len(pending) >= self.batch_size:
                self._save_chunk(pending, result)
                pending = []

        if pending:
            self._save_chunk(pending, result)

        result.skip_reasons = dict(skip_reasons)
        result.processing_time_ms = int((time.perf_counter() - started) * 1000)
        result.message = (
            f"Batch processing completed: {result.total_received} received, "
            f"{result.total_processed} processed, {result.total_skipped} skipped, "
            f"{result.total_failed} failed"
        )
        logger.info(result.message)
        return result

    def _save_chunk(self, chunk: list[PredictedFlight], result: BatchProcessingResult) -> None:
        try:
            result.total_processed += self.store.save_predicted_batch(chunk)
            return
        except Exception:
            logger.exception("Saving chunk of %s predicted flights failed; retrying one by one", len(chunk))

        for flight in chunk:
            try:
                self.store.upsert_predicted(flight)
                result.total_processed += 1
            except Exception as exc:
                logger.error("Failed to save predicted flight %s: %s", flight.instance_id, exc)
                result.total_failed += 1
                result.errors.append(f"Error processing instanceId {flight.instance_id}: {exc}")


__all__ = [
    "DUPLICATE_INSTANCE_REASON",
    "DUPLICATE_IN_BATCH_REASON",
    "FlightIngestionService",
    "tracking_point_key",
]
