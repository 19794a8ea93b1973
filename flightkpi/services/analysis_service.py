"""Store-backed analysis runs: qualification, punctuality, accuracy, densification."""

from __future__ import annotations

from datetime import datetime
import logging
import time
from typing import Iterable, Optional, Sequence

from flightkpi.config import Settings, settings as default_settings
from flightkpi.domain import DensificationStatus
from flightkpi.models.analysis import (
    AccuracyResult,
    DensificationBatchError,
    DensificationBatchResult,
    DensificationOutcome,
    PunctualityResult,
    QualificationSummary,
)
from flightkpi.services.accuracy import analyze_accuracy
from flightkpi.services.densifier import Densifier
from flightkpi.services.flight_matcher import MatchingConfig, QualificationResult, qualify
from flightkpi.services.flight_store import DEFAULT_BATCH_SIZE, FlightStore
from flightkpi.services.punctuality import DEFAULT_WINDOWS, analyze_punctuality
from flightkpi.services.time_extractor import extract_all

logger = logging.getLogger("flightkpi.analysis")


class FlightAnalysisService:
    """Runs the shared qualification pipeline and the analyses built on it."""

    def __init__(
        self,
        store: FlightStore,
        matching: MatchingConfig | None = None,
        densifier: Densifier | None = None,
        windows: Sequence[int] = DEFAULT_WINDOWS,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self.store = store
        self.matching = matching or MatchingConfig()
        self.densifier = densifier or Densifier()
        self.windows = tuple(windows) or DEFAULT_WINDOWS
        self.batch_size = max(1, batch_size)

    @classmethod
    def from_settings(
        cls,
        store: FlightStore,
        densifier: Densifier | None = None,
        config: Settings | None = None,
    ) -> "FlightAnalysisService":
        config = config or default_settings
        return cls(
            store,
            matching=MatchingConfig.from_settings(config),
            densifier=densifier,
            windows=config.punctuality_windows or DEFAULT_WINDOWS,
            batch_size=config.batch_size,
        )

    # Qualification

    def qualify_all(self) -> QualificationResult:
        """Qualify every stored prediction, one store chunk at a time."""

        result = QualificationResult()
        for chunk in self.store.iter_predicted():
            real_flights = self.store.find_flights(flight.instance_id for flight in chunk)
            result.merge(qualify(chunk, real_flights, self.matching))
        return result

    def qualification_report(self) -> QualificationSummary:
        return self.qualify_all().summary()

    # Analyses

    def run_punctuality_analysis(self) -> PunctualityResult:
        qualification = self.qualify_all()
        extraction = extract_all(qualification.pairs)
        result = analyze_punctuality(
            extraction.durations,
            windows=self.windows,
            total_matched=qualification.total_qualified,
            skip_reasons=extraction.skipped,
        )
        result.qualification = qualification.summary()
        return result

    def run_accuracy_analysis(self) -> AccuracyResult:
        qualification = self.qualify_all()
        result = analyze_accuracy(
            qualification.pairs, total_qualified=qualification.total_qualified
        )
        result.qualification = qualification.summary()
        return result

    # Densification

    def densify(self, plan_id: int, target_point_count: Optional[int] = None) -> DensificationOutcome:
        """Densify one stored prediction and persist the result.

        The target defaults to the matching real flight's tracking point
        count. Store failures propagate; densification failures become an
        ``ERROR`` outcome.
        """

        started = time.perf_counter()
        predicted = self.store.find_predicted(plan_id)
        if predicted is None:
            return self._status_outcome(
                plan_id, DensificationStatus.NOT_FOUND, "Predicted flight not found", started
            )

        if target_point_count is None:
            real = self.store.find_flight(plan_id)
            if real is None or not real.has_tracking_data:
                return self._status_outcome(
                    plan_id,
                    DensificationStatus.NOT_FOUND,
                    "Real flight with tracking data not found",
                    started,
                    original_element_count=len(predicted.route_elements),
                )
            target_point_count = real.total_tracking_points

        try:
            run = self.densifier.densify(predicted, target_point_count)
        except Exception as exc:
            logger.exception("Densification failed for plan %s", plan_id)
            return self._status_outcome(
                plan_id,
                DensificationStatus.ERROR,
                "Densification failed",
                started,
                original_element_count=len(predicted.route_elements),
                target_point_count=target_point_count,
                error_details=str(exc),
            )

        if run.changed:
            self.store.upsert_predicted(run.flight)
        return run.outcome

    def densify_batch(
        self, plan_ids: Iterable[int], target_point_count: Optional[int] = None
    ) -> DensificationBatchResult:
        """Densify flights in bounded chunks; one failure never stops the batch."""

        started = time.perf_counter()
        ids = list(plan_ids)
        result = DensificationBatchResult(total_requested=len(ids))

        for start in range(0, len(ids), self.batch_size):
            chunk = ids[start : start + self.batch_size]
            logger.debug("Densifying chunk of %s flights starting at %s", len(chunk), start)
            for plan_id in chunk:
                flight_started = time.perf_counter()
                try:
                    outcome = self.densify(plan_id, target_point_count)
                except Exception as exc:
                    logger.error("Densification of plan %s failed: %s", plan_id, exc)
                    result.errors.append(DensificationBatchError(plan_id=plan_id, error=str(exc)))
                    outcome = self._status_outcome(
                        plan_id,
                        DensificationStatus.ERROR,
                        "Unexpected error",
                        flight_started,
                        error_details=str(exc),
                    )
                else:
                    if outcome.status == DensificationStatus.ERROR:
                        result.errors.append(
                            DensificationBatchError(
                                plan_id=plan_id,
                                error=outcome.error_details or outcome.message,
                            )
                        )
                result.outcomes.append(outcome)
                result.total_processed += 1
                if outcome.status == DensificationStatus.SUCCESS:
                    result.total_success += 1
                elif outcome.status == DensificationStatus.NO_ACTION_NEEDED:
                    result.total_no_action += 1
                elif outcome.status == DensificationStatus.NOT_FOUND:
                    result.total_not_found += 1
                else:
                    result.total_errors += 1

        result.processing_time_ms = int((time.perf_counter() - started) * 1000)
        result.message = (
            f"Batch densification completed: {result.total_requested} requested, "
            f"{result.total_processed} processed, {result.total_success} succeeded, "
            f"{result.total_no_action} no action needed, {result.total_not_found} not found, "
            f"{result.total_errors} errors"
        )
        logger.info(result.message)
        return result

    @staticmethod
    def _status_outcome(
        plan_id: int,
        status: DensificationStatus,
        message: str,
        started: float,
        **extra,
    ) -> DensificationOutcome:
        return DensificationOutcome(
            plan_id=plan_id,
            status=status,
            message=message,
            processing_time_ms=int((time.perf_counter() - started) * 1000),
            processed_at=datetime.utcnow(),
            **extra,
        )


__all__ = ["FlightAnalysisService"]
