"""Resolve a tracking ping to one of the flights sharing its call sign."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
import logging
from typing import Iterable, Optional

from flightkpi.config import Settings, settings as default_settings
from flightkpi.domain import AttachOutcome, DiscardReason, to_epoch_ms
from flightkpi.models.flights import RealFlight

logger = logging.getLogger("flightkpi.disambiguator")


@dataclass(frozen=True)
class DisambiguationConfig:
    """Tolerance added after a flight's current arrival estimate."""

    tolerance_minutes: int = 30

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "DisambiguationConfig":
        config = config or default_settings
        return cls(tolerance_minutes=config.disambiguation_tolerance_minutes)


@dataclass(frozen=True)
class AttachDecision:
    """Either the chosen plan id or a discard with its reason."""

    outcome: AttachOutcome
    plan_id: Optional[int] = None
    reason: Optional[DiscardReason] = None

    @property
    def attached(self) -> bool:
        return self.outcome == AttachOutcome.ATTACHED

    @classmethod
    def attach_to(cls, plan_id: int) -> "AttachDecision":
        return cls(outcome=AttachOutcome.ATTACHED, plan_id=plan_id)

    @classmethod
    def discard(cls, reason: DiscardReason) -> "AttachDecision":
        return cls(outcome=AttachOutcome.DISCARDED, reason=reason)


class Disambiguator:
    """Time-window containment matcher for same-call-sign flights.

    A candidate's window is ``[flight_plan_date, current_date_time_of_arrival
    + tolerance]`` with inclusive bounds. When several windows contain the
    point, the one ending soonest wins; equal ends fall back to the lowest
    plan id so the choice never depends on candidate order. Candidates whose
    window cannot be computed are never eligible.
    """

    def __init__(self, config: DisambiguationConfig | None = None) -> None:
        self.config = config or DisambiguationConfig()

    def window_for(self, flight: RealFlight) -> tuple[int, int] | None:
        """Return the (start, end) matching window in epoch milliseconds."""

        start = flight.flight_plan_date
        arrival = flight.current_date_time_of_arrival
        if start is None or arrival is None:
            return None
        end = arrival + timedelta(minutes=self.config.tolerance_minutes)
        return to_epoch_ms(start), to_epoch_ms(end)

    def attach(
        self, point_timestamp_ms: int | None, candidates: Iterable[RealFlight]
    ) -> AttachDecision:
        candidate_list = list(candidates)
        if not candidate_list:
            return AttachDecision.discard(DiscardReason.NO_CANDIDATES)
        if point_timestamp_ms is None:
            return AttachDecision.discard(DiscardReason.OUTSIDE_WINDOW)

        best: tuple[int, int] | None = None
        for flight in candidate_list:
            window = self.window_for(flight)
            if window is None:
                logger.debug("Flight %s has no usable matching window", flight.plan_id)
                continue
            start, end = window
            if not start <= point_timestamp_ms <= end:
                continue
            key = (end, flight.plan_id)
            if best is None or key < best:
                best = key

        if best is None:
            logger.debug(
                "Point at %s outside all %s candidate windows",
                point_timestamp_ms,
                len(candidate_list),
            )
            return AttachDecision.discard(DiscardReason.OUTSIDE_WINDOW)
        return AttachDecision.attach_to(best[1])


__all__ = ["AttachDecision", "DisambiguationConfig", "Disambiguator"]
