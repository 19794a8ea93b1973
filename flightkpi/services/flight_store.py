"""Keyed document store for real and predicted flights.

The core only relies on key lookup, keyed upsert and key listing. Upserts are
last-write-wins: two concurrent writers for the same ``plan_id`` race and the
later commit replaces the earlier document. No locking or multi-record
transaction is attempted.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
import logging
from typing import Optional, Protocol

from sqlalchemy import String, cast
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from flightkpi import db_models
from flightkpi.models.flights import PredictedFlight, RealFlight

logger = logging.getLogger("flightkpi.flight_store")

DEFAULT_BATCH_SIZE = 500
DEFAULT_SEARCH_LIMIT = 50


class FlightStore(Protocol):
    """Interface consumed by ingestion and analysis."""

    def find_flight(self, plan_id: int) -> RealFlight | None:
        """Return the real flight stored under ``plan_id``."""

    def find_flights(self, plan_ids: Iterable[int]) -> dict[int, RealFlight]:
        """Return the stored real flights among ``plan_ids``, keyed by plan id."""

    def upsert_flight(self, flight: RealFlight) -> bool:
        """Insert or replace a real flight; return True when it was created."""

    def find_flights_by_indicative(self, indicative: str) -> list[RealFlight]:
        """Return every real flight sharing a call sign."""

    def list_flight_keys(self) -> list[int]:
        """Return all real-flight plan ids in ascending order."""

    def search_flights(
        self,
        *,
        plan_id_prefix: Optional[str] = None,
        indicative: Optional[str] = None,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[RealFlight]:
        """Return up to ``limit`` real flights matching every given criterion."""

    def iter_flights(self) -> Iterator[RealFlight]:
        """Yield every real flight, loading at most one batch at a time."""

    def count_flights(self) -> int:
        """Return the number of stored real flights."""

    def find_predicted(self, instance_id: int) -> PredictedFlight | None:
        """Return the predicted flight stored under ``instance_id``."""

    def upsert_predicted(self, flight: PredictedFlight) -> bool:
        """Insert or replace a predicted flight; return True when it was created."""

    def save_predicted_batch(self, flights: list[PredictedFlight]) -> int:
        """Insert or replace several predicted flights at once; return the count saved."""

    def predicted_exists(self, instance_id: int) -> bool:
        """Return whether a predicted flight is stored under ``instance_id``."""

    def list_predicted_keys(self) -> list[int]:
        """Return all predicted-flight instance ids in ascending order."""

    def search_predicted(
        self,
        *,
        indicative: Optional[str] = None,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[PredictedFlight]:
        """Return up to ``limit`` predicted flights matching every given criterion."""

    def iter_predicted(self) -> Iterator[list[PredictedFlight]]:
        """Yield predicted flights in chunks of at most ``batch_size``."""

    def count_predicted(self) -> int:
        """Return the number of stored predicted flights."""


class InMemoryFlightStore:
    """Dict-backed store; documents are copied on every read and write."""

    def __init__(self, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        self.batch_size = max(1, batch_size)
        self._flights: dict[int, RealFlight] = {}
        self._predicted: dict[int, PredictedFlight] = {}

    def find_flight(self, plan_id: int) -> RealFlight | None:
        flight = self._flights.get(plan_id)
        return flight.model_copy(deep=True) if flight is not None else None

    def find_flights(self, plan_ids: Iterable[int]) -> dict[int, RealFlight]:
        found: dict[int, RealFlight] = {}
        for plan_id in plan_ids:
            flight = self.find_flight(plan_id)
            if flight is not None:
                found[plan_id] = flight
        return found

    def upsert_flight(self, flight: RealFlight) -> bool:
        created = flight.plan_id not in self._flights
        self._flights[flight.plan_id] = flight.model_copy(deep=True)
        return created

    def find_flights_by_indicative(self, indicative: str) -> list[RealFlight]:
        return [
            flight.model_copy(deep=True)
            for _, flight in sorted(self._flights.items())
            if flight.indicative == indicative
        ]

    def list_flight_keys(self) -> list[int]:
        return sorted(self._flights)

    def search_flights(
        self,
        *,
        plan_id_prefix: Optional[str] = None,
        indicative: Optional[str] = None,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[RealFlight]:
        found: list[RealFlight] = []
        for plan_id, flight in sorted(self._flights.items()):
            if len(found) >= limit:
                break
            if plan_id_prefix is not None and not str(plan_id).startswith(plan_id_prefix):
                continue
            if _endpoints_match(flight, indicative, origin, destination):
                found.append(flight.model_copy(deep=True))
        return found

    def iter_flights(self) -> Iterator[RealFlight]:
        for plan_id in self.list_flight_keys():
            flight = self.find_flight(plan_id)
            if flight is not None:
                yield flight

    def count_flights(self) -> int:
        return len(self._flights)

    def find_predicted(self, instance_id: int) -> PredictedFlight | None:
        flight = self._predicted.get(instance_id)
        return flight.model_copy(deep=True) if flight is not None else None

    def upsert_predicted(self, flight: PredictedFlight) -> bool:
        created = flight.instance_id not in self._predicted
        self._predicted[flight.instance_id] = flight.model_copy(deep=True)
        return created

    def save_predicted_batch(self, flights: list[PredictedFlight]) -> int:
        for flight in flights:
            self.upsert_predicted(flight)
        return len(flights)

    def predicted_exists(self, instance_id: int) -> bool:
        return instance_id in self._predicted

    def list_predicted_keys(self) -> list[int]:
        return sorted(self._predicted)

    def search_predicted(
        self,
        *,
        indicative: Optional[str] = None,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[PredictedFlight]:
        matches = [
            flight
            for _, flight in sorted(self._predicted.items())
            if _endpoints_match(flight, indicative, origin, destination)
        ]
        return [flight.model_copy(deep=True) for flight in matches[:limit]]

    def iter_predicted(self) -> Iterator[list[PredictedFlight]]:
        keys = self.list_predicted_keys()
        for start in range(0, len(keys), self.batch_size):
            yield [
                self._predicted[key].model_copy(deep=True)
                for key in keys[start : start + self.batch_size]
            ]

    def count_predicted(self) -> int:
        return len(self._predicted)


class SqlFlightStore:
    """SQLAlchemy-backed store keeping one JSON document per flight.

    Each upsert commits on its own. SQLAlchemy errors roll the session back
    and propagate.
    """

    def __init__(self, db: Session, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        self.db = db
        self.batch_size = max(1, batch_size)

    # Real flights

    def find_flight(self, plan_id: int) -> RealFlight | None:
        record = self.db.get(db_models.RealFlightRecord, plan_id)
        return _load_real(record) if record is not None else None

    def find_flights(self, plan_ids: Iterable[int]) -> dict[int, RealFlight]:
        keys = sorted(set(plan_ids))
        found: dict[int, RealFlight] = {}
        for start in range(0, len(keys), self.batch_size):
            chunk = keys[start : start + self.batch_size]
            records = (
                self.db.query(db_models.RealFlightRecord)
                .filter(db_models.RealFlightRecord.plan_id.in_(chunk))
                .all()
            )
            for record in records:
                found[record.plan_id] = _load_real(record)
        return found

    def upsert_flight(self, flight: RealFlight) -> bool:
        record = self.db.get(db_models.RealFlightRecord, flight.plan_id)
        created = record is None
        if record is None:
            record = db_models.RealFlightRecord(plan_id=flight.plan_id)
            self.db.add(record)
        record.indicative = flight.indicative
        record.start_point_indicative = flight.start_point_indicative
        record.end_point_indicative = flight.end_point_indicative
        record.document = flight.model_dump(mode="json", by_alias=True)
        self._commit()
        logger.debug("Stored real flight %s (created=%s)", flight.plan_id, created)
        return created

    def find_flights_by_indicative(self, indicative: str) -> list[RealFlight]:
        records = (
            self.db.query(db_models.RealFlightRecord)
            .filter(db_models.RealFlightRecord.indicative == indicative)
            .order_by(db_models.RealFlightRecord.plan_id)
            .all()
        )
        return [_load_real(record) for record in records]

    def list_flight_keys(self) -> list[int]:
        rows = (
            self.db.query(db_models.RealFlightRecord.plan_id)
            .order_by(db_models.RealFlightRecord.plan_id)
            .all()
        )
        return [row[0] for row in rows]

    def search_flights(
        self,
        *,
        plan_id_prefix: Optional[str] = None,
        indicative: Optional[str] = None,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[RealFlight]:
        model = db_models.RealFlightRecord
        query = _filter_endpoints(self.db.query(model), model, indicative, origin, destination)
        if plan_id_prefix is not None:
            query = query.filter(cast(model.plan_id, String).like(f"{plan_id_prefix}%"))
        records = query.order_by(model.plan_id).limit(limit).all()
        return [_load_real(record) for record in records]

    def iter_flights(self) -> Iterator[RealFlight]:
        last_key: int | None = None
        while True:
            query = self.db.query(db_models.RealFlightRecord)
            if last_key is not None:
                query = query.filter(db_models.RealFlightRecord.plan_id > last_key)
            records = (
                query.order_by(db_models.RealFlightRecord.plan_id)
                .limit(self.batch_size)
                .all()
            )
            if not records:
                return
            for record in records:
                yield _load_real(record)
            last_key = records[-1].plan_id

    def count_flights(self) -> int:
        return self.db.query(db_models.RealFlightRecord).count()

    # Predicted flights

    def find_predicted(self, instance_id: int) -> PredictedFlight | None:
        record = self.db.get(db_models.PredictedFlightRecord, instance_id)
        return _load_predicted(record) if record is not None else None

    def upsert_predicted(self, flight: PredictedFlight) -> bool:
        created = self._stage_predicted(flight)
        self._commit()
        logger.debug("Stored predicted flight %s (created=%s)", flight.instance_id, created)
        return created

    def save_predicted_batch(self, flights: list[PredictedFlight]) -> int:
        for flight in flights:
            self._stage_predicted(flight)
        self._commit()
        logger.debug("Stored batch of %s predicted flights", len(flights))
        return len(flights)

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _stage_predicted(self, flight: PredictedFlight) -> bool:
        record = self.db.get(db_models.PredictedFlightRecord, flight.instance_id)
        created = record is None
        if record is None:
            record = db_models.PredictedFlightRecord(instance_id=flight.instance_id)
            self.db.add(record)
        record.indicative = flight.indicative
        record.start_point_indicative = flight.start_point_indicative
        record.end_point_indicative = flight.end_point_indicative
        record.document = flight.model_dump(mode="json", by_alias=True)
        return created

    def predicted_exists(self, instance_id: int) -> bool:
        return (
            self.db.query(db_models.PredictedFlightRecord.instance_id)
            .filter(db_models.PredictedFlightRecord.instance_id == instance_id)
            .first()
            is not None
        )

    def list_predicted_keys(self) -> list[int]:
        rows = (
            self.db.query(db_models.PredictedFlightRecord.instance_id)
            .order_by(db_models.PredictedFlightRecord.instance_id)
            .all()
        )
        return [row[0] for row in rows]

    def search_predicted(
        self,
        *,
        indicative: Optional[str] = None,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[PredictedFlight]:
        model = db_models.PredictedFlightRecord
        query = _filter_endpoints(self.db.query(model), model, indicative, origin, destination)
        records = query.order_by(model.instance_id).limit(limit).all()
        return [_load_predicted(record) for record in records]

    def iter_predicted(self) -> Iterator[list[PredictedFlight]]:
        last_key: int | None = None
        while True:
            query = self.db.query(db_models.PredictedFlightRecord)
            if last_key is not None:
                query = query.filter(db_models.PredictedFlightRecord.instance_id > last_key)
            records = (
                query.order_by(db_models.PredictedFlightRecord.instance_id)
                .limit(self.batch_size)
                .all()
            )
            if not records:
                return
            yield [_load_predicted(record) for record in records]
            last_key = records[-1].instance_id

    def count_predicted(self) -> int:
        return self.db.query(db_models.PredictedFlightRecord).count()


def _endpoints_match(
    flight: RealFlight | PredictedFlight,
    indicative: Optional[str],
    origin: Optional[str],
    destination: Optional[str],
) -> bool:
    return (
        (indicative is None or flight.indicative == indicative)
        and (origin is None or flight.start_point_indicative == origin)
        and (destination is None or flight.end_point_indicative == destination)
    )


def _filter_endpoints(
    query: Query,
    model: type[db_models.RealFlightRecord] | type[db_models.PredictedFlightRecord],
    indicative: Optional[str],
    origin: Optional[str],
    destination: Optional[str],
) -> Query:
    # equality only, so the indexed columns serve the lookup
    if indicative is not None:
        query = query.filter(model.indicative == indicative)
    if origin is not None:
        query = query.filter(model.start_point_indicative == origin)
    if destination is not None:
        query = query.filter(model.end_point_indicative == destination)
    return query


def _load_real(record: db_models.RealFlightRecord) -> RealFlight:
    return RealFlight.model_validate(record.document)


def _load_predicted(record: db_models.PredictedFlightRecord) -> PredictedFlight:
    return PredictedFlight.model_validate(record.document)


__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_SEARCH_LIMIT",
    "FlightStore",
    "InMemoryFlightStore",
    "SqlFlightStore",
]
