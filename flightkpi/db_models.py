"""SQLAlchemy ORM models for the FlightKPI document store."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from flightkpi.db import Base


class RealFlightRecord(Base):
    """One real flight and its tracking points, stored as a JSON document."""

    __tablename__ = "real_flights"

    plan_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    indicative: Mapped[str | None] = mapped_column(String(32), index=True, nullable=True)
    start_point_indicative: Mapped[str | None] = mapped_column(String(16), index=True, nullable=True)
    end_point_indicative: Mapped[str | None] = mapped_column(String(16), index=True, nullable=True)
    document: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class PredictedFlightRecord(Base):
    """One predicted route keyed by its instance identifier."""

    __tablename__ = "predicted_flights"

    instance_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    indicative: Mapped[str | None] = mapped_column(String(32), index=True, nullable=True)
    start_point_indicative: Mapped[str | None] = mapped_column(String(16), index=True, nullable=True)
    end_point_indicative: Mapped[str | None] = mapped_column(String(16), index=True, nullable=True)
    document: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )
