"""Configuration settings for the FlightKPI backend."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger("flightkpi.config")


def _get_bool(env_var: str, default: bool = False) -> bool:
    """Parse an environment variable into a boolean with a default."""

    value = os.getenv(env_var)
    if value is None:
        return default

    return value.lower() in {"1", "true", "yes", "on"}


def parse_route_pairs(raw: str | None) -> list[tuple[str, str]]:
    """Parse ``"SBSP:SBRJ,SBGR:SBGL"`` into a list of airport pairs.

    Malformed items are logged and ignored.
    """

    pairs: list[tuple[str, str]] = []
    if not raw:
        return pairs

    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        parts = [part.strip().upper() for part in item.split(":")]
        if len(parts) != 2 or not all(parts):
            logger.warning("Ignoring malformed route pair %r", item)
            continue
        pairs.append((parts[0], parts[1]))
    return pairs


def parse_windows(raw: str | None) -> list[int]:
    """Parse a comma separated list of tolerance windows in minutes."""

    windows: list[int] = []
    if not raw:
        return windows

    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            windows.append(int(item))
        except ValueError:
            logger.warning("Ignoring malformed punctuality window %r", item)
    return sorted(set(windows))


@dataclass
class Settings:
    """Application configuration loaded from environment variables."""

    flightkpi_env: str = os.getenv("FLIGHTKPI_ENV", "local")
    log_level: str = os.getenv("FLIGHTKPI_LOG_LEVEL", "INFO")

    # Matching and disambiguation thresholds
    route_pairs: list[tuple[str, str]] = field(
        default_factory=lambda: parse_route_pairs(os.getenv("ROUTE_PAIRS", "SBSP:SBRJ"))
    )
    disambiguation_tolerance_minutes: int = int(
        os.getenv("DISAMBIGUATION_TOLERANCE_MINUTES", "30")
    )
    qualification_max_distance_nm: float = float(
        os.getenv("QUALIFICATION_MAX_DISTANCE_NM", "2.0")
    )
    qualification_max_flight_level: int = int(
        os.getenv("QUALIFICATION_MAX_FLIGHT_LEVEL", "4")
    )
    punctuality_windows: list[int] = field(
        default_factory=lambda: parse_windows(os.getenv("PUNCTUALITY_WINDOWS", "3,5,15"))
    )

    # Bounded sub-batch size for batch operations and store scans
    batch_size: int = int(os.getenv("BATCH_SIZE", "500"))

    # External trajectory simulator
    simulator_enabled: bool = _get_bool("SIMULATOR_ENABLED", default=False)
    simulator_base_url: str = os.getenv("SIMULATOR_BASE_URL", "http://localhost:8090")
    simulator_timeout: float = float(os.getenv("SIMULATOR_TIMEOUT", "10.0"))


settings = Settings()

if not settings.route_pairs:
    logger.warning("No route pairs configured; qualification will reject every flight")

__all__ = ["settings", "Settings", "parse_route_pairs", "parse_windows"]
