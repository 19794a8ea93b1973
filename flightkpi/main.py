from __future__ import annotations

import contextlib
import logging
import time

import httpx
from fastapi import FastAPI, Request

from flightkpi.api import api_router
from flightkpi.config import settings
from flightkpi.db import init_db
from flightkpi.services import HttpTrajectorySimulator

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger("flightkpi")


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown lifecycle."""

    init_db()
    logger.info("Database initialized")

    if settings.simulator_enabled:
        app.state.simulator_client = httpx.Client(
            base_url=settings.simulator_base_url,
            timeout=settings.simulator_timeout,
        )
        app.state.simulator = HttpTrajectorySimulator(app.state.simulator_client)
        logger.info("Trajectory simulator enabled at %s", settings.simulator_base_url)
    else:
        logger.info("Trajectory simulator disabled; densification uses linear interpolation")

    try:
        yield
    finally:
        client: httpx.Client | None = getattr(app.state, "simulator_client", None)
        if client:
            client.close()


app = FastAPI(title="FlightKPI Backend", lifespan=lifespan)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log basic request information for observability."""

    start_time = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        "HTTP %s %s -> %s (%.2f ms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


app.include_router(api_router)


@app.get("/", summary="Root")
def read_root() -> dict[str, str]:
    """Basic root endpoint for quick verification."""

    return {"message": "FlightKPI backend is running"}
