import math

import httpx
import pytest
from fastapi.testclient import TestClient

from flightkpi.api.dependencies import get_simulator, get_store
from flightkpi.main import app
from flightkpi.services import InMemoryFlightStore

from factories import make_point, make_predicted, make_real_flight, ms, utc

WINDOW = "[Thu Jul 10 22:25:00 UTC 2025,Fri Jul 11 00:00:00 UTC 2025]"


@pytest.fixture
def store():
    return InMemoryFlightStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_simulator] = lambda: None
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _packet(timestamp, pings=(), intentions=()):
    return {
        "packetStoredTimestamp": timestamp,
        "listFlightIntention": list(intentions),
        "listRealPath": list(pings),
    }


def _ping(lat, lon, level):
    return {
        "indicativeSafe": "TAM100",
        "flightLevel": level,
        "kinematic": {"position": {"latitude": math.radians(lat), "longitude": math.radians(lon)}},
    }


INTENTION = {
    "planId": 42,
    "indicative": "TAM100",
    "flightPlanDate": "2025-07-10T22:00:00Z",
    "currentDateTimeOfArrival": "2025-07-11T00:00:00Z",
    "startPointIndicative": "SBSP",
    "endPointIndicative": "SBRJ",
}


def test_health_and_root(client):
    health = client.get("/healthz").json()
    assert health["status"] == "ok"
    assert health["simulator"] == "disabled"
    assert client.get("/").status_code == 200


def test_streaming_packets_build_a_flight(client):
    created = client.post("/api/v1/streaming/packet", json=_packet(ms(utc(2025, 7, 10, 22, 0)), intentions=[INTENTION]))
    attached = client.post(
        "/api/v1/streaming/packet",
        json=_packet("2025-07-10T22:25:00Z", pings=[_ping(-23.6261, -46.6564, 2)]),
    )

    assert created.status_code == 200
    assert created.json()["newFlights"] == 1
    assert attached.json()["attachedPoints"] == 1

    flight = client.get("/api/v1/flights/42").json()
    assert flight["planId"] == 42
    assert len(flight["trackingPoints"]) == 1

    stats = client.get("/api/v1/streaming/stats").json()
    assert stats == {
        "totalFlights": 1,
        "flightsWithTracking": 1,
        "totalTrackingPoints": 1,
        "totalPredictedFlights": 0,
    }


def test_streaming_packet_with_out_of_range_timestamps(client):
    intention = dict(INTENTION, flightPlanDate=10**20)

    response = client.post("/api/v1/streaming/packet", json=_packet("99999999999999999999", intentions=[intention]))

    assert response.status_code == 200
    assert response.json()["newFlights"] == 1
    assert client.get("/api/v1/flights/42").json()["flightPlanDate"] is None


def test_streaming_rejects_non_object_packet(client):
    response = client.post("/api/v1/streaming/packet", json=[1, 2, 3])

    assert response.status_code == 400


def test_flight_lookups(client, store):
    assert client.get("/api/v1/flights/1").status_code == 404
    assert client.get("/api/v1/flights").status_code == 400
    assert client.get("/api/v1/flights", params={"indicative": "TAM100"}).json() == []


def test_flight_search_endpoints(client, store):
    for plan_id, origin in [(4201, "SBSP"), (4202, "SBGR"), (5100, "SBSP")]:
        flight = make_real_flight(plan_id, indicative=f"TAM{plan_id}")
        flight.start_point_indicative = origin
        store.upsert_flight(flight)
    store.upsert_predicted(make_predicted(1, indicative="TAM4201"))

    by_prefix = client.get("/api/v1/flights/search", params={"planIdPrefix": "42"}).json()
    by_origin = client.get("/api/v1/flights/search", params={"origin": " SBSP ", "destination": "SBRJ"}).json()
    stats = client.get("/api/v1/flights/stats").json()

    assert [f["planId"] for f in by_prefix] == [4201, 4202]
    assert [f["planId"] for f in by_origin] == [4201, 5100]
    assert client.get("/api/v1/flights/search").status_code == 400
    assert client.get("/api/v1/flights/search", params={"planIdPrefix": "4a"}).status_code == 400
    assert client.get("/api/v1/flights/search", params={"origin": "SBSP", "limit": 0}).status_code == 422
    assert stats == {
        "totalRealFlights": 3,
        "totalPredictedFlights": 1,
        "uniqueRealIndicatives": 3,
        "uniquePredictedIndicatives": 1,
        "matchingRate": pytest.approx(100 / 3),
    }


def test_plan_ids_and_duplicate_cleanup_endpoints(client, store):
    point = make_point(-23.6, -46.6, timestamp=ms(utc(2025, 7, 10, 22, 25)))
    store.upsert_flight(make_real_flight(9, points=[point, point.model_copy()]))
    store.upsert_flight(make_real_flight(3))

    plan_ids = client.get("/api/v1/streaming/plan-ids").json()
    cleanup = client.post("/api/v1/streaming/cleanup-duplicates").json()

    assert plan_ids == [3, 9]
    assert cleanup["pointsRemoved"] == 1
    assert cleanup["flightsUpdated"] == 1
    assert cleanup["flightsScanned"] == 2
    assert len(store.find_flight(9).tracking_points) == 1


def test_duplicate_indicatives_endpoint(client):
    second = dict(
        INTENTION,
        planId=43,
        flightPlanDate="2025-07-11T10:00:00Z",
        currentDateTimeOfArrival="2025-07-11T11:00:00Z",
    )
    client.post("/api/v1/streaming/packet", json=_packet(None, intentions=[INTENTION, second]))

    body = client.get("/api/v1/streaming/duplicate-indicatives").json()

    assert body["duplicates"] == {"TAM100": [42, 43]}


def test_predicted_flight_endpoints(client):
    payload = make_predicted(42, time_window=WINDOW).model_dump(mode="json", by_alias=True)

    created = client.post("/api/v1/predicted-flights", json=payload)
    fetched = client.get("/api/v1/predicted-flights/42")
    missing_id = client.post("/api/v1/predicted-flights", json={"indicative": "X"})

    assert created.status_code == 200
    assert created.json()["created"] is True
    assert fetched.json()["time"] == WINDOW
    assert missing_id.status_code == 400
    assert client.get("/api/v1/predicted-flights/7").status_code == 404
    assert client.get("/api/v1/predicted-flights/stats").json() == {"totalPredictedFlights": 1}


def test_predicted_search_endpoint(client, store):
    store.save_predicted_batch(
        [
            make_predicted(1, indicative="TAM100"),
            make_predicted(2, indicative="GLO1", start="SBGR"),
            make_predicted(3, indicative="TAM100", start="SBRJ", end="SBSP"),
        ]
    )

    by_indicative = client.get("/api/v1/predicted-flights/search", params={"indicative": "TAM100"}).json()
    by_route = client.get(
        "/api/v1/predicted-flights/search", params={"origin": "SBGR", "destination": "SBRJ"}
    ).json()

    assert [f["instanceId"] for f in by_indicative] == [1, 3]
    assert [f["instanceId"] for f in by_route] == [2]
    assert client.get("/api/v1/predicted-flights/search", params={"origin": "  "}).status_code == 400


def test_predicted_batch_endpoint(client):
    batch = [
        make_predicted(1).model_dump(mode="json", by_alias=True),
        make_predicted(1).model_dump(mode="json", by_alias=True),
        "not a flight",
    ]

    body = client.post("/api/v1/predicted-flights/batch", json=batch).json()

    assert body["totalReceived"] == 3
    assert body["totalProcessed"] == 1
    assert body["totalSkipped"] == 1
    assert body["totalFailed"] == 1
    assert client.post("/api/v1/predicted-flights/batch", json={"instanceId": 1}).status_code == 400


def test_analysis_endpoints(client):
    client.post("/api/v1/predicted-flights", json=make_predicted(42, time_window=WINDOW).model_dump(mode="json", by_alias=True))
    client.post("/api/v1/streaming/packet", json=_packet(ms(utc(2025, 7, 10, 22, 0)), intentions=[INTENTION]))
    for timestamp, (lat, lon, level) in [
        ("2025-07-10T22:25:00Z", (-23.6261, -46.6564, 2)),
        ("2025-07-10T23:10:00Z", (-23.30, -44.90, 230)),
        ("2025-07-11T00:01:00Z", (-22.9105, -43.1631, 1)),
    ]:
        client.post("/api/v1/streaming/packet", json=_packet(timestamp, pings=[_ping(lat, lon, level)]))

    qualification = client.get("/api/v1/punctuality/qualification").json()
    punctuality = client.post("/api/v1/punctuality/analysis").json()
    accuracy = client.post("/api/v1/accuracy/analysis").json()

    assert qualification["totalQualified"] == 1
    assert punctuality["totalAnalyzed"] == 1
    assert punctuality["flightResults"][0]["timeDifferenceMinutes"] == 1.0
    assert [w["flightsWithinTolerance"] for w in punctuality["toleranceWindows"]] == [1, 1, 1]
    assert accuracy["totalAnalyzedFlights"] == 1
    assert accuracy["aggregateMetrics"]["totalPoints"] == 3


def test_densification_endpoints(client):
    client.post("/api/v1/predicted-flights", json=make_predicted(42).model_dump(mode="json", by_alias=True))

    single = client.post("/api/v1/densification/42", params={"target": 6}).json()
    batch = client.post(
        "/api/v1/densification/batch", params={"target": 3}, json={"planIds": [42, 99]}
    ).json()

    assert single["status"] == "SUCCESS"
    assert single["finalElementCount"] == 5
    assert batch["totalNoAction"] == 1
    assert batch["totalNotFound"] == 1
    assert client.post("/api/v1/densification/42", params={"target": 0}).status_code == 422


@pytest.mark.anyio
async def test_async_client_reaches_health():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        response = await async_client.get("/healthz")

    assert response.status_code == 200
