import pytest

from flightkpi.domain import RejectionReason
from flightkpi.services.flight_matcher import (
    MatchingConfig,
    QualificationResult,
    is_route_candidate,
    qualify,
)

from factories import (
    MIDPOINT,
    SBRJ,
    SBSP,
    make_element,
    make_point,
    make_predicted,
    make_real_flight,
    ms,
    qualifying_real_flight,
    sbsp_sbrj_elements,
    utc,
)

DEPARTED = ms(utc(2025, 7, 10, 22, 25))
ARRIVED = ms(utc(2025, 7, 11, 0, 0))


def _offset_flight(plan_id, lat_offset_deg, first_level=2, last_level=1):
    return make_real_flight(
        plan_id,
        points=[
            make_point(SBSP[0] + lat_offset_deg, SBSP[1], flight_level=first_level, timestamp=DEPARTED),
            make_point(*MIDPOINT, flight_level=230, timestamp=DEPARTED + 60_000),
            make_point(*SBRJ, flight_level=last_level, timestamp=ARRIVED),
        ],
    )


def test_matches_route_in_both_directions_case_insensitive():
    config = MatchingConfig()

    assert config.matches_route("SBSP", "SBRJ")
    assert config.matches_route("sbrj", "sbsp")
    assert not config.matches_route("SBSP", "SBGR")
    assert not config.matches_route(None, "SBRJ")


def test_route_candidate_requires_aerodrome_ends():
    config = MatchingConfig()
    elements = sbsp_sbrj_elements()
    elements[-1] = make_element("SBRJ", *SBRJ, eet=50.0, element_type="FIX")

    assert is_route_candidate(make_predicted(1), config)
    assert not is_route_candidate(make_predicted(1, elements=elements), config)
    assert not is_route_candidate(make_predicted(1, elements=sbsp_sbrj_elements()[:1]), config)


def test_route_candidate_falls_back_to_element_indicatives():
    assert is_route_candidate(make_predicted(1, start=None, end=None), MatchingConfig())


def test_qualifies_pair_with_direction():
    predicted = make_predicted(42)
    real = qualifying_real_flight(42, DEPARTED, ARRIVED)

    result = qualify([predicted], {42: real})

    assert result.total_qualified == 1
    pair = result.pairs[0]
    assert pair.plan_id == 42
    assert pair.direction == "SBSP->SBRJ"
    assert pair.departure_point.timestamp == DEPARTED
    assert pair.arrival_point.timestamp == ARRIVED
    assert pair.departure_distance_nm == pytest.approx(0.0, abs=1e-6)


def test_rejection_reasons_are_counted():
    predicted = [
        make_predicted(1, start="SBSP", end="SBGR"),
        make_predicted(2),
        make_predicted(3),
        make_predicted(4),
        make_predicted(5),
    ]
    real = {
        3: make_real_flight(3),
        4: _offset_flight(4, lat_offset_deg=0.5),
        5: _offset_flight(5, lat_offset_deg=0.0, first_level=120),
    }

    result = qualify(predicted, real)

    assert result.total_predicted == 5
    assert result.total_route_matched == 4
    assert result.total_matched == 3
    assert result.total_qualified == 0
    assert result.rejections == {
        RejectionReason.NOT_ROUTE_MATCH: 1,
        RejectionReason.NO_REAL_FLIGHT: 1,
        RejectionReason.NO_TRACKING_DATA: 1,
        RejectionReason.DISTANCE_EXCEEDED: 1,
        RejectionReason.ALTITUDE_EXCEEDED: 1,
    }


def test_distance_is_checked_before_altitude():
    real = {1: _offset_flight(1, lat_offset_deg=0.5, first_level=120)}

    result = qualify([make_predicted(1)], real)

    assert result.rejections == {RejectionReason.DISTANCE_EXCEEDED: 1}


def test_tighter_distance_never_qualifies_more():
    # ~1.5 NM north of SBSP
    real = {1: _offset_flight(1, lat_offset_deg=0.025)}
    predicted = [make_predicted(1)]

    loose = qualify(predicted, real, MatchingConfig(max_distance_nm=2.0))
    tight = qualify(predicted, real, MatchingConfig(max_distance_nm=1.0))

    assert loose.total_qualified == 1
    assert tight.total_qualified == 0
    assert 1.4 < loose.pairs[0].departure_distance_nm < 1.6


def test_flight_level_limit_is_inclusive():
    real = {1: _offset_flight(1, lat_offset_deg=0.0, first_level=4, last_level=4)}

    assert qualify([make_predicted(1)], real).total_qualified == 1


def test_reverse_direction_and_summary():
    reversed_elements = list(reversed(sbsp_sbrj_elements()))
    predicted = make_predicted(7, elements=reversed_elements, start="SBRJ", end="SBSP")
    real = make_real_flight(
        7,
        points=[
            make_point(*SBRJ, flight_level=0, timestamp=DEPARTED),
            make_point(*SBSP, flight_level=0, timestamp=ARRIVED),
        ],
    )
    first = qualify([predicted], {7: real})
    second = qualify([make_predicted(8)], {})

    merged = QualificationResult().merge(first).merge(second)
    summary = merged.summary()

    assert summary.total_predicted == 2
    assert summary.total_qualified == 1
    assert summary.direction_counts == {"SBRJ->SBSP": 1}
    assert summary.rejections == {"NO_REAL_FLIGHT": 1}
