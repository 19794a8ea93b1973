import itertools

import pytest

from flightkpi.domain import AttachOutcome, DiscardReason
from flightkpi.services.disambiguator import DisambiguationConfig, Disambiguator

from factories import make_real_flight, ms, utc


@pytest.fixture
def shared_call_sign():
    flight_x = make_real_flight(1, start=utc(2025, 7, 10, 10, 0), arrival=utc(2025, 7, 10, 11, 0))
    flight_y = make_real_flight(2, start=utc(2025, 7, 10, 14, 0), arrival=utc(2025, 7, 10, 15, 0))
    return flight_x, flight_y


def test_point_inside_first_window_attaches(shared_call_sign):
    decision = Disambiguator().attach(ms(utc(2025, 7, 10, 11, 10)), shared_call_sign)

    assert decision.outcome == AttachOutcome.ATTACHED
    assert decision.plan_id == 1


def test_point_within_tolerance_attaches(shared_call_sign):
    decision = Disambiguator().attach(ms(utc(2025, 7, 10, 11, 25)), shared_call_sign)

    assert decision.plan_id == 1


def test_point_past_extended_window_is_discarded(shared_call_sign):
    # 11:45 is beyond 11:00 + 30 min
    decision = Disambiguator().attach(ms(utc(2025, 7, 10, 11, 45)), shared_call_sign)

    assert decision.outcome == AttachOutcome.DISCARDED
    assert decision.reason == DiscardReason.OUTSIDE_WINDOW


def test_wider_tolerance_is_configurable(shared_call_sign):
    disambiguator = Disambiguator(DisambiguationConfig(tolerance_minutes=60))

    decision = disambiguator.attach(ms(utc(2025, 7, 10, 11, 45)), shared_call_sign)

    assert decision.plan_id == 1


def test_point_between_flights_is_discarded(shared_call_sign):
    decision = Disambiguator().attach(ms(utc(2025, 7, 10, 13, 0)), shared_call_sign)

    assert not decision.attached
    assert decision.reason == DiscardReason.OUTSIDE_WINDOW


def test_window_bounds_are_inclusive(shared_call_sign):
    disambiguator = Disambiguator()

    assert disambiguator.attach(ms(utc(2025, 7, 10, 10, 0)), shared_call_sign).plan_id == 1
    assert disambiguator.attach(ms(utc(2025, 7, 10, 11, 30)), shared_call_sign).plan_id == 1


def test_no_candidates_is_discarded():
    decision = Disambiguator().attach(ms(utc(2025, 7, 10, 11, 0)), [])

    assert decision.reason == DiscardReason.NO_CANDIDATES


def test_single_candidate_still_needs_window():
    flight = make_real_flight(7, start=utc(2025, 7, 10, 10, 0), arrival=utc(2025, 7, 10, 11, 0))

    decision = Disambiguator().attach(ms(utc(2025, 7, 11, 9, 0)), [flight])

    assert decision.reason == DiscardReason.OUTSIDE_WINDOW


def test_candidate_without_schedule_is_never_eligible():
    flight = make_real_flight(7)

    decision = Disambiguator().attach(ms(utc(2025, 7, 10, 11, 0)), [flight])

    assert not decision.attached


def test_missing_point_timestamp_is_discarded(shared_call_sign):
    decision = Disambiguator().attach(None, shared_call_sign)

    assert not decision.attached


def test_overlapping_windows_pick_closest_end_for_any_order():
    early = make_real_flight(10, start=utc(2025, 7, 10, 9, 0), arrival=utc(2025, 7, 10, 12, 0))
    late = make_real_flight(11, start=utc(2025, 7, 10, 10, 0), arrival=utc(2025, 7, 10, 15, 0))
    third = make_real_flight(12, start=utc(2025, 7, 10, 8, 0), arrival=utc(2025, 7, 10, 18, 0))
    point = ms(utc(2025, 7, 10, 11, 0))

    for candidates in itertools.permutations([early, late, third]):
        assert Disambiguator().attach(point, candidates).plan_id == 10


def test_equal_window_ends_break_ties_by_plan_id():
    first = make_real_flight(21, start=utc(2025, 7, 10, 9, 0), arrival=utc(2025, 7, 10, 12, 0))
    second = make_real_flight(20, start=utc(2025, 7, 10, 10, 0), arrival=utc(2025, 7, 10, 12, 0))
    point = ms(utc(2025, 7, 10, 11, 0))

    assert Disambiguator().attach(point, [first, second]).plan_id == 20
    assert Disambiguator().attach(point, [second, first]).plan_id == 20
