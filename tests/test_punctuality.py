import pytest

from flightkpi.domain import DurationSkipReason
from flightkpi.services.punctuality import analyze_punctuality
from flightkpi.services.time_extractor import DurationPair

MINUTE = 60_000


def _duration(plan_id, predicted_minutes, actual_minutes):
    return DurationPair(
        plan_id=plan_id,
        indicative=f"TAM{plan_id}",
        predicted_duration_ms=int(predicted_minutes * MINUTE),
        actual_duration_ms=int(actual_minutes * MINUTE),
    )


@pytest.fixture
def durations():
    return [
        _duration(1, 60, 62),  # 2 min
        _duration(2, 60, 55),  # 5 min, on the boundary
        _duration(3, 60, 70),  # 10 min
        _duration(4, 60, 90),  # 30 min
    ]


def test_windows_are_cumulative(durations):
    result = analyze_punctuality(durations)

    rows = {row.tolerance_minutes: row for row in result.tolerance_windows}
    assert rows[3].flights_within_tolerance == 1
    assert rows[5].flights_within_tolerance == 2
    assert rows[15].flights_within_tolerance == 3
    assert rows[3].percentage_within_tolerance == 25.0
    assert rows[15].kpi_output == "75.0% of flights within ±15 minutes"
    assert rows[5].window_description == "±5 minutes"


def test_percentages_round_to_one_decimal():
    result = analyze_punctuality(
        [_duration(1, 60, 60), _duration(2, 60, 61), _duration(3, 60, 80)], windows=[3]
    )

    assert result.tolerance_windows[0].percentage_within_tolerance == 66.7


def test_flight_details(durations):
    result = analyze_punctuality(durations)

    detail = result.flight_results[2]
    assert detail.plan_id == 3
    assert detail.time_difference_ms == 10 * MINUTE
    assert detail.time_difference_minutes == 10.0
    assert detail.within_windows == [15]


def test_custom_windows_are_sorted_and_deduplicated(durations):
    result = analyze_punctuality(durations, windows=[30, 1, 30])

    assert [row.tolerance_minutes for row in result.tolerance_windows] == [1, 30]
    assert result.tolerance_windows[1].flights_within_tolerance == 4


def test_empty_input_reports_zero_percent():
    result = analyze_punctuality([], total_matched=3, skip_reasons={DurationSkipReason.NON_MONOTONIC: 3})

    assert result.total_matched == 3
    assert result.total_analyzed == 0
    assert result.total_skipped == 3
    assert result.skip_reasons == {"NON_MONOTONIC": 3}
    assert all(row.percentage_within_tolerance == 0.0 for row in result.tolerance_windows)
