from collections import Counter

import pytest

from flightkpi.domain import DurationSkipReason
from flightkpi.services.flight_matcher import qualify
from flightkpi.services.time_extractor import (
    extract_all,
    extract_durations,
    parse_time_window,
    predicted_duration_ms,
)

from factories import make_element, make_predicted, ms, qualifying_real_flight, utc

WINDOW = "[Thu Jul 10 22:25:00 UTC 2025,Fri Jul 11 00:00:00 UTC 2025]"
DEPARTED = ms(utc(2025, 7, 10, 22, 25))


def _pair(predicted, departed=DEPARTED, arrived=DEPARTED + 95 * 60_000):
    real = qualifying_real_flight(predicted.instance_id, departed, arrived)
    result = qualify([predicted], {predicted.instance_id: real})
    assert result.total_qualified == 1
    return result.pairs[0]


def test_parse_time_window():
    start, end = parse_time_window(WINDOW)

    assert start == ms(utc(2025, 7, 10, 22, 25))
    assert end - start == 95 * 60_000


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "[Thu Jul 10 22:25:00 UTC 2025]",
        "[garbage,Fri Jul 11 00:00:00 UTC 2025]",
        "[Fri Jul 11 00:00:00 UTC 2025,Thu Jul 10 22:25:00 UTC 2025]",
    ],
)
def test_parse_time_window_rejects_malformed(raw):
    assert parse_time_window(raw) is None


def test_predicted_duration_prefers_time_window():
    assert predicted_duration_ms(make_predicted(1, time_window=WINDOW)) == 95 * 60_000


def test_predicted_duration_falls_back_to_eet_sum():
    # default route EETs are 0, 25 and 50 minutes
    flight = make_predicted(1, time_window="[broken]")

    assert predicted_duration_ms(flight) == 75 * 60_000


def test_predicted_duration_without_any_source():
    elements = [make_element("A", 0.0, 0.0, eet=0.0), make_element("B", 1.0, 1.0, eet=0.0)]

    assert predicted_duration_ms(make_predicted(1, elements=elements)) is None


def test_extract_durations_uses_first_and_last_ping():
    duration = extract_durations(_pair(make_predicted(5, time_window=WINDOW)))

    assert duration.plan_id == 5
    assert duration.predicted_duration_ms == 95 * 60_000
    assert duration.actual_duration_ms == 95 * 60_000
    assert duration.delta_minutes == 0


def test_extract_durations_skips_missing_timestamp():
    pair = _pair(make_predicted(5, time_window=WINDOW))
    pair.arrival_point.timestamp = None
    skipped = Counter()

    assert extract_durations(pair, skipped) is None
    assert skipped == {DurationSkipReason.MISSING_TIMESTAMP: 1}


def test_extract_all_counts_skip_reasons():
    good = _pair(make_predicted(1, time_window=WINDOW))
    backwards = _pair(make_predicted(2, time_window=WINDOW), departed=DEPARTED, arrived=DEPARTED - 1)
    flat = [make_element("SBSP", -23.6261, -46.6564, 0.0, "AERODROME"), make_element("SBRJ", -22.9105, -43.1631, 0.0, "AERODROME")]
    unparseable = _pair(make_predicted(3, elements=flat))

    extraction = extract_all([good, backwards, unparseable])

    assert [d.plan_id for d in extraction.durations] == [1]
    assert extraction.total_skipped == 2
    assert extraction.skipped == {
        DurationSkipReason.NON_MONOTONIC: 1,
        DurationSkipReason.UNPARSEABLE_PREDICTION: 1,
    }
