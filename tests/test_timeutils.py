from datetime import datetime, timezone

import pytest

from flightkpi.domain import parse_epoch_ms, parse_timestamp, to_epoch_ms

EXPECTED = datetime(2025, 7, 10, 22, 25, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "raw",
    [
        "2025-07-10T22:25:00Z",
        "2025-07-10T22:25:00.000+0000",
        "2025-07-10T22:25:00+00:00",
        "2025-07-10T22:25:00",
        "Thu Jul 10 22:25:00 UTC 2025",
        1752186300000,
        "1752186300000",
        EXPECTED,
    ],
)
def test_parse_timestamp_supported_encodings(raw):
    assert parse_timestamp(raw) == EXPECTED


def test_parse_timestamp_converts_offsets_to_utc():
    parsed = parse_timestamp("2025-07-10T19:25:00-0300")

    assert parsed == EXPECTED


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "not a date",
        True,
        "Thu Jul 10 22:25:00 BRT 2025",
        10**20,
        "99999999999999999999",
        float("nan"),
    ],
)
def test_parse_timestamp_rejects_garbage(raw):
    assert parse_timestamp(raw) is None


def test_epoch_helpers():
    assert to_epoch_ms(EXPECTED) == 1752186300000
    assert to_epoch_ms(datetime(2025, 7, 10, 22, 25)) == 1752186300000
    assert parse_epoch_ms("Thu Jul 10 22:25:00 UTC 2025") == 1752186300000
    assert parse_epoch_ms("garbage") is None
