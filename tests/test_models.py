from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest
from pydantic import ValidationError

from weatherpush.exceptions import FetchErrorKind
from weatherpush.models._base import parse_unix_timestamp
from weatherpush.models.condition import ConditionSnapshot
from weatherpush.models.cycle import CycleReport, PairResult


def _owm_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "coord": {"lon": 2.35, "lat": 48.85},
        "weather": [{"id": 800, "main": "Clear", "description": "clear sky", "icon": "01d"}],
        "main": {"temp": 21.5, "feels_like": 21.0, "humidity": 40, "pressure": 1015},
        "wind": {"speed": 3.2, "deg": 220},
        "dt": 1_700_000_000,
        "name": "Paris",
        "cod": 200,
    }
    payload.update(overrides)
    return payload


def test_condition_snapshot_from_provider_payload() -> None:
    snapshot = ConditionSnapshot.from_provider(_owm_payload(), location="paris")

    assert snapshot.location == "Paris"
    assert snapshot.temperature == 21.5
    assert snapshot.humidity == 40
    assert snapshot.wind_speed == 3.2
    assert snapshot.description == "clear sky"
    assert snapshot.observed_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)
    assert snapshot.raw["coord"] == {"lon": 2.35, "lat": 48.85}


def test_condition_snapshot_falls_back_to_requested_location() -> None:
    snapshot = ConditionSnapshot.from_provider(_owm_payload(name=""), location="Paris")
    assert snapshot.location == "Paris"


def test_condition_snapshot_defaults_observed_at_when_missing() -> None:
    payload = _owm_payload()
    del payload["dt"]
    before = datetime.now(UTC)

    snapshot = ConditionSnapshot.from_provider(payload, location="Paris")

    assert snapshot.observed_at is not None
    assert snapshot.observed_at >= before


def test_condition_snapshot_coerces_numeric_strings() -> None:
    payload = _owm_payload(main={"temp": "18.25", "humidity": "55"}, wind={"speed": "0"})
    snapshot = ConditionSnapshot.from_provider(payload, location="Paris")

    assert snapshot.temperature == 18.25
    assert snapshot.humidity == 55
    assert snapshot.wind_speed == 0


@pytest.mark.parametrize(
    "overrides",
    [
        {"main": {"humidity": 40}},
        {"main": {"temp": 21.5, "humidity": 140}},
        {"wind": {"speed": -1}},
        {"weather": []},
        {"main": {"temp": "warm", "humidity": 40}},
    ],
)
def test_condition_snapshot_rejects_incomplete_payloads(overrides: dict[str, Any]) -> None:
    with pytest.raises(ValidationError):
        ConditionSnapshot.from_provider(_owm_payload(**overrides), location="Paris")


def test_condition_snapshot_accepts_flat_fields() -> None:
    snapshot = ConditionSnapshot(
        location=" Tokyo ",
        temperature=9,
        humidity=80,
        wind_speed=1.5,
        description="light rain",
    )
    assert snapshot.location == "Tokyo"
    assert snapshot.temperature == 9.0
    with pytest.raises(ValidationError):
        snapshot.temperature = 10  # type: ignore[misc]


def test_parse_unix_timestamp_handles_seconds_and_millis() -> None:
    expected = datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)
    assert parse_unix_timestamp(1_700_000_000) == expected
    assert parse_unix_timestamp(1_700_000_000_000) == expected
    assert parse_unix_timestamp(None) is None
    assert parse_unix_timestamp(datetime(2024, 1, 1)) == datetime(2024, 1, 1, tzinfo=UTC)


def test_parse_unix_timestamp_rejects_out_of_range_values() -> None:
    for value in (1e300, float("inf")):
        with pytest.raises(ValueError, match="out of range"):
            parse_unix_timestamp(value)


def test_condition_snapshot_rejects_out_of_range_timestamp() -> None:
    with pytest.raises(ValidationError):
        ConditionSnapshot.from_provider(_owm_payload(dt=1e300), location="Paris")


def test_cycle_report_partitions_results() -> None:
    snapshot = ConditionSnapshot(location="Paris", temperature=1, humidity=2, wind_speed=3, description="fog")
    report = CycleReport(
        started_at=datetime(2024, 1, 1, 12, 0, tzinfo=UTC),
        finished_at=datetime(2024, 1, 1, 12, 0, 5, tzinfo=UTC),
        results=[
            PairResult(chat_id=1, location="Paris", snapshot=snapshot, delivered=True),
            PairResult(chat_id=1, location="Nowhere", error_kind=FetchErrorKind.NOT_FOUND),
            PairResult(chat_id=2, location="Paris", snapshot=snapshot, delivery_error="blocked"),
        ],
    )

    assert report.pair_count == 3
    assert [r.chat_id for r in report.delivered] == [1]
    assert [r.location for r in report.fetch_failures] == ["Nowhere"]
    assert [r.chat_id for r in report.delivery_failures] == [2]
    assert report.duration == 5.0
