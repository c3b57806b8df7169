"""Shared fixtures for the ferrycast test suite."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from ferrycast.config.route_priors import RoutePriorsConfig, ValidationThresholds
from ferrycast.training.types import VesselHistoryRecord

PACIFIC = ZoneInfo("America/Los_Angeles")

# A Wednesday
BASE_DAY = datetime(2024, 6, 12, tzinfo=PACIFIC)


@pytest.fixture
def priors() -> RoutePriorsConfig:
    """Small four-terminal network with round-number priors."""
    return RoutePriorsConfig(
        valid_terminals=frozenset({"AAA", "BBB", "CCC", "DDD"}),
        terminal_mapping={
            "Alpha": "AAA",
            "Bravo": "BBB",
            "Charlie": "CCC",
            "Delta": "DDD",
            "Nowhere": "ZZZ",
        },
        mean_at_dock_minutes={
            "AAA->BBB": 20.0,
            "BBB->CCC": 20.0,
            "CCC->BBB": 20.0,
            "CCC->DDD": 15.0,
        },
        mean_at_sea_minutes={
            "AAA->BBB": 45.0,
            "BBB->CCC": 40.0,
            "CCC->BBB": 40.0,
            "CCC->DDD": 30.0,
        },
        thresholds=ValidationThresholds(),
    )


def at(hour: int, minute: int = 0, day_offset: int = 0) -> datetime:
    """Pacific wall-clock time on the base test day."""
    return BASE_DAY + timedelta(days=day_offset, hours=hour, minutes=minute)


def history(
    departing: str,
    arriving: str,
    scheduled: datetime,
    actual: datetime | None,
    est_arrival: datetime | None,
    vessel: str | None = "Tacoma",
) -> VesselHistoryRecord:
    return VesselHistoryRecord(
        vessel=vessel,
        departing=departing,
        arriving=arriving,
        scheduled_depart=scheduled,
        actual_depart=actual,
        est_arrival=est_arrival,
        sailing_date=scheduled.date(),
    )


@pytest.fixture
def scenario_records() -> list[VesselHistoryRecord]:
    """A->B then B->C with 20 minutes of slack at B."""
    return [
        history("Alpha", "Bravo", at(8, 0), at(8, 5), at(8, 50)),
        history("Bravo", "Charlie", at(9, 10), at(9, 12), at(9, 55)),
    ]


@pytest.fixture
def shuttle_records():
    """
    Factory for a vessel shuttling Bravo <-> Charlie every 70 minutes.

    Departure delays and crossing times vary a little per leg so the
    fitted models have something to learn.
    """
    def build(legs: int = 80, vessel: str = "Tacoma") -> list[VesselHistoryRecord]:
        records = []
        start = at(5, 0)
        for k in range(legs):
            departing, arriving = ("Bravo", "Charlie") if k % 2 == 0 else ("Charlie", "Bravo")
            scheduled = start + timedelta(minutes=70 * k)
            actual = scheduled + timedelta(minutes=k % 5)
            arrival = actual + timedelta(minutes=38 + k % 4)
            records.append(history(departing, arriving, scheduled, actual, arrival, vessel=vessel))
        return records

    return build
