from __future__ import annotations

import pytest
from route_fixtures import station_at, straight_template

from charge_planner.services.station_selection import (
    DEFAULT_STATION_POWER_KW,
    parse_station_power_kw,
    select_candidate_stations,
)
from charge_planner.services.types import Station, StationPort


def _station(power: str | None = None, ports: tuple[StationPort, ...] = ()) -> Station:
    return Station(id="s", name="S", coordinates=(33.0, 35.0), power=power, ports=ports)


@pytest.mark.parametrize(
    ("power", "ports", "expected"),
    [
        ("22 kW", (StationPort(power_kw=22.0), StationPort(power_kw=150.0), StationPort()), 150.0),
        ("7.4 kW", (StationPort(),), 7.4),
        ("43", (StationPort(power_kw=0.0),), 43.0),
        ("Fast DC", (), DEFAULT_STATION_POWER_KW),
        (None, (), DEFAULT_STATION_POWER_KW),
        ("0 kW", (), DEFAULT_STATION_POWER_KW),
    ],
)
def test_parse_station_power(power, ports, expected) -> None:
    assert parse_station_power_kw(_station(power, ports)) == pytest.approx(expected)


def test_candidates_are_sorted_by_progress() -> None:
    template = straight_template(100.0)
    stations = [station_at("b", 70.0), station_at("a", 20.0), station_at("c", 45.0)]

    candidates = select_candidate_stations(stations, template.polyline, 100.0, 1.0, 10.0)

    assert [candidate.station.id for candidate in candidates] == ["a", "c", "b"]
    assert candidates[0].progress_km == pytest.approx(20.0)
    assert candidates[0].power_kw == pytest.approx(150.0)


def test_candidates_are_filtered_by_flags_and_corridor() -> None:
    template = straight_template(100.0)
    stations = [
        Station(id="nowhere", name="No coordinates", coordinates=None),
        station_at("busy", 30.0, availability="occupied"),
        station_at("slow", 40.0, power="11 kW"),
        station_at("wide", 50.0, lateral_km=12.0),
        station_at("good", 60.0, lateral_km=2.0),
    ]

    candidates = select_candidate_stations(
        stations,
        template.polyline,
        100.0,
        1.0,
        10.0,
        fast_only=True,
        available_only=True,
    )

    assert [candidate.station.id for candidate in candidates] == ["good"]
    assert candidates[0].lateral_km == pytest.approx(2.0, abs=0.05)


def test_progress_is_scaled_by_road_factor() -> None:
    template = straight_template(100.0)

    candidates = select_candidate_stations(
        [station_at("mid", 50.0)], template.polyline, 112.0, 1.12, 10.0
    )

    assert candidates[0].progress_km == pytest.approx(56.0)


def test_degenerate_polyline_yields_no_candidates() -> None:
    assert select_candidate_stations([station_at("a", 1.0)], [(33.0, 34.6)], 10.0, 1.0, 10.0) == []
