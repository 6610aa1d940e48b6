from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence

from charge_planner.services.geo import closest_point_on_polyline
from charge_planner.services.types import CandidateStation, LonLat, Station

# Assumed rating for stations without usable power data, so that missing data
# never silently excludes a station from fast-only filtering.
DEFAULT_STATION_POWER_KW = 50.0
FAST_CHARGER_MIN_KW = 50.0

_POWER_TOKEN = re.compile(r"([\d.]+)")


def rated_power_kw(station: Station) -> float | None:
    """Highest port power, else the number in the power text, else ``None``."""
    port_max = 0.0
    for port in station.ports:
        if port.power_kw is not None and math.isfinite(port.power_kw):
            port_max = max(port_max, port.power_kw)
    if port_max > 0:
        return port_max

    if station.power:
        match = _POWER_TOKEN.search(station.power)
        if match:
            try:
                value = float(match.group(1))
            except ValueError:
                value = 0.0
            if math.isfinite(value) and value > 0:
                return value

    return None


def parse_station_power_kw(station: Station) -> float:
    rated = rated_power_kw(station)
    return DEFAULT_STATION_POWER_KW if rated is None else rated


def select_candidate_stations(
    stations: Iterable[Station],
    polyline: Sequence[LonLat],
    total_distance_km: float,
    road_factor: float,
    corridor_km: float,
    *,
    fast_only: bool = False,
    available_only: bool = False,
) -> list[CandidateStation]:
    """Stations usable as charge stops, ordered by along-route progress.

    Progress is measured on ``polyline`` and rescaled by ``road_factor`` into
    road-distance units.
    """
    if len(polyline) < 2:
        return []

    candidates: list[CandidateStation] = []
    for station in stations:
        if station.coordinates is None:
            continue
        if available_only and station.availability != "available":
            continue

        power_kw = parse_station_power_kw(station)
        if fast_only and power_kw < FAST_CHARGER_MIN_KW:
            continue

        projection = closest_point_on_polyline(station.coordinates, polyline)
        progress_km = projection.progress_km * road_factor
        if progress_km < 0 or progress_km > total_distance_km:
            continue
        if projection.lateral_km > corridor_km:
            continue

        candidates.append(
            CandidateStation(
                station=station,
                power_kw=power_kw,
                progress_km=progress_km,
                lateral_km=projection.lateral_km,
            )
        )

    return sorted(candidates, key=lambda candidate: candidate.progress_km)
