from __future__ import annotations

import math
from dataclasses import dataclass

from charge_planner.services.station_selection import rated_power_kw
from charge_planner.services.types import Station

# Average-power discount for a 20% -> 80% session.
SESSION_TAPER_FACTOR = 0.65


@dataclass(slots=True, frozen=True)
class VehicleProfile:
    id: str
    label: str
    connectors: tuple[str, ...]
    max_charge_kw: float
    battery_kwh: float
    min_useful_kw: float | None = None


VEHICLE_PROFILES: tuple[VehicleProfile, ...] = (
    VehicleProfile("any", "Any EV (no filter)", (), 999.0, 60.0),
    VehicleProfile("ac_type2", "Type 2 (AC)", ("Type 2",), 11.0, 60.0, min_useful_kw=7.0),
    VehicleProfile("ccs_fast", "CCS (DC fast)", ("CCS",), 150.0, 60.0, min_useful_kw=50.0),
    VehicleProfile("chademo", "CHAdeMO", ("CHAdeMO",), 50.0, 40.0, min_useful_kw=40.0),
    VehicleProfile("tesla_ccs", "Tesla (CCS)", ("CCS", "Type 2"), 250.0, 75.0, min_useful_kw=50.0),
)


def get_vehicle_profile(profile_id: str | None) -> VehicleProfile | None:
    if not profile_id:
        return None
    return next((profile for profile in VEHICLE_PROFILES if profile.id == profile_id), None)


def station_fits_vehicle(station: Station, profile: VehicleProfile | None) -> bool:
    if profile is None or profile.id == "any" or not profile.connectors:
        return True
    station_connectors = {connector.strip() for connector in station.connectors}
    return any(connector in station_connectors for connector in profile.connectors)


def station_meets_min_power(station: Station, min_kw: float | None) -> bool:
    if not min_kw:
        return True
    power_kw = rated_power_kw(station)
    return power_kw is not None and power_kw >= min_kw


def estimate_charge_minutes_20_to_80(station: Station, profile: VehicleProfile) -> int | None:
    station_kw = rated_power_kw(station)
    if station_kw is None:
        return None
    effective_kw = max(1.0, min(station_kw, profile.max_charge_kw or 999.0))
    energy_kwh = (profile.battery_kwh or 60.0) * 0.6
    average_kw = max(1.0, effective_kw * SESSION_TAPER_FACTOR)
    return math.floor(energy_kwh / average_kw * 60 + 0.5)
