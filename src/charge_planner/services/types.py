from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

LonLat = tuple[float, float]
Availability = Literal["available", "occupied", "out_of_service", "unknown"]
RoutingMode = Literal["approx", "live"]


@dataclass(slots=True, frozen=True)
class RoutePlace:
    id: str
    label: str
    coordinates: LonLat


@dataclass(slots=True, frozen=True)
class RouteTemplate:
    id: str
    name: str
    polyline: tuple[LonLat, ...]
    start: RoutePlace
    end: RoutePlace
    description: str = ""


@dataclass(slots=True, frozen=True)
class StationPort:
    power_kw: float | None = None
    availability: Availability = "unknown"


@dataclass(slots=True, frozen=True)
class Station:
    id: str
    name: str
    coordinates: LonLat | None
    power: str | None = None
    availability: Availability = "unknown"
    status_label: str | None = None
    ports: tuple[StationPort, ...] = ()
    connectors: tuple[str, ...] = ()
    operator: str | None = None
    address: str | None = None
    city: str | None = None


@dataclass(slots=True, frozen=True)
class RouteProjection:
    lateral_km: float
    progress_km: float


@dataclass(slots=True, frozen=True)
class CandidateStation:
    station: Station
    power_kw: float
    progress_km: float
    lateral_km: float


@dataclass(slots=True, frozen=True)
class RoutePlanInput:
    template_id: str
    current_soc_pct: float
    battery_kwh: float
    consumption_kwh_per_100km: float
    desired_arrival_soc_pct: float
    preferred_charge_to_soc_pct: float
    vehicle_max_charge_kw: float
    corridor_km: float
    fast_only: bool = False
    available_only: bool = False
    max_stops: float = 3
    template_override: RouteTemplate | None = None
    route_polyline: tuple[LonLat, ...] | None = None
    route_distance_km: float | None = None
    route_duration_min: float | None = None


@dataclass(slots=True, frozen=True)
class ChargeStop:
    station_id: str
    station_name: str
    station_power_kw: int
    target_soc_pct: float
    added_kwh: float
    estimated_minutes: int
    notes: str | None = None


@dataclass(slots=True, frozen=True)
class RoutePlanLeg:
    from_label: str
    to_label: str
    distance_km: float
    depart_soc_pct: float
    arrive_soc_pct: float
    charge_stop: ChargeStop | None = None


@dataclass(slots=True, frozen=True)
class RoutePlanResult:
    ok: bool
    template: RouteTemplate
    polyline: tuple[LonLat, ...]
    total_distance_km: float
    routing_mode: RoutingMode
    estimated_arrival_soc_pct_if_no_charging: float
    can_reach_without_charging: bool
    estimated_drive_minutes: int | None = None
    legs: tuple[RoutePlanLeg, ...] = ()
    suggested_stop_station_ids: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class RoutedPath:
    polyline: tuple[LonLat, ...]
    distance_km: float
    duration_min: float
    provider: Literal["osrm"] = "osrm"


@dataclass(slots=True, frozen=True)
class GeocodedPlace:
    id: str
    label: str
    coordinates: LonLat
    source: Literal["nominatim"] = "nominatim"
