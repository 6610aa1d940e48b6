from __future__ import annotations

import math

from charge_planner.services.types import RoutePlace, RouteTemplate, Station, StationPort

# Along a meridian, haversine distance and planar progress are both R * dlat.
KM_PER_DEGREE_LAT = 6371.0 * math.pi / 180.0
ROUTE_LON = 33.0
ROUTE_START_LAT = 34.6


def straight_template(distance_km: float, template_id: str = "test-route") -> RouteTemplate:
    end_lat = ROUTE_START_LAT + distance_km / KM_PER_DEGREE_LAT
    start = RoutePlace(id="start", label="Start", coordinates=(ROUTE_LON, ROUTE_START_LAT))
    end = RoutePlace(id="end", label="End", coordinates=(ROUTE_LON, end_lat))
    return RouteTemplate(
        id=template_id,
        name="Test route",
        polyline=(start.coordinates, end.coordinates),
        start=start,
        end=end,
    )


def station_at(
    station_id: str,
    progress_km: float,
    *,
    lateral_km: float = 0.0,
    power: str | None = "150 kW",
    availability: str = "available",
    ports: tuple[StationPort, ...] = (),
) -> Station:
    lat = ROUTE_START_LAT + progress_km / KM_PER_DEGREE_LAT
    lon = ROUTE_LON + lateral_km / (KM_PER_DEGREE_LAT * math.cos(math.radians(ROUTE_START_LAT)))
    return Station(
        id=station_id,
        name=f"Station {station_id}",
        coordinates=(lon, lat),
        power=power,
        availability=availability,  # type: ignore[arg-type]
        status_label=availability.replace("_", " ").title(),
        ports=ports,
    )
