from __future__ import annotations

import math
from collections.abc import Sequence

from charge_planner.services.types import LonLat, RouteProjection

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_M = 6371000.0


def haversine_km(a: LonLat, b: LonLat) -> float:
    lon1, lat1 = a
    lon2, lat2 = b
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)

    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    h = (
        math.sin(dlat / 2.0) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2.0) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def polyline_distance_km(points: Sequence[LonLat]) -> float:
    total = 0.0
    for index in range(1, len(points)):
        total += haversine_km(points[index - 1], points[index])
    return total


def lon_lat_to_meters_xy(coord: LonLat, origin_lat: float) -> tuple[float, float]:
    """Equirectangular projection around ``origin_lat``.

    Only valid for country-scale extents (a few hundred km).
    """
    lon, lat = coord
    x = EARTH_RADIUS_M * math.radians(lon) * math.cos(math.radians(origin_lat))
    y = EARTH_RADIUS_M * math.radians(lat)
    return x, y


def closest_point_on_polyline(point: LonLat, polyline: Sequence[LonLat]) -> RouteProjection:
    """Project ``point`` onto ``polyline``.

    Returns the lateral distance to the nearest segment and the along-route
    progress of that projection, both in km, measured in the local planar frame.
    """
    origin_lat = sum(coord[1] for coord in polyline) / max(1, len(polyline))
    point_x, point_y = lon_lat_to_meters_xy(point, origin_lat)

    best_lateral_m = float("inf")
    best_along_m = 0.0
    prefix_m = 0.0

    for index in range(1, len(polyline)):
        start_x, start_y = lon_lat_to_meters_xy(polyline[index - 1], origin_lat)
        end_x, end_y = lon_lat_to_meters_xy(polyline[index], origin_lat)

        vector_x = end_x - start_x
        vector_y = end_y - start_y
        vector_norm_sq = vector_x * vector_x + vector_y * vector_y
        segment_length = math.sqrt(vector_norm_sq)

        if vector_norm_sq > 0:
            t = ((point_x - start_x) * vector_x + (point_y - start_y) * vector_y) / vector_norm_sq
            t = max(0.0, min(1.0, t))
        else:
            t = 0.0

        projected_x = start_x + t * vector_x
        projected_y = start_y + t * vector_y
        distance = math.hypot(point_x - projected_x, point_y - projected_y)

        if distance < best_lateral_m:
            best_lateral_m = distance
            best_along_m = prefix_m + t * segment_length
        prefix_m += segment_length

    return RouteProjection(lateral_km=best_lateral_m / 1000.0, progress_km=best_along_m / 1000.0)
