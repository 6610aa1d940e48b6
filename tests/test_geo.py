from __future__ import annotations

import math

import pytest
from route_fixtures import KM_PER_DEGREE_LAT

from charge_planner.services.geo import (
    closest_point_on_polyline,
    haversine_km,
    lon_lat_to_meters_xy,
    polyline_distance_km,
)


def test_haversine_one_degree_of_latitude() -> None:
    assert haversine_km((33.0, 34.0), (33.0, 35.0)) == pytest.approx(KM_PER_DEGREE_LAT)


def test_haversine_is_symmetric_and_zero_for_same_point() -> None:
    nicosia = (33.3823, 35.1856)
    limassol = (33.0186, 34.6751)

    assert haversine_km(nicosia, limassol) == pytest.approx(haversine_km(limassol, nicosia))
    assert haversine_km(nicosia, nicosia) == 0.0


def test_polyline_distance_handles_short_inputs() -> None:
    assert polyline_distance_km([]) == 0.0
    assert polyline_distance_km([(33.0, 34.0)]) == 0.0


def test_polyline_distance_sums_segments() -> None:
    points = [(33.0, 34.0), (33.0, 34.5), (33.0, 35.0)]

    assert polyline_distance_km(points) == pytest.approx(KM_PER_DEGREE_LAT)


def test_equirectangular_projection_scales_longitude_by_origin_latitude() -> None:
    x, y = lon_lat_to_meters_xy((1.0, 0.0), origin_lat=60.0)

    assert x == pytest.approx(KM_PER_DEGREE_LAT * 1000 * 0.5)
    assert y == 0.0


def test_projection_onto_segment_interior() -> None:
    polyline = [(33.0, 34.0), (33.0, 35.0)]
    mean_lat = 34.5
    offset_km = 3.0
    lon = 33.0 + offset_km / (KM_PER_DEGREE_LAT * math.cos(math.radians(mean_lat)))

    projection = closest_point_on_polyline((lon, 34.25), polyline)

    assert projection.lateral_km == pytest.approx(offset_km)
    assert projection.progress_km == pytest.approx(KM_PER_DEGREE_LAT / 4)


def test_projection_beyond_end_is_clamped() -> None:
    polyline = [(33.0, 34.0), (33.0, 35.0)]

    projection = closest_point_on_polyline((33.0, 35.5), polyline)

    assert projection.progress_km == pytest.approx(KM_PER_DEGREE_LAT)
    assert projection.lateral_km == pytest.approx(KM_PER_DEGREE_LAT / 2)


def test_projection_picks_nearest_segment_and_accumulates_progress() -> None:
    polyline = [(33.0, 34.0), (33.0, 34.5), (33.0, 35.0)]

    projection = closest_point_on_polyline((33.0, 34.75), polyline)

    assert projection.lateral_km == pytest.approx(0.0, abs=1e-9)
    assert projection.progress_km == pytest.approx(KM_PER_DEGREE_LAT * 0.75)


def test_projection_tolerates_zero_length_segments() -> None:
    polyline = [(33.0, 34.0), (33.0, 34.0), (33.0, 35.0)]

    projection = closest_point_on_polyline((33.0, 34.0), polyline)

    assert projection.lateral_km == pytest.approx(0.0, abs=1e-9)
    assert projection.progress_km == pytest.approx(0.0, abs=1e-9)
