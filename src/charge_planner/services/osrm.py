from __future__ import annotations

import hashlib
import logging
import math
import time
from collections.abc import Sequence
from typing import Any

import httpx
from django.conf import settings

from charge_planner.exceptions import ExternalServiceError, NoRouteFoundError
from charge_planner.services.storage import CacheKeyValueStore, KeyValueStore
from charge_planner.services.types import LonLat, RoutedPath

logger = logging.getLogger(__name__)


class OsrmClient:
    def __init__(self, store: KeyValueStore | None = None) -> None:
        self.base_url = settings.OSRM_BASE_URL.rstrip("/")
        self.timeout = settings.OSRM_TIMEOUT_SECONDS
        self.retry_count = settings.OSRM_RETRY_COUNT
        self.cache_ttl = settings.ROUTE_CACHE_TTL_SECONDS
        self.store = store or CacheKeyValueStore()

    def route_through(self, waypoints: Sequence[LonLat]) -> RoutedPath:
        if len(waypoints) < 2:
            raise NoRouteFoundError("At least two route waypoints are required")

        cache_key = self._cache_key(waypoints)
        cached = self.store.get(cache_key, max_age_seconds=self.cache_ttl)
        if cached:
            return RoutedPath(
                polyline=tuple((lon, lat) for lon, lat in cached["polyline"]),
                distance_km=cached["distance_km"],
                duration_min=cached["duration_min"],
            )

        coordinates = ";".join(f"{lon},{lat}" for lon, lat in waypoints)
        endpoint = f"{self.base_url}/route/v1/driving/{coordinates}"
        params = {
            "overview": "full",
            "geometries": "geojson",
            "steps": "false",
        }

        for attempt in range(self.retry_count + 1):
            try:
                response = httpx.get(
                    endpoint,
                    params=params,
                    timeout=self.timeout,
                    headers={"Accept": "application/json"},
                )
                response.raise_for_status()
                routed = self._parse_response(response.json())
                self.store.set(
                    cache_key,
                    {
                        "polyline": [list(coord) for coord in routed.polyline],
                        "distance_km": routed.distance_km,
                        "duration_min": routed.duration_min,
                    },
                    ttl_seconds=self.cache_ttl,
                )
                return routed
            except NoRouteFoundError:
                raise
            except httpx.HTTPError as exc:
                logger.warning("OSRM request attempt %s failed: %s", attempt + 1, exc)
                if attempt >= self.retry_count:
                    raise ExternalServiceError("OSRM request failed") from exc
                time.sleep(0.3 * (attempt + 1))

        raise ExternalServiceError("OSRM request failed")

    @staticmethod
    def _cache_key(waypoints: Sequence[LonLat]) -> str:
        encoded = ";".join(f"{lon:.4f},{lat:.4f}" for lon, lat in waypoints).encode()
        digest = hashlib.sha256(encoded).hexdigest()
        return f"route_osrm_v1:{digest}"

    @staticmethod
    def _parse_response(payload: Any) -> RoutedPath:
        if not isinstance(payload, dict) or payload.get("code", "Ok") != "Ok":
            raise NoRouteFoundError("Could not compute route")

        routes = payload.get("routes") or []
        if not routes:
            raise NoRouteFoundError("Could not compute route")

        first = routes[0]
        polyline = _as_polyline((first.get("geometry") or {}).get("coordinates"))
        if polyline is None:
            raise NoRouteFoundError("Route geometry unavailable")

        distance_m = first.get("distance")
        duration_s = first.get("duration")
        if not isinstance(distance_m, (int, float)) or not isinstance(duration_s, (int, float)):
            raise NoRouteFoundError("Route distance or duration unavailable")
        if distance_m <= 0 or duration_s <= 0:
            raise NoRouteFoundError("Route distance or duration unavailable")

        return RoutedPath(
            polyline=polyline,
            distance_km=float(distance_m) / 1000.0,
            duration_min=float(duration_s) / 60.0,
        )


def _as_polyline(value: Any) -> tuple[LonLat, ...] | None:
    if not isinstance(value, list):
        return None

    coords: list[LonLat] = []
    for item in value:
        if not isinstance(item, (list, tuple)) or len(item) < 2:
            continue
        try:
            lon = float(item[0])
            lat = float(item[1])
        except (TypeError, ValueError):
            continue
        if not math.isfinite(lon) or not math.isfinite(lat):
            continue
        coords.append((lon, lat))

    return tuple(coords) if len(coords) >= 2 else None
