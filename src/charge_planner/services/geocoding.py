from __future__ import annotations

import hashlib
import logging
import math
import time
from typing import Any

import httpx
from django.conf import settings

from charge_planner.exceptions import ExternalServiceError
from charge_planner.services.storage import CacheKeyValueStore, KeyValueStore
from charge_planner.services.types import GeocodedPlace

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 3


class GeocodingClient:
    """Cyprus-only place search on Nominatim.

    Nominatim is strictly rate limited; callers should debounce.
    """

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self.base_url = settings.GEOCODING_BASE_URL.rstrip("/")
        self.timeout = settings.GEOCODING_TIMEOUT_SECONDS
        self.retry_count = settings.GEOCODING_RETRY_COUNT
        self.user_agent = settings.GEOCODING_USER_AGENT
        self.country_code = settings.GEOCODING_COUNTRY_CODE
        self.cache_ttl = settings.GEOCODE_CACHE_TTL_SECONDS
        self.store = store or CacheKeyValueStore()

    def search_places(self, query: str, limit: int = 7) -> list[GeocodedPlace]:
        cleaned = query.strip()
        if len(cleaned) < MIN_QUERY_LENGTH:
            return []

        limit = max(1, min(10, limit))
        cache_key = self._cache_key(cleaned, limit)
        cached = self.store.get(cache_key, max_age_seconds=self.cache_ttl)
        if cached is not None:
            return [
                GeocodedPlace(id=item["id"], label=item["label"], coordinates=tuple(item["coordinates"]))
                for item in cached
            ]

        params = {
            "format": "jsonv2",
            "q": cleaned,
            "countrycodes": self.country_code,
            "addressdetails": 0,
            "limit": limit,
        }

        for attempt in range(self.retry_count + 1):
            try:
                response = httpx.get(
                    f"{self.base_url}/search",
                    params=params,
                    timeout=self.timeout,
                    headers={
                        "Accept": "application/json",
                        "Accept-Language": "el,en",
                        "User-Agent": self.user_agent,
                    },
                )
                response.raise_for_status()
                places = self._parse_places(response.json())
                self.store.set(
                    cache_key,
                    [
                        {"id": place.id, "label": place.label, "coordinates": list(place.coordinates)}
                        for place in places
                    ],
                    ttl_seconds=self.cache_ttl,
                )
                return places
            except httpx.HTTPError as exc:
                logger.warning("Geocoding attempt %s for %r failed: %s", attempt + 1, cleaned, exc)
                if attempt >= self.retry_count:
                    raise ExternalServiceError("Geocoding request failed") from exc
                time.sleep(0.3 * (attempt + 1))

        raise ExternalServiceError("Geocoding request failed")

    @staticmethod
    def _cache_key(query: str, limit: int) -> str:
        digest = hashlib.sha256(f"{query.lower()}|{limit}".encode()).hexdigest()
        return f"geo_cy_v1:{digest}"

    @staticmethod
    def _parse_places(payload: Any) -> list[GeocodedPlace]:
        if not isinstance(payload, list):
            return []

        places: list[GeocodedPlace] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            try:
                latitude = float(item["lat"])
                longitude = float(item["lon"])
            except (KeyError, TypeError, ValueError):
                continue
            if not math.isfinite(latitude) or not math.isfinite(longitude):
                continue

            label = str(item.get("display_name") or "").strip()
            if not label:
                continue
            place_id = str(item["place_id"]) if item.get("place_id") else f"{longitude},{latitude}"
            places.append(GeocodedPlace(id=place_id, label=label, coordinates=(longitude, latitude)))

        return places
