from __future__ import annotations

import httpx
import pytest

from charge_planner.exceptions import ExternalServiceError, NoRouteFoundError
from charge_planner.services.geocoding import GeocodingClient
from charge_planner.services.osrm import OsrmClient
from charge_planner.services.storage import CacheKeyValueStore

WAYPOINTS = [(33.0186, 34.6751), (32.4162, 34.7721)]


def _response(mocker, payload):
    response = mocker.Mock()
    response.json.return_value = payload
    return response


def test_store_round_trip_and_clear() -> None:
    store = CacheKeyValueStore()

    store.set("key", {"a": 1}, ttl_seconds=60)
    assert store.get("key") == {"a": 1}

    store.clear("key")
    assert store.get("key") is None


def test_store_honours_max_age(mocker) -> None:
    clock = mocker.patch("charge_planner.services.storage.time.time", return_value=1000.0)
    store = CacheKeyValueStore()
    store.set("key", "value", ttl_seconds=None)

    clock.return_value = 1010.0

    assert store.get("key", max_age_seconds=60) == "value"
    assert store.get("key", max_age_seconds=5) is None


def test_osrm_route_is_parsed_and_cached(mocker) -> None:
    get = mocker.patch(
        "charge_planner.services.osrm.httpx.get",
        return_value=_response(
            mocker,
            {
                "code": "Ok",
                "routes": [
                    {
                        "distance": 68500.0,
                        "duration": 3120.0,
                        "geometry": {
                            "coordinates": [[33.0186, 34.6751], ["bad"], [32.4162, 34.7721]]
                        },
                    }
                ],
            },
        ),
    )
    client = OsrmClient()

    first = client.route_through(WAYPOINTS)
    second = client.route_through(WAYPOINTS)

    assert first.distance_km == pytest.approx(68.5)
    assert first.duration_min == pytest.approx(52.0)
    assert first.polyline == ((33.0186, 34.6751), (32.4162, 34.7721))
    assert second == first
    get.assert_called_once()
    assert "33.0186,34.6751;32.4162,34.7721" in get.call_args.args[0]


def test_osrm_rejects_missing_route(mocker) -> None:
    mocker.patch(
        "charge_planner.services.osrm.httpx.get",
        return_value=_response(mocker, {"code": "NoRoute", "routes": []}),
    )

    with pytest.raises(NoRouteFoundError):
        OsrmClient().route_through(WAYPOINTS)


def test_osrm_requires_two_waypoints() -> None:
    with pytest.raises(NoRouteFoundError):
        OsrmClient().route_through(WAYPOINTS[:1])


def test_osrm_retries_then_raises(mocker, settings) -> None:
    settings.OSRM_RETRY_COUNT = 1
    sleep = mocker.patch("charge_planner.services.osrm.time.sleep")
    get = mocker.patch(
        "charge_planner.services.osrm.httpx.get", side_effect=httpx.ConnectError("boom")
    )

    with pytest.raises(ExternalServiceError):
        OsrmClient().route_through(WAYPOINTS)

    assert get.call_count == 2
    sleep.assert_called_once()


def test_geocoding_skips_short_queries(mocker) -> None:
    get = mocker.patch("charge_planner.services.geocoding.httpx.get")

    assert GeocodingClient().search_places("ni") == []
    get.assert_not_called()


def test_geocoding_parses_and_caches_places(mocker) -> None:
    get = mocker.patch(
        "charge_planner.services.geocoding.httpx.get",
        return_value=_response(
            mocker,
            [
                {"place_id": 42, "display_name": "Larnaca, Cyprus", "lat": "34.9167", "lon": "33.6376"},
                {"display_name": "", "lat": "34.9", "lon": "33.6"},
                {"display_name": "Broken", "lat": "north"},
            ],
        ),
    )
    client = GeocodingClient()

    places = client.search_places(" Larnaca ", limit=50)
    cached = client.search_places("larnaca", limit=50)

    assert [(place.id, place.label) for place in places] == [("42", "Larnaca, Cyprus")]
    assert places[0].coordinates == (33.6376, 34.9167)
    assert cached == places
    get.assert_called_once()
    params = get.call_args.kwargs["params"]
    assert params["countrycodes"] == "cy"
    assert params["limit"] == 10


def test_cache_keys_are_fixed_length_digests(mocker) -> None:
    mocker.patch(
        "charge_planner.services.geocoding.httpx.get",
        return_value=_response(mocker, []),
    )
    store = mocker.Mock()
    store.get.return_value = None
    client = GeocodingClient(store=store)

    client.search_places("Agia Napa Marina")
    client.search_places("agia napa marina")

    first_key, second_key = (call.args[0] for call in store.set.call_args_list)
    assert first_key == second_key
    assert " " not in first_key

    waypoints = [(33.0 + index / 100, 34.7) for index in range(40)]
    route_key = OsrmClient._cache_key(waypoints)
    assert route_key == OsrmClient._cache_key(list(waypoints))
    assert len(route_key) < 250
    assert route_key != OsrmClient._cache_key(waypoints[:-1])
