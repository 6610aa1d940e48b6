from __future__ import annotations

import json
import logging
from typing import Any

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST
from pydantic import ValidationError

from charge_planner.exceptions import ExternalServiceError, InvalidLocationError
from charge_planner.models import ChargingStation
from charge_planner.schemas import RoutePlanRequest, StationSummaryResponse
from charge_planner.services.geocoding import GeocodingClient
from charge_planner.services.planner import RoutePlannerService, template_to_response
from charge_planner.services.routes import CYPRUS_ROUTE_TEMPLATES
from charge_planner.services.station_selection import rated_power_kw
from charge_planner.services.stations import load_stations
from charge_planner.services.vehicles import (
    VEHICLE_PROFILES,
    estimate_charge_minutes_20_to_80,
    get_vehicle_profile,
    station_fits_vehicle,
    station_meets_min_power,
)

logger = logging.getLogger(__name__)

_planner_service: RoutePlannerService | None = None


def get_route_planner() -> RoutePlannerService:
    global _planner_service
    if _planner_service is None:
        _planner_service = RoutePlannerService()
    return _planner_service


@require_GET
def health_view(_: HttpRequest) -> HttpResponse:
    total_stations = ChargingStation.objects.count()
    located_stations = (
        ChargingStation.objects.exclude(latitude__isnull=True).exclude(longitude__isnull=True).count()
    )
    return JsonResponse(
        {
            "status": "ok",
            "stations": {
                "total": total_stations,
                "located": located_stations,
            },
        }
    )


@require_GET
def route_templates_view(_: HttpRequest) -> HttpResponse:
    return JsonResponse(
        {
            "templates": [
                template_to_response(template).model_dump(mode="json")
                for template in CYPRUS_ROUTE_TEMPLATES
            ]
        }
    )


@require_GET
def places_view(request: HttpRequest) -> HttpResponse:
    query = request.GET.get("q", "")
    try:
        limit = int(request.GET.get("limit", "7"))
    except ValueError:
        return _error_response("validation_error", "limit must be an integer", status=400)

    try:
        places = GeocodingClient().search_places(query, limit=limit)
    except ExternalServiceError as exc:
        return _error_response("upstream_error", str(exc), status=502)

    return JsonResponse(
        {
            "places": [
                {
                    "id": place.id,
                    "label": place.label,
                    "longitude": place.coordinates[0],
                    "latitude": place.coordinates[1],
                }
                for place in places
            ]
        }
    )


@require_GET
def stations_view(request: HttpRequest) -> HttpResponse:
    profile_id = request.GET.get("vehicle", "any")
    profile = get_vehicle_profile(profile_id)
    if profile is None:
        return _error_response("validation_error", f"Unknown vehicle profile: {profile_id}", status=400)

    stations = [
        station
        for station in load_stations()
        if station_fits_vehicle(station, profile)
        and station_meets_min_power(station, profile.min_useful_kw)
    ]
    return JsonResponse(
        {
            "vehicle_profiles": [item.id for item in VEHICLE_PROFILES],
            "stations": [
                StationSummaryResponse(
                    id=station.id,
                    name=station.name,
                    longitude=station.coordinates[0] if station.coordinates else None,
                    latitude=station.coordinates[1] if station.coordinates else None,
                    power_kw=rated_power_kw(station),
                    availability=station.availability,
                    estimated_minutes_20_to_80=estimate_charge_minutes_20_to_80(station, profile),
                ).model_dump(mode="json")
                for station in stations
            ],
        }
    )


@csrf_exempt
@require_POST
def route_plan_view(request: HttpRequest) -> HttpResponse:
    payload = _parse_json_payload(request)
    if isinstance(payload, JsonResponse):
        return payload

    try:
        route_request = RoutePlanRequest.model_validate(payload)
    except ValidationError as exc:
        return JsonResponse(
            {
                "error": {
                    "code": "validation_error",
                    "message": "Invalid request payload",
                    "details": exc.errors(include_url=False, include_context=False),
                }
            },
            status=400,
        )

    planner = get_route_planner()
    try:
        response = planner.plan(route_request)
    except InvalidLocationError as exc:
        return _error_response("invalid_location", str(exc), status=400)
    except ExternalServiceError as exc:
        logger.warning("Route plan failed on upstream service: %s", exc)
        return _error_response("upstream_error", str(exc), status=502)

    return JsonResponse(response.model_dump(mode="json"), status=200)


def _parse_json_payload(request: HttpRequest) -> dict[str, Any] | JsonResponse:
    if not request.body:
        return {}

    try:
        payload = json.loads(request.body)
    except json.JSONDecodeError:
        return _error_response("invalid_json", "Request body must be valid JSON", status=400)

    if not isinstance(payload, dict):
        return _error_response("invalid_json", "JSON body must be an object", status=400)

    return payload


def _error_response(code: str, message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": {"code": code, "message": message}}, status=status)
