from __future__ import annotations

import logging

from django.conf import settings

from charge_planner.exceptions import ExternalServiceError, InvalidLocationError, NoRouteFoundError
from charge_planner.schemas import (
    ChargeStopResponse,
    PlacePayload,
    PlaceResponse,
    RoutePlanLegResponse,
    RoutePlanRequest,
    RoutePlanResponse,
    RouteTemplateResponse,
    StationPayload,
)
from charge_planner.services.charging_plan import plan_route_aware_charging
from charge_planner.services.geocoding import GeocodingClient
from charge_planner.services.osrm import OsrmClient
from charge_planner.services.routes import (
    CYPRUS_ROUTE_TEMPLATES,
    apply_route_profile,
    build_custom_template,
    get_template,
)
from charge_planner.services.stations import load_stations
from charge_planner.services.types import (
    RoutedPath,
    RoutePlace,
    RoutePlanInput,
    RoutePlanResult,
    RouteTemplate,
    Station,
    StationPort,
)
from charge_planner.services.vehicles import (
    get_vehicle_profile,
    station_fits_vehicle,
    station_meets_min_power,
)

logger = logging.getLogger(__name__)

# Generous bounding box around the island.
CYPRUS_BOUNDS = {"min_lon": 32.0, "max_lon": 34.8, "min_lat": 34.4, "max_lat": 35.8}


class RoutePlannerService:
    def __init__(
        self,
        geocoding_client: GeocodingClient | None = None,
        osrm_client: OsrmClient | None = None,
    ) -> None:
        self.geocoding_client = geocoding_client or GeocodingClient()
        self.osrm_client = osrm_client or OsrmClient()

    def plan(self, request: RoutePlanRequest) -> RoutePlanResponse:
        profile = get_vehicle_profile(request.vehicle_profile)
        battery_kwh = request.battery_kwh or (
            profile.battery_kwh if profile else float(settings.DEFAULT_BATTERY_KWH)
        )
        vehicle_max_kw = request.vehicle_max_charge_kw or (
            profile.max_charge_kw if profile else float(settings.DEFAULT_VEHICLE_MAX_CHARGE_KW)
        )
        consumption = apply_route_profile(request.consumption_kwh_per_100km, request.route_profile)

        template = self._resolve_template(request)
        routed = self._live_route(template) if request.live_routing else None

        stations = self._stations(request.stations)
        if profile is not None:
            stations = [
                station
                for station in stations
                if station_fits_vehicle(station, profile)
                and station_meets_min_power(station, profile.min_useful_kw)
            ]

        plan_input = RoutePlanInput(
            template_id=template.id,
            template_override=template if request.is_custom_route else None,
            current_soc_pct=request.current_soc_pct,
            battery_kwh=battery_kwh,
            consumption_kwh_per_100km=consumption,
            desired_arrival_soc_pct=request.desired_arrival_soc_pct,
            preferred_charge_to_soc_pct=request.preferred_charge_to_soc_pct,
            vehicle_max_charge_kw=vehicle_max_kw,
            corridor_km=request.corridor_km,
            fast_only=request.fast_only,
            available_only=request.available_only,
            max_stops=request.max_stops,
            route_polyline=routed.polyline if routed else None,
            route_distance_km=routed.distance_km if routed else None,
            route_duration_min=routed.duration_min if routed else None,
        )
        result = plan_route_aware_charging(stations, plan_input)
        logger.info(
            "Planned %s: ok=%s stops=%s distance=%.1fkm mode=%s",
            template.id,
            result.ok,
            len(result.suggested_stop_station_ids),
            result.total_distance_km,
            result.routing_mode,
        )
        return self._to_response(
            result,
            assumptions={
                "battery_kwh": float(battery_kwh),
                "consumption_kwh_per_100km": float(consumption),
                "vehicle_max_charge_kw": float(vehicle_max_kw),
                "corridor_km": float(request.corridor_km),
            },
        )

    def _resolve_template(self, request: RoutePlanRequest) -> RouteTemplate:
        if request.origin is None or request.destination is None:
            return get_template(request.template_id) or CYPRUS_ROUTE_TEMPLATES[0]

        origin = self._resolve_place(request.origin, "origin")
        destination = self._resolve_place(request.destination, "destination")
        via = [
            self._resolve_place(place, f"via-{index}") for index, place in enumerate(request.via)
        ]
        return build_custom_template(origin, destination, via)

    def _resolve_place(self, place: PlacePayload, place_id: str) -> RoutePlace:
        if place.longitude is not None and place.latitude is not None:
            coordinates = (place.longitude, place.latitude)
            label = place.label
        else:
            matches = self.geocoding_client.search_places(place.label, limit=1)
            if not matches:
                raise InvalidLocationError(f"Location could not be resolved: {place.label}")
            coordinates = matches[0].coordinates
            label = matches[0].label

        lon, lat = coordinates
        if not (
            CYPRUS_BOUNDS["min_lon"] <= lon <= CYPRUS_BOUNDS["max_lon"]
            and CYPRUS_BOUNDS["min_lat"] <= lat <= CYPRUS_BOUNDS["max_lat"]
        ):
            raise InvalidLocationError(f"Location must be within Cyprus: {place.label}")
        return RoutePlace(id=place_id, label=label, coordinates=coordinates)

    def _live_route(self, template: RouteTemplate) -> RoutedPath | None:
        try:
            return self.osrm_client.route_through(template.polyline)
        except (NoRouteFoundError, ExternalServiceError) as exc:
            logger.warning("Live routing unavailable for %s, using approximation: %s", template.id, exc)
            return None

    @staticmethod
    def _stations(payload: list[StationPayload] | None) -> list[Station]:
        if payload is None:
            return load_stations()

        return [
            Station(
                id=station.id,
                name=station.name,
                coordinates=(
                    (station.longitude, station.latitude)
                    if station.longitude is not None and station.latitude is not None
                    else None
                ),
                power=station.power,
                availability=station.availability,
                status_label=station.status_label,
                ports=tuple(
                    StationPort(power_kw=port.power_kw, availability=port.availability)
                    for port in station.ports
                ),
                connectors=tuple(station.connectors),
            )
            for station in payload
        ]

    @staticmethod
    def _to_response(result: RoutePlanResult, assumptions: dict[str, float]) -> RoutePlanResponse:
        return RoutePlanResponse(
            ok=result.ok,
            template=template_to_response(result.template),
            route_geojson={
                "type": "LineString",
                "coordinates": [list(coord) for coord in result.polyline],
            },
            total_distance_km=result.total_distance_km,
            estimated_drive_minutes=result.estimated_drive_minutes,
            routing_mode=result.routing_mode,
            estimated_arrival_soc_pct_if_no_charging=result.estimated_arrival_soc_pct_if_no_charging,
            can_reach_without_charging=result.can_reach_without_charging,
            legs=[
                RoutePlanLegResponse(
                    from_label=leg.from_label,
                    to_label=leg.to_label,
                    distance_km=leg.distance_km,
                    depart_soc_pct=leg.depart_soc_pct,
                    arrive_soc_pct=leg.arrive_soc_pct,
                    charge_stop=(
                        ChargeStopResponse(
                            station_id=leg.charge_stop.station_id,
                            station_name=leg.charge_stop.station_name,
                            station_power_kw=leg.charge_stop.station_power_kw,
                            target_soc_pct=leg.charge_stop.target_soc_pct,
                            added_kwh=leg.charge_stop.added_kwh,
                            estimated_minutes=leg.charge_stop.estimated_minutes,
                            notes=leg.charge_stop.notes,
                        )
                        if leg.charge_stop
                        else None
                    ),
                )
                for leg in result.legs
            ],
            suggested_stop_station_ids=list(result.suggested_stop_station_ids),
            warnings=list(result.warnings),
            assumptions=assumptions,
        )


def template_to_response(template: RouteTemplate) -> RouteTemplateResponse:
    return RouteTemplateResponse(
        id=template.id,
        name=template.name,
        description=template.description,
        start=_place_to_response(template.start),
        end=_place_to_response(template.end),
        polyline=[list(coord) for coord in template.polyline],
    )


def _place_to_response(place: RoutePlace) -> PlaceResponse:
    lon, lat = place.coordinates
    return PlaceResponse(id=place.id, label=place.label, longitude=lon, latitude=lat)
