from __future__ import annotations

import math
from collections.abc import Sequence

from charge_planner.services.geo import polyline_distance_km
from charge_planner.services.routes import CYPRUS_ROUTE_TEMPLATES
from charge_planner.services.station_selection import select_candidate_stations
from charge_planner.services.types import (
    CandidateStation,
    ChargeStop,
    LonLat,
    RoutePlanInput,
    RoutePlanLeg,
    RoutePlanResult,
    RouteTemplate,
    RoutingMode,
    Station,
)

# Float noise tolerated on reach comparisons, in km.
EPSILON = 1e-6

# Straight polylines underestimate real road distance.
ROAD_DISTANCE_FACTOR = 1.12
# Minimum progress per leg, avoids degenerate zero-distance legs.
MIN_FORWARD_PROGRESS_KM = 5.0
# (max target SOC %, average-power discount) pairs for the charge-curve taper.
TAPER_FACTORS: tuple[tuple[float, float], ...] = ((80.0, 0.75), (90.0, 0.55))
FINAL_TAPER_FACTOR = 0.4
# Template id fragments of routes with significant elevation changes.
MOUNTAIN_ROUTE_MARKERS = ("troodos",)

DEFAULT_BATTERY_KWH = 60.0
DEFAULT_CONSUMPTION_KWH_PER_100KM = 18.0
DEFAULT_CURRENT_SOC_PCT = 60.0
DEFAULT_ARRIVAL_SOC_PCT = 10.0
DEFAULT_CHARGE_TO_SOC_PCT = 80.0
DEFAULT_CORRIDOR_KM = 10.0
DEFAULT_VEHICLE_MAX_CHARGE_KW = 100.0
DEFAULT_MAX_STOPS = 3.0


def plan_route_aware_charging(
    stations: Sequence[Station],
    plan_input: RoutePlanInput,
    templates: Sequence[RouteTemplate] = CYPRUS_ROUTE_TEMPLATES,
) -> RoutePlanResult:
    """Plan charging stops for a trip along a route template.

    Never raises for bad input: non-finite values fall back to defaults and
    everything is clamped. Infeasibility is reported through ``ok`` and
    ``warnings``.
    """
    template = _resolve_template(plan_input, templates)
    warnings: list[str] = []

    battery_kwh = _clamp(_safe_number(plan_input.battery_kwh, DEFAULT_BATTERY_KWH), 10, 200)
    consumption = _clamp(
        _safe_number(plan_input.consumption_kwh_per_100km, DEFAULT_CONSUMPTION_KWH_PER_100KM), 8, 40
    )
    current_soc = _clamp(_safe_number(plan_input.current_soc_pct, DEFAULT_CURRENT_SOC_PCT), 0, 100)
    arrival_soc = _clamp(
        _safe_number(plan_input.desired_arrival_soc_pct, DEFAULT_ARRIVAL_SOC_PCT), 0, 30
    )
    preferred_to = _clamp(
        _safe_number(plan_input.preferred_charge_to_soc_pct, DEFAULT_CHARGE_TO_SOC_PCT), 50, 100
    )
    corridor_km = _clamp(_safe_number(plan_input.corridor_km, DEFAULT_CORRIDOR_KM), 2, 30)
    vehicle_max_kw = _clamp(
        _safe_number(plan_input.vehicle_max_charge_kw, DEFAULT_VEHICLE_MAX_CHARGE_KW), 7, 400
    )
    max_stops = _clamp(_safe_number(plan_input.max_stops, DEFAULT_MAX_STOPS), 0, 8)

    live_polyline = plan_input.route_polyline
    has_live_polyline = live_polyline is not None and len(live_polyline) >= 2
    polyline: tuple[LonLat, ...] = tuple(live_polyline) if has_live_polyline else template.polyline

    raw_distance_km = polyline_distance_km(polyline)
    live_distance_km = _safe_number(plan_input.route_distance_km, 0.0)
    has_live_distance = live_distance_km > 0
    total_distance_km = (
        live_distance_km if has_live_distance else raw_distance_km * ROAD_DISTANCE_FACTOR
    )
    road_factor = total_distance_km / raw_distance_km if raw_distance_km > 0 else 1.0
    routing_mode: RoutingMode = "live" if has_live_polyline and has_live_distance else "approx"

    duration_min = _safe_number(plan_input.route_duration_min, math.nan)
    estimated_drive_minutes = _round_half_up(duration_min) if math.isfinite(duration_min) else None

    pct_per_km = (consumption / 100.0) / battery_kwh * 100.0
    arrival_if_no_charging = current_soc - total_distance_km * pct_per_km
    can_reach_without_charging = arrival_if_no_charging >= arrival_soc

    if any(marker in plan_input.template_id for marker in MOUNTAIN_ROUTE_MARKERS):
        warnings.append(
            "Mountain route: elevation and temperature changes may raise consumption above "
            "the configured value."
        )
    warnings.append(
        "Live routing: OSRM (best effort)."
        if routing_mode == "live"
        else "Distances are estimates (no live routing)."
    )

    def result(
        ok: bool,
        legs: Sequence[RoutePlanLeg] = (),
        stop_ids: Sequence[str] = (),
    ) -> RoutePlanResult:
        return RoutePlanResult(
            ok=ok,
            template=template,
            polyline=polyline,
            total_distance_km=_round1(total_distance_km),
            estimated_drive_minutes=estimated_drive_minutes,
            routing_mode=routing_mode,
            estimated_arrival_soc_pct_if_no_charging=_round1(arrival_if_no_charging),
            can_reach_without_charging=can_reach_without_charging,
            legs=tuple(legs),
            suggested_stop_station_ids=tuple(stop_ids),
            warnings=tuple(warnings),
        )

    if can_reach_without_charging:
        direct_leg = RoutePlanLeg(
            from_label=template.start.label,
            to_label=template.end.label,
            distance_km=_round1(total_distance_km),
            depart_soc_pct=_round1(current_soc),
            arrive_soc_pct=_round1(arrival_if_no_charging),
        )
        return result(True, [direct_leg])

    candidates = select_candidate_stations(
        stations,
        polyline,
        total_distance_km,
        road_factor,
        corridor_km,
        fast_only=plan_input.fast_only,
        available_only=plan_input.available_only,
    )
    if not candidates:
        warnings.append("No charging stations found near the route with the current filters.")
        return result(False)

    if current_soc < arrival_soc:
        warnings.append("Current SOC is already below the desired arrival SOC.")

    legs: list[RoutePlanLeg] = []
    stop_ids: list[str] = []
    current_progress_km = 0.0
    soc = current_soc
    stops_used = 0
    last_label = template.start.label
    reached_destination = False

    while True:
        max_leg_km = max(0.0, (soc - arrival_soc) / 100.0 * battery_kwh / (consumption / 100.0))
        max_reach_km = current_progress_km + max_leg_km

        if max_reach_km + EPSILON >= total_distance_km:
            remaining_km = total_distance_km - current_progress_km
            legs.append(
                RoutePlanLeg(
                    from_label=last_label,
                    to_label=template.end.label,
                    distance_km=_round1(remaining_km),
                    depart_soc_pct=_round1(soc),
                    arrive_soc_pct=_round1(soc - remaining_km * pct_per_km),
                )
            )
            reached_destination = True
            break

        if stops_used >= max_stops:
            warnings.append(
                f"More than {max_stops:g} stops needed with the current SOC, consumption "
                "and battery settings."
            )
            break

        reachable = [
            candidate
            for candidate in candidates
            if candidate.progress_km > current_progress_km + MIN_FORWARD_PROGRESS_KM
            and candidate.progress_km <= max_reach_km + EPSILON
        ]
        if not reachable:
            warnings.append(
                "No reachable charging station in the route corridor with the current SOC."
            )
            break

        chosen = min(reachable, key=_selection_key)
        leg_km = chosen.progress_km - current_progress_km
        arrive_soc = soc - leg_km * pct_per_km

        remaining_km = total_distance_km - chosen.progress_km
        required_depart_soc = arrival_soc + remaining_km * pct_per_km
        target_soc = _clamp(min(required_depart_soc, preferred_to), arrive_soc, 100)

        if required_depart_soc > preferred_to + 1:
            warnings.append(
                f"Charging to {preferred_to:g}% may require an extra stop (the route needs "
                f"~{math.ceil(required_depart_soc)}% to arrive directly)."
            )
        if required_depart_soc > 100:
            warnings.append("Even at 100% SOC at least one more intermediate stop is needed.")

        added_kwh = (target_soc - arrive_soc) / 100.0 * battery_kwh
        station = chosen.station
        legs.append(
            RoutePlanLeg(
                from_label=last_label,
                to_label=station.name,
                distance_km=_round1(leg_km),
                depart_soc_pct=_round1(soc),
                arrive_soc_pct=_round1(arrive_soc),
                charge_stop=ChargeStop(
                    station_id=station.id,
                    station_name=station.name,
                    station_power_kw=_round_half_up(chosen.power_kw),
                    target_soc_pct=_round1(target_soc),
                    added_kwh=_round1(added_kwh),
                    estimated_minutes=estimate_charge_minutes(
                        added_kwh=added_kwh,
                        charger_kw=chosen.power_kw,
                        vehicle_max_kw=vehicle_max_kw,
                        target_soc_pct=target_soc,
                    ),
                    notes=station.status_label if station.availability != "unknown" else None,
                ),
            )
        )

        stop_ids.append(station.id)
        last_label = station.name
        current_progress_km = chosen.progress_km
        soc = target_soc
        stops_used += 1

    return result(reached_destination, legs, stop_ids)


def estimate_charge_minutes(
    added_kwh: float, charger_kw: float, vehicle_max_kw: float, target_soc_pct: float
) -> int:
    if added_kwh <= 0:
        return 0
    capped_kw = max(1.0, min(charger_kw, vehicle_max_kw))
    average_kw = max(1.0, capped_kw * taper_factor(target_soc_pct))
    return _round_half_up(added_kwh / average_kw * 60)


def taper_factor(target_soc_pct: float) -> float:
    for max_target, factor in TAPER_FACTORS:
        if target_soc_pct <= max_target:
            return factor
    return FINAL_TAPER_FACTOR


def _selection_key(candidate: CandidateStation) -> tuple[float, int, float]:
    # Furthest progress first, then available stations, then higher power.
    is_available = 1 if candidate.station.availability == "available" else 0
    return (-candidate.progress_km, -is_available, -candidate.power_kw)


def _resolve_template(
    plan_input: RoutePlanInput, templates: Sequence[RouteTemplate]
) -> RouteTemplate:
    if plan_input.template_override is not None:
        return plan_input.template_override
    for template in templates:
        if template.id == plan_input.template_id:
            return template
    if templates:
        return templates[0]
    return CYPRUS_ROUTE_TEMPLATES[0]


def _safe_number(value: object, fallback: float) -> float:
    if isinstance(value, bool) or value is None:
        return fallback
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return fallback
    return number if math.isfinite(number) else fallback


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def _round_half_up(value: float) -> int:
    # Halves round up (2.5 -> 3), not to the even neighbour.
    return math.floor(value + 0.5)


def _round1(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10
