from __future__ import annotations

from collections.abc import Sequence

from charge_planner.services.types import RoutePlace, RouteTemplate

CYPRUS_PLACES: tuple[RoutePlace, ...] = (
    RoutePlace(id="nicosia", label="Nicosia", coordinates=(33.3823, 35.1856)),
    RoutePlace(id="limassol", label="Limassol", coordinates=(33.0186, 34.6751)),
    RoutePlace(id="larnaca", label="Larnaca", coordinates=(33.6376, 34.9167)),
    RoutePlace(id="paphos", label="Paphos", coordinates=(32.4162, 34.7721)),
    RoutePlace(id="ayia-napa", label="Ayia Napa", coordinates=(33.9997, 34.9877)),
    RoutePlace(id="troodos", label="Troodos", coordinates=(32.8646, 34.9286)),
    RoutePlace(id="polis", label="Polis Chrysochous", coordinates=(32.4249, 35.0351)),
)

_PLACES_BY_ID = {place.id: place for place in CYPRUS_PLACES}


def get_place(place_id: str) -> RoutePlace:
    return _PLACES_BY_ID[place_id]


def _preset(
    template_id: str,
    name: str,
    description: str,
    start_id: str,
    end_id: str,
    via: Sequence[tuple[float, float] | str] = (),
) -> RouteTemplate:
    start = get_place(start_id)
    end = get_place(end_id)
    middle = tuple(get_place(point).coordinates if isinstance(point, str) else point for point in via)
    return RouteTemplate(
        id=template_id,
        name=name,
        description=description,
        start=start,
        end=end,
        polyline=(start.coordinates, *middle, end.coordinates),
    )


CYPRUS_ROUTE_TEMPLATES: tuple[RouteTemplate, ...] = (
    _preset(
        "limassol-paphos",
        "Limassol - Paphos",
        "Classic west coast drive (A6/A1).",
        "limassol",
        "paphos",
        # Episkopi / Kourion, approximates the coastal arc.
        via=[(32.7585, 34.6756)],
    ),
    _preset(
        "nicosia-ayia-napa",
        "Nicosia - Ayia Napa",
        "Popular beach run (A1/A3).",
        "nicosia",
        "ayia-napa",
        via=["larnaca"],
    ),
    _preset(
        "tourist-troodos-loop",
        "Tourist: Limassol - Troodos - Nicosia",
        "Mountain route with large elevation changes (higher consumption).",
        "limassol",
        "nicosia",
        via=["troodos"],
    ),
    _preset(
        "tourist-akamas",
        "Tourist: Paphos - Polis (Akamas)",
        "Coastal/tourist route, expect lower speeds.",
        "paphos",
        "polis",
        via=[(32.383, 34.877)],
    ),
)


def get_template(
    template_id: str, templates: Sequence[RouteTemplate] = CYPRUS_ROUTE_TEMPLATES
) -> RouteTemplate | None:
    return next((template for template in templates if template.id == template_id), None)


def build_custom_template(
    origin: RoutePlace, destination: RoutePlace, via: Sequence[RoutePlace] = ()
) -> RouteTemplate:
    return RouteTemplate(
        id="custom",
        name=f"{origin.label} - {destination.label}",
        description="Custom route (Cyprus geocoding)",
        start=origin,
        end=destination,
        polyline=(origin.coordinates, *(place.coordinates for place in via), destination.coordinates),
    )


# Consumption multipliers per driving style.
ROUTE_PROFILES: dict[str, float] = {
    "eco": 0.9,
    "normal": 1.0,
    "fast": 1.1,
}


def apply_route_profile(consumption_kwh_per_100km: float, profile_id: str) -> float:
    return consumption_kwh_per_100km * ROUTE_PROFILES.get(profile_id, 1.0)
