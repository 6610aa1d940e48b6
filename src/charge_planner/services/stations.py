from __future__ import annotations

from typing import Any

from charge_planner.models import ChargingStation
from charge_planner.services.availability import normalize_availability
from charge_planner.services.types import Station, StationPort


def load_stations() -> list[Station]:
    """Load every stored station as a planner ``Station``."""
    queryset = ChargingStation.objects.only(
        "external_id",
        "name",
        "operator",
        "address",
        "city",
        "connectors",
        "power",
        "ports",
        "availability",
        "status_label",
        "latitude",
        "longitude",
    )
    return [station_from_model(station) for station in queryset.iterator(chunk_size=1000)]


def station_from_model(station: ChargingStation) -> Station:
    coordinates = None
    if station.latitude is not None and station.longitude is not None:
        coordinates = (station.longitude, station.latitude)

    return Station(
        id=station.external_id,
        name=station.name,
        coordinates=coordinates,
        power=station.power or None,
        availability=normalize_availability(station.availability),
        status_label=station.status_label or None,
        ports=tuple(_port_from_json(port) for port in station.ports or [] if isinstance(port, dict)),
        connectors=tuple(station.connectors or ()),
        operator=station.operator or None,
        address=station.address or None,
        city=station.city or None,
    )


def _port_from_json(port: dict[str, Any]) -> StationPort:
    power_kw = port.get("power_kw")
    return StationPort(
        power_kw=float(power_kw) if isinstance(power_kw, (int, float)) else None,
        availability=normalize_availability(port.get("availability")),
    )
