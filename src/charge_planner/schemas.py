from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from charge_planner.services.availability import normalize_availability

AvailabilityValue = Literal["available", "occupied", "out_of_service", "unknown"]


class PlacePayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    label: str = Field(min_length=1, max_length=300)
    longitude: float | None = None
    latitude: float | None = None

    @model_validator(mode="after")
    def _coordinates_together(self) -> PlacePayload:
        if (self.longitude is None) != (self.latitude is None):
            raise ValueError("longitude and latitude must be given together")
        return self


class StationPortPayload(BaseModel):
    power_kw: float | None = None
    availability: AvailabilityValue = "unknown"

    @field_validator("availability", mode="before")
    @classmethod
    def _normalize_availability(cls, value: Any) -> str:
        return normalize_availability(value)


class StationPayload(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    longitude: float | None = None
    latitude: float | None = None
    power: str | None = None
    availability: AvailabilityValue = "unknown"
    status_label: str | None = None
    ports: list[StationPortPayload] = Field(default_factory=list)
    connectors: list[str] = Field(default_factory=list)

    @field_validator("availability", mode="before")
    @classmethod
    def _normalize_availability(cls, value: Any) -> str:
        return normalize_availability(value)


class RoutePlanRequest(BaseModel):
    """Trip parameters.

    Numeric values are not range-checked here; the planner clamps them.
    """

    model_config = ConfigDict(extra="forbid")

    template_id: str = Field(default="limassol-paphos", max_length=100)
    origin: PlacePayload | None = None
    destination: PlacePayload | None = None
    via: list[PlacePayload] = Field(default_factory=list, max_length=8)
    vehicle_profile: str | None = None
    route_profile: Literal["eco", "normal", "fast"] = "normal"
    current_soc_pct: float = 55.0
    battery_kwh: float | None = None
    consumption_kwh_per_100km: float = 18.0
    desired_arrival_soc_pct: float = 10.0
    preferred_charge_to_soc_pct: float = 80.0
    vehicle_max_charge_kw: float | None = None
    corridor_km: float = 10.0
    fast_only: bool = True
    available_only: bool = False
    max_stops: float = 3.0
    live_routing: bool = True
    stations: list[StationPayload] | None = None

    @model_validator(mode="after")
    def _custom_route_endpoints(self) -> RoutePlanRequest:
        if (self.origin is None) != (self.destination is None):
            raise ValueError("origin and destination must be given together")
        if self.via and self.origin is None:
            raise ValueError("via places require an origin and a destination")
        return self

    @property
    def is_custom_route(self) -> bool:
        return self.origin is not None and self.destination is not None


class PlaceResponse(BaseModel):
    id: str
    label: str
    longitude: float
    latitude: float


class RouteTemplateResponse(BaseModel):
    id: str
    name: str
    description: str
    start: PlaceResponse
    end: PlaceResponse
    polyline: list[list[float]]


class ChargeStopResponse(BaseModel):
    station_id: str
    station_name: str
    station_power_kw: int
    target_soc_pct: float
    added_kwh: float
    estimated_minutes: int
    notes: str | None = None


class RoutePlanLegResponse(BaseModel):
    from_label: str
    to_label: str
    distance_km: float
    depart_soc_pct: float
    arrive_soc_pct: float
    charge_stop: ChargeStopResponse | None = None


class RoutePlanResponse(BaseModel):
    ok: bool
    template: RouteTemplateResponse
    route_geojson: dict
    total_distance_km: float
    estimated_drive_minutes: int | None
    routing_mode: Literal["approx", "live"]
    estimated_arrival_soc_pct_if_no_charging: float
    can_reach_without_charging: bool
    legs: list[RoutePlanLegResponse]
    suggested_stop_station_ids: list[str]
    warnings: list[str]
    assumptions: dict[str, float]


class StationSummaryResponse(BaseModel):
    id: str
    name: str
    longitude: float | None
    latitude: float | None
    power_kw: float | None
    availability: AvailabilityValue
    estimated_minutes_20_to_80: int | None
