from __future__ import annotations

import re

from charge_planner.services.types import Availability

# OCPP connector statuses.
OCPP_STATUS_MAP: dict[str, Availability] = {
    "available": "available",
    "occupied": "occupied",
    "charging": "occupied",
    "reserved": "occupied",
    "finishing": "occupied",
    "preparing": "occupied",
    "suspendedevse": "occupied",
    "suspendedev": "occupied",
    "faulted": "out_of_service",
    "unavailable": "out_of_service",
}

AVAILABLE_VALUES = {"available", "free", "yes", "open", "in_service", "operational", "working", "1", "true"}
AVAILABLE_FRAGMENTS = ("available", "operational", "working")
OCCUPIED_VALUES = {"occupied", "busy", "in_use", "2", "inuse"}
OCCUPIED_FRAGMENTS = ("occupied", "busy")
OUT_OF_SERVICE_VALUES = {
    "out_of_service",
    "out-of-service",
    "maintenance",
    "closed",
    "no",
    "inactive",
    "fault",
    "0",
    "false",
    "offline",
    "down",
}
OUT_OF_SERVICE_FRAGMENTS = ("out of service", "out-of-service", "maintenance", "fault", "broken", "fix")


def normalize_availability(value: str | int | bool | None) -> Availability:
    if value is None or value == "":
        return "unknown"
    if isinstance(value, bool):
        return "available" if value else "out_of_service"

    normalized = str(value).strip().lower()
    if normalized in OCPP_STATUS_MAP:
        return OCPP_STATUS_MAP[normalized]
    if normalized in AVAILABLE_VALUES or any(part in normalized for part in AVAILABLE_FRAGMENTS):
        return "available"
    if normalized in OCCUPIED_VALUES or any(part in normalized for part in OCCUPIED_FRAGMENTS):
        return "occupied"
    if normalized in OUT_OF_SERVICE_VALUES or any(
        part in normalized for part in OUT_OF_SERVICE_FRAGMENTS
    ):
        return "out_of_service"
    return "unknown"


def normalize_status_label(value: str | int | bool | None) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return "Available" if value else "Out Of Service"
    cleaned = re.sub(r"[_-]+", " ", str(value)).strip()
    return " ".join(word[:1].upper() + word[1:] for word in cleaned.split(" ")) or None
