from __future__ import annotations

from django.db import models


class ChargingStation(models.Model):
    class Availability(models.TextChoices):
        AVAILABLE = "available", "Available"
        OCCUPIED = "occupied", "Occupied"
        OUT_OF_SERVICE = "out_of_service", "Out of service"
        UNKNOWN = "unknown", "Unknown"

    objects = models.Manager["ChargingStation"]()

    # Source fields
    external_id = models.CharField(max_length=100, unique=True)
    name = models.CharField(max_length=255)
    operator = models.CharField(max_length=255, blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    connectors = models.JSONField(default=list, blank=True)
    power = models.CharField(max_length=100, blank=True)
    # [{"power_kw": 150.0, "availability": "available"}, ...]
    ports = models.JSONField(default=list, blank=True)

    # Status fields
    availability = models.CharField(
        max_length=20, choices=Availability.choices, default=Availability.UNKNOWN
    )
    status_label = models.CharField(max_length=100, blank=True)

    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    coordinate_key = models.CharField(max_length=40, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("city", "name")
        indexes = (
            models.Index(fields=["latitude", "longitude"], name="station_lat_lon_idx"),
            models.Index(fields=["coordinate_key"], name="station_coordinate_key_idx"),
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.city})" if self.city else self.name
