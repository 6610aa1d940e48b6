from django.contrib import admin

from charge_planner.models import ChargingStation


@admin.register(ChargingStation)
class ChargingStationAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "operator",
        "city",
        "power",
        "availability",
        "latitude",
        "longitude",
    )
    list_filter = ("availability", "city")
    search_fields = ("external_id", "name", "operator", "address", "city")
    ordering = ("city", "name")
