from django.apps import AppConfig


class ChargePlannerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "charge_planner"
