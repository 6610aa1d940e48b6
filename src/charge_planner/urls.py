from django.urls import path

from charge_planner import views

urlpatterns = [
    path("api/v1/health", views.health_view, name="health"),
    path("api/v1/route-templates", views.route_templates_view, name="route-templates"),
    path("api/v1/places", views.places_view, name="places"),
    path("api/v1/stations", views.stations_view, name="stations"),
    path("api/v1/route-plan", views.route_plan_view, name="route-plan"),
]
