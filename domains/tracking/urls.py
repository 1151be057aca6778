from django.urls import path

from .views import (
    AssignCarrierAPI,
    CarriersAPI,
    OverviewAPI,
    TrackingDetailAPI,
    TrackingListCreateAPI,
    TrackingUrlAPI,
)

app_name = "tracking"

urlpatterns = [
    path("", TrackingListCreateAPI.as_view(), name="tracking-list"),
    # static routes before <uuid:id>/
    path("carriers/", CarriersAPI.as_view(), name="tracking-carriers"),
    path("overview/", OverviewAPI.as_view(), name="tracking-overview"),
    path("<uuid:id>/", TrackingDetailAPI.as_view(), name="tracking-detail"),
    path("<uuid:id>/carrier/", AssignCarrierAPI.as_view(), name="tracking-carrier"),
    path("<uuid:id>/url/", TrackingUrlAPI.as_view(), name="tracking-url"),
]
