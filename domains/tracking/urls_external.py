from django.urls import path

from .views import CarriersAPI, ExternalAssignCarrierAPI, ExternalStatusAPI, ExternalTrackAPI

app_name = "external"

urlpatterns = [
    path("track/", ExternalTrackAPI.as_view(), name="external-track"),
    path("track/<uuid:id>/carrier/", ExternalAssignCarrierAPI.as_view(), name="external-carrier"),
    path("status/<uuid:id>/", ExternalStatusAPI.as_view(), name="external-status"),
    path("carriers/", CarriersAPI.as_view(), name="external-carriers"),
]
