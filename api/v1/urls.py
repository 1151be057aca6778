# api/v1/urls.py
from django.urls import include, path

from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

urlpatterns = [
    # --- Auth ---
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    # --- Tracking ---
    path("tracking/", include(("domains.tracking.urls", "tracking"))),
    # --- External apps (browser extension, partner services) ---
    path("external/", include(("domains.tracking.urls_external", "external"))),
]
