from django.contrib import admin
from django.urls import path, include, re_path
from django.views.generic import RedirectView
from django.http import JsonResponse
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView


def healthz(_):
    return JsonResponse({"ok": True})


urlpatterns = [
    # Admin
    path("admin/", admin.site.urls),

    # OpenAPI / Swagger
    path("api/v1/schema/", SpectacularAPIView.as_view(), name="v1-schema"),
    path("api/v1/docs/", SpectacularSwaggerView.as_view(url_name="v1-schema"), name="v1-docs"),

    # no trailing slash → 301 to the slash form
    re_path(r"^api/v1/schema$", RedirectView.as_view(url="/api/v1/schema/", permanent=True)),
    re_path(r"^api/v1/docs$", RedirectView.as_view(url="/api/v1/docs/", permanent=True)),

    # API v1
    path("api/v1/", include("api.v1.urls")),

    # root → docs
    path("", RedirectView.as_view(url="/api/v1/docs/", permanent=False)),

    # health check
    path("healthz/", healthz),
]
