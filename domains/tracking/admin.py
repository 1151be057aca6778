from __future__ import annotations

from django.contrib import admin

from . import models


# ---------- ShipmentResult Inline ----------
class ShipmentResultInline(admin.StackedInline):
    model = models.ShipmentResult
    extra = 0
    can_delete = False
    readonly_fields = (
        "tracking_number",
        "carrier_name",
        "current_status",
        "current_location",
        "expected_delivery_date",
        "shipped_date",
        "raw_payload",
        "created_at",
    )

    def has_add_permission(self, request, obj=None):
        return False


# ---------- TrackingRequest Admin ----------
@admin.register(models.TrackingRequest)
class TrackingRequestAdmin(admin.ModelAdmin):
    inlines = [ShipmentResultInline]

    list_display = (
        "id",
        "owner_id",
        "tracking_number",
        "carrier",
        "state",
        "current_status_display",
        "created_at",
        "updated_at",
    )
    list_filter = ("carrier", "state")
    search_fields = ("id", "owner_id", "tracking_number")
    ordering = ("-created_at",)

    # state/carrier only move through the lifecycle service
    readonly_fields = (
        "id",
        "owner_id",
        "tracking_number",
        "carrier",
        "state",
        "last_error",
        "created_at",
        "updated_at",
    )

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("result")

    def current_status_display(self, obj):
        result = getattr(obj, "result", None)
        return result.current_status if result is not None else "-"
    current_status_display.short_description = "Current status"
