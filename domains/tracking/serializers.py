from __future__ import annotations

from rest_framework import serializers

from .links import tracking_url
from .models import RequestState, ShipmentResult, TrackingRequest


def next_steps(obj):
    if obj.state == RequestState.AWAITING_CARRIER:
        return [f"Add carrier via PUT /api/v1/external/track/{obj.pk}/carrier/"]
    if obj.state in (RequestState.PENDING, RequestState.PROCESSING):
        return ["Processing in background - check again in 30-60 seconds"]
    if obj.state == RequestState.COMPLETED:
        return ["Tracking completed successfully"]
    if obj.state == RequestState.FAILED:
        return ["Tracking failed - check carrier and tracking number"]
    return []


# ---------------------------
# Output
# ---------------------------
class ShipmentResultSerializer(serializers.ModelSerializer):
    class Meta:
        model = ShipmentResult
        fields = (
            "tracking_number",
            "carrier_name",
            "current_status",
            "current_location",
            "expected_delivery_date",
            "shipped_date",
            "created_at",
        )


class TrackingRequestSerializer(serializers.ModelSerializer):
    description = serializers.SerializerMethodField()
    result = serializers.SerializerMethodField()
    tracking_url = serializers.SerializerMethodField()
    needs_carrier = serializers.SerializerMethodField()

    class Meta:
        model = TrackingRequest
        fields = (
            "id",
            "tracking_number",
            "carrier",
            "state",
            "description",
            "needs_carrier",
            "tracking_url",
            "result",
            "last_error",
            "metadata",
            "created_at",
            "updated_at",
        )

    def get_description(self, obj) -> str:
        return (obj.metadata or {}).get("description") or ""

    def get_result(self, obj):
        # reverse one-to-one raises when the row does not exist yet
        result = getattr(obj, "result", None)
        return ShipmentResultSerializer(result).data if result is not None else None

    def get_tracking_url(self, obj):
        return tracking_url(obj.carrier, obj.tracking_number)

    def get_needs_carrier(self, obj) -> bool:
        return obj.state == RequestState.AWAITING_CARRIER


class ExternalStatusSerializer(TrackingRequestSerializer):
    next_steps = serializers.SerializerMethodField()

    class Meta(TrackingRequestSerializer.Meta):
        fields = TrackingRequestSerializer.Meta.fields + ("next_steps",)

    def get_next_steps(self, obj):
        return next_steps(obj)


# ---------------------------
# Input
# ---------------------------
class SubmitTrackingSerializer(serializers.Serializer):
    tracking_number = serializers.CharField()
    carrier = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, max_length=500)
    defer_carrier = serializers.BooleanField(required=False, default=False)

    def to_metadata(self) -> dict:
        description = self.validated_data.get("description")
        return {"description": description} if description else {}


class ExternalTrackSerializer(SubmitTrackingSerializer):
    # external apps usually cannot pick a carrier up front
    defer_carrier = serializers.BooleanField(required=False, default=True)
    callback_url = serializers.URLField(required=False, allow_blank=True)
    app_name = serializers.CharField(required=False, allow_blank=True, max_length=100)
    metadata = serializers.DictField(required=False)
    user_id = serializers.CharField(required=False, allow_blank=True, max_length=48)

    def to_metadata(self) -> dict:
        data = self.validated_data
        meta = super().to_metadata()
        meta["app_name"] = data.get("app_name") or "External App"
        if data.get("callback_url"):
            meta["callback_url"] = data["callback_url"]
        if data.get("metadata"):
            meta["external_metadata"] = data["metadata"]
        return meta


class AssignCarrierSerializer(serializers.Serializer):
    carrier = serializers.CharField()


class UpdateDescriptionSerializer(serializers.Serializer):
    description = serializers.CharField(allow_blank=True, max_length=500)
