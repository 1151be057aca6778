from __future__ import annotations

import uuid

from django.db import models


class Carrier(models.TextChoices):
    USPS = "USPS", "United States Postal Service"
    UPS = "UPS", "United Parcel Service"
    FEDEX = "FedEx", "FedEx Corporation"
    DHL = "DHL", "DHL International"
    AMAZON = "Amazon", "Amazon Logistics"
    UNKNOWN = "Unknown", "Unknown"


class RequestState(models.TextChoices):
    AWAITING_CARRIER = "awaiting_carrier", "Awaiting Carrier"
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


# from-state -> allowed to-states
ALLOWED_TRANSITIONS = {
    RequestState.AWAITING_CARRIER: frozenset({RequestState.PENDING}),
    RequestState.PENDING: frozenset({RequestState.PROCESSING}),
    RequestState.PROCESSING: frozenset({RequestState.COMPLETED, RequestState.FAILED}),
    RequestState.COMPLETED: frozenset(),
    RequestState.FAILED: frozenset(),
}


class TrackingRequest(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_id = models.CharField(max_length=64, db_index=True)
    tracking_number = models.CharField(max_length=50)
    carrier = models.CharField(
        max_length=16, choices=Carrier.choices, null=True, blank=True
    )

    state = models.CharField(
        max_length=24,
        choices=RequestState.choices,
        default=RequestState.PENDING,
    )

    # description / app_name / callback_url / external_metadata
    metadata = models.JSONField(default=dict, blank=True)
    last_error = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    # set explicitly on each transition (queryset.update() skips auto_now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(
                fields=["owner_id", "created_at"], name="tracking_owner_created_idx"
            ),
            models.Index(
                fields=["state", "updated_at"], name="tracking_state_updated_idx"
            ),
            models.Index(
                fields=["tracking_number"], name="tracking_number_idx"
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=("owner_id", "tracking_number", "carrier"),
                name="uq_owner_tracking_carrier",
            )
        ]

    def __str__(self) -> str:
        return f"{self.carrier or '-'}:{self.tracking_number} [{self.state}]"

    @property
    def callback_url(self) -> str | None:
        return (self.metadata or {}).get("callback_url") or None


class ShipmentResult(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    request = models.OneToOneField(
        TrackingRequest, on_delete=models.CASCADE, related_name="result"
    )
    tracking_number = models.CharField(max_length=50)
    carrier_name = models.CharField(max_length=16)

    current_status = models.CharField(max_length=200, default="Unknown")
    current_location = models.CharField(max_length=200, default="Unknown")
    expected_delivery_date = models.DateField(null=True, blank=True)
    shipped_date = models.DateField(null=True, blank=True)

    raw_payload = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.carrier_name}:{self.tracking_number} {self.current_status}"
