import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="TrackingRequest",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("owner_id", models.CharField(db_index=True, max_length=64)),
                ("tracking_number", models.CharField(max_length=50)),
                (
                    "carrier",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("USPS", "United States Postal Service"),
                            ("UPS", "United Parcel Service"),
                            ("FedEx", "FedEx Corporation"),
                            ("DHL", "DHL International"),
                            ("Amazon", "Amazon Logistics"),
                            ("Unknown", "Unknown"),
                        ],
                        max_length=16,
                        null=True,
                    ),
                ),
                (
                    "state",
                    models.CharField(
                        choices=[
                            ("awaiting_carrier", "Awaiting Carrier"),
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                        ],
                        default="pending",
                        max_length=24,
                    ),
                ),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("last_error", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "indexes": [
                    models.Index(
                        fields=["owner_id", "created_at"],
                        name="tracking_owner_created_idx",
                    ),
                    models.Index(
                        fields=["state", "updated_at"],
                        name="tracking_state_updated_idx",
                    ),
                    models.Index(
                        fields=["tracking_number"], name="tracking_number_idx"
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("owner_id", "tracking_number", "carrier"),
                        name="uq_owner_tracking_carrier",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="ShipmentResult",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("tracking_number", models.CharField(max_length=50)),
                ("carrier_name", models.CharField(max_length=16)),
                (
                    "current_status",
                    models.CharField(default="Unknown", max_length=200),
                ),
                (
                    "current_location",
                    models.CharField(default="Unknown", max_length=200),
                ),
                ("expected_delivery_date", models.DateField(blank=True, null=True)),
                ("shipped_date", models.DateField(blank=True, null=True)),
                ("raw_payload", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "request",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="result",
                        to="tracking.trackingrequest",
                    ),
                ),
            ],
        ),
    ]
