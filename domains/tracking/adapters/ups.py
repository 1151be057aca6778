# domains/tracking/adapters/ups.py
from __future__ import annotations

import re
import uuid

from ..models import Carrier
from .rest import RestCarrierAdapter, dig

_UPS_PATTERNS = (
    re.compile(r"^1Z[0-9A-Z]{16}$"),
    re.compile(r"^[0-9]{9}$"),  # mail innovations / freight
    re.compile(r"^[0-9]{10,}$"),
    re.compile(r"^T[0-9]{10}$"),
)


class UPSAdapter(RestCarrierAdapter):
    """UPS Tracking API v1 (OAuth bearer token)."""

    carrier = Carrier.UPS.value
    default_base_url = "https://onlinetools.ups.com/api"

    def validate_format(self, tracking_number: str) -> bool:
        if not super().validate_format(tracking_number):
            return False
        cleaned = self.clean_number(tracking_number)
        return any(p.match(cleaned) for p in _UPS_PATTERNS)

    def build_request(self, tracking_number: str):
        return {
            "url": f"{self.base_url}/track/v1/details/{tracking_number}",
            "headers": {"transId": uuid.uuid4().hex, "transactionSrc": "parcelhub"},
        }

    def carrier_error(self, data):
        errors = dig(data, "response", "errors", default=[])
        if errors:
            return dig(errors, 0, "message", default="UPS reported an error")
        warning = dig(data, "trackResponse", "shipment", 0, "warnings", 0, "message")
        if warning and not dig(data, "trackResponse", "shipment", 0, "package"):
            return warning
        return None

    def extract(self, data, tracking_number):
        package = dig(data, "trackResponse", "shipment", 0, "package", 0, default={})
        address = dig(package, "activity", 0, "location", "address", default={})
        city = address.get("city")
        state = address.get("stateProvince")

        delivery = None
        shipped = None
        for d in package.get("deliveryDate") or []:
            if d.get("type") in ("DEL", "SDD", "RDD", "EDL"):
                delivery = d.get("date")
        activities = package.get("activity") or []
        if activities:
            shipped = dig(activities, len(activities) - 1, "date")

        return {
            "tracking_number": package.get("trackingNumber") or tracking_number,
            "current_status": dig(package, "currentStatus", "description"),
            "current_location": ", ".join(p for p in (city, state) if p) or None,
            "expected_delivery_date": delivery,
            "shipped_date": shipped,
        }
