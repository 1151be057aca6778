# domains/tracking/adapters/dhl.py
from __future__ import annotations

from ..models import Carrier
from .rest import RestCarrierAdapter, dig


class DHLAdapter(RestCarrierAdapter):
    """DHL Shipment Tracking - Unified API (DHL-API-Key header)."""

    carrier = Carrier.DHL.value
    default_base_url = "https://api-eu.dhl.com"

    def auth_headers(self):
        return {"DHL-API-Key": self.api_key}

    def build_request(self, tracking_number: str):
        return {
            "url": f"{self.base_url}/track/shipments",
            "params": {"trackingNumber": tracking_number},
        }

    def carrier_error(self, data):
        if isinstance(data, dict) and not data.get("shipments"):
            return data.get("detail") or data.get("title") or "DHL returned no shipments"
        return None

    def extract(self, data, tracking_number):
        shipment = dig(data, "shipments", 0, default={})
        status = shipment.get("status") or {}
        events = shipment.get("events") or []
        shipped = dig(events, len(events) - 1, "timestamp") if events else None

        return {
            "tracking_number": shipment.get("id") or tracking_number,
            "current_status": status.get("description") or status.get("statusCode"),
            "current_location": dig(status, "location", "address", "addressLocality"),
            "expected_delivery_date": shipment.get("estimatedTimeOfDelivery"),
            "shipped_date": shipped,
        }
