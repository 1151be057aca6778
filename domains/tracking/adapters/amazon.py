# domains/tracking/adapters/amazon.py
from __future__ import annotations

import re

from ..models import Carrier
from .rest import RestCarrierAdapter, dig

_AMAZON_PATTERN = re.compile(r"^TBA[0-9]{10,12}$")


class AmazonAdapter(RestCarrierAdapter):
    """Amazon Shipping v2 getTracking (x-amz-access-token)."""

    carrier = Carrier.AMAZON.value
    default_base_url = "https://sellingpartnerapi-na.amazon.com"

    def auth_headers(self):
        return {"x-amz-access-token": self.api_key}

    def validate_format(self, tracking_number: str) -> bool:
        if not super().validate_format(tracking_number):
            return False
        return bool(_AMAZON_PATTERN.match(self.clean_number(tracking_number)))

    def build_request(self, tracking_number: str):
        return {
            "url": f"{self.base_url}/shipping/v2/tracking",
            "params": {"trackingId": tracking_number, "carrierId": "AMZN_US"},
        }

    def carrier_error(self, data):
        errors = data.get("errors") if isinstance(data, dict) else None
        if errors:
            return dig(errors, 0, "message", default="Amazon reported an error")
        return None

    def extract(self, data, tracking_number):
        payload = data.get("payload") or {}
        history = payload.get("eventHistory") or []
        latest = history[-1] if history else {}
        city = dig(latest, "location", "city")
        state = dig(latest, "location", "stateOrRegion")

        return {
            "tracking_number": payload.get("trackingId") or tracking_number,
            "current_status": dig(payload, "summary", "status") or latest.get("eventCode"),
            "current_location": ", ".join(p for p in (city, state) if p) or None,
            "expected_delivery_date": payload.get("promisedDeliveryDate"),
            "shipped_date": dig(history, 0, "eventTime") if history else None,
        }
