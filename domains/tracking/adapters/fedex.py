# domains/tracking/adapters/fedex.py
from __future__ import annotations

import re

from ..models import Carrier
from .rest import RestCarrierAdapter, dig

_FEDEX_PATTERNS = (
    re.compile(r"^[0-9]{12}$"),
    re.compile(r"^[0-9]{14}$"),
    re.compile(r"^[0-9]{15}$"),
    re.compile(r"^[0-9]{20}$"),
    re.compile(r"^[0-9]{22}$"),
)


class FedExAdapter(RestCarrierAdapter):
    """FedEx Track API v1 (OAuth bearer token)."""

    carrier = Carrier.FEDEX.value
    default_base_url = "https://apis.fedex.com"
    method = "POST"

    def validate_format(self, tracking_number: str) -> bool:
        if not super().validate_format(tracking_number):
            return False
        cleaned = self.clean_number(tracking_number)
        return any(p.match(cleaned) for p in _FEDEX_PATTERNS)

    def build_request(self, tracking_number: str):
        return {
            "url": f"{self.base_url}/track/v1/trackingnumbers",
            "json": {
                "includeDetailedScans": False,
                "trackingInfo": [
                    {"trackingNumberInfo": {"trackingNumber": tracking_number}}
                ],
            },
        }

    def _result(self, data):
        return dig(data, "output", "completeTrackResults", 0, "trackResults", 0, default={})

    def carrier_error(self, data):
        errors = data.get("errors") if isinstance(data, dict) else None
        if errors:
            return dig(errors, 0, "message", default="FedEx reported an error")
        result_error = dig(self._result(data), "error", "message")
        return result_error or None

    def extract(self, data, tracking_number):
        result = self._result(data)
        latest = result.get("latestStatusDetail") or {}
        location = latest.get("scanLocation") or {}
        city = location.get("city")
        state = location.get("stateOrProvinceCode")

        dates = {d.get("type"): d.get("dateTime") for d in result.get("dateAndTimes") or []}
        return {
            "tracking_number": dig(result, "trackingNumberInfo", "trackingNumber") or tracking_number,
            "current_status": latest.get("description") or latest.get("statusByLocale"),
            "current_location": ", ".join(p for p in (city, state) if p) or None,
            "expected_delivery_date": dates.get("ESTIMATED_DELIVERY") or dates.get("ACTUAL_DELIVERY"),
            "shipped_date": dates.get("SHIP") or dates.get("ACTUAL_PICKUP"),
        }
