# domains/tracking/adapters/usps.py
from __future__ import annotations

import logging
import re
from typing import Optional
from xml.etree import ElementTree as ET
from xml.sax.saxutils import quoteattr

import requests

from ..exceptions import AdapterError
from ..models import Carrier
from .base import CarrierAdapter, ShipmentSnapshot

logger = logging.getLogger(__name__)

USPS_API_URL = "https://secure.shippingapis.com/shippingapi.dll"

_USPS_PATTERNS = (
    re.compile(r"^[0-9]{20}$"),  # Priority Mail Express
    re.compile(r"^[0-9]{22}$"),  # Priority Mail
    re.compile(r"^[0-9]{13}$"),
    re.compile(r"^[0-9A-Z]{13}$"),  # international S10
    re.compile(r"^[0-9A-Z]{12}$"),  # First-Class
    re.compile(r"^[0-9]{10}$"),  # Media Mail
)


class USPSAdapter(CarrierAdapter):
    """
    USPS Web Tools TrackV2 (XML). The credential is the Web Tools USERID.
    """

    carrier = Carrier.USPS.value

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(api_key, timeout=timeout)
        self.base_url = base_url or USPS_API_URL

    def validate_format(self, tracking_number: str) -> bool:
        if not super().validate_format(tracking_number):
            return False
        cleaned = self.clean_number(tracking_number)
        return any(p.match(cleaned) for p in _USPS_PATTERNS)

    def build_xml_request(self, tracking_number: str) -> str:
        return (
            f"<TrackRequest USERID={quoteattr(self.api_key)}>"
            f"<TrackID ID={quoteattr(tracking_number)}></TrackID>"
            "</TrackRequest>"
        )

    def lookup(self, tracking_number: str) -> ShipmentSnapshot:
        params = {"API": "TrackV2", "XML": self.build_xml_request(tracking_number)}
        try:
            response = requests.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.Timeout:
            raise AdapterError(self.carrier, f"USPS API timed out after {self.timeout}s")
        except requests.RequestException as e:
            raise AdapterError(self.carrier, f"USPS API request failed: {e}")

        return self.parse_xml_response(response.text, tracking_number)

    def parse_xml_response(self, body: str, tracking_number: str) -> ShipmentSnapshot:
        try:
            root = ET.fromstring(body)
        except ET.ParseError as e:
            raise AdapterError(self.carrier, f"Failed to parse USPS response: {e}")

        # errors come back either as the root element or nested under TrackInfo
        error = root if root.tag == "Error" else root.find(".//Error")
        if error is not None:
            description = (error.findtext("Description") or "Unknown error").strip()
            raise AdapterError(self.carrier, f"USPS API Error: {description}")

        info = root.find("TrackInfo")
        if info is None:
            raise AdapterError(self.carrier, "Failed to parse USPS response: no TrackInfo")

        summary = info.find("TrackSummary")
        status = (info.findtext("Status") or "").strip()
        if not status and summary is not None:
            status = (summary.findtext("Event") or summary.text or "").strip()

        location = None
        event_date = None
        for node in [summary] + info.findall("TrackDetail"):
            if node is None:
                continue
            city = (node.findtext("EventCity") or "").strip()
            state = (node.findtext("EventState") or "").strip()
            if location is None and city:
                location = f"{city}, {state}" if state else city
            if node.findtext("EventDate"):
                # TrackDetail is newest-first; the last dated event is the earliest
                event_date = node.findtext("EventDate").strip()

        return self.standardize(
            tracking_number,
            tracking_number=info.get("ID") or tracking_number,
            current_status=status,
            current_location=location,
            shipped_date=event_date,
            expected_delivery_date=info.findtext("ExpectedDeliveryDate"),
            raw_payload=body,
        )
