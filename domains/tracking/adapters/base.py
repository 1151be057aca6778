# domains/tracking/adapters/base.py
from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from django.utils.dateparse import parse_date, parse_datetime

from ..exceptions import AdapterError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


@dataclass
class ShipmentSnapshot:
    """Normalized adapter output. Persisted as ShipmentResult."""

    tracking_number: str
    carrier_name: str
    current_status: str = "Unknown"
    current_location: str = "Unknown"
    expected_delivery_date: Optional[date] = None
    shipped_date: Optional[date] = None
    raw_payload: Any = None


def coerce_date(value) -> Optional[date]:
    """ISO date/datetime strings, date objects, or a few carrier text formats."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    try:
        d = parse_date(s)
        if d:
            return d
        dt = parse_datetime(s)
        if dt:
            return dt.date()
    except ValueError:
        return None
    for fmt in ("%B %d, %Y", "%Y%m%d", "%m/%d/%Y"):
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


class CarrierAdapter(ABC):
    """
    Per-carrier tracking lookup.

    track_package() returns a ShipmentSnapshot or raises AdapterError; it never
    returns an error-shaped dict.
    """

    carrier: str = ""

    def __init__(self, api_key: Optional[str] = None, *, timeout: Optional[float] = None):
        self.api_key = api_key or ""
        self.timeout = timeout or DEFAULT_TIMEOUT

    def is_configured(self) -> bool:
        return bool(self.api_key)

    @staticmethod
    def clean_number(tracking_number: str) -> str:
        return re.sub(r"\s", "", tracking_number or "").upper()

    def validate_format(self, tracking_number: str) -> bool:
        """Carrier-agnostic floor: a string of at least 8 non-space characters."""
        if not tracking_number or not isinstance(tracking_number, str):
            return False
        return len(self.clean_number(tracking_number)) >= 8

    def track_package(self, tracking_number: str) -> ShipmentSnapshot:
        if not self.is_configured():
            raise AdapterError(self.carrier, f"{self.carrier} service is not properly configured")
        if not self.validate_format(tracking_number):
            raise AdapterError(self.carrier, f"Invalid {self.carrier} tracking number format")

        cleaned = self.clean_number(tracking_number)
        logger.info("Tracking %s via %s", cleaned, self.carrier)
        return self.lookup(cleaned)

    @abstractmethod
    def lookup(self, tracking_number: str) -> ShipmentSnapshot:
        """Carrier API call for an already validated, cleaned number."""
        raise NotImplementedError

    def standardize(self, requested_number: str, **fields) -> ShipmentSnapshot:
        return ShipmentSnapshot(
            tracking_number=fields.get("tracking_number") or requested_number,
            carrier_name=self.carrier,
            current_status=fields.get("current_status") or "Unknown",
            current_location=fields.get("current_location") or "Unknown",
            expected_delivery_date=coerce_date(fields.get("expected_delivery_date")),
            shipped_date=coerce_date(fields.get("shipped_date")),
            raw_payload=fields.get("raw_payload"),
        )
