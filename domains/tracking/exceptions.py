# domains/tracking/exceptions.py
from __future__ import annotations

from typing import Iterable, Optional

from rest_framework.exceptions import ValidationError


class TrackingValidationError(ValidationError):
    """Malformed submission (length, carrier enum). Rendered by DRF as 400."""

    pass


class TrackingError(Exception):
    """Base class for tracking domain errors."""

    pass


class TrackingRequestNotFound(TrackingError):
    pass


class CarrierUndetermined(TrackingError):
    def __init__(self, tracking_number: str):
        self.tracking_number = tracking_number
        super().__init__(
            f"Unable to detect carrier from tracking number '{tracking_number}'. "
            "Please specify the carrier manually."
        )


class CarrierUnsupported(TrackingError):
    """No adapter is registered for the carrier."""

    def __init__(self, carrier: str, available: Optional[Iterable[str]] = None):
        self.carrier = carrier
        self.available = list(available or [])
        super().__init__(f"{carrier} is not a supported carrier")


class CarrierUnavailable(TrackingError):
    """An adapter exists but is not configured (e.g. missing credentials)."""

    def __init__(self, carrier: str, available: Optional[Iterable[str]] = None):
        self.carrier = carrier
        self.available = list(available or [])
        super().__init__(f"{carrier} tracking service is not available")


class CarrierAlreadyAssigned(TrackingError):
    def __init__(self, request_id, carrier: str):
        self.request_id = request_id
        self.carrier = carrier
        super().__init__(f"Carrier already set for tracking request {request_id}: {carrier}")


class InvalidTransition(TrackingError):
    """Illegal state-machine edge. Indicates a concurrency-control bug."""

    def __init__(self, request_id, from_state: str, to_state: str, reason: str = ""):
        self.request_id = request_id
        self.from_state = from_state
        self.to_state = to_state
        message = f"Invalid transition for tracking request {request_id}: {from_state} -> {to_state}"
        super().__init__(f"{message} ({reason})" if reason else message)


class AdapterError(TrackingError):
    """Any carrier lookup failure: network, timeout, carrier-reported, parse."""

    def __init__(self, carrier: str, reason: str):
        self.carrier = carrier
        self.reason = reason
        super().__init__(f"{carrier}: {reason}")
