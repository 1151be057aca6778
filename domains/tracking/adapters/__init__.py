# domains/tracking/adapters/__init__.py
from .base import CarrierAdapter, ShipmentSnapshot
from .registry import CarrierRegistry, build_registry, normalize_carrier

__all__ = [
    "CarrierAdapter",
    "CarrierRegistry",
    "ShipmentSnapshot",
    "build_registry",
    "normalize_carrier",
]
