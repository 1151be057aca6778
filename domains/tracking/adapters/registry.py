# domains/tracking/adapters/registry.py
from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Type

from django.conf import settings

from ..exceptions import CarrierUnavailable, CarrierUnsupported
from ..models import Carrier
from .amazon import AmazonAdapter
from .base import CarrierAdapter
from .dhl import DHLAdapter
from .fedex import FedExAdapter
from .ups import UPSAdapter
from .usps import USPSAdapter

logger = logging.getLogger(__name__)

ADAPTER_CLASSES: Dict[Carrier, Type[CarrierAdapter]] = {
    Carrier.USPS: USPSAdapter,
    Carrier.UPS: UPSAdapter,
    Carrier.FEDEX: FedExAdapter,
    Carrier.DHL: DHLAdapter,
    Carrier.AMAZON: AmazonAdapter,
}


def _norm(code: str) -> str:
    return (code or "").strip().lower().replace("-", "").replace("_", "").replace(" ", "")


_BY_KEY = {_norm(c.value): c for c in Carrier}

# common aliases → canonical carrier
_ALIASES = {
    "unitedstatespostalservice": Carrier.USPS,
    "postalservice": Carrier.USPS,
    "unitedparcelservice": Carrier.UPS,
    "federalexpress": Carrier.FEDEX,
    "fedexcorporation": Carrier.FEDEX,
    "dhlexpress": Carrier.DHL,
    "amzl": Carrier.AMAZON,
    "amazonlogistics": Carrier.AMAZON,
    "other": Carrier.UNKNOWN,
}


def normalize_carrier(value) -> Optional[Carrier]:
    """Case-insensitive carrier name/alias → Carrier, None when not recognised."""
    if isinstance(value, Carrier):
        return value
    key = _norm(value)
    if not key:
        return None
    return _BY_KEY.get(key) or _ALIASES.get(key)


class CarrierRegistry:
    """
    Carrier → adapter instance. Read-only after construction; build one per
    process/task with build_registry() and pass it where it is needed.
    """

    def __init__(self, adapters: Optional[Mapping[Carrier, CarrierAdapter]] = None):
        self._adapters: Dict[Carrier, CarrierAdapter] = {}
        for carrier, adapter in (adapters or {}).items():
            self.register(carrier, adapter)

    def register(self, carrier, adapter: CarrierAdapter) -> None:
        key = normalize_carrier(carrier)
        if key is None or key == Carrier.UNKNOWN:
            raise ValueError(f"Cannot register adapter for carrier '{carrier}'")
        self._adapters[key] = adapter

    def get(self, carrier) -> Optional[CarrierAdapter]:
        key = normalize_carrier(carrier)
        return self._adapters.get(key) if key else None

    def resolve(self, carrier) -> CarrierAdapter:
        """Adapter for carrier, or CarrierUnsupported / CarrierUnavailable."""
        adapter = self.get(carrier)
        if adapter is None:
            raise CarrierUnsupported(str(carrier), self.available_carriers())
        if not adapter.is_configured():
            raise CarrierUnavailable(str(carrier), self.available_carriers())
        return adapter

    def is_available(self, carrier) -> bool:
        adapter = self.get(carrier)
        return bool(adapter and adapter.is_configured())

    def carriers(self) -> List[str]:
        return [c.value for c in self._adapters]

    def available_carriers(self) -> List[str]:
        return [c.value for c, a in self._adapters.items() if a.is_configured()]

    def status(self) -> Dict[str, Dict[str, bool]]:
        return {
            c.value: {"available": a.is_configured(), "configured": bool(a.api_key)}
            for c, a in self._adapters.items()
        }


def build_registry(
    credentials: Optional[Mapping[str, Mapping]] = None,
    *,
    timeout: Optional[float] = None,
) -> CarrierRegistry:
    """
    Construct every known adapter from settings.CARRIER_CREDENTIALS, e.g.
    {"USPS": {"api_key": "...", "base_url": None}, ...}. Carriers without an
    api_key are still registered but report as unavailable.
    """
    if credentials is None:
        credentials = getattr(settings, "CARRIER_CREDENTIALS", {}) or {}
    if timeout is None:
        timeout = getattr(settings, "CARRIER_HTTP_TIMEOUT", None)

    registry = CarrierRegistry()
    for carrier, cls in ADAPTER_CLASSES.items():
        conf = dict(credentials.get(carrier.value) or {})
        adapter = cls(
            conf.get("api_key"),
            base_url=conf.get("base_url") or None,
            timeout=timeout,
        )
        registry.register(carrier, adapter)

    logger.debug("Carrier registry built: %s", registry.status())
    return registry
