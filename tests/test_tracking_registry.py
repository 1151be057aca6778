# tests/test_tracking_registry.py
import pytest

from domains.tracking.adapters.amazon import AmazonAdapter
from domains.tracking.adapters.registry import (
    CarrierRegistry,
    build_registry,
    normalize_carrier,
)
from domains.tracking.adapters.usps import USPSAdapter
from domains.tracking.exceptions import CarrierUnavailable, CarrierUnsupported
from domains.tracking.models import Carrier


@pytest.mark.parametrize(
    "value, expected",
    [
        ("USPS", Carrier.USPS),
        ("usps", Carrier.USPS),
        ("fedex", Carrier.FEDEX),
        ("Federal Express", Carrier.FEDEX),
        ("amazon", Carrier.AMAZON),
        ("AMZL", Carrier.AMAZON),
        ("other", Carrier.UNKNOWN),
        ("Unknown", Carrier.UNKNOWN),
        ("pigeon", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_carrier(value, expected):
    assert normalize_carrier(value) == expected


def test_resolve_unregistered_carrier_is_unsupported():
    registry = CarrierRegistry({Carrier.USPS: USPSAdapter("uid")})
    with pytest.raises(CarrierUnsupported) as exc:
        registry.resolve("DHL")
    assert exc.value.available == ["USPS"]


def test_resolve_unconfigured_carrier_is_unavailable():
    registry = CarrierRegistry({Carrier.USPS: USPSAdapter("uid"), Carrier.AMAZON: AmazonAdapter("")})
    with pytest.raises(CarrierUnavailable):
        registry.resolve(Carrier.AMAZON)
    assert registry.resolve("usps").carrier == "USPS"
    assert registry.is_available("USPS")
    assert not registry.is_available("Amazon")


def test_register_rejects_unknown():
    with pytest.raises(ValueError):
        CarrierRegistry().register(Carrier.UNKNOWN, USPSAdapter("uid"))


def test_build_registry_reads_credentials(settings):
    settings.CARRIER_HTTP_TIMEOUT = 3
    registry = build_registry({"USPS": {"api_key": "uid"}, "DHL": {"api_key": "k", "base_url": "http://dhl.local/"}})

    assert registry.carriers() == ["USPS", "UPS", "FedEx", "DHL", "Amazon"]
    assert registry.available_carriers() == ["USPS", "DHL"]
    assert registry.status()["UPS"] == {"available": False, "configured": False}
    assert registry.status()["USPS"] == {"available": True, "configured": True}
    assert registry.get("DHL").base_url == "http://dhl.local"
    assert registry.get("USPS").timeout == 3


def test_build_registry_from_settings(settings):
    settings.CARRIER_CREDENTIALS = {"Amazon": {"api_key": "token"}}
    registry = build_registry()
    assert registry.available_carriers() == ["Amazon"]
