# tests/test_tracking_worker.py
import json
from datetime import date
from unittest.mock import MagicMock, patch

import pytest
import requests
from django.db import DataError

from domains.tracking.exceptions import AdapterError
from domains.tracking.gateway import TrackingGateway
from domains.tracking.models import Carrier, RequestState, ShipmentResult, TrackingRequest
from domains.tracking.worker import fulfill_request

OWNER = "owner-1"


@pytest.fixture
def pending(service):
    return service.submit(OWNER, "1Z999AA10123456784").request


@pytest.mark.django_db
def test_success_completes_with_result(pending, stub_registry, stub_adapters):
    final = fulfill_request(pending.pk, registry=stub_registry)

    assert final.state == RequestState.COMPLETED
    assert final.last_error == ""
    assert final.result.current_status == "In Transit"
    assert final.result.current_location == "Memphis, TN"
    assert final.result.expected_delivery_date == date(2025, 1, 10)
    assert final.result.carrier_name == "UPS"
    assert stub_adapters[Carrier.UPS].calls == ["1Z999AA10123456784"]


@pytest.mark.django_db
def test_adapter_error_fails_without_result(pending, stub_registry, stub_adapters):
    stub_adapters[Carrier.UPS].error = AdapterError("UPS", "Tracking number not found")

    final = fulfill_request(pending.pk, registry=stub_registry)

    assert final.state == RequestState.FAILED
    assert "Tracking number not found" in final.last_error
    assert not ShipmentResult.objects.filter(request_id=pending.pk).exists()


@pytest.mark.django_db
def test_unexpected_adapter_exception_fails(pending, stub_registry, stub_adapters):
    stub_adapters[Carrier.UPS].error = KeyError("trackResponse")

    final = fulfill_request(pending.pk, registry=stub_registry)

    assert final.state == RequestState.FAILED
    assert "unexpected error" in final.last_error


@pytest.mark.django_db
def test_unconfigured_adapter_fails_request(pending, stub_registry, stub_adapters):
    stub_adapters[Carrier.UPS].api_key = ""

    final = fulfill_request(pending.pk, registry=stub_registry)

    assert final.state == RequestState.FAILED
    assert stub_adapters[Carrier.UPS].calls == []


@pytest.mark.django_db
def test_claim_is_at_most_once(pending, stub_registry, stub_adapters):
    first = fulfill_request(pending.pk, registry=stub_registry)
    second = fulfill_request(pending.pk, registry=stub_registry)

    assert first.state == RequestState.COMPLETED
    assert second is None
    assert len(stub_adapters[Carrier.UPS].calls) == 1


@pytest.mark.django_db
def test_lost_claim_race_never_calls_adapter(pending, stub_registry, stub_adapters):
    gateway = TrackingGateway()
    # another worker claims the row between our read and our swap
    real_cas = gateway.compare_and_transition

    def racing_cas(request_id, from_state, to_state, patch=None):
        TrackingRequest.objects.filter(pk=request_id).update(state=RequestState.PROCESSING)
        return real_cas(request_id, from_state, to_state, patch)

    gateway.compare_and_transition = racing_cas

    assert fulfill_request(pending.pk, registry=stub_registry, gateway=gateway) is None
    assert stub_adapters[Carrier.UPS].calls == []


@pytest.mark.django_db
def test_awaiting_carrier_is_not_processed(service, stub_registry):
    req = service.submit(OWNER, "9400 1112 0621 3859 4962 47", defer_carrier=True).request
    assert fulfill_request(req.pk, registry=stub_registry) is None
    req.refresh_from_db()
    assert req.state == RequestState.AWAITING_CARRIER


@pytest.mark.django_db
def test_missing_request_returns_none(stub_registry):
    assert fulfill_request("00000000-0000-0000-0000-000000000000", registry=stub_registry) is None


# ---- callbacks -----------------------------------------------------------------
@pytest.mark.django_db
def test_callback_receives_final_state(service, stub_registry):
    req = service.submit(
        OWNER, "1Z999AA10123456784", metadata={"callback_url": "https://app.example.com/hook"}
    ).request

    ok = MagicMock(status_code=200)
    with patch("domains.tracking.notifications.requests.post", return_value=ok) as post:
        fulfill_request(req.pk, registry=stub_registry)

    assert post.call_count == 1
    args, kwargs = post.call_args
    assert args[0] == "https://app.example.com/hook"
    assert kwargs["headers"]["User-Agent"] == "ParcelHub-External-API/1.0"
    assert kwargs["headers"]["Content-Type"] == "application/json"
    body = json.loads(kwargs["data"])
    assert body["requestId"] == str(req.pk)
    assert body["trackingNumber"] == "1Z999AA10123456784"
    assert body["state"] == "completed"
    assert body["carrier"] == "UPS"
    assert body["result"]["current_status"] == "In Transit"
    assert body["result"]["raw_payload"] == {"stub": True, "tracking_number": "1Z999AA10123456784"}
    assert "error" not in body
    assert body["timestamp"]


@pytest.mark.django_db
def test_callback_carries_error_on_failure(service, stub_registry, stub_adapters):
    stub_adapters[Carrier.UPS].error = AdapterError("UPS", "UPS API timed out after 10s")
    req = service.submit(
        OWNER, "1Z999AA10123456784", metadata={"callback_url": "https://app.example.com/hook"}
    ).request

    with patch("domains.tracking.notifications.requests.post") as post:
        fulfill_request(req.pk, registry=stub_registry)

    body = json.loads(post.call_args.kwargs["data"])
    assert body["state"] == "failed"
    assert "timed out" in body["error"]
    assert "result" not in body


@pytest.mark.django_db
def test_callback_failure_does_not_change_state(service, stub_registry):
    req = service.submit(
        OWNER, "1Z999AA10123456784", metadata={"callback_url": "https://down.example.com/hook"}
    ).request

    with patch(
        "domains.tracking.notifications.requests.post",
        side_effect=requests.ConnectionError("refused"),
    ):
        final = fulfill_request(req.pk, registry=stub_registry)

    assert final.state == RequestState.COMPLETED
    assert ShipmentResult.objects.filter(request_id=req.pk).exists()


@pytest.mark.django_db
def test_no_callback_without_url(pending, stub_registry):
    notifier = MagicMock()
    fulfill_request(pending.pk, registry=stub_registry, notifier=notifier)
    notifier.assert_not_called()


# ---- results that cannot be stored ------------------------------------------------
@pytest.mark.django_db
def test_non_snapshot_lookup_fails_request(pending, stub_registry, stub_adapters):
    stub_adapters[Carrier.UPS].lookup = lambda number: None

    final = fulfill_request(pending.pk, registry=stub_registry)

    assert final.state == RequestState.FAILED
    assert "NoneType" in final.last_error
    assert not ShipmentResult.objects.filter(request_id=pending.pk).exists()


class _ResultWriteFails(TrackingGateway):
    def compare_and_transition(self, request_id, from_state, to_state, patch=None):
        if to_state == RequestState.COMPLETED:
            raise DataError("value too long for type character varying(200)")
        return super().compare_and_transition(request_id, from_state, to_state, patch)


@pytest.mark.django_db
def test_result_write_error_fails_request(pending, stub_registry):
    notifier = MagicMock()
    pending.metadata = {"callback_url": "https://app.example.com/hook"}
    pending.save(update_fields=["metadata"])

    final = fulfill_request(
        pending.pk, registry=stub_registry, gateway=_ResultWriteFails(), notifier=notifier
    )

    assert final.state == RequestState.FAILED
    assert "could not store result" in final.last_error
    assert not ShipmentResult.objects.filter(request_id=pending.pk).exists()
    notifier.assert_called_once()
    assert "value too long" in notifier.call_args.kwargs["error"]
