# tests/test_tracking_views_api.py
import pytest
from rest_framework.test import APIClient

from domains.tracking.models import Carrier, RequestState

BASE = "/api/v1/tracking/"


@pytest.mark.django_db
def test_requires_authentication(api_client):
    assert api_client.get(BASE).status_code == 401
    assert api_client.post(BASE, {"tracking_number": "1Z999AA10123456784"}, format="json").status_code == 401


@pytest.mark.django_db
def test_token_login(api_client, user):
    r = api_client.post(
        "/api/v1/auth/token/",
        {"username": user.username, "password": user.raw_password},
        format="json",
    )
    assert r.status_code == 200, r.data
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['access']}")
    assert api_client.get(BASE).status_code == 200


@pytest.mark.django_db
def test_submit_and_duplicate(auth_client, api_service, enqueued):
    r = auth_client.post(BASE, {"tracking_number": "1Z999AA10123456784", "description": "boots"}, format="json")
    assert r.status_code == 201, r.data
    assert r.data["carrier"] == "UPS"
    assert r.data["state"] == RequestState.PENDING
    assert r.data["description"] == "boots"
    assert r.data["result"] is None
    assert r.data["tracking_url"] == "https://www.ups.com/track?tracknum=1Z999AA10123456784"

    dup = auth_client.post(BASE, {"tracking_number": "1Z999AA10123456784"}, format="json")
    assert dup.status_code == 409
    assert dup.data["tracking_id"] == r.data["id"]
    assert len(enqueued) == 1


@pytest.mark.django_db
def test_submit_undetectable_is_400(auth_client, api_service):
    r = auth_client.post(BASE, {"tracking_number": "9400 1112 0621 3859 4962 47"}, format="json")
    assert r.status_code == 400
    assert "suggestion" in r.data


@pytest.mark.django_db
def test_submit_unavailable_carrier_lists_available(auth_client, api_service, stub_adapters):
    stub_adapters[Carrier.DHL].api_key = ""
    r = auth_client.post(BASE, {"tracking_number": "1234567890", "carrier": "DHL"}, format="json")
    assert r.status_code == 400
    assert "DHL" not in r.data["available_carriers"]
    assert "USPS" in r.data["available_carriers"]


@pytest.mark.django_db
def test_submit_bad_input_is_400(auth_client, api_service):
    assert auth_client.post(BASE, {}, format="json").status_code == 400
    assert auth_client.post(BASE, {"tracking_number": "short"}, format="json").status_code == 400
    r = auth_client.post(BASE, {"tracking_number": "1234567890", "carrier": "pigeon"}, format="json")
    assert r.status_code == 400
    assert "carrier" in r.data


@pytest.mark.django_db
def test_list_is_owner_scoped_paginated_and_filtered(auth_client, user, user_factory, api_service):
    api_service.submit(user.pk, "1Z999AA10123456784")
    api_service.submit(user.pk, "TBA1234567890")
    api_service.submit(user.pk, "9400 1112 0621 3859 4962 47", defer_carrier=True)
    api_service.submit(user_factory().pk, "EA123456789US")

    r = auth_client.get(BASE, {"size": 2})
    assert r.status_code == 200
    assert r.data["total"] == 3
    assert len(r.data["results"]) == 2

    r = auth_client.get(BASE, {"state": "awaiting_carrier"})
    assert r.data["total"] == 1
    assert r.data["results"][0]["needs_carrier"] is True

    r = auth_client.get(BASE, {"carrier": "Amazon"})
    assert [row["tracking_number"] for row in r.data["results"]] == ["TBA1234567890"]

    assert auth_client.get(BASE, {"state": "lost"}).status_code == 400


@pytest.mark.django_db
def test_detail_patch_delete(auth_client, user, api_service):
    req = api_service.submit(user.pk, "1Z999AA10123456784").request
    url = f"{BASE}{req.pk}/"

    r = auth_client.get(url)
    assert r.status_code == 200
    assert r.data["id"] == str(req.pk)

    r = auth_client.patch(url, {"description": "gift"}, format="json")
    assert r.status_code == 200
    assert r.data["description"] == "gift"

    assert auth_client.delete(url).status_code == 204
    assert auth_client.get(url).status_code == 404
    assert auth_client.delete(url).status_code == 404


@pytest.mark.django_db
def test_other_owner_gets_404(user_factory, api_service):
    owner = user_factory()
    req = api_service.submit(owner.pk, "1Z999AA10123456784").request

    intruder = APIClient()
    intruder.force_authenticate(user=user_factory())
    assert intruder.get(f"{BASE}{req.pk}/").status_code == 404
    assert intruder.delete(f"{BASE}{req.pk}/").status_code == 404


@pytest.mark.django_db
def test_assign_carrier_errors(auth_client, user, api_service):
    deferred = api_service.submit(user.pk, "9400 1112 0621 3859 4962 47", defer_carrier=True).request
    url = f"{BASE}{deferred.pk}/carrier/"

    assert auth_client.put(url, {"carrier": "Unknown"}, format="json").status_code == 400
    assert auth_client.put(url, {"carrier": "USPS"}, format="json").status_code == 200
    again = auth_client.put(url, {"carrier": "UPS"}, format="json")
    assert again.status_code == 400
    assert "already" in again.data["detail"]


@pytest.mark.django_db
def test_tracking_url_endpoint(auth_client, user, api_service):
    req = api_service.submit(user.pk, "TBA1234567890").request
    r = auth_client.get(f"{BASE}{req.pk}/url/")
    assert r.status_code == 200
    assert r.data["tracking_url"] == "https://www.amazon.com/progress-tracker/package/TBA1234567890"

    deferred = api_service.submit(user.pk, "9400 1112 0621 3859 4962 47", defer_carrier=True).request
    assert auth_client.get(f"{BASE}{deferred.pk}/url/").status_code == 400


@pytest.mark.django_db
def test_carriers_is_public(api_client, api_service, stub_adapters):
    stub_adapters[Carrier.AMAZON].api_key = ""
    r = api_client.get(f"{BASE}carriers/")
    assert r.status_code == 200
    by_name = {c["name"]: c for c in r.data["carriers"]}
    assert by_name["USPS"]["available"] is True
    assert by_name["Amazon"]["available"] is False
    assert "Amazon" not in r.data["available"]


@pytest.mark.django_db
def test_overview(auth_client, user, api_service):
    api_service.submit(user.pk, "1Z999AA10123456784")
    r = auth_client.get(f"{BASE}overview/")
    assert r.status_code == 200
    assert r.data["total"] == 1
    assert r.data["by_state"]["pending"] == 1


# ---- external-app surface -----------------------------------------------------------
@pytest.mark.django_db
def test_external_track_defaults_to_defer_mode(auth_client, api_service):
    r = auth_client.post(
        "/api/v1/external/track/",
        {"tracking_number": "9400 1112 0621 3859 4962 47", "metadata": {"order": 42}},
        format="json",
    )
    assert r.status_code == 201, r.data
    assert r.data["has_carrier"] is False
    assert r.data["next_steps"]
    assert r.data["request"]["metadata"]["app_name"] == "External App"
    assert r.data["request"]["metadata"]["external_metadata"] == {"order": 42}


@pytest.mark.django_db
def test_external_user_id_namespaces_owner(auth_client, user, api_service):
    body = {"tracking_number": "1Z999AA10123456784", "user_id": "u-7"}
    r = auth_client.post("/api/v1/external/track/", body, format="json")
    assert r.status_code == 201
    request_id = r.data["tracking_id"]

    # not visible as the caller's own request
    assert auth_client.get(f"/api/v1/external/status/{request_id}/").status_code == 404
    r = auth_client.get(f"/api/v1/external/status/{request_id}/", {"user_id": "u-7"})
    assert r.status_code == 200
    assert r.data["state"] == RequestState.PENDING
    assert r.data["needs_carrier"] is False

    # same external user again → duplicate
    dup = auth_client.post("/api/v1/external/track/", body, format="json")
    assert dup.status_code == 409


@pytest.mark.django_db
def test_external_assign_carrier(auth_client, api_service, enqueued):
    r = auth_client.post(
        "/api/v1/external/track/",
        {"tracking_number": "9400 1112 0621 3859 4962 47", "user_id": "u-9"},
        format="json",
    )
    request_id = r.data["tracking_id"]

    r = auth_client.put(
        f"/api/v1/external/track/{request_id}/carrier/",
        {"carrier": "usps", "user_id": "u-9"},
        format="json",
    )
    assert r.status_code == 200, r.data
    assert r.data["carrier"] == "USPS"
    assert r.data["next_steps"]
    assert len(enqueued) == 1
