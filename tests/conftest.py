# tests/conftest.py
from uuid import uuid4

from django.conf import settings
from django.contrib.auth import get_user_model

import pytest
from rest_framework.test import APIClient

from domains.tracking.adapters.base import CarrierAdapter
from domains.tracking.adapters.registry import CarrierRegistry
from domains.tracking.models import Carrier
from domains.tracking.services import TrackingService

User = get_user_model()


# ─────────────────────────────────────────────────────────────
# Global test settings (fast hashing)
# ─────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True, scope="session")
def _fast_password_hasher(django_db_setup, django_db_blocker):
    with django_db_blocker.unblock():
        settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]


# ─────────────────────────────────────────────────────────────
# Clients & auth
# ─────────────────────────────────────────────────────────────
@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user_factory(db):
    def _make(**kw):
        password = kw.pop("password", "Test1234!A")
        kw.setdefault("username", f"user_{uuid4().hex[:8]}")
        kw.setdefault("email", f"{kw['username']}@example.com")
        u = User.objects.create_user(password=password, **kw)
        # plain password kept for token-login tests
        u.raw_password = password
        return u

    return _make


@pytest.fixture
def user(user_factory):
    return user_factory()


@pytest.fixture
def auth_client(user):
    """APIClient authenticated as `user` (force_authenticate)."""
    c = APIClient()
    c.force_authenticate(user=user)
    return c


# ─────────────────────────────────────────────────────────────
# Carrier adapters / registry / service
# ─────────────────────────────────────────────────────────────
class StubAdapter(CarrierAdapter):
    """
    In-memory adapter. Records every lookup; returns a snapshot built from
    `status`/`location` or raises `error` when set.
    """

    def __init__(self, carrier, api_key="test-key", *, status="In Transit",
                 location="Memphis, TN", error=None):
        super().__init__(api_key)
        self.carrier = carrier.value if isinstance(carrier, Carrier) else carrier
        self.status = status
        self.location = location
        self.error = error
        self.calls = []

    def lookup(self, tracking_number):
        self.calls.append(tracking_number)
        if self.error is not None:
            raise self.error
        return self.standardize(
            tracking_number,
            current_status=self.status,
            current_location=self.location,
            expected_delivery_date="2025-01-10",
            raw_payload={"stub": True, "tracking_number": tracking_number},
        )


@pytest.fixture
def stub_adapter_cls():
    return StubAdapter


@pytest.fixture
def stub_adapters():
    return {c: StubAdapter(c) for c in Carrier if c != Carrier.UNKNOWN}


@pytest.fixture
def stub_registry(stub_adapters):
    return CarrierRegistry(stub_adapters)


@pytest.fixture
def enqueued():
    """Captures request ids handed to the worker queue."""
    return []


@pytest.fixture
def service(db, stub_registry, enqueued):
    return TrackingService(stub_registry, enqueue=enqueued.append)


@pytest.fixture
def api_service(monkeypatch, service):
    """Route the HTTP views through the stubbed service."""
    import domains.tracking.views as views

    monkeypatch.setattr(views, "get_service", lambda: service)
    monkeypatch.setattr(views, "build_registry", lambda: service.registry)
    return service
