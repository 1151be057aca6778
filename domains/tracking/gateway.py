# domains/tracking/gateway.py
from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, Optional

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from .models import RequestState, ShipmentResult, TrackingRequest


class TrackingGateway:
    """
    System of record for tracking requests. Every state change goes through
    compare_and_transition(), a single conditional UPDATE, so two workers can
    never both move the same row out of a given state.
    """

    def create(self, **fields) -> TrackingRequest:
        return TrackingRequest.objects.create(**fields)

    def find_by_identity(
        self, owner_id: str, tracking_number: str, carrier: Optional[str]
    ) -> Optional[TrackingRequest]:
        qs = TrackingRequest.objects.filter(
            owner_id=str(owner_id), tracking_number=tracking_number
        )
        qs = qs.filter(carrier__isnull=True) if carrier is None else qs.filter(carrier=carrier)
        return qs.order_by("created_at").first()

    def get(self, request_id, owner_id: Optional[str] = None) -> Optional[TrackingRequest]:
        qs = TrackingRequest.objects.select_related("result")
        if owner_id is not None:
            qs = qs.filter(owner_id=str(owner_id))
        return qs.filter(pk=request_id).first()

    @transaction.atomic
    def compare_and_transition(
        self,
        request_id,
        from_state: str,
        to_state: str,
        patch: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Move request_id from from_state to to_state, applying patch in the same
        statement. A "result" key in patch (ShipmentSnapshot-like dict) is
        written as the ShipmentResult row inside the same transaction.
        Returns False when the row was not in from_state.
        """
        patch = dict(patch or {})
        result = patch.pop("result", None)

        updated = TrackingRequest.objects.filter(pk=request_id, state=from_state).update(
            state=to_state, updated_at=timezone.now(), **patch
        )
        if not updated:
            return False

        if result is not None:
            ShipmentResult.objects.update_or_create(request_id=request_id, defaults=result)
        return True

    def delete(self, request_id, owner_id: Optional[str] = None) -> bool:
        qs = TrackingRequest.objects.filter(pk=request_id)
        if owner_id is not None:
            qs = qs.filter(owner_id=str(owner_id))
        # ShipmentResult goes with it (on_delete=CASCADE)
        deleted, _ = qs.delete()
        return bool(deleted)

    # ---- read helpers -------------------------------------------------------
    def list_for_owner(self, owner_id: str) -> QuerySet:
        return (
            TrackingRequest.objects.select_related("result")
            .filter(owner_id=str(owner_id))
            .order_by("-created_at")
        )

    def stale_pending(self, older_than_seconds: int) -> QuerySet:
        cutoff = timezone.now() - timedelta(seconds=older_than_seconds)
        return TrackingRequest.objects.filter(
            state=RequestState.PENDING, updated_at__lt=cutoff
        ).order_by("updated_at")
