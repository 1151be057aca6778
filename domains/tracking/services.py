# domains/tracking/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from django.db import IntegrityError, transaction
from django.db.models import Count

from .adapters.registry import CarrierRegistry, normalize_carrier
from .classifier import detect_carrier
from .exceptions import (
    CarrierAlreadyAssigned,
    CarrierUndetermined,
    CarrierUnavailable,
    InvalidTransition,
    TrackingRequestNotFound,
    TrackingValidationError,
)
from .gateway import TrackingGateway
from .models import ALLOWED_TRANSITIONS, Carrier, RequestState, TrackingRequest

logger = logging.getLogger(__name__)

MIN_TRACKING_LENGTH = 8
MAX_TRACKING_LENGTH = 50
SUBMITTABLE_CARRIERS = [c.value for c in Carrier if c != Carrier.UNKNOWN]


@dataclass
class SubmitResult:
    request: TrackingRequest
    duplicate: bool = False

    @property
    def created(self) -> bool:
        return not self.duplicate


def enqueue_fulfillment(request_id) -> None:
    """Hand the request to the Celery worker once the creating transaction commits."""
    from .tasks import fulfill_tracking_request

    transaction.on_commit(lambda: fulfill_tracking_request.delay(str(request_id)))


def transition(
    gateway: TrackingGateway, request: TrackingRequest, to_state: str, **patch: Any
) -> bool:
    """
    Validate the edge against ALLOWED_TRANSITIONS, then compare-and-swap.
    Illegal edges raise InvalidTransition; a lost race returns False.
    A result travels with the move to completed and with no other move.
    """
    from_state = request.state
    if to_state not in ALLOWED_TRANSITIONS.get(from_state, frozenset()):
        logger.error(
            "Invalid transition for tracking request %s: %s -> %s",
            request.pk, from_state, to_state,
        )
        raise InvalidTransition(request.pk, from_state, to_state)

    has_result = patch.get("result") is not None
    if to_state == RequestState.COMPLETED and not has_result:
        logger.error("Tracking request %s cannot complete without a result", request.pk)
        raise InvalidTransition(request.pk, from_state, to_state, "result is required")
    if to_state != RequestState.COMPLETED and "result" in patch:
        logger.error("Tracking request %s cannot store a result in %s", request.pk, to_state)
        raise InvalidTransition(request.pk, from_state, to_state, "result only accompanies completed")

    moved = gateway.compare_and_transition(request.pk, from_state, to_state, patch)
    if not moved:
        logger.info(
            "Tracking request %s left %s before %s could be applied",
            request.pk, from_state, to_state,
        )
        return False

    request.state = to_state
    for field, value in patch.items():
        if field != "result":
            setattr(request, field, value)
    logger.info("Tracking request %s: %s -> %s", request.pk, from_state, to_state)
    return True


def _clean_tracking_number(tracking_number) -> str:
    if not isinstance(tracking_number, str):
        raise TrackingValidationError({"tracking_number": "Tracking number must be a string"})
    cleaned = tracking_number.strip()
    if not (MIN_TRACKING_LENGTH <= len(cleaned) <= MAX_TRACKING_LENGTH):
        raise TrackingValidationError(
            {"tracking_number": "Tracking number must be between 8 and 50 characters"}
        )
    return cleaned


def _parse_carrier(carrier) -> Optional[Carrier]:
    if carrier is None or carrier == "":
        return None
    resolved = normalize_carrier(carrier)
    if resolved is None:
        raise TrackingValidationError(
            {"carrier": f"Carrier must be one of: {', '.join(SUBMITTABLE_CARRIERS)}"}
        )
    return resolved


class TrackingService:
    """
    Owns the lifecycle of tracking requests: intake, carrier assignment,
    owner-scoped reads and deletes. Fulfillment itself runs in worker.py.
    """

    def __init__(
        self,
        registry: CarrierRegistry,
        gateway: Optional[TrackingGateway] = None,
        enqueue: Optional[Callable[[Any], None]] = None,
    ):
        self.registry = registry
        self.gateway = gateway or TrackingGateway()
        self.enqueue = enqueue or enqueue_fulfillment

    # ---- intake -----------------------------------------------------------
    def submit(
        self,
        owner_id,
        tracking_number,
        carrier=None,
        metadata: Optional[Dict[str, Any]] = None,
        *,
        defer_carrier: bool = False,
    ) -> SubmitResult:
        """
        Strict mode (default): an undetectable carrier raises CarrierUndetermined.
        Defer mode: the request is stored in awaiting_carrier instead and waits
        for assign_carrier().
        """
        owner_id = str(owner_id)
        number = _clean_tracking_number(tracking_number)
        explicit = _parse_carrier(carrier)

        resolved: Optional[Carrier] = explicit
        if resolved in (None, Carrier.UNKNOWN):
            resolved = detect_carrier(number)
            if resolved is None:
                if not defer_carrier:
                    raise CarrierUndetermined(number)
                resolved = None
            else:
                logger.debug("Detected carrier %s for %s", resolved, number)

        if resolved is not None:
            try:
                self.registry.resolve(resolved)
            except CarrierUnavailable:
                # a guessed carrier we cannot serve is left for the caller to assign
                if explicit not in (None, Carrier.UNKNOWN) or not defer_carrier:
                    raise
                logger.info(
                    "Detected carrier %s is unavailable; deferring %s", resolved, number
                )
                resolved = None

        carrier_value = resolved.value if resolved is not None else None
        existing = self.gateway.find_by_identity(owner_id, number, carrier_value)
        if existing is not None:
            logger.info(
                "Duplicate tracking submission %s/%s for owner %s -> %s",
                carrier_value, number, owner_id, existing.pk,
            )
            return SubmitResult(existing, duplicate=True)

        state = RequestState.PENDING if carrier_value else RequestState.AWAITING_CARRIER
        try:
            with transaction.atomic():
                request = self.gateway.create(
                    owner_id=owner_id,
                    tracking_number=number,
                    carrier=carrier_value,
                    state=state,
                    metadata=dict(metadata or {}),
                )
        except IntegrityError:
            # concurrent submit of the same identity won the insert
            existing = self.gateway.find_by_identity(owner_id, number, carrier_value)
            if existing is None:
                raise
            return SubmitResult(existing, duplicate=True)

        logger.info(
            "Tracking request %s created (%s, %s, %s)",
            request.pk, carrier_value or "-", number, state,
        )
        if state == RequestState.PENDING:
            self.enqueue(request.pk)
        return SubmitResult(request)

    def assign_carrier(self, owner_id, request_id, carrier) -> SubmitResult:
        request = self.get(owner_id, request_id)
        resolved = _parse_carrier(carrier)
        if resolved in (None, Carrier.UNKNOWN):
            raise TrackingValidationError(
                {"carrier": f"Carrier must be one of: {', '.join(SUBMITTABLE_CARRIERS)}"}
            )
        if request.carrier:
            raise CarrierAlreadyAssigned(request.pk, request.carrier)

        self.registry.resolve(resolved)

        existing = self.gateway.find_by_identity(
            request.owner_id, request.tracking_number, resolved.value
        )
        if existing is not None:
            return SubmitResult(existing, duplicate=True)

        try:
            moved = transition(self.gateway, request, RequestState.PENDING, carrier=resolved.value)
        except IntegrityError:
            existing = self.gateway.find_by_identity(
                request.owner_id, request.tracking_number, resolved.value
            )
            if existing is None:
                raise
            return SubmitResult(existing, duplicate=True)

        if not moved:
            current = self.get(owner_id, request_id)
            if current.carrier:
                raise CarrierAlreadyAssigned(current.pk, current.carrier)
            raise InvalidTransition(current.pk, current.state, RequestState.PENDING)

        self.enqueue(request.pk)
        return SubmitResult(self.get(owner_id, request_id))

    def transition(self, request: TrackingRequest, to_state: str, **patch) -> bool:
        return transition(self.gateway, request, to_state, **patch)

    # ---- owner-scoped reads / writes ----------------------------------------
    def get(self, owner_id, request_id) -> TrackingRequest:
        request = self.gateway.get(request_id, owner_id=str(owner_id))
        if request is None:
            raise TrackingRequestNotFound(f"Tracking request {request_id} not found")
        return request

    def list(self, owner_id):
        return self.gateway.list_for_owner(str(owner_id))

    def delete(self, owner_id, request_id) -> None:
        if not self.gateway.delete(request_id, owner_id=str(owner_id)):
            raise TrackingRequestNotFound(f"Tracking request {request_id} not found")
        logger.info("Tracking request %s deleted by owner %s", request_id, owner_id)

    def update_description(self, owner_id, request_id, description: str) -> TrackingRequest:
        request = self.get(owner_id, request_id)
        request.metadata = {**(request.metadata or {}), "description": description}
        request.save(update_fields=["metadata", "updated_at"])
        return request

    def overview(self, owner_id) -> Dict[str, Any]:
        qs = self.gateway.list_for_owner(str(owner_id)).order_by()

        by_state = {s.value: 0 for s in RequestState}
        for row in qs.values("state").annotate(n=Count("id")):
            by_state[row["state"]] = row["n"]

        by_carrier = [
            {
                "carrier": row["carrier"] or Carrier.UNKNOWN.value,
                "display_name": Carrier(row["carrier"]).label if row["carrier"] else "Unknown",
                "count": row["n"],
            }
            for row in qs.values("carrier").annotate(n=Count("id")).order_by("-n")
        ]

        total = sum(by_state.values())
        completed = by_state[RequestState.COMPLETED.value]
        return {
            "total": total,
            "by_state": by_state,
            "by_carrier": by_carrier,
            "completion_rate": round(completed / total * 100, 1) if total else 0.0,
        }
