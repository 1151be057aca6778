# domains/tracking/worker.py
from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Callable, Optional

from django.db import DatabaseError

from .adapters.base import ShipmentSnapshot
from .adapters.registry import CarrierRegistry
from .exceptions import AdapterError, CarrierUnavailable, CarrierUnsupported
from .gateway import TrackingGateway
from .models import RequestState, TrackingRequest
from .notifications import send_callback
from .services import transition

logger = logging.getLogger(__name__)


def fulfill_request(
    request_id,
    *,
    registry: CarrierRegistry,
    gateway: Optional[TrackingGateway] = None,
    notifier: Optional[Callable[..., bool]] = None,
) -> Optional[TrackingRequest]:
    """
    Claim a pending request, run its carrier lookup and record the outcome.

    pending -> processing is a compare-and-swap: when another worker already
    claimed the row this returns None without touching the adapter. The
    callback (if any) is sent after the final state is stored and cannot
    change it.
    """
    gateway = gateway or TrackingGateway()
    notifier = notifier or send_callback

    request = gateway.get(request_id)
    if request is None:
        logger.warning("Tracking request %s vanished before fulfillment", request_id)
        return None
    if request.state != RequestState.PENDING:
        logger.info("Tracking request %s is %s; nothing to do", request_id, request.state)
        return None
    if not transition(gateway, request, RequestState.PROCESSING):
        return None

    result = None
    error: Optional[str] = None
    try:
        adapter = registry.resolve(request.carrier)
        snapshot = adapter.track_package(request.tracking_number)
        if not isinstance(snapshot, ShipmentSnapshot):
            raise AdapterError(
                request.carrier, f"lookup returned {type(snapshot).__name__}, not a shipment"
            )
        result = asdict(snapshot)
    except (AdapterError, CarrierUnsupported, CarrierUnavailable) as e:
        error = str(e)
    except Exception as e:
        logger.exception("Unexpected adapter failure for tracking request %s", request.pk)
        error = f"{request.carrier}: unexpected error: {e}"

    if error is None:
        try:
            transition(
                gateway, request, RequestState.COMPLETED, last_error="", result=result,
            )
        except DatabaseError as e:
            # the CAS ran in its own transaction, so the row is still processing
            logger.exception("Storing the result for tracking request %s failed", request.pk)
            error = f"{request.carrier}: could not store result: {e}"

    if error is not None:
        logger.warning("Tracking request %s failed: %s", request.pk, error)
        transition(gateway, request, RequestState.FAILED, last_error=error)

    final = gateway.get(request.pk)
    if final is not None and final.callback_url:
        notifier(final, error=error)
    return final
