# domains/tracking/tasks.py
from __future__ import annotations

from typing import Optional

from celery import shared_task
from celery.utils.log import get_task_logger
from django.conf import settings

logger = get_task_logger(__name__)


@shared_task(acks_late=True, soft_time_limit=60, ignore_result=True,
             name="domains.tracking.tasks.fulfill_tracking_request")
def fulfill_tracking_request(request_id: str) -> Optional[str]:
    """
    Fulfill one pending request. No retries: failures are recorded as failed.
    Returns the final state, or None when another worker claimed it.
    """
    # deferred imports avoid an app-loading cycle
    from .adapters.registry import build_registry
    from .worker import fulfill_request

    final = fulfill_request(request_id, registry=build_registry())
    return final.state if final is not None else None


@shared_task(name="domains.tracking.tasks.dispatch_stale_pending")
def dispatch_stale_pending(older_than_seconds: Optional[int] = None) -> int:
    """
    Re-enqueue pending requests whose enqueue signal was lost.
    Duplicate deliveries are harmless: only one worker wins the claim.
    """
    from .gateway import TrackingGateway

    if older_than_seconds is None:
        older_than_seconds = getattr(settings, "TRACKING_STALE_PENDING_SECONDS", 300)

    count = 0
    for pk in TrackingGateway().stale_pending(older_than_seconds).values_list("pk", flat=True):
        fulfill_tracking_request.delay(str(pk))
        count += 1
    if count:
        logger.info("Re-dispatched %d stale pending tracking requests", count)
    return count
