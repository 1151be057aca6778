# domains/tracking/notifications.py
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import requests
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

logger = logging.getLogger(__name__)

USER_AGENT = "ParcelHub-External-API/1.0"


@dataclass
class CallbackPayload:
    requestId: str
    trackingNumber: str
    state: str
    carrier: Optional[str]
    timestamp: str
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


def _dump_result(result) -> Dict[str, Any]:
    return {
        "tracking_number": result.tracking_number,
        "carrier_name": result.carrier_name,
        "current_status": result.current_status,
        "current_location": result.current_location,
        "expected_delivery_date": result.expected_delivery_date,
        "shipped_date": result.shipped_date,
        "raw_payload": result.raw_payload,
    }


def build_payload(request, error: Optional[str] = None) -> Dict[str, Any]:
    result = getattr(request, "result", None) if request.state == "completed" else None
    payload = asdict(CallbackPayload(
        requestId=str(request.pk),
        trackingNumber=request.tracking_number,
        state=request.state,
        carrier=request.carrier,
        timestamp=timezone.now().isoformat(),
        result=_dump_result(result) if result is not None else None,
        error=error or request.last_error or None,
    ))
    # only one of result / error is sent
    if payload["result"] is not None:
        payload.pop("error")
    else:
        payload.pop("result")
    return payload


def send_callback(request, error: Optional[str] = None, *, url: Optional[str] = None) -> bool:
    """
    POST the final state of request to its metadata callback_url.
    Best effort: failures are logged and never raised.
    """
    url = url or request.callback_url
    if not url:
        return False

    timeout = getattr(settings, "TRACKING_CALLBACK_TIMEOUT", 5)
    try:
        body = json.dumps(build_payload(request, error), ensure_ascii=False, cls=DjangoJSONEncoder)
        resp = requests.post(
            url,
            data=body.encode("utf-8"),
            headers={"Content-Type": "application/json", "User-Agent": USER_AGENT},
            timeout=timeout,
        )
        resp.raise_for_status()
    except Exception as e:
        logger.warning("Callback to %s for tracking request %s failed: %s", url, request.pk, e)
        return False

    logger.info("Callback sent to %s for tracking request %s", url, request.pk)
    return True
