# domains/tracking/adapters/rest.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from ..exceptions import AdapterError
from .base import CarrierAdapter, ShipmentSnapshot

logger = logging.getLogger(__name__)


def dig(data: Any, *path, default=None):
    """Nested dict/list lookup: dig(d, "a", 0, "b")."""
    cur = data
    for key in path:
        try:
            cur = cur[key]
        except (KeyError, IndexError, TypeError):
            return default
    return default if cur is None else cur


class RestCarrierAdapter(CarrierAdapter):
    """
    JSON-over-HTTP carrier API. Subclasses provide the request shape and the
    response → snapshot field mapping.
    """

    default_base_url = ""
    method = "GET"

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(api_key, timeout=timeout)
        self.base_url = (base_url or self.default_base_url).rstrip("/")

    # ---- hooks -------------------------------------------------------------
    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def build_request(self, tracking_number: str) -> Dict[str, Any]:
        """Return kwargs for requests.request (url plus params/json)."""
        raise NotImplementedError

    def extract(self, data: Dict[str, Any], tracking_number: str) -> Dict[str, Any]:
        """Map the carrier JSON onto ShipmentSnapshot field names."""
        raise NotImplementedError

    def carrier_error(self, data: Dict[str, Any]) -> Optional[str]:
        """Carrier-reported error message inside a 2xx body, if any."""
        return None

    # ---- flow --------------------------------------------------------------
    def lookup(self, tracking_number: str) -> ShipmentSnapshot:
        kwargs = self.build_request(tracking_number)
        headers = {"Accept": "application/json", **self.auth_headers()}
        headers.update(kwargs.pop("headers", {}))

        try:
            resp = requests.request(
                self.method, headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.Timeout:
            raise AdapterError(self.carrier, f"{self.carrier} API timed out after {self.timeout}s")
        except requests.RequestException as e:
            raise AdapterError(self.carrier, f"{self.carrier} API request failed: {e}")

        if not (200 <= resp.status_code < 300):
            logger.warning(
                "%s non-2xx: %s %s", self.carrier, resp.status_code, resp.text[:500]
            )
            raise AdapterError(
                self.carrier, f"{self.carrier} API returned HTTP {resp.status_code}"
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise AdapterError(self.carrier, f"Invalid {self.carrier} JSON response: {e}")

        message = self.carrier_error(data)
        if message:
            raise AdapterError(self.carrier, message)

        fields = self.extract(data, tracking_number)
        return self.standardize(tracking_number, raw_payload=data, **fields)
