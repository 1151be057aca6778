# domains/tracking/links.py
from __future__ import annotations

import re
from typing import Optional
from urllib.parse import quote

from .adapters.registry import normalize_carrier
from .models import Carrier

# public carrier tracking pages
_TEMPLATES = {
    Carrier.USPS: "https://tools.usps.com/go/TrackConfirmAction?tLabels={n}",
    Carrier.UPS: "https://www.ups.com/track?tracknum={n}",
    Carrier.FEDEX: "https://www.fedex.com/fedextrack/?trknbr={n}",
    Carrier.DHL: "https://www.dhl.com/en/express/tracking.html?AWB={n}",
    Carrier.AMAZON: "https://www.amazon.com/progress-tracker/package/{n}",
}


def tracking_url(carrier, tracking_number) -> Optional[str]:
    if not carrier or not tracking_number:
        return None
    template = _TEMPLATES.get(normalize_carrier(carrier))
    if template is None:
        return None
    return template.format(n=quote(re.sub(r"\s+", "", tracking_number), safe=""))
