# domains/tracking/classifier.py
"""
Tracking number → carrier guess.

Length/format heuristics only (no checksum). The table is ordered and the first
match wins, so the broad UPS "10+ digits" rule shadows the numeric FedEx and DHL
forms: a bare 12-digit number resolves to UPS. Detection is best-effort; an
explicit carrier should be preferred when correctness matters.
"""
from __future__ import annotations

import re
from typing import Optional, Pattern, Tuple

from .models import Carrier

_PATTERNS: Tuple[Tuple[Carrier, Tuple[Pattern[str], ...]], ...] = (
    (
        Carrier.UPS,
        (
            re.compile(r"^1Z[0-9A-Z]{16}$"),
            re.compile(r"^1Z\s[0-9A-Z\s]+$"),
            re.compile(r"^[0-9]{10,}$"),
        ),
    ),
    (
        Carrier.FEDEX,
        (
            re.compile(r"^[0-9]{12}$"),
            re.compile(r"^[0-9]{14}$"),
        ),
    ),
    (
        Carrier.USPS,
        (
            re.compile(r"^[A-Z]{2}[0-9]{9}[A-Z]{2}$"),
            re.compile(r"^[0-9]{4} [0-9]{4} [0-9]{4} [0-9]{4}$"),
        ),
    ),
    (Carrier.DHL, (re.compile(r"^[0-9]{10,11}$"),)),
    (Carrier.AMAZON, (re.compile(r"^TBA[0-9]{10}$"),)),
)


def classify(tracking_number: str) -> Carrier:
    """Return the first carrier whose pattern matches, else Carrier.UNKNOWN."""
    if not tracking_number:
        return Carrier.UNKNOWN
    for carrier, patterns in _PATTERNS:
        for pattern in patterns:
            if pattern.fullmatch(tracking_number):
                return carrier
    return Carrier.UNKNOWN


def detect_carrier(tracking_number: str) -> Optional[Carrier]:
    carrier = classify(tracking_number)
    return None if carrier == Carrier.UNKNOWN else carrier
