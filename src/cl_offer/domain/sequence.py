"""Human-facing offer numbers: "oid" + zero-padded sequence (oid000001)."""

import re

OFFER_NUMBER_PREFIX = "oid"
OFFER_NUMBER_WIDTH = 6

_OFFER_NUMBER_RE = re.compile(rf"^{OFFER_NUMBER_PREFIX}(\d+)$")


def format_offer_number(sequence: int) -> str:
    """3 -> 'oid000003'; numbers wider than six digits are not truncated."""
    if sequence < 1:
        raise ValueError(f"Offer sequence must be >= 1, got {sequence}")
    return f"{OFFER_NUMBER_PREFIX}{sequence:0{OFFER_NUMBER_WIDTH}d}"


def parse_offer_number(offer_number: str) -> int | None:
    """'oid000042' -> 42; anything malformed -> None."""
    match = _OFFER_NUMBER_RE.match(offer_number or "")
    return int(match.group(1)) if match else None
