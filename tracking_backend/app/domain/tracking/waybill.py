"""
Waybill Identifier Rules.

Normalization and format validation for the human-assigned tracking number.
Canonical format is CRY-###-####, upper-cased. Uniqueness is enforced by the
database, not here.
"""

import re
from typing import Optional

from tracking_backend.app.domain.tracking.exceptions import InvalidWaybillFormatError


WAYBILL_PATTERN = re.compile(r"CRY-[0-9]{3}-[0-9]{4}", re.ASCII)
WAYBILL_EXAMPLE = "CRY-123-4567"

# Legacy placeholder stored for shipments without a waybill
NOT_ASSIGNED = "not-assigned"

# Hyphen, non-breaking hyphen, figure dash, en/em dash, horizontal bar,
# minus sign, small/fullwidth hyphen-minus
_DASHES = re.compile("[\u2010-\u2015\u2212\ufe58\ufe63\uff0d]")
_WHITESPACE = re.compile(r"\s+")


def normalize(raw: Optional[str]) -> str:
    """
    Normalize a raw waybill number.

    Trims, maps every Unicode dash variant to an ASCII hyphen, removes
    internal whitespace and upper-cases. Idempotent.
    """
    if raw is None:
        return ""
    value = raw.strip()
    value = _DASHES.sub("-", value)
    value = _WHITESPACE.sub("", value)
    return value.upper()


def validate(normalized: str) -> bool:
    """Return True when the (already normalized) value is a well formed waybill."""
    return WAYBILL_PATTERN.fullmatch(normalized or "") is not None


def parse_waybill(raw: Optional[str]) -> str:
    """
    Normalize and validate in one step.

    Raises:
        InvalidWaybillFormatError: if the normalized value is not CRY-###-####
    """
    normalized = normalize(raw)
    if not validate(normalized):
        raise InvalidWaybillFormatError(normalized)
    return normalized


def from_storage(value: Optional[str]) -> Optional[str]:
    """Map the legacy "not-assigned" placeholder (or a blank value) to None."""
    if value is None:
        return None
    stripped = value.strip()
    if not stripped or stripped.lower() == NOT_ASSIGNED:
        return None
    return stripped
