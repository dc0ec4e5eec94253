"""
Unit tests for waybill normalization and validation.
"""

import pytest

from tracking_backend.app.domain.tracking import waybill
from tracking_backend.app.domain.tracking.exceptions import InvalidWaybillFormatError


@pytest.mark.parametrize("raw,expected", [
    ("CRY-123-4567", "CRY-123-4567"),
    ("  cry-123-4567  ", "CRY-123-4567"),
    ("CRY–123—4567", "CRY-123-4567"),
    ("CRY−123－4567", "CRY-123-4567"),
    ("CRY‐123﹣4567", "CRY-123-4567"),
    ("cry - 123 - 4567", "CRY-123-4567"),
    ("CRY-123-\t4567", "CRY-123-4567"),
    ("", ""),
    (None, ""),
])
def test_normalize(raw, expected):
    assert waybill.normalize(raw) == expected


def test_normalize_is_idempotent():
    for raw in ["cry– 123 —4567", "abc", "  CRY-000-0000 "]:
        once = waybill.normalize(raw)
        assert waybill.normalize(once) == once


@pytest.mark.parametrize("value,valid", [
    ("CRY-123-4567", True),
    ("CRY-000-0000", True),
    ("CRY-12-4567", False),
    ("CRY-1234-567", False),
    ("XYZ-123-4567", False),
    ("CRY-123-45678", False),
    ("cry-123-4567", False),
    ("CRY-١٢٣-4567", False),  # non-ASCII digits
    ("", False),
])
def test_validate(value, valid):
    assert waybill.validate(value) is valid


def test_parse_waybill_normalizes_then_validates():
    assert waybill.parse_waybill(" cry–123—4567 ") == "CRY-123-4567"


def test_parse_waybill_rejects_malformed():
    with pytest.raises(InvalidWaybillFormatError) as exc_info:
        waybill.parse_waybill("CRY-12-34")
    assert str(exc_info.value) == "Invalid waybill number format. Expected CRY-123-4567"
    assert exc_info.value.value == "CRY-12-34"


@pytest.mark.parametrize("stored,expected", [
    ("not-assigned", None),
    ("NOT-ASSIGNED", None),
    ("", None),
    ("   ", None),
    (None, None),
    ("CRY-123-4567", "CRY-123-4567"),
])
def test_from_storage(stored, expected):
    assert waybill.from_storage(stored) == expected
