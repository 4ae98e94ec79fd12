"""
Student-letting and availability checks for Alto property records.
"""

import re
from typing import Any, Optional

from app.sources.alto.xml_tree import get_text

STUDENT_KEYWORD = "student"
LETTING_KEYWORDS = ("letting", "to let")
MIN_STUDENT_BEDROOMS = 3
AVAILABLE_WEB_STATUSES = {"0", "100"}

REASON_NOT_STUDENT = "not_student"
REASON_UNAVAILABLE = "unavailable"

_leading_int = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: Optional[str], default: int = 0) -> int:
    """Parse the leading integer of value, returning default on failure."""
    if value is None:
        return default
    m = _leading_int.match(str(value))
    if not m:
        return default
    return int(m.group(1))


def classification_text(record: Any) -> str:
    fields = ("letting_type", "market", "description", "title")
    return " ".join(get_text(record, f) or "" for f in fields).lower()


def is_student_letting(record: Any, strict: bool = False) -> bool:
    """
    Decide whether a property is a student-lettings candidate.

    A record qualifies when its letting type, market, description or title
    mentions "student", or it has at least three bedrooms. Unless strict is
    set, generic "letting" / "to let" wording also qualifies.
    """
    text = classification_text(record)
    if STUDENT_KEYWORD in text:
        return True
    if parse_int(get_text(record, "bedrooms")) >= MIN_STUDENT_BEDROOMS:
        return True
    if not strict and any(k in text for k in LETTING_KEYWORDS):
        return True
    return False


def is_available(record: Any) -> bool:
    """A property is listed on the web when web_status is unset, 0 or 100."""
    web_status = get_text(record, "web_status")
    return not web_status or web_status in AVAILABLE_WEB_STATUSES


def classify(record: Any, strict: bool = False) -> Optional[str]:
    """Return None if the record should be imported, else the skip reason."""
    if not is_student_letting(record, strict=strict):
        return REASON_NOT_STUDENT
    if not is_available(record):
        return REASON_UNAVAILABLE
    return None
