"""Optional date parsing for request payloads."""

from datetime import date, datetime
from typing import Annotated, Any, Optional

from pydantic import BeforeValidator


def parse_optional_date(value: Any) -> Optional[date]:
    """
    Parse a nullable date.

    Accepts None or an empty string (no date), date and datetime objects,
    date-only strings (YYYY-MM-DD) and RFC 3339 timestamps such as
    2026-01-15T10:30:00Z. Timestamps keep only their calendar date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"unsupported date value: {value!r}")

    text = value.strip()
    if not text:
        return None

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    if "T" not in text:
        raise ValueError(f"invalid date {value!r}, expected YYYY-MM-DD or an RFC 3339 timestamp")

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValueError(f"invalid date {value!r}, expected YYYY-MM-DD or an RFC 3339 timestamp")


OptionalDate = Annotated[Optional[date], BeforeValidator(parse_optional_date)]
