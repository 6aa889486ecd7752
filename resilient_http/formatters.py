"""Data formatting helpers for automation inputs.

Normalizes the raw values that typically feed batch requests:
- format_phone_uk: phone numbers to +44 E.164-style strings
- extract_email: first e-mail address in free text
- standardize_date: UK (d/m/yyyy) or ISO dates to ISO-8601 UTC
- clean_currency: currency strings to floats
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

_NON_DIGITS = re.compile(r"\D")
_EMAIL = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
_UK_DATE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
_CURRENCY_NOISE = re.compile(r"[£$€,\s]")
_NON_NUMERIC = re.compile(r"[^\d.-]")
_LEADING_NUMBER = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")


def format_phone_uk(phone: str | None) -> str:
    """Format a UK phone number as +44XXXXXXXXXX.

    Examples:
        "07700 900123"    -> "+447700900123"
        "+44 7700 900123" -> "+447700900123"
        "7700900123"      -> "+447700900123"
    """
    if not phone:
        return ""

    cleaned = _NON_DIGITS.sub("", phone)

    if cleaned.startswith("44"):
        return f"+{cleaned}"
    if cleaned.startswith("0"):
        return f"+44{cleaned[1:]}"
    return f"+44{cleaned}"


def extract_email(text: str | None) -> str | None:
    """Return the first e-mail address in text, lower-cased, or None."""
    if not text:
        return None

    match = _EMAIL.search(text)
    return match.group(0).lower().strip() if match else None


def _to_iso_utc(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def standardize_date(value: str | None) -> str:
    """Convert a date string to an ISO-8601 UTC timestamp.

    UK day/month/year dates are recognised first; anything else must be
    an ISO date or datetime. Naive values are taken as UTC.

    Raises:
        ValueError: If the value is not a valid date
    """
    if not value:
        return ""

    match = _UK_DATE.search(value)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return _to_iso_utc(datetime(year, month, day))

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return _to_iso_utc(datetime.fromisoformat(text))
    except ValueError as e:
        raise ValueError(f"Unrecognised date: {value!r}") from e


def clean_currency(amount: str | float | int | None) -> float:
    """Parse a currency amount, ignoring symbols and thousands separators.

    Numbers are returned unchanged; empty or unparsable input gives 0.0.

    Examples:
        "£1,234.50" -> 1234.5
        "$ 99"      -> 99.0
        "n/a"       -> 0.0
    """
    if isinstance(amount, (int, float)) and not isinstance(amount, bool):
        return float(amount)
    if not amount:
        return 0.0

    cleaned = _NON_NUMERIC.sub("", _CURRENCY_NOISE.sub("", str(amount)))
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return 0.0
    return float(match.group(0))
