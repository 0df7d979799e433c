"""Shared backend validation for bond wizard submissions.

The frontend submits answers as dictionaries (`form_data`) or plain text. These
validators normalize the values the wizard stores and make sure contact fields
are well-formed before the wizard moves on.

On validation failure, raise `FormValidationError` so the API can return HTTP 422
with structured `field_errors`.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Optional, Tuple


@dataclass
class FormValidationError(Exception):
    """Exception raised for form validation failures.

    Attributes:
        field_errors: mapping of field name -> human-readable error message.
        message: optional top-level message.
    """

    field_errors: Dict[str, str]
    message: str = "Validation failed"

    def __str__(self) -> str:  # pragma: no cover
        return self.message


def _as_str(v: Any) -> str:
    return "" if v is None else str(v)


def _strip(v: Any) -> str:
    return _as_str(v).strip()


def add_error(errors: Dict[str, str], field: str, message: str) -> None:
    if field not in errors:
        errors[field] = message


def require_str(payload: Dict[str, Any], field: str, errors: Dict[str, str], *, label: Optional[str] = None) -> str:
    value = _strip(payload.get(field))
    if not value:
        add_error(errors, field, f"{label or field} is required.")
    return value


# --- States ------------------------------------------------------------------

STATE_ABBR_TO_NAME: Dict[str, str] = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas", "CA": "California",
    "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware", "FL": "Florida", "GA": "Georgia",
    "HI": "Hawaii", "ID": "Idaho", "IL": "Illinois", "IN": "Indiana", "IA": "Iowa",
    "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi", "MO": "Missouri",
    "MT": "Montana", "NE": "Nebraska", "NV": "Nevada", "NH": "New Hampshire", "NJ": "New Jersey",
    "NM": "New Mexico", "NY": "New York", "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio",
    "OK": "Oklahoma", "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah", "VT": "Vermont",
    "VA": "Virginia", "WA": "Washington", "WV": "West Virginia", "WI": "Wisconsin", "WY": "Wyoming",
}

_STATE_ABBR_RE = re.compile(r"^[A-Za-z]{2}$")


def state_from_input(value: Any) -> str:
    """Expand a two-letter US state abbreviation; anything else is returned trimmed."""
    s = _strip(value)
    if _STATE_ABBR_RE.match(s):
        return STATE_ABBR_TO_NAME.get(s.upper(), s)
    return s


# --- Numbers -----------------------------------------------------------------

_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")


def numeric(value: Any) -> Optional[float]:
    """Parse a number after dropping everything but digits, '.' and '-'.

    "$50,000" -> 50000.0; returns None when nothing parseable or finite is left.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            result = float(value)
        except OverflowError:
            return None
    else:
        cleaned = _NON_NUMERIC_RE.sub("", _as_str(value))
        if not cleaned:
            return None
        try:
            result = float(cleaned)
        except ValueError:
            return None
    # very long digit strings overflow to inf
    return result if math.isfinite(result) else None


def format_number(value: float) -> str:
    """Render a parsed number the way users typed it: 50000.0 -> "50000"."""
    if value == int(value):
        return str(int(value))
    return repr(value)


def format_money(value: Any) -> str:
    num = numeric(value)
    if num is None:
        return "—"
    if num == int(num):
        return f"${int(num):,}"
    return f"${num:,.2f}"


# --- Email / phone -------------------------------------------------------------

_EMAIL_RE = re.compile(r"^\S+@\S+\.[\w-]{2,}$")


def is_valid_email(value: Any) -> bool:
    return bool(_EMAIL_RE.match(_strip(value)))


def validate_email(value: Any, errors: Dict[str, str], field: str = "contactEmail") -> str:
    value = _strip(value)
    if not is_valid_email(value):
        add_error(errors, field, "Please enter a valid email address.")
    return value


_E164_RE = re.compile(r"^\+\d{10,15}$")
_LOOSE_INTL_RE = re.compile(r"^\+\d{7,15}$")


def normalize_phone(value: Any) -> str:
    """Normalize a phone number to an E.164-like form.

    Accepts:
    - 10 digits (NANP without country code) -> +1XXXXXXXXXX
    - 11 digits starting with 1 -> +1XXXXXXXXXX
    - any other 7-15 digits -> +<digits>

    Anything else is returned trimmed and left for the validator to reject.
    """
    raw = _strip(value)
    digits = re.sub(r"\D+", "", raw)
    if len(digits) == 11 and digits.startswith("1"):
        return "+" + digits
    if len(digits) == 10:
        return "+1" + digits
    if _LOOSE_INTL_RE.match("+" + digits):
        return "+" + digits
    return raw


def is_valid_phone(value: Any) -> bool:
    return bool(_E164_RE.match(normalize_phone(value)))


def validate_phone(
    value: Any,
    errors: Dict[str, str],
    field: str = "contactPhone",
    *,
    message: str = "Please enter a valid mobile phone number (SMS-capable).",
) -> str:
    """Return the normalized number; records `message` under `field` when invalid."""
    norm = normalize_phone(value)
    if not _E164_RE.match(norm):
        add_error(errors, field, message)
    return norm


# --- Dates ---------------------------------------------------------------------

def effective_date_window(today: Optional[date] = None, window_days: int = 365) -> Tuple[date, date]:
    start = today or date.today()
    return start, start + timedelta(days=window_days)


def validate_effective_date(
    value: Any,
    errors: Dict[str, str],
    field: str = "q5",
    *,
    today: Optional[date] = None,
    window_days: int = 365,
) -> str:
    """Accept an ISO date inside the closed window [today, today + window_days]."""
    raw = _strip(value)
    try:
        d = date.fromisoformat(raw)
    except ValueError:
        add_error(errors, field, "Please choose a valid date.")
        return raw
    min_date, max_date = effective_date_window(today, window_days)
    if d < min_date:
        add_error(errors, field, "Effective date cannot be in the past. Please select today or a future date.")
    elif d > max_date:
        add_error(errors, field, "Effective date must be within the next year.")
    return d.isoformat()


def raise_if_errors(errors: Dict[str, str], message: str = "Please correct the highlighted fields") -> None:
    if errors:
        raise FormValidationError(field_errors=errors, message=message)
