"""Request payload parsing.

Normalizes JSON bodies sent by the dashboard into typed values:
    date (datetime.date), amount (float, never negative), category (str),
    notes (str)

Every helper raises ``ValidationError`` (or ``InvalidAmount``) with a message
that is safe to show to the user.
"""

from __future__ import annotations

import datetime as dt
import math
from typing import Any, Dict, Mapping, Optional

from .errors import InvalidAmount, ValidationError

EXPENSE_FIELDS = ("date", "amount", "category", "notes")
STATE_FIELDS = {"monthlyBudget": "monthly_budget", "archivedSpend": "archived_spend"}


def require_mapping(data: Any) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValidationError("Request body must be a JSON object")
    return data


def parse_date(value: Any, field: str = "date") -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    value = value.strip()
    for fmt in ("%Y-%m-%d", "%Y/%m/%d"):
        try:
            return dt.datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    # Fallback to full ISO timestamps, keeping only the calendar date
    try:
        return dt.datetime.fromisoformat(value).date()
    except ValueError as exc:
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format") from exc


def parse_amount(value: Any, field: str = "amount") -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool):
        raise InvalidAmount(f"{field} must be a number")
    if isinstance(value, (int, float)):
        amount = float(value)
    elif isinstance(value, str):
        try:
            amount = float(value.replace(",", "").strip())
        except ValueError as exc:
            raise InvalidAmount(f"{field} must be a number") from exc
    else:
        raise InvalidAmount(f"{field} must be a number")
    if math.isnan(amount) or math.isinf(amount):
        raise InvalidAmount(f"{field} must be a finite number")
    if amount < 0:
        raise InvalidAmount(f"{field} cannot be negative")
    return amount


def parse_name(value: Any, field: str = "name") -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


def parse_notes(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError("notes must be a string")
    return value.strip()


def parse_expense(data: Any, partial: bool = False) -> Dict[str, Any]:
    """Validate an expense body.

    With ``partial`` only the supplied fields are checked and returned, as
    used by updates. Unknown keys (including ``id``) are ignored.
    """

    data = require_mapping(data)
    parsed: Dict[str, Any] = {}
    if not partial or "date" in data:
        parsed["date"] = parse_date(data.get("date"))
    if not partial or "amount" in data:
        parsed["amount"] = parse_amount(data.get("amount"))
    if not partial or "category" in data:
        parsed["category"] = parse_name(data.get("category"), "category")
    if not partial or "notes" in data:
        parsed["notes"] = parse_notes(data.get("notes"))
    return parsed


def parse_state_update(data: Any) -> Dict[str, float]:
    """Validate a partial global-state update; keys map to model attributes."""
    data = require_mapping(data)
    parsed: Dict[str, float] = {}
    for key, attr in STATE_FIELDS.items():
        if key in data and data[key] is not None:
            parsed[attr] = parse_amount(data[key], key)
    return parsed


def parse_optional_date(value: Optional[str], field: str) -> Optional[dt.date]:
    if not value:
        return None
    return parse_date(value, field)
