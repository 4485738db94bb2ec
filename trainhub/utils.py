from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any

import pandas as pd

from trainhub.exceptions import ValidationError
from trainhub.models import DaySession


def parse_day(value: Any) -> date:
    """
    Parses an ISO date or datetime (string or object) down to its calendar day.
    Raises ValidationError for anything that is not a date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not text:
        raise ValidationError("Date is required")
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValidationError(f"Invalid date format: {value!r}") from None


def parse_session(value: Any) -> DaySession:
    try:
        return DaySession(str(value).strip().lower())
    except ValueError:
        raise ValidationError(
            f"Invalid session {value!r}; expected 'forenoon' or 'afternoon'"
        ) from None


def as_exam_index(value: Any) -> int | None:
    """Normalises 2, '2', 2.0 and ' 2 ' to 2; None when not a whole number."""
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or not number.is_integer():
        return None
    return int(number)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def cell_text(row: pd.Series, column: str) -> str:
    """String value of a spreadsheet cell, '' for blanks and NaN."""
    value = row.get(column, "")
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()
