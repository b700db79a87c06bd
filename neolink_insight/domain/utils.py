"""Domain Utilities - Field coercion helpers.

Patient exports carry numbers as numbers or numeric strings and dates as
ISO-8601 strings with or without an offset. These helpers normalize such
values on read. Every helper returns None instead of raising so that the
filter engine can exclude a record from one filter without aborting the
batch.
"""

import math
import re
from datetime import date, datetime
from typing import Any, Iterable, Optional

import pandas as pd

# Leading numeric prefix of a value ("2.1 kg" -> 2.1)
_LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def parse_number(value: Any) -> Optional[float]:
    """Coerce a number or numeric string to float.

    Parameters:
        value: int, float or string such as "0.9" or "1.25 kg"

    Returns:
        Finite float, or None when the value is missing or unparsable
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _LEADING_NUMBER.match(str(value))
        if not match:
            return None
        try:
            number = float(match.group(0))
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_iso_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into a naive local datetime.

    Offsets (including a trailing "Z") are converted to local time and then
    dropped so every comparison in the engine happens in local wall-clock
    time. Naive inputs are taken as local already.

    Parameters:
        value: ISO string, datetime or date

    Returns:
        Naive local datetime, or None when the value is missing or unparsable
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """Evaluation time as naive local time; aware values are converted, None means now."""
    if now is None:
        return datetime.now()
    return parse_iso_datetime(now)


def format_number(value: Any) -> str:
    """Render a number the way the chat summaries show it (2.0 -> "2", 0.95 -> "0.95")."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def percentage(count: int, total: int) -> Optional[float]:
    """Return count/total*100, or None when total is zero."""
    if total <= 0:
        return None
    return count / total * 100.0


def format_percentage(count: int, total: int) -> str:
    """One-decimal percentage string; "N/A" when total is zero."""
    value = percentage(count, total)
    if value is None:
        return "N/A"
    return f"{value:.1f}"


def records_to_frame(records: Iterable[Any]) -> pd.DataFrame:
    """Build a DataFrame of the aggregation-relevant fields of patient records.

    Columns: id, unit, outcome, gender, diagnosis, birth_weight (float or NaN),
    admitted_on (local calendar date as "YYYY-MM-DD", or None).
    """
    rows = []
    for record in records:
        admitted = record.admitted_at
        rows.append({
            "id": record.id,
            "unit": record.unit.value if record.unit else None,
            "outcome": record.outcome.value if record.outcome else None,
            "gender": record.gender.value if record.gender else None,
            "diagnosis": record.diagnosis,
            "birth_weight": record.parsed_birth_weight,
            "admitted_on": admitted.date().isoformat() if admitted else None,
        })
    columns = ["id", "unit", "outcome", "gender", "diagnosis", "birth_weight", "admitted_on"]
    frame = pd.DataFrame(rows, columns=columns)
    frame["birth_weight"] = pd.to_numeric(frame["birth_weight"], errors="coerce")
    return frame
