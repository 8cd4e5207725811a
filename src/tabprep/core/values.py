"""
Scalar helpers shared by every pipeline stage: missing-value checks,
numeric coercion and date parsing.
"""
import math
import numbers
import re
import warnings
from datetime import date, datetime
from typing import Any, Iterable, List, Optional

import pandas as pd

ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

# a four-digit year, or d/m/yy style numeric dates
_YEAR_PART = re.compile(r"\d{4}|\d{1,2}[-/.]\d{1,2}[-/.]\d{2}")


def is_missing(value: Any) -> bool:
    """None, empty string and NaN all count as missing."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, float):
        return math.isnan(value)
    return False


def to_number(value: Any) -> Optional[float]:
    """Coerce a scalar to a finite float, or None when that is not possible."""
    if is_missing(value):
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, numbers.Number):
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        # float() accepts "1_000"; spreadsheets don't
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def number_or_zero(value: Any) -> float:
    number = to_number(value)
    return 0.0 if number is None else number


def _naive_utc(ts: pd.Timestamp) -> pd.Timestamp:
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def _from_epoch_ms(value: Any) -> Optional[pd.Timestamp]:
    try:
        ts = pd.to_datetime(value, unit="ms", errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    return None if pd.isna(ts) else ts


def parse_dates(values: Iterable[Any]) -> List[Optional[pd.Timestamp]]:
    """
    Parse a column of scalars into naive UTC timestamps, None where a value
    does not parse.

    Numbers are read as epoch milliseconds. Strings must carry a year
    ("2024-03-05", "5/3/24", "Mar 5 2024"); time-only or year-less text such
    as "09:00" or "March 5" would otherwise be completed from the clock.
    All strings of the column go through one vectorised pandas call.
    """
    items = list(values)
    parsed: List[Optional[pd.Timestamp]] = [None] * len(items)
    positions: List[int] = []
    texts: List[str] = []

    for i, value in enumerate(items):
        if is_missing(value) or isinstance(value, bool):
            continue
        if isinstance(value, (pd.Timestamp, datetime, date)):
            try:
                parsed[i] = _naive_utc(pd.Timestamp(value))
            except (ValueError, OverflowError):
                continue
        elif isinstance(value, numbers.Number):
            parsed[i] = _from_epoch_ms(value)
        else:
            text = str(value).strip()
            if _YEAR_PART.search(text):
                positions.append(i)
                texts.append(text)

    if texts:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            series = pd.to_datetime(
                pd.Series(texts, dtype=object), errors="coerce", utc=True, format="mixed"
            ).dt.tz_localize(None)
        for i, ts in zip(positions, series):
            if not pd.isna(ts):
                parsed[i] = ts

    return parsed


def parse_date(value: Any) -> Optional[pd.Timestamp]:
    """Single-value form of `parse_dates`."""
    return parse_dates([value])[0]


def parse_iso_dates(values: Iterable[Any]) -> List[Optional[pd.Timestamp]]:
    """
    Parse values already normalised by `to_iso` with a fixed format; anything
    else goes through `parse_dates`.
    """
    items = list(values)
    series = pd.to_datetime(
        pd.Series([v if isinstance(v, str) else None for v in items], dtype=object),
        format=ISO_FORMAT,
        errors="coerce",
    )
    parsed = [None if pd.isna(ts) else _naive_utc(ts) for ts in series]
    misses = [i for i, ts in enumerate(parsed) if ts is None and not is_missing(items[i])]
    if misses:
        for i, ts in zip(misses, parse_dates(items[i] for i in misses)):
            parsed[i] = ts
    return parsed


def to_iso(ts: pd.Timestamp) -> str:
    """ISO-8601 with millisecond precision and a Z suffix, e.g. 2024-01-15T00:00:00.000Z"""
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def _distinct_key(value: Any):
    # keep True and 1 apart
    try:
        hash(value)
    except TypeError:
        return (False, repr(value))
    return (isinstance(value, bool), value)


def distinct(values: Iterable[Any]) -> List[Any]:
    """Distinct values in first-seen order."""
    seen = {}
    for value in values:
        key = _distinct_key(value)
        if key not in seen:
            seen[key] = value
    return list(seen.values())


def category_key(value: Any) -> str:
    """String form used for categorical counting and encoding. Missing maps to ''."""
    return "" if is_missing(value) else str(value)
