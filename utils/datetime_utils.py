# -*- coding: utf-8 -*-
"""
DateTime Utilities

Centralized datetime handling for Runtime State serialization.

Section status dates are nullable, so unlike display helpers these
converters keep None as None instead of substituting "now".
"""

from datetime import datetime, date
from typing import Union, Optional


def now() -> datetime:
    """
    Current timestamp used for startedDate / completedDate.

    Kept as a module function so tests can patch a single place.
    """
    return datetime.now()


def to_isoformat(value: Union[datetime, date, str, None]) -> Optional[str]:
    """
    Convert a datetime-like value to an ISO format string.

    Args:
        value: datetime, date, ISO string, or None

    Returns:
        ISO format string, or None when value is None

    Examples:
        >>> to_isoformat(datetime(2024, 1, 15, 10, 30))
        '2024-01-15T10:30:00'
        >>> to_isoformat(date(2024, 1, 15))
        '2024-01-15'
        >>> to_isoformat(None) is None
        True
    """
    if value is None:
        return None

    # Already a string -> must parse, otherwise it is not ours to keep
    if isinstance(value, str):
        if from_isoformat(value) is None:
            raise ValueError(f"Not an ISO date string: {value!r}")
        return value

    if isinstance(value, (datetime, date)):
        return value.isoformat()

    raise TypeError(f"Cannot serialize {type(value).__name__} as a date")


def from_isoformat(value: Union[str, datetime, date, None]) -> Optional[datetime]:
    """
    Convert an ISO format string to a datetime object.

    Reverse of to_isoformat() for deserialization.

    Args:
        value: ISO string, datetime, date, or None

    Returns:
        datetime object, or None for None / unparseable input

    Examples:
        >>> from_isoformat('2024-01-15T10:30:00')
        datetime.datetime(2024, 1, 15, 10, 30)
        >>> from_isoformat('2024-01-15')
        datetime.datetime(2024, 1, 15, 0, 0)
    """
    if value is None:
        return None

    # Already datetime -> return as-is
    if isinstance(value, datetime):
        return value

    # date -> convert to datetime
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())

    if isinstance(value, str):
        try:
            if 'T' in value:
                return datetime.fromisoformat(value)
            parsed_date = date.fromisoformat(value)
            return datetime.combine(parsed_date, datetime.min.time())
        except ValueError:
            return None

    return None
