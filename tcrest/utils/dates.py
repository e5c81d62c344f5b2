"""
Date conversion to the platform timestamp format (yyyy-MM-ddTHH:mm:ssZ)
"""
from datetime import date, datetime, timezone
from typing import Union

from tcrest.errors import DateConversionError


PLATFORM_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Accepted string formats besides ISO 8601
FALLBACK_FORMATS = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%d %B %Y",
    "%B %d, %Y",
)


def _parse(value: str) -> datetime:
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass

    for fmt in FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    raise DateConversionError(value)


def to_platform_timestamp(value: Union[str, date, datetime]) -> str:
    """
    Convert a date value to the platform timestamp format

    Naive datetimes are treated as UTC; aware ones are converted to UTC.

    Args:
        value: datetime, date, or date string

    Returns:
        Timestamp string such as "2024-01-01T12:00:00Z"

    Raises:
        DateConversionError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        parsed = _parse(value)
    else:
        raise DateConversionError(value)

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)

    return parsed.strftime(PLATFORM_FORMAT)
