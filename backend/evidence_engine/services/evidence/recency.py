"""
Date parsing and age helpers shared by the quality and relevance models.

Upstream sources report dates as full ISO timestamps, "YYYY-MM", bare
years, or PubMed-style "2021 Mar 4". Anything unparseable becomes None.
"""
from datetime import date, datetime, timezone
from typing import Optional, Union

DAYS_PER_YEAR = 365.25
DAYS_PER_MONTH = 30.44
_SECONDS_PER_DAY = 24 * 60 * 60

_FALLBACK_FORMATS = (
    "%Y-%m",
    "%Y",
    "%Y/%m/%d",
    "%Y %b %d",
    "%Y %b",
    "%B %d, %Y",
    "%B %Y",
    "%b %Y",
)

DateLike = Union[str, date, datetime, None]


def parse_date(value: DateLike) -> Optional[datetime]:
    """Parse a loosely formatted date into an aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    text = str(value).strip()
    if not text:
        return None

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except ValueError:
        pass

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def years_since(moment: Optional[datetime], now: datetime) -> Optional[float]:
    if moment is None:
        return None
    return (now - moment).total_seconds() / (DAYS_PER_YEAR * _SECONDS_PER_DAY)


def months_since(moment: Optional[datetime], now: datetime) -> Optional[float]:
    if moment is None:
        return None
    return (now - moment).total_seconds() / (DAYS_PER_MONTH * _SECONDS_PER_DAY)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
