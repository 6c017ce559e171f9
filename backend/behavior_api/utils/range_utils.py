from datetime import datetime, timedelta, timezone
from typing import Optional, Iterable

from ..schemas import RangeInfo

# token -> (days, months); (None, None) means no lower bound
RANGE_WINDOWS = {
    "7d": (7, None),
    "30d": (30, None),
    "90d": (90, None),
    "12m": (None, 12),
    "365d": (365, None),
    "all": (None, None),
}

RANGE_LABELS = {
    "7d": "Last 7 days",
    "30d": "Last 30 days",
    "90d": "Last 90 days",
    "12m": "Last 12 months",
    "365d": "Last 12 months",
    "all": "All time",
}

STANDARD_RANGES = ("7d", "30d", "90d", "12m")
ALL_TIME_RANGES = ("7d", "30d", "90d", "12m", "all")
DAY_RANGES = ("7d", "30d", "90d", "365d")

DEFAULT_RANGE = "30d"


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """Serialize an instant as ISO-8601 UTC with millisecond precision ("...T12:00:00.000Z")."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        # sqlite hands back naive values; everything is stored as UTC
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _months_back(now: datetime, months: int) -> datetime:
    total = now.year * 12 + (now.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = now.day
    while True:
        try:
            return now.replace(year=year, month=month, day=day)
        except ValueError:
            day -= 1


def resolve_range(raw: Optional[str], allowed: Iterable[str] = STANDARD_RANGES,
                  default: str = DEFAULT_RANGE, now: Optional[datetime] = None) -> RangeInfo:
    """
    Map a look-back token to ``RangeInfo(key, from_iso, label)``.

    Tokens outside ``allowed`` fall back to ``default``, or to 30d when
    ``default`` is not allowed either; this never raises.
    Pass ``now`` to pin every range in one request to the same instant.
    """
    allowed = tuple(allowed)
    if raw in allowed:
        key = raw
    elif default in allowed:
        key = default
    else:
        key = DEFAULT_RANGE

    now = now or datetime.now(timezone.utc)
    days, months = RANGE_WINDOWS[key]
    if days is not None:
        start = now - timedelta(days=days)
    elif months is not None:
        start = _months_back(now, months)
    else:
        start = None

    return RangeInfo(key=key, from_iso=to_iso(start), label=RANGE_LABELS[key])


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
