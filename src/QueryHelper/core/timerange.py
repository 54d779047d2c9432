"""Datetime predicate expansion.

Turns one datetime filter (raw operator with the ``t`` suffix) into concrete
``datetime_gte`` / ``datetime_lt`` API filters over UTC timestamps.

Accepted values
- Absolute: ``YYYY``, ``YYYY-MM``, ``YYYY-MM-DD``, ``YYYY-MM-DD HH:mm``,
  ``YYYY-MM-DD HH:mm:ss`` (``T`` also accepted as separator). The smallest
  field given sets the granularity.
- Named: ``now``, ``today``, ``this_week``, ``this_month``, ``this_year``.
- Offsets: ``now-7d``, ``now+1M``... with units s/m/h/d/w/M/y; the unit sets
  the granularity.

Every value is read in the configured timezone and becomes the half-open
window ``[start, end)`` of its granularity:

    =t   ->  >= start  and  < end
    >t   ->  >= end
    >=t  ->  >= start
    <t   ->  < start
    <=t  ->  < end
"""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
import re
from typing import Any

from dateutil import tz
from dateutil.relativedelta import relativedelta

from QueryHelper.core.models import ApiFilter, QueryFilter
from QueryHelper.utils.log import log


# dateutil.parser fills missing fields silently; the groups here give the granularity.
_ABSOLUTE_RE = re.compile(
    r"^(\d{4})(?:-(\d{1,2})(?:-(\d{1,2})(?:[ T](\d{1,2}):(\d{2})(?::(\d{2}))?)?)?)?$"
)
_OFFSET_RE = re.compile(r"^now\s*([+-])\s*(\d+)\s*([smhdwMy])$")

_OFFSET_UNITS: dict[str, str] = {
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
    "M": "months",
    "y": "years",
}

_UNIT_BY_OFFSET: dict[str, str] = {
    "s": "second",
    "m": "minute",
    "h": "hour",
    "d": "day",
    "w": "week",
    "M": "month",
    "y": "year",
}

_STEP: dict[str, relativedelta] = {
    "second": relativedelta(seconds=1),
    "minute": relativedelta(minutes=1),
    "hour": relativedelta(hours=1),
    "day": relativedelta(days=1),
    "week": relativedelta(weeks=1),
    "month": relativedelta(months=1),
    "year": relativedelta(years=1),
}

_NAMED: dict[str, str] = {
    "now": "second",
    "today": "day",
    "this_week": "week",
    "this_month": "month",
    "this_year": "year",
}

_GTE = "datetime_gte"
_LT = "datetime_lt"


def resolve_timezone(name: str | None) -> tzinfo:
    """Return tzinfo for an IANA name, falling back to UTC for unknown names."""
    if not name:
        return tz.UTC
    zone = tz.gettz(name)
    if zone is None:
        log.warning("Unknown timezone %r, falling back to UTC", name)
        return tz.UTC
    return zone


def expand_datetime_filter(
    query_filter: QueryFilter,
    timezone: str,
    *,
    now: datetime | None = None,
) -> list[ApiFilter]:
    """Expand a datetime filter into absolute UTC comparisons.

    Args:
        query_filter: Filter whose operator is a datetime raw operator.
        timezone: Timezone name used to read the value.
        now: Reference instant for relative values (defaults to current time).

    Returns:
        API filters; values that cannot be read are skipped.
    """
    if query_filter.k is None:
        return []
    zone = resolve_timezone(timezone)
    current = (now or datetime.now(tz.UTC)).astimezone(zone)

    values = query_filter.v if isinstance(query_filter.v, tuple) else (query_filter.v,)
    out: list[ApiFilter] = []
    for value in values:
        window = parse_window(value, zone, current)
        if window is None:
            log.warning("Skipping unreadable datetime value: key=%s value=%r", query_filter.k, value)
            continue
        out.extend(_window_filters(query_filter.k, query_filter.o or "", *window))
    return out


def parse_window(value: Any, zone: tzinfo, current: datetime) -> tuple[datetime, datetime] | None:
    """Read ``value`` as a ``[start, end)`` window in ``zone``.

    Returns None when the value is not a supported datetime expression.
    """
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text:
        return None

    offset_match = _OFFSET_RE.match(text)
    absolute_match = _ABSOLUTE_RE.match(text)

    unit: str
    moment: datetime
    if text in _NAMED:
        unit = _NAMED[text]
        moment = current
    elif offset_match is not None:
        sign, amount, code = offset_match.groups()
        delta = relativedelta(**{_OFFSET_UNITS[code]: int(amount)})
        moment = current + delta if sign == "+" else current - delta
        unit = _UNIT_BY_OFFSET[code]
    elif absolute_match is not None:
        parsed = _parse_absolute(absolute_match.groups(), zone)
        if parsed is None:
            return None
        moment, unit = parsed
    else:
        return None

    start = _floor(moment, unit)
    return start, start + _STEP[unit]


def _parse_absolute(groups: tuple[str | None, ...], zone: tzinfo) -> tuple[datetime, str] | None:
    year, month, day, hour, minute, second = groups
    if second is not None:
        unit = "second"
    elif minute is not None:
        unit = "minute"
    elif day is not None:
        unit = "day"
    elif month is not None:
        unit = "month"
    else:
        unit = "year"
    try:
        moment = datetime(
            int(year or 0),
            int(month or 1),
            int(day or 1),
            int(hour or 0),
            int(minute or 0),
            int(second or 0),
            tzinfo=zone,
        )
    except ValueError:
        return None
    return moment, unit


def _floor(moment: datetime, unit: str) -> datetime:
    moment = moment.replace(microsecond=0)
    if unit == "second":
        return moment
    moment = moment.replace(second=0)
    if unit == "minute":
        return moment
    moment = moment.replace(minute=0)
    if unit == "hour":
        return moment
    moment = moment.replace(hour=0)
    if unit == "day":
        return moment
    if unit == "week":
        return moment - timedelta(days=moment.weekday())
    moment = moment.replace(day=1)
    if unit == "month":
        return moment
    return moment.replace(month=1)


def _window_filters(key: str, operator: str, start: datetime, end: datetime) -> list[ApiFilter]:
    if operator == "=t":
        return [ApiFilter(k=key, v=_to_utc(start), o=_GTE), ApiFilter(k=key, v=_to_utc(end), o=_LT)]
    if operator == ">t":
        return [ApiFilter(k=key, v=_to_utc(end), o=_GTE)]
    if operator == ">=t":
        return [ApiFilter(k=key, v=_to_utc(start), o=_GTE)]
    if operator == "<t":
        return [ApiFilter(k=key, v=_to_utc(start), o=_LT)]
    if operator == "<=t":
        return [ApiFilter(k=key, v=_to_utc(end), o=_LT)]
    return []


def _to_utc(moment: datetime) -> str:
    return moment.astimezone(tz.UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
