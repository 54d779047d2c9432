"""Projection of engine filters to API filters and keyword tokens."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from QueryHelper.core.models import ApiFilter, DatetimeExpander, FilterKind, QueryFilter, to_text
from QueryHelper.core.operators import (
    NULL_TO_API_OPERATOR,
    null_operator,
    to_api_operator,
    to_plural_api_operator,
)


@dataclass(slots=True)
class Expansion:
    """Result of expanding one filter group."""

    filter: list[ApiFilter] = field(default_factory=list)
    keyword: list[str] = field(default_factory=list)


def expand_filters(
    filters: Iterable[QueryFilter],
    *,
    timezone: str,
    datetime_expander: DatetimeExpander,
) -> Expansion:
    """Expand filters in order into API filters and keyword tokens.

    Args:
        filters: Engine filters of one group (AND or OR).
        timezone: Timezone passed through to ``datetime_expander``.
        datetime_expander: Callable turning a datetime filter into concrete
            API filters.

    Returns:
        API filters plus the keyword tokens of keyless filters.
    """
    out = Expansion()
    for f in filters:
        if f.kind is FilterKind.KEYWORD:
            out.keyword.extend(_keyword_tokens(f))
            continue

        key = f.k or ""
        if f.kind is FilterKind.DATETIME:
            expanded = datetime_expander(f, timezone)
            if expanded:
                out.filter.extend(expanded)
        elif f.kind is FilterKind.MULTI:
            plural = to_plural_api_operator(f.o)
            if plural:
                out.filter.append(ApiFilter(k=key, v=list(f.v), o=plural))
            else:
                # One row per element; the API ANDs them together.
                singular = to_api_operator(f.o)
                out.filter.extend(ApiFilter(k=key, v=item, o=singular) for item in f.v)
        elif f.kind is FilterKind.NULL:
            out.filter.append(ApiFilter(k=key, v=None, o=NULL_TO_API_OPERATOR[null_operator(f.o)]))
        else:
            out.filter.append(ApiFilter(k=key, v=f.v, o=to_api_operator(f.o)))
    return out


def _keyword_tokens(f: QueryFilter) -> list[str]:
    if isinstance(f.v, tuple):
        return [to_text(item).strip() for item in f.v]
    if f.v is None:
        return []
    return [to_text(f.v).strip()]
