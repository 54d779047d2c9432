"""Raw query tuples and their JSON string form.

A raw query is the positional list ``[value, key?, operator?]`` with trailing
absent fields omitted. It is the compact form used for URLs and storage.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Sequence

from QueryHelper.core.models import QueryFilter, to_plain
from QueryHelper.utils.log import log


RawQuery = list[Any]


def filter_from_raw(raw: Sequence[Any]) -> QueryFilter:
    """Build a filter from a ``[value, key?, operator?]`` tuple."""
    items = list(raw)
    value = items[0] if len(items) > 0 else None
    key = items[1] if len(items) > 1 else None
    operator = items[2] if len(items) > 2 else None
    return QueryFilter(k=key, v=value, o=operator)


def filter_to_raw(query_filter: QueryFilter) -> RawQuery:
    """Serialize a filter to its shortest tuple form."""
    value = to_plain(query_filter.v)
    if query_filter.k:
        if query_filter.o:
            return [value, query_filter.k, query_filter.o]
        return [value, query_filter.k]
    return [value]


def encode_raw_query(raw: RawQuery) -> str:
    """Encode one tuple (or a list of tuples) as compact JSON."""
    return json.dumps(raw, ensure_ascii=False, separators=(",", ":"))


def parse_raw_query_string(text: str) -> QueryFilter:
    """Decode one JSON-encoded raw query.

    Raises:
        ValueError: If ``text`` is not JSON or not a 1-3 item array with a
            scalar key and a string operator.
    """
    data = json.loads(text)
    if not isinstance(data, list) or not 1 <= len(data) <= 3:
        raise ValueError("raw query must be a JSON array of 1 to 3 items")

    key = data[1] if len(data) > 1 else None
    if key is not None:
        if isinstance(key, bool) or not isinstance(key, (str, int, float)):
            raise ValueError(f"raw query key must be a scalar, got {type(key).__name__}")
        key = str(key)

    operator = data[2] if len(data) > 2 else None
    if operator is not None and not isinstance(operator, str):
        raise ValueError(f"raw query operator must be a string, got {type(operator).__name__}")

    return QueryFilter(k=key, v=data[0], o=operator)


def decode_raw_query_strings(value: str | Iterable[str | None] | None) -> list[QueryFilter]:
    """Decode one string or a list of strings into filters.

    ``None`` and empty entries are skipped. Each entry is parsed on its own:
    a malformed entry is logged and dropped while the others are kept.
    """
    if value is None:
        return []
    entries: Iterable[str | None] = [value] if isinstance(value, str) else value

    filters: list[QueryFilter] = []
    for entry in entries:
        if not entry:
            continue
        try:
            filters.append(parse_raw_query_string(entry))
        except (ValueError, TypeError, RecursionError) as error:
            log.error("Raw query string parsing error: input=%r error=%s", entry, error)
    return filters
