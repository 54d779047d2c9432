"""Query translation engine.

``QueryHelper`` holds one list of AND filters and one list of OR filters and
projects them to tags, raw tuples, raw JSON strings and the API payload.
Every setter replaces the stored list and returns the engine for chaining.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Mapping, Sequence

from QueryHelper.core.expand import expand_filters
from QueryHelper.core.keys import build_key_map, resolve_key
from QueryHelper.core.models import (
    DATETIME_DATA_TYPE,
    ApiQuery,
    KeyItem,
    KeyItemSet,
    QueryContext,
    QueryFilter,
    QueryTag,
    ReferenceStore,
    TagValue,
    to_text,
)
from QueryHelper.core.operators import (
    is_datetime_operator,
    null_operator,
    to_datetime_operator,
    to_tag_operator,
)
from QueryHelper.core.raw import (
    RawQuery,
    decode_raw_query_strings,
    encode_raw_query,
    filter_from_raw,
    filter_to_raw,
)
from QueryHelper.core.reference import resolve_label
from QueryHelper.core.timerange import expand_datetime_filter
from QueryHelper.utils.log import log


FilterLike = QueryFilter | Mapping[str, Any]
KeyItemSetLike = KeyItemSet | Mapping[str, Any]
QueryTagLike = QueryTag | Mapping[str, Any]


class InvalidOrFilterError(ValueError):
    """Raised when an OR filter lacks a key or an operator."""


class QueryHelper:
    """Stateful converter between tags, raw queries and API queries.

    Args:
        context: Shared settings (timezone, datetime expander).
        key_item_sets: Key metadata groups used to label tags.
        reference_store: Reference name -> id dictionary used to label ids.
    """

    def __init__(
        self,
        context: QueryContext | None = None,
        *,
        key_item_sets: Iterable[KeyItemSetLike] | None = None,
        reference_store: ReferenceStore | None = None,
    ) -> None:
        self._context = context or QueryContext()
        self._reference_store: ReferenceStore | None = reference_store
        self._key_map: dict[str, KeyItem] = {}
        self._filters: list[QueryFilter] = []
        self._or_filters: list[QueryFilter] = []
        if key_item_sets is not None:
            self.set_key_item_sets(key_item_sets)

    @property
    def context(self) -> QueryContext:
        return self._context

    @property
    def key_map(self) -> dict[str, KeyItem]:
        return dict(self._key_map)

    def set_reference(self, reference_store: ReferenceStore | None = None) -> QueryHelper:
        self._reference_store = reference_store
        return self

    def set_key_item_sets(self, key_item_sets: Iterable[KeyItemSetLike]) -> QueryHelper:
        self._key_map = build_key_map(key_item_sets)
        return self

    def set_filters_as_query_tag(
        self,
        query_tags: Iterable[QueryTagLike],
        key_item_sets: Iterable[KeyItemSetLike] | None = None,
    ) -> QueryHelper:
        """Load filters from UI tags.

        Keyless tags become keyword filters. Keyed tags are grouped by key
        name and operator (first-seen order) into one filter per group whose
        value is the tuple of the tags' values. Tags with a null value form
        their own null filter within their key's group.

        Args:
            query_tags: Tags as ``QueryTag`` or plain mappings.
            key_item_sets: When given, rebuilds the key registry first.
        """
        if key_item_sets is not None:
            self.set_key_item_sets(key_item_sets)

        filters: list[QueryFilter] = []
        groups: dict[str, dict[tuple[str, bool], list[Any]]] = {}
        for raw_tag in query_tags:
            tag = raw_tag if isinstance(raw_tag, QueryTag) else QueryTag.from_dict(raw_tag)
            if tag.invalid:
                continue
            if tag.key is None:
                filters.append(QueryFilter(v=tag.value.name))
                continue

            key = self._key_map.get(tag.key.name, tag.key)
            op = tag.operator or ""
            if key.data_type == DATETIME_DATA_TYPE:
                op = to_datetime_operator(op)
            is_null = tag.value.name is None
            groups.setdefault(key.name, {}).setdefault((op, is_null), []).append(tag.value.name)

        for name, op_map in groups.items():
            for (op, is_null), values in op_map.items():
                if is_null:
                    filters.append(QueryFilter(k=name, v=None, o=op))
                else:
                    filters.append(QueryFilter(k=name, v=tuple(values), o=op))

        self._filters = filters
        return self

    def set_filters_as_raw_query(self, raw_queries: Iterable[Sequence[Any]]) -> QueryHelper:
        self._filters = [filter_from_raw(raw) for raw in raw_queries]
        return self

    def set_filters_as_raw_query_string(self, raw_query_strings: str | Iterable[str | None] | None) -> QueryHelper:
        """Load filters from JSON-encoded raw queries.

        Malformed entries are logged and dropped; the rest are loaded.
        """
        self._filters = decode_raw_query_strings(raw_query_strings)
        return self

    def set_filters(self, filters: Iterable[FilterLike]) -> QueryHelper:
        self._filters = [_to_filter(f) for f in filters]
        return self

    def add_filter(self, *filters: FilterLike) -> QueryHelper:
        self._filters.extend(_to_filter(f) for f in filters)
        return self

    def set_or_filters(self, or_filters: Iterable[FilterLike]) -> QueryHelper:
        """Replace the OR group.

        Raises:
            InvalidOrFilterError: If any filter lacks a key or an operator.
                The stored OR group is left untouched.
        """
        self._or_filters = _validated_or_filters(or_filters)
        return self

    def add_or_filter(self, *or_filters: FilterLike) -> QueryHelper:
        """Append to the OR group.

        Raises:
            InvalidOrFilterError: If any filter lacks a key or an operator.
        """
        self._or_filters.extend(_validated_or_filters(or_filters))
        return self

    @property
    def filters(self) -> list[QueryFilter]:
        return list(self._filters)

    @property
    def or_filters(self) -> list[QueryFilter]:
        return list(self._or_filters)

    @property
    def query_tags(self) -> list[QueryTag]:
        """Tags for every filter; array values yield one tag per element."""
        tags: list[QueryTag] = []
        for f in self._filters:
            values = f.v if isinstance(f.v, tuple) else (f.v,)
            for value in values:
                tag = self._to_query_tag(f.k, value, f.o)
                if tag is not None:
                    tags.append(tag)
        return tags

    @property
    def raw_queries(self) -> list[RawQuery]:
        return [filter_to_raw(f) for f in self._filters]

    @property
    def raw_query_strings(self) -> list[str]:
        return [encode_raw_query(raw) for raw in self.raw_queries]

    @property
    def raw_query_string(self) -> str:
        return encode_raw_query(self.raw_queries)

    @property
    def api_query(self) -> ApiQuery:
        """API payload for the current AND and OR groups.

        Datetime filters are expanded here, in the context timezone.
        """
        expander = self._context.datetime_expander or expand_datetime_filter
        timezone = self._context.timezone
        and_group = expand_filters(self._filters, timezone=timezone, datetime_expander=expander)
        or_group = expand_filters(self._or_filters, timezone=timezone, datetime_expander=expander)
        log.debug(
            "Built API query: filters=%d filter_or=%d keywords=%d",
            len(and_group.filter),
            len(or_group.filter),
            len(and_group.keyword),
        )
        return ApiQuery(
            filter=and_group.filter,
            filter_or=or_group.filter,
            keyword=" ".join(and_group.keyword),
        )

    def _to_query_tag(self, k: str | None, value: Any, o: str | None) -> QueryTag | None:
        if k is None:
            if value is None:
                return None
            return QueryTag(value=TagValue(name=value, label=to_text(value)))

        key = resolve_key(self._key_map, k)
        if value is None:
            return QueryTag(key=key, value=TagValue(name=None, label="Null"), operator=null_operator(o))

        if is_datetime_operator(o):
            if key.data_type != DATETIME_DATA_TYPE:
                key = replace(key, data_type=DATETIME_DATA_TYPE)
            return QueryTag(key=key, value=TagValue(name=value, label=to_text(value)), operator=to_tag_operator(o))

        label = resolve_label(self._reference_store, key.reference, value)
        return QueryTag(key=key, value=TagValue(name=value, label=label), operator=to_tag_operator(o))


def _to_filter(value: FilterLike) -> QueryFilter:
    if isinstance(value, QueryFilter):
        return value
    return QueryFilter.from_dict(value)


def _validated_or_filters(or_filters: Iterable[FilterLike]) -> list[QueryFilter]:
    filters = [_to_filter(f) for f in or_filters]
    for idx, f in enumerate(filters):
        if f.k is None or f.o is None:
            raise InvalidOrFilterError(f"OR filter #{idx} must have key and operator: {f.to_dict()}")
    return filters
