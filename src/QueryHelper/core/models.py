from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Sequence

from QueryHelper.core.operators import is_datetime_operator


DATETIME_DATA_TYPE = "datetime"

ReferenceStore = Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class KeyItem:
    """Display metadata for one filterable key.

    Attributes:
        name: Key name as sent to the API. Unique within a registry.
        label: Human readable label. Defaults to ``name``.
        data_type: Optional data type hint; ``"datetime"`` switches tag
            ingestion to the datetime operators.
        reference: Optional name of a reference dictionary used to turn raw
            ids into labels.
    """

    name: str
    label: str = ""
    data_type: Optional[str] = None
    reference: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.label:
            object.__setattr__(self, "label", self.name)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> KeyItem:
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError("KeyItem requires a non-empty name")
        return cls(
            name=name,
            label=data.get("label") or name,
            data_type=data.get("data_type", data.get("dataType")),
            reference=data.get("reference"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "label": self.label}
        if self.data_type is not None:
            out["data_type"] = self.data_type
        if self.reference is not None:
            out["reference"] = self.reference
        return out


@dataclass(frozen=True, slots=True)
class KeyItemSet:
    """A titled group of selectable keys."""

    title: str
    items: Sequence[KeyItem] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> KeyItemSet:
        items = data.get("items") or ()
        return cls(
            title=str(data.get("title", "")),
            items=tuple(item if isinstance(item, KeyItem) else KeyItem.from_dict(item) for item in items),
        )


@dataclass(frozen=True, slots=True)
class TagValue:
    name: Any
    label: str = ""


@dataclass(frozen=True, slots=True)
class QueryTag:
    """One user-facing search condition.

    A tag without ``key`` is a bare keyword. Tags flagged ``invalid`` are
    ignored when loaded into the engine.
    """

    value: TagValue
    key: Optional[KeyItem] = None
    operator: Optional[str] = None
    invalid: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> QueryTag:
        raw_key = data.get("key")
        key: KeyItem | None
        if isinstance(raw_key, KeyItem):
            key = raw_key
        elif isinstance(raw_key, Mapping):
            key = KeyItem.from_dict(raw_key)
        else:
            key = None

        raw_value = data.get("value")
        if isinstance(raw_value, TagValue):
            value = raw_value
        elif isinstance(raw_value, Mapping):
            name = raw_value.get("name")
            value = TagValue(name=name, label=raw_value.get("label") or to_text(name))
        else:
            value = TagValue(name=raw_value, label=to_text(raw_value))

        return cls(
            value=value,
            key=key,
            operator=data.get("operator"),
            invalid=bool(data.get("invalid", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"value": {"name": self.value.name, "label": self.value.label}}
        if self.key is not None:
            out["key"] = self.key.to_dict()
        if self.operator is not None:
            out["operator"] = self.operator
        if self.invalid:
            out["invalid"] = True
        return out


class FilterKind(str, Enum):
    """Shape of a ``QueryFilter``, decided once when the filter is built."""

    KEYWORD = "keyword"
    DATETIME = "datetime"
    MULTI = "multi"
    NULL = "null"
    SCALAR = "scalar"


@dataclass(frozen=True, slots=True)
class QueryFilter:
    """Engine-internal filter: key ``k``, value ``v`` and raw operator ``o``.

    Empty keys and operators are stored as None. List values are stored as
    tuples so a filter can never be changed after it was built.
    """

    k: Optional[str] = None
    v: Any = None
    o: Optional[str] = None
    kind: FilterKind = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.k == "":
            object.__setattr__(self, "k", None)
        if self.o == "":
            object.__setattr__(self, "o", None)
        if isinstance(self.v, list):
            object.__setattr__(self, "v", tuple(self.v))
        object.__setattr__(self, "kind", _classify(self.k, self.v, self.o))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> QueryFilter:
        return cls(k=data.get("k"), v=data.get("v"), o=data.get("o"))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"v": to_plain(self.v)}
        if self.k is not None:
            out["k"] = self.k
        if self.o is not None:
            out["o"] = self.o
        return out


@dataclass(frozen=True, slots=True)
class ApiFilter:
    """Backend predicate ``{k, v, o}`` with an API operator."""

    k: str
    v: Any
    o: str

    def to_dict(self) -> dict[str, Any]:
        return {"k": self.k, "v": to_plain(self.v), "o": self.o}


@dataclass(frozen=True, slots=True)
class ApiQuery:
    """Payload for the remote query API.

    Attributes:
        filter: Predicates combined with AND.
        filter_or: Predicates combined with OR.
        keyword: Free-text search string built from keyless filters.
    """

    filter: Sequence[ApiFilter] = ()
    filter_or: Sequence[ApiFilter] = ()
    keyword: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "filter": [f.to_dict() for f in self.filter],
            "filter_or": [f.to_dict() for f in self.filter_or],
            "keyword": self.keyword,
        }


DatetimeExpander = Callable[[QueryFilter, str], Optional[Sequence[ApiFilter]]]


@dataclass(frozen=True, slots=True)
class QueryContext:
    """Shared read-only settings handed to every engine instance.

    Attributes:
        timezone: IANA timezone name used to resolve datetime values.
        datetime_expander: Replacement for the default datetime expander.
    """

    timezone: str = "UTC"
    datetime_expander: Optional[DatetimeExpander] = None


def to_plain(value: Any) -> Any:
    """Convert tuple values to lists for JSON output."""
    if isinstance(value, tuple):
        return [to_plain(item) for item in value]
    return value


def to_text(value: Any) -> str:
    """Render a raw value as display text.

    Booleans are lowercase and whole floats drop their fraction, so values
    read back from JSON show the way they were written in the browser.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return str(value)


def _classify(k: str | None, v: Any, o: str | None) -> FilterKind:
    if k is None:
        return FilterKind.KEYWORD
    if is_datetime_operator(o):
        return FilterKind.DATETIME
    if isinstance(v, tuple):
        return FilterKind.MULTI
    if v is None:
        return FilterKind.NULL
    return FilterKind.SCALAR
