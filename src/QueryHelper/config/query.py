"""Query domain configuration: timezone, key metadata and reference labels."""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Any, Mapping

from dateutil import tz

from QueryHelper.config.common import (
    expect_list,
    expect_mapping,
    expect_optional_str,
    expect_str,
    get_optional_value,
    get_section,
)
from QueryHelper.core.models import KeyItem, KeyItemSet


@dataclass(frozen=True, slots=True)
class QueryConfig:
    """Store validated settings handed to the translation engine.

    Attributes:
        timezone: Timezone used to expand datetime filters.
        timezone_env: Optional environment variable overriding ``timezone``.
        key_item_sets: Key metadata groups.
        references: Static reference store (reference -> id -> entry).
    """

    timezone: str = "UTC"
    timezone_env: str | None = None
    key_item_sets: tuple[KeyItemSet, ...] = ()
    references: Mapping[str, Mapping[str, Mapping[str, Any]]] = field(default_factory=dict)


def load_query(raw: Mapping[str, Any]) -> QueryConfig:
    """Load query domain config from raw mapping.

    Args:
        raw: Root configuration mapping.

    Returns:
        Parsed query configuration.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If key items are missing a name.
    """
    section = get_section(raw, "query", required=False)
    timezone_env = expect_optional_str(get_optional_value(section, "timezone_env", None), "query.timezone_env")
    timezone = expect_str(get_optional_value(section, "timezone", "UTC"), "query.timezone").strip()
    if timezone_env:
        timezone = _load_timezone_from_env(timezone_env) or timezone

    return QueryConfig(
        timezone=timezone,
        timezone_env=timezone_env,
        key_item_sets=_parse_key_item_sets(raw.get("keys")),
        references=_parse_references(raw.get("references")),
    )


def check_query(config: QueryConfig) -> None:
    """Validate query domain constraints.

    Raises:
        ValueError: If the timezone is unknown or key names collide inside a group.
    """
    if not config.timezone:
        raise ValueError("query.timezone must not be empty")
    if tz.gettz(config.timezone) is None:
        raise ValueError(f"query.timezone is not a known timezone: {config.timezone}")
    for idx, key_set in enumerate(config.key_item_sets):
        seen: set[str] = set()
        for item in key_set.items:
            if item.name in seen:
                raise ValueError(f"keys[{idx}].items has duplicate name: {item.name}")
            seen.add(item.name)


def _parse_key_item_sets(value: Any) -> tuple[KeyItemSet, ...]:
    if value is None:
        return ()
    sets: list[KeyItemSet] = []
    for idx, set_obj in enumerate(expect_list(value, "keys")):
        set_key = f"keys[{idx}]"
        set_map = expect_mapping(set_obj, set_key)
        title = expect_str(get_optional_value(set_map, "title", ""), f"{set_key}.title")
        items: list[KeyItem] = []
        for item_idx, item_obj in enumerate(expect_list(get_optional_value(set_map, "items", []), f"{set_key}.items")):
            items.append(_parse_key_item(item_obj, f"{set_key}.items[{item_idx}]"))
        sets.append(KeyItemSet(title=title, items=tuple(items)))
    return tuple(sets)


def _parse_key_item(value: Any, config_key: str) -> KeyItem:
    item = expect_mapping(value, config_key)
    name = expect_str(item.get("name"), f"{config_key}.name").strip()
    if not name:
        raise ValueError(f"{config_key}.name must not be empty")
    return KeyItem(
        name=name,
        label=expect_optional_str(item.get("label"), f"{config_key}.label") or name,
        data_type=expect_optional_str(item.get("data_type"), f"{config_key}.data_type"),
        reference=expect_optional_str(item.get("reference"), f"{config_key}.reference"),
    )


def _parse_references(value: Any) -> dict[str, dict[str, dict[str, Any]]]:
    if value is None:
        return {}
    references: dict[str, dict[str, dict[str, Any]]] = {}
    for name, entries in expect_mapping(value, "references").items():
        ref_key = f"references.{name}"
        parsed: dict[str, dict[str, Any]] = {}
        for entry_id, entry in expect_mapping(entries, ref_key).items():
            entry_key = f"{ref_key}.{entry_id}"
            if isinstance(entry, str):
                parsed[str(entry_id)] = {"name": str(entry_id), "label": entry}
                continue
            entry_map = expect_mapping(entry, entry_key)
            parsed[str(entry_id)] = {
                "name": str(entry_map.get("name", entry_id)),
                "label": expect_str(entry_map.get("label"), f"{entry_key}.label"),
            }
        references[str(name)] = parsed
    return references


def _load_timezone_from_env(timezone_env: str) -> str:
    """Load timezone override from environment variable."""
    return os.getenv(timezone_env, "").strip()
