"""Key registry: name -> KeyItem lookup built from titled key groups."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from QueryHelper.core.models import KeyItem, KeyItemSet


def build_key_map(key_item_sets: Iterable[KeyItemSet | Mapping[str, Any]]) -> dict[str, KeyItem]:
    """Flatten key groups into a single lookup.

    Args:
        key_item_sets: Key groups, as ``KeyItemSet`` or plain mappings.

    Returns:
        Mapping of key name to ``KeyItem``. When two groups declare the same
        name, the item from the later group wins.
    """
    key_map: dict[str, KeyItem] = {}
    for key_set in key_item_sets:
        if not isinstance(key_set, KeyItemSet):
            key_set = KeyItemSet.from_dict(key_set)
        for item in key_set.items:
            key_map[item.name] = item
    return key_map


def resolve_key(key_map: Mapping[str, KeyItem], name: str) -> KeyItem:
    """Return the registered key or a bare fallback labelled with its name."""
    item = key_map.get(name)
    if item is None:
        return KeyItem(name=name, label=name)
    return item
