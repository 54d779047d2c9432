"""Read-only label lookups against an externally owned reference store."""

from __future__ import annotations

from typing import Any, Mapping

from QueryHelper.core.models import ReferenceStore, to_text


def get_reference_map(reference_store: ReferenceStore | None, reference: str | None) -> Mapping[str, Any] | None:
    """Return the current id -> entry mapping for ``reference``.

    Store values may be plain mappings or live holders exposing the mapping
    as ``.value``. A missing or not yet populated holder yields None.
    """
    if not reference or reference_store is None:
        return None
    holder = reference_store.get(reference)
    if holder is None:
        return None
    snapshot = holder if isinstance(holder, Mapping) else getattr(holder, "value", None)
    if not isinstance(snapshot, Mapping):
        return None
    return snapshot


def resolve_label(reference_store: ReferenceStore | None, reference: str | None, value: Any) -> str:
    """Resolve ``value`` to a human label, falling back to the value itself.

    Args:
        reference_store: Reference name -> id dictionary, possibly partial.
        reference: Reference name declared by the key, if any.
        value: Raw value (an id) to label.

    Returns:
        The entry's ``label`` when present, else the value as text.
    """
    text = to_text(value)
    reference_map = get_reference_map(reference_store, reference)
    if reference_map is None:
        return text
    entry = reference_map.get(text)
    if not isinstance(entry, Mapping):
        return text
    label = entry.get("label")
    if label is None or label == "":
        return text
    return str(label)
