"""Command implementations for the QueryHelper CLI.

Each command loads raw query strings into the engine and renders one
projection as text lines, separated from click parameter handling.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any, Callable, Sequence

from QueryHelper.services.query import QueryHelper
from QueryHelper.utils.log import log


def _dump(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


@dataclass(slots=True)
class ConvertCommand:
    """Convert persisted raw query strings into another representation."""

    helper: QueryHelper

    def execute(self, target: str, raw_query_strings: Sequence[str]) -> list[str]:
        """Load ``raw_query_strings`` and render the ``target`` projection.

        Args:
            target: One of ``api``, ``tags`` or ``normalize``.
            raw_query_strings: JSON-encoded raw queries.

        Returns:
            Output lines.

        Raises:
            ValueError: If ``target`` is unknown.
        """
        renderer = self._renderers().get(target)
        if renderer is None:
            raise ValueError(f"Unsupported conversion target: {target}")

        self.helper.set_filters_as_raw_query_string(list(raw_query_strings))
        dropped = len([q for q in raw_query_strings if q]) - len(self.helper.filters)
        if dropped:
            log.warning("Dropped %d malformed raw queries", dropped)
        log.debug("Loaded %d filters for target=%s", len(self.helper.filters), target)
        return renderer()

    def _renderers(self) -> dict[str, Callable[[], list[str]]]:
        return {
            "api": self._render_api,
            "tags": self._render_tags,
            "normalize": self._render_normalized,
        }

    def _render_api(self) -> list[str]:
        return [_dump(self.helper.api_query.to_dict())]

    def _render_tags(self) -> list[str]:
        return [_dump([tag.to_dict() for tag in self.helper.query_tags])]

    def _render_normalized(self) -> list[str]:
        return self.helper.raw_query_strings
