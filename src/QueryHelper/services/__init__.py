"""Query translation service layer for QueryHelper.

Provides the ``QueryHelper`` engine and a factory building it from the
application configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from QueryHelper.core.models import QueryContext
from QueryHelper.services.query import InvalidOrFilterError, QueryHelper

if TYPE_CHECKING:
    from QueryHelper.config import AppConfig


def create_query_helper(config: AppConfig) -> QueryHelper:
    """Create an engine with the configured timezone, keys and references.

    Args:
        config: Application configuration.

    Returns:
        Configured QueryHelper instance with empty filter lists.
    """
    context = QueryContext(timezone=config.query.timezone)
    return QueryHelper(
        context,
        key_item_sets=config.query.key_item_sets,
        reference_store=config.query.references,
    )


__all__ = [
    "InvalidOrFilterError",
    "QueryHelper",
    "create_query_helper",
]
