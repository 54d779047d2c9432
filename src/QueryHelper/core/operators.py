"""Operator vocabularies and the lookup tables between them.

Three vocabularies are involved:

- tag operators, shown to users next to a key (``""`` means "contains"),
- raw operators, stored in persisted tuples; the tag operators plus datetime
  variants carrying a ``t`` suffix,
- API operators, understood by the remote query service.
"""

from __future__ import annotations

from typing import Final, Mapping


TAG_OPERATORS: Final[tuple[str, ...]] = ("", "!", ">", ">=", "<", "<=", "=", "!=", "$")

DATETIME_SUFFIX: Final[str] = "t"

RAW_TO_API_OPERATOR: Final[Mapping[str, str]] = {
    "": "contain",
    "!": "not_contain",
    ">": "gt",
    ">=": "gte",
    "<": "lt",
    "<=": "lte",
    "=": "eq",
    "!=": "not",
    "$": "regex",
    ">t": "datetime_gt",
    ">=t": "datetime_gte",
    "<t": "datetime_lt",
    "<=t": "datetime_lte",
    "=t": "datetime_eq",
}

RAW_TO_PLURAL_API_OPERATOR: Final[Mapping[str, str]] = {
    "": "contain_in",
    "!": "not_contain_in",
    "=": "in",
    "!=": "not_in",
    "$": "regex_in",
}

DATETIME_RAW_TO_TAG_OPERATOR: Final[Mapping[str, str]] = {
    ">t": ">",
    ">=t": ">=",
    "<t": "<",
    "<=t": "<=",
    "=t": "=",
}

RAW_TO_TAG_OPERATOR: Final[Mapping[str, str]] = {op: op for op in TAG_OPERATORS}

# Null values only support (in)equality.
NULL_TO_API_OPERATOR: Final[Mapping[str, str]] = {
    "=": "eq",
    "!": "not",
}

_TAG_TO_DATETIME_OPERATOR: Final[Mapping[str, str]] = {
    tag_op: raw_op for raw_op, tag_op in DATETIME_RAW_TO_TAG_OPERATOR.items()
}


def is_datetime_operator(operator: str | None) -> bool:
    """Return True if ``operator`` is one of the datetime raw operators."""
    return operator is not None and operator in DATETIME_RAW_TO_TAG_OPERATOR


def to_datetime_operator(operator: str | None) -> str:
    """Map a tag operator to its datetime raw operator.

    The bare "contains" operator is read as equality for datetime keys.
    Operators without a datetime variant (``!``, ``!=``, ``$``) are returned
    unchanged.
    """
    op = operator or ""
    if is_datetime_operator(op):
        return op
    if op == "":
        return "=" + DATETIME_SUFFIX
    return _TAG_TO_DATETIME_OPERATOR.get(op, op)


def null_operator(operator: str | None) -> str:
    """Normalize an operator to ``"!"`` or ``"="`` by its sign."""
    return "!" if operator and operator.startswith("!") else "="


def to_api_operator(operator: str | None) -> str:
    """Map a raw operator to its singular API operator, passing unknowns through."""
    op = operator or ""
    return RAW_TO_API_OPERATOR.get(op, op)


def to_plural_api_operator(operator: str | None) -> str | None:
    """Return the plural API operator for ``operator`` or None if it has none."""
    return RAW_TO_PLURAL_API_OPERATOR.get(operator or "")


def to_tag_operator(operator: str | None) -> str:
    """Map a raw operator back to the tag vocabulary."""
    op = operator or ""
    if is_datetime_operator(op):
        return DATETIME_RAW_TO_TAG_OPERATOR[op]
    return RAW_TO_TAG_OPERATOR.get(op, op)
