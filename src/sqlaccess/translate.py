"""
Default filter and constraint translators.

Translators turn domain-level filter fields and unique constraints into
``QueryFragment`` values. Resource types can register their own translators
on ``ResourceConfig``; custom translators usually handle a few special
fields and delegate everything else back to these defaults:

    >>> def translate_user_filter(resource_type, field, value):
    ...     if field == "emailDomain":
    ...         return QueryFragment(where=("`email` LIKE ?",), params=(f"%@{value}",))
    ...     return translate_filter_field(resource_type, field, value)
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any

from sqlaccess.query import EMPTY_FRAGMENT, QueryFragment
from sqlaccess.types import UNSET

# Discriminator key carried by filter mappings
FILTER_TAG = "_t"
FILTER_TAG_VALUE = "filter"

_UNSAFE_IDENTIFIER_CHARS = re.compile(r"[`'\"?]+|--+")

# (resource_type, field, value) -> fragment
FilterFieldTranslator = Callable[[str, str, Any], QueryFragment]

# (resource_type, constraint) -> fragment
ConstraintTranslator = Callable[[str, Mapping[str, Any]], QueryFragment]


def sanitize_field_name(name: str) -> str:
    """
    Strip quote characters, placeholder marks and SQL comment markers from
    an identifier.

    Field names are embedded in query text since they cannot be bound as
    parameters. A stray ``?`` would be taken for a bind placeholder.

    Example:
        >>> sanitize_field_name("name`; DROP TABLE users; --")
        'name; DROP TABLE users; '
    """
    return _UNSAFE_IDENTIFIER_CHARS.sub("", name)


def translate_filter_field(resource_type: str, field: str, value: Any) -> QueryFragment:
    """
    Translate one filter field into a WHERE fragment.

    - the ``_t`` discriminator and ``UNSET`` values produce no fragment
    - a list, tuple or set becomes ``IN (?)`` bound to the whole sequence
    - ``None`` becomes ``IS NULL`` with no parameter
    - anything else becomes ``= ?``

    Args:
        resource_type: Type tag of the resource being filtered
        field: Filter field name (sanitized before use)
        value: Filter value

    Returns:
        A fragment with at most one WHERE expression
    """
    if field == FILTER_TAG or value is UNSET:
        return EMPTY_FRAGMENT

    column = f"`{sanitize_field_name(field)}`"
    if isinstance(value, (list, tuple, set, frozenset)):
        return QueryFragment(where=(f"{column} IN (?)",), params=(list(value),))
    if value is None:
        return QueryFragment(where=(f"{column} IS NULL",))
    return QueryFragment(where=(f"{column} = ?",), params=(value,))


def translate_constraint(resource_type: str, constraint: Mapping[str, Any]) -> QueryFragment:
    """
    Translate a unique constraint into ANDed ``= ?`` fragments.

    Constraint keys are used as-is. Constraints come from typed call sites,
    unlike filters which may carry raw user input.

    Values are bound unchanged, including ``UNSET``; the store checks for
    incomplete constraints before executing anything.
    """
    where: list[str] = []
    params: list[Any] = []
    for key, value in constraint.items():
        where.append(f"`{key}` = ?")
        params.append(value)
    return QueryFragment(where=tuple(where), params=tuple(params))


__all__ = [
    "FILTER_TAG",
    "FILTER_TAG_VALUE",
    "FilterFieldTranslator",
    "ConstraintTranslator",
    "sanitize_field_name",
    "translate_filter_field",
    "translate_constraint",
]
