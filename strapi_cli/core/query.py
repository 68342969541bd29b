"""
Query builder for Strapi collection endpoints.

A ``Query`` is an immutable snapshot: every builder method returns a new
``Query`` and leaves the original untouched. ``build_query`` turns a snapshot
into Strapi's bracketed query-string syntax, e.g.::

    populate=*&filters[author][id][$eq]=5&sort[0]=title&pagination[page]=1&pagination[pageSize]=25

Values are interpolated as-is. Nothing is URL-encoded, so callers must
pre-encode values that contain reserved characters.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from strapi_cli.core.types import Condition, Pagination

WILDCARD = "*"


@dataclass(frozen=True)
class Query:
    """Pending query state for a single find/find_one call."""

    source: str = ""
    fields: tuple[str, ...] = ()
    relations: tuple[str, ...] = ()
    conditions: tuple[Condition, ...] = ()
    sort_keys: tuple[str, ...] = ()
    pagination: Pagination = field(default_factory=Pagination)
    custom_query_params: str = ""

    # =========================================================================
    # Builder
    # =========================================================================

    def from_(self, table: str) -> "Query":
        """Set the target collection."""
        return replace(self, source=table)

    def select(self, relations: Iterable[str]) -> "Query":
        """Append relations to populate."""
        return replace(self, relations=self.relations + tuple(relations))

    def where(self, conditions: Iterable[Condition | dict[str, Any]]) -> "Query":
        """Replace all filter conditions."""
        return replace(self, conditions=_to_conditions(conditions))

    def where_append(self, conditions: Iterable[Condition | dict[str, Any]]) -> "Query":
        """Append filter conditions to the existing ones."""
        return replace(self, conditions=self.conditions + _to_conditions(conditions))

    def sort(self, keys: Iterable[str]) -> "Query":
        """Replace the sort keys (e.g. ``"title"`` or ``"title:desc"``)."""
        return replace(self, sort_keys=tuple(keys))

    def paginate(self, pagination: Pagination) -> "Query":
        """Replace the pagination settings."""
        return replace(self, pagination=pagination)

    def add_custom_query_params(self, query_params: str) -> "Query":
        """Set a raw string appended to the final URL."""
        return replace(self, custom_query_params=query_params)

    # =========================================================================
    # Serialization
    # =========================================================================

    def build(self) -> str:
        """Serialize to a query string (without the leading ``?``)."""
        return build_query(self)


def _to_conditions(conditions: Iterable[Condition | dict[str, Any]]) -> tuple[Condition, ...]:
    return tuple(c if isinstance(c, Condition) else Condition.from_dict(c) for c in conditions)


def format_value(value: Any) -> str:
    """Render a filter value the way Strapi's JS consumers stringify it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None else format_value(v) for v in value)
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def build_query(query: Query) -> str:
    """
    Build the Strapi query string for a snapshot.

    Clauses are emitted in a fixed order: populate, filters, sort, pagination.
    The populate clause is omitted entirely when there are no relations, in
    which case the result starts with ``&``.

    Args:
        query: The query snapshot

    Returns:
        Query string without the leading ``?``

    """
    parts: list[str] = []

    # Relations
    if query.relations == (WILDCARD,):
        parts.append(f"populate={WILDCARD}")
    else:
        parts.append("&".join(f"populate[{i}]={relation}" for i, relation in enumerate(query.relations)))

    # Filters - the logic group index is the position in the whole list
    for index, condition in enumerate(query.conditions):
        clause = "&filters"
        if condition.logic_operator:
            clause += f"[${condition.logic_operator.value}][{index}]"
        for segment in condition.fields:
            clause += f"[{segment}]"
        clause += f"[${condition.operator.value}]={format_value(condition.value)}"
        parts.append(clause)

    # Sort
    for index, key in enumerate(query.sort_keys):
        parts.append(f"&sort[{index}]={key}")

    # Pagination
    page = query.pagination.page or 1
    parts.append(f"&pagination[page]={page}&pagination[pageSize]={query.pagination.page_size}")

    return "".join(parts)
