"""
Core types for the Strapi REST API.

These dataclasses and enums describe filter conditions, pagination and the
response shapes returned by a Strapi server.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

# =============================================================================
# Operators
# =============================================================================


class FilterOperator(str, Enum):
    """Strapi filter operators (rendered as ``[$<value>]``)."""

    CONTAINS = "contains"
    CONTAINS_INSENSITIVE = "containsi"
    NOT_CONTAINS = "notContains"
    NOT_CONTAINS_INSENSITIVE = "notContainsi"
    EQUALS = "eq"
    NOT_EQUALS = "ne"
    LESS_THAN = "lt"
    LESS_THAN_OR_EQUALS = "lte"
    GREATER_THAN = "gt"
    GREATER_THAN_OR_EQUALS = "gte"
    IS_NULL = "null"
    IS_NOT_NULL = "notNull"
    IN = "in"
    NOT_IN = "notIn"
    BETWEEN = "between"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"


class LogicOperator(str, Enum):
    """Logical grouping for filters (``[$or][i]`` / ``[$and][i]``)."""

    OR = "or"
    AND = "and"


class Method(str, Enum):
    """HTTP verbs issued by the client."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


# =============================================================================
# Query Types
# =============================================================================


@dataclass(frozen=True)
class Condition:
    """A single filter condition.

    ``fields`` is the nested field path, e.g. ``["author", "id"]`` renders as
    ``[author][id]``. Operators passed as strings are converted to their enum
    member, so an unknown operator fails here rather than on the wire.
    """

    fields: tuple[str, ...]
    operator: FilterOperator
    value: Any = None
    logic_operator: LogicOperator | None = None

    def __post_init__(self) -> None:
        fields = (self.fields,) if isinstance(self.fields, str) else tuple(self.fields)
        object.__setattr__(self, "fields", fields)
        object.__setattr__(self, "operator", FilterOperator(self.operator))
        if self.logic_operator is not None:
            object.__setattr__(self, "logic_operator", LogicOperator(self.logic_operator))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Condition":
        """Create from a plain dict (``entities``/``fields``, ``operator``, ``value``)."""
        return cls(
            fields=data.get("fields") or data.get("entities") or (),
            operator=data["operator"],
            value=data.get("value"),
            logic_operator=data.get("logic_operator") or data.get("logicOperator"),
        )


@dataclass(frozen=True)
class Pagination:
    """Page-based pagination. A missing page is sent as page 1."""

    page: int | None = 1
    page_size: int = 25


# =============================================================================
# Response Types
# =============================================================================


@dataclass
class StrapiResult:
    """Standard Strapi response envelope."""

    data: Any = None
    meta: Any = None

    @classmethod
    def from_dict(cls, data: Any) -> "StrapiResult":
        """Create from API response dict."""
        if not isinstance(data, dict):
            return cls(data=data)
        return cls(data=data.get("data"), meta=data.get("meta"))

    def to_dict(self) -> dict[str, Any]:
        """Convert back to the wire shape."""
        return {"data": self.data, "meta": self.meta}


@dataclass
class UserToken:
    """Authentication result from ``auth/local``."""

    token: str | None
    user: Any = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserToken":
        """Create from API response dict."""
        return cls(
            # Strapi returns 'jwt' but we normalize to 'token'
            token=data.get("token") or data.get("jwt"),
            user=data.get("user"),
        )


# =============================================================================
# Request Description
# =============================================================================


@dataclass(frozen=True)
class Request:
    """A fully resolved request, ready to hand to a transport."""

    method: Method
    url: str
    body: Any = None
