"""
Core layer - Raw types, query building and HTTP transport.

This layer provides:
- Typed dataclasses and enums for Strapi filters and responses
- An immutable query builder that renders Strapi query strings
- Low-level HTTP client with auth and error handling
"""

from strapi_cli.core.client import APIClient, APIError, StrapiError, Transport, ValidationError
from strapi_cli.core.query import Query, build_query
from strapi_cli.core.types import (
    Condition,
    FilterOperator,
    LogicOperator,
    Method,
    Pagination,
    Request,
    StrapiResult,
    UserToken,
)

__all__ = [
    "APIClient",
    "APIError",
    "Condition",
    "FilterOperator",
    "LogicOperator",
    "Method",
    "Pagination",
    "Query",
    "Request",
    "StrapiError",
    "StrapiResult",
    "Transport",
    "UserToken",
    "ValidationError",
    "build_query",
]
