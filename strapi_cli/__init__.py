"""
Strapi CLI - Three-layer client for the Strapi REST API.

Layers:
- core: Types, query-string builder and HTTP transport
- sdk: StrapiClient with a fluent query builder
- cli: Opinionated command-line interface
"""

from strapi_cli.core.query import Query
from strapi_cli.core.types import Condition, FilterOperator, LogicOperator, Pagination
from strapi_cli.sdk import StrapiClient

__version__ = "0.1.0"
__all__ = ["Condition", "FilterOperator", "LogicOperator", "Pagination", "Query", "StrapiClient"]
