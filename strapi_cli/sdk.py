"""
Strapi SDK - Fluent query-builder client.

This layer provides a chainable interface over the Strapi REST API:
select relations, filter, sort and paginate, then ``find`` or ``find_one``.
Built on top of the core transport and query builder.
"""

import logging
import os
import webbrowser
from collections.abc import Callable, Iterable
from typing import Any

from strapi_cli.core.client import DEFAULT_TIMEOUT, APIClient, Transport
from strapi_cli.core.query import Query
from strapi_cli.core.types import Condition, Method, Pagination, Request, StrapiResult, UserToken

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:1337/api/"


class StrapiClient:
    """
    Strapi REST client with a fluent query builder.

    Example:
        client = StrapiClient()

        # Collection query
        result = client.from_("articles").select(["*"]).sort(["title"]).find()

        # Single entry, with nested filter on a relation
        post = (
            client.from_("posts")
            .where([Condition(["author", "id"], FilterOperator.EQUALS, 5)])
            .find_one(12)
        )

    Builder calls replace the client's current ``Query`` snapshot; ``find``
    and ``find_one`` consume it and leave a fresh empty one behind. The
    direct verbs (``get``, ``post``, ``put``, ``delete``) and the auth
    helpers never read or replace the snapshot.

    """

    def __init__(
        self,
        endpoint: str | None = None,
        token: str | None = None,
        timeout: int = DEFAULT_TIMEOUT,
        transport: Transport | None = None,
        viewer: Callable[[str], Any] | None = None,
    ):
        """
        Initialize the Strapi client.

        Args:
            endpoint: API base URL ending in ``/api/`` (or STRAPI_ENDPOINT env var)
            token: API token sent as a bearer token (or STRAPI_TOKEN env var)
            timeout: Request timeout in seconds
            transport: HTTP transport override (defaults to ``APIClient``)
            viewer: Callable used by ``download`` to open a URL

        """
        self.endpoint = endpoint or os.environ.get("STRAPI_ENDPOINT") or DEFAULT_ENDPOINT
        self._transport: Transport = transport or APIClient(token=token, timeout=timeout)
        self._viewer = viewer or webbrowser.open
        self._query = Query()

    @property
    def query(self) -> Query:
        """The pending query snapshot."""
        return self._query

    # =========================================================================
    # Builder
    # =========================================================================

    def from_(self, table: str) -> "StrapiClient":
        """Set the collection to query."""
        self._query = self._query.from_(table)
        return self

    def select(self, relations: Iterable[str]) -> "StrapiClient":
        """Add relations to populate (``["*"]`` populates everything)."""
        self._query = self._query.select(relations)
        return self

    def where(self, conditions: Iterable[Condition | dict[str, Any]]) -> "StrapiClient":
        """Replace the filter conditions."""
        self._query = self._query.where(conditions)
        return self

    def where_append(self, conditions: Iterable[Condition | dict[str, Any]]) -> "StrapiClient":
        """Append to the filter conditions."""
        self._query = self._query.where_append(conditions)
        return self

    def sort(self, keys: Iterable[str]) -> "StrapiClient":
        """Replace the sort keys."""
        self._query = self._query.sort(keys)
        return self

    def pagination(self, pagination: Pagination) -> "StrapiClient":
        """Replace the pagination settings."""
        self._query = self._query.paginate(pagination)
        return self

    def add_custom_query_params(self, query_params: str) -> "StrapiClient":
        """Append a raw, pre-encoded string to the next ``find`` URL."""
        self._query = self._query.add_custom_query_params(query_params)
        return self

    def _take_query(self) -> Query:
        query, self._query = self._query, Query()
        return query

    # =========================================================================
    # Request Preparation
    # =========================================================================

    def request_for(self, query: Query, entry_id: int | str | None = None, endpoint: str | None = None) -> Request:
        """
        Resolve a query snapshot into a GET request.

        Args:
            query: The snapshot to serialize
            entry_id: Entry ID for a single-entry lookup
            endpoint: Explicit endpoint; bypasses the builder clauses

        Returns:
            Request description with the full URL

        """
        if entry_id is not None:
            # Single-entry lookups never take custom params
            return Request(Method.GET, f"{self.endpoint}{query.source}/{entry_id}?{query.build()}")

        if endpoint:
            url = f"{self.endpoint}{endpoint}"
        else:
            url = f"{self.endpoint}{query.source}?{query.build()}"
        if query.custom_query_params:
            url += query.custom_query_params
        return Request(Method.GET, url)

    def prepare_find(self, endpoint: str | None = None) -> Request:
        """Build the request ``find`` would send, and reset the builder."""
        return self.request_for(self._take_query(), endpoint=endpoint)

    def prepare_find_one(self, entry_id: int | str) -> Request:
        """Build the request ``find_one`` would send, and reset the builder."""
        return self.request_for(self._take_query(), entry_id=entry_id)

    def send(self, request: Request) -> Any:
        """Dispatch a request description through the transport."""
        logger.debug("Dispatching %s %s", request.method.value, request.url)
        if request.method is Method.GET:
            return self._transport.get(request.url)
        if request.method is Method.POST:
            return self._transport.post(request.url, request.body)
        if request.method is Method.PUT:
            return self._transport.put(request.url, request.body)
        return self._transport.delete(request.url)

    # =========================================================================
    # Query Execution
    # =========================================================================

    def find(self, endpoint: str | None = None) -> StrapiResult:
        """
        Fetch a collection using the pending query.

        Args:
            endpoint: Explicit endpoint; skips the built clauses but the
                builder is still reset

        Returns:
            StrapiResult with data and meta

        """
        return StrapiResult.from_dict(self.find_any(endpoint))

    def find_any(self, endpoint: str | None = None) -> Any:
        """Like ``find`` but returns the raw JSON response."""
        return self.send(self.prepare_find(endpoint))

    def find_one(self, entry_id: int | str) -> StrapiResult:
        """
        Fetch a single entry of the pending collection.

        Args:
            entry_id: Entry ID (or document ID)

        Returns:
            StrapiResult with data and meta

        """
        return StrapiResult.from_dict(self.send(self.prepare_find_one(entry_id)))

    def execute(self, query: Query, entry_id: int | str | None = None, endpoint: str | None = None) -> StrapiResult:
        """Run an explicit snapshot. The client's own builder state is left alone."""
        return StrapiResult.from_dict(self.send(self.request_for(query, entry_id=entry_id, endpoint=endpoint)))

    # =========================================================================
    # Direct Verbs
    # =========================================================================

    def get(self, endpoint: str) -> StrapiResult:
        """GET ``endpoint`` relative to the base URL."""
        return StrapiResult.from_dict(self.get_any(endpoint))

    def get_any(self, endpoint: str) -> Any:
        """GET returning the raw JSON response."""
        return self._transport.get(self.endpoint + endpoint)

    def post(self, endpoint: str, body: Any) -> StrapiResult:
        """POST ``body`` to ``endpoint``."""
        return StrapiResult.from_dict(self.post_any(endpoint, body))

    def post_any(self, endpoint: str, body: Any) -> Any:
        """POST returning the raw JSON response."""
        return self._transport.post(self.endpoint + endpoint, body)

    def put(self, endpoint: str, body: Any) -> StrapiResult:
        """PUT ``body`` to ``endpoint``."""
        return StrapiResult.from_dict(self._transport.put(self.endpoint + endpoint, body))

    def delete(self, endpoint: str) -> Any:
        """DELETE ``endpoint``. Returns the raw JSON response."""
        return self._transport.delete(self.endpoint + endpoint)

    # =========================================================================
    # Authentication
    # =========================================================================

    def create_user(self, body: dict[str, Any]) -> Any:
        """Register a user via ``auth/local/register``."""
        return self._transport.post(self.endpoint + "auth/local/register", body)

    def login(self, email: str, password: str) -> UserToken:
        """
        Log in with email (or username) and password.

        Args:
            email: User email or username
            password: User password

        Returns:
            UserToken with the JWT and user record

        """
        result = self._transport.post(
            self.endpoint + "auth/local",
            {"identifier": email, "password": password},
        )
        return UserToken.from_dict(result)

    def forgot_password(self, email: str) -> Any:
        """Ask Strapi to email a password reset code."""
        return self._transport.post(self.endpoint + "auth/forgot-password", {"email": email})

    def reset_password(self, password: str, password_confirmation: str, code: str) -> Any:
        """Reset a password using the emailed code."""
        return self._transport.post(
            self.endpoint + "auth/reset-password",
            {
                "password": password,
                "passwordConfirmation": password_confirmation,
                "code": code,
            },
        )

    # =========================================================================
    # Uploads
    # =========================================================================

    def download(self, upload_url: str) -> None:
        """Open an uploaded file (e.g. ``/uploads/a.png``) in the viewer."""
        self._viewer(self.endpoint.replace("/api/", "") + upload_url)
