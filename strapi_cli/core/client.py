"""
Core HTTP transport for the Strapi REST API.

Handles authentication headers, request/response encoding and error mapping.
URLs are passed through untouched: query strings built by the SDK layer
reach the server byte-for-byte.
"""

import http.client
import json
import logging
import os
import urllib.error
import urllib.request
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_TIMEOUT = 60


class StrapiError(Exception):
    """Base error class for client and CLI errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {"error": self.message}
        if self.details:
            result["details"] = self.details
        return result


class APIError(StrapiError):
    """API error with status code and message."""

    def __init__(self, message: str, status: int = 0, details: dict | None = None):
        super().__init__(message, details)
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result = super().to_dict()
        if self.status:
            result["status"] = self.status
        return result


class ValidationError(StrapiError):
    """Validation error for local input/data issues (not API errors)."""


@runtime_checkable
class Transport(Protocol):
    """HTTP capability used by ``StrapiClient``.

    Each method takes a fully resolved URL and returns parsed JSON. Failures
    are raised as-is; the SDK layer never inspects or wraps them.
    """

    def get(self, url: str) -> Any: ...

    def post(self, url: str, data: Any = None) -> Any: ...

    def put(self, url: str, data: Any = None) -> Any: ...

    def delete(self, url: str) -> Any: ...


class APIClient:
    """
    Low-level HTTP client for a Strapi server.

    Handles:
    - Bearer authentication via API token
    - HTTP methods (GET, POST, PUT, DELETE)
    - Error handling and response parsing
    """

    def __init__(
        self,
        token: str | None = None,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the transport.

        Args:
            token: Strapi API token or user JWT (or STRAPI_TOKEN env var)
            timeout: Request timeout in seconds

        """
        self.token = token or os.environ.get("STRAPI_TOKEN")
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _make_request(
        self,
        method: str,
        url: str,
        data: Any = None,
        timeout: int | None = None,
    ) -> Any:
        """
        Make an HTTP request.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            url: Full URL, including any query string
            data: Request body for POST/PUT
            timeout: Request timeout override

        Returns:
            Parsed JSON response

        Raises:
            APIError: On HTTP or parsing errors

        """
        body = json.dumps(data).encode("utf-8") if data is not None else None
        request_timeout = timeout or self.timeout

        logger.debug("%s %s", method, url)
        try:
            req = urllib.request.Request(url, data=body, headers=self._headers(), method=method)
            with urllib.request.urlopen(req, timeout=request_timeout) as response:
                response_data = response.read().decode("utf-8")
                if response_data:
                    return json.loads(response_data)
                return {"success": True}

        except urllib.error.HTTPError as e:
            logger.warning("%s %s failed with status %s", method, url, e.code)
            try:
                error_body = e.read().decode("utf-8")
                error_data = json.loads(error_body)
                # Strapi v4+: {"data": null, "error": {"status", "name", "message", "details"}}
                error_field = error_data.get("error", {}) if isinstance(error_data, dict) else {}
                if isinstance(error_field, str):
                    message = error_field
                elif isinstance(error_field, dict):
                    message = error_field.get("message", str(e))
                else:
                    message = str(e)
                raise APIError(message, status=e.code, details=error_data)
            except json.JSONDecodeError:
                raise APIError(str(e), status=e.code)

        except urllib.error.URLError as e:
            logger.warning("%s %s connection error: %s", method, url, e.reason)
            raise APIError(f"Connection error: {e.reason}")

        except (http.client.InvalidURL, UnicodeEncodeError) as e:
            logger.warning("%s %s rejected before sending: %s", method, url, e)
            raise APIError(f"Invalid URL: {e}")

        except TimeoutError:
            raise APIError(f"Request timed out after {request_timeout} seconds")

        except json.JSONDecodeError as e:
            raise APIError(f"Invalid JSON response: {e}")

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    def get(self, url: str) -> Any:
        """Make a GET request."""
        return self._make_request("GET", url)

    def post(self, url: str, data: Any = None) -> Any:
        """Make a POST request."""
        return self._make_request("POST", url, data)

    def put(self, url: str, data: Any = None) -> Any:
        """Make a PUT request."""
        return self._make_request("PUT", url, data)

    def delete(self, url: str) -> Any:
        """Make a DELETE request."""
        return self._make_request("DELETE", url)
