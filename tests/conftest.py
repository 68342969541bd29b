"""Pytest configuration - loads .env and provides a recording transport."""

from pathlib import Path
from typing import Any

import pytest
from dotenv import load_dotenv

from strapi_cli.sdk import StrapiClient

# Load .env from project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

ENDPOINT = "http://cms.test/api/"


class FakeTransport:
    """Records every call and returns a canned response."""

    def __init__(self, response: Any = None):
        self.calls: list[tuple[str, str, Any]] = []
        self.response = response if response is not None else {"data": [], "meta": {}}

    def _record(self, method: str, url: str, data: Any = None) -> Any:
        self.calls.append((method, url, data))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    def get(self, url: str) -> Any:
        return self._record("GET", url)

    def post(self, url: str, data: Any = None) -> Any:
        return self._record("POST", url, data)

    def put(self, url: str, data: Any = None) -> Any:
        return self._record("PUT", url, data)

    def delete(self, url: str) -> Any:
        return self._record("DELETE", url)

    @property
    def last_url(self) -> str:
        return self.calls[-1][1]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def opened() -> list[str]:
    """URLs passed to the client's viewer."""
    return []


@pytest.fixture
def client(transport: FakeTransport, opened: list[str]) -> StrapiClient:
    return StrapiClient(endpoint=ENDPOINT, transport=transport, viewer=opened.append)
