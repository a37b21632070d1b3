"""Pytest configuration and fixtures for wesabe tests.

This file provides:
- FakeApi: an in-process stand-in for the API server built on httpx.MockTransport
- Fixtures: fake_api (installs a FakeApi in place of httpx.Client), ca_file
"""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Any, Callable, Generator
from unittest.mock import patch

import httpx
import pytest

from wesabe.models import ClientConfig
from wesabe.request import Client

# Captured before any test patches httpx.Client
_REAL_CLIENT = httpx.Client

BASE_URL = "http://api.test"


def basic_auth_header(username: str, password: str) -> str:
    """Expected Authorization header value for HTTP basic auth."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class FakeApi:
    """Replacement for httpx.Client that answers from a handler.

    Records the kwargs each client was built with (so tests can inspect the
    proxy and TLS configuration) and every request it served.

    Usage:
        api = FakeApi(lambda request: httpx.Response(200, text="ok"))
        with patch("wesabe.request.httpx.Client", side_effect=api):
            ...
        assert api.requests[0].method == "GET"
    """

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self._handler = handler
        self.client_kwargs: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []

    def __call__(self, **kwargs: Any) -> httpx.Client:
        self.client_kwargs.append(kwargs)
        # The mock transport replaces the proxy and TLS layers entirely
        kwargs = {k: v for k, v in kwargs.items() if k not in ("proxy", "verify")}
        return _REAL_CLIENT(transport=httpx.MockTransport(self._handle), **kwargs)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def fake_api() -> Generator[Callable[..., FakeApi], None, None]:
    """Install a FakeApi for the duration of the test.

    Call with either a handler, or a canned status/body/headers:
        api = fake_api(200, body="<accounts/>")
        api = fake_api(handler=lambda request: ...)
    """
    patchers = []

    def install(
        status_code: int = 200,
        body: str = "",
        headers: dict[str, str] | None = None,
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> FakeApi:
        if handler is None:
            def handler(request: httpx.Request) -> httpx.Response:
                return httpx.Response(status_code, text=body, headers=headers or {})

        api = FakeApi(handler)
        patcher = patch("wesabe.request.httpx.Client", side_effect=api)
        patcher.start()
        patchers.append(patcher)
        return api

    yield install

    for patcher in patchers:
        patcher.stop()


@pytest.fixture
def client() -> Client:
    """Client pointed at a plain-http base URL (no CA bundle needed)."""
    return Client(ClientConfig(base_url=BASE_URL))


@pytest.fixture
def ca_file(tmp_path: Path) -> Path:
    """A cacert.pem on disk. Contents are not a real bundle; tests patch SSL."""
    path = tmp_path / "cacert.pem"
    path.write_text("-----BEGIN CERTIFICATE-----\n-----END CERTIFICATE-----\n")
    return path
