"""Pytest fixtures for storefront-session tests."""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

import httpx
import pytest
import structlog

from storefront_session.config import SessionConfig

API_URL = "https://shop.example.com/api/v1"
API_PREFIX = "/api/v1"

Handler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


class FakeStorefrontApi:
    """Stand-in for the storefront API behind an ``httpx.MockTransport``.

    Routes are keyed by (method, path relative to the API prefix). Every
    request is recorded so tests can assert on call order and counts.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def route(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method, path)] = handler

    def respond(self, method: str, path: str, status_code: int = 200, **kwargs: object) -> None:
        self.route(method, path, lambda request: httpx.Response(status_code, **kwargs))

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and _api_path(r) == path]

    def paths(self) -> list[tuple[str, str]]:
        return [(r.method, _api_path(r)) for r in self.requests]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, _api_path(request)))
        if handler is None:
            return httpx.Response(404, json={"message": "Not found"})
        result = handler(request)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


def _api_path(request: httpx.Request) -> str:
    return request.url.path.removeprefix(API_PREFIX)


def rotated_cookies(access: str, refresh: str) -> list[tuple[str, str]]:
    """Set-Cookie headers the refresh endpoint sends back."""
    return [
        ("set-cookie", f"accessToken={access}; Path=/; HttpOnly"),
        ("set-cookie", f"refreshToken={refresh}; Path=/; HttpOnly"),
    ]


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any structlog configuration a CLI test applied."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def config(tmp_path: Path) -> SessionConfig:
    """Session configuration pointing at the fake API."""
    return SessionConfig(api_url=API_URL, guest_cart_path=tmp_path / "guest-cart.json")


@pytest.fixture
def fake_api() -> FakeStorefrontApi:
    return FakeStorefrontApi()
