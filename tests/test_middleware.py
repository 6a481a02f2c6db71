"""Tests for the route guard middleware."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront_session.config import SessionConfig
from storefront_session.middleware import RouteGuardMiddleware


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RouteGuardMiddleware, config=SessionConfig())

    @app.get("/")
    async def home() -> dict[str, str]:
        return {"page": "home"}

    @app.get("/dashboard")
    async def dashboard() -> dict[str, str]:
        return {"page": "dashboard"}

    @app.get("/orders/{order_id}")
    async def order(order_id: str) -> dict[str, str]:
        return {"page": "order", "id": order_id}

    @app.get("/auth/login")
    async def login() -> dict[str, str]:
        return {"page": "login"}

    return app


class TestRouteGuardMiddleware:
    """Tests for RouteGuardMiddleware."""

    def test_redirects_logged_out_visitor(self, app: FastAPI) -> None:
        """Test a protected page without cookie is never rendered."""
        client = TestClient(app, follow_redirects=False)

        response = client.get("/dashboard")

        assert response.status_code == 307
        assert response.headers["location"] == "/auth/login?redirect=%2Fdashboard"
        assert "dashboard" not in response.text

    def test_redirect_carries_path_without_query(self, app: FastAPI) -> None:
        """Test the preserved value is the requested path."""
        client = TestClient(app, follow_redirects=False)

        response = client.get("/orders/42?tab=items")

        assert response.headers["location"] == "/auth/login?redirect=%2Forders%2F42"

    def test_allows_visitor_with_refresh_cookie(self, app: FastAPI) -> None:
        """Test the protected page renders when the cookie is present."""
        client = TestClient(app, cookies={"refreshToken": "r1"})

        response = client.get("/dashboard")

        assert response.status_code == 200
        assert response.json() == {"page": "dashboard"}

    def test_public_pages_pass_through(self, app: FastAPI) -> None:
        """Test public and auth pages are untouched."""
        client = TestClient(app, follow_redirects=False)

        assert client.get("/").json() == {"page": "home"}
        assert client.get("/auth/login").json() == {"page": "login"}

    def test_follow_redirect_lands_on_login(self, app: FastAPI) -> None:
        """Test following the redirect reaches the login page."""
        client = TestClient(app)

        response = client.get("/dashboard")

        assert response.json() == {"page": "login"}
        assert response.url.params["redirect"] == "/dashboard"
