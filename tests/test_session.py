"""Tests for StorefrontSession wiring."""

from conftest import FakeStorefrontApi
from storefront_session.config import SessionConfig
from storefront_session.http_client import InMemoryNavigator
from storefront_session.session import StorefrontSession


class TestStorefrontSession:
    """Tests for StorefrontSession."""

    async def test_mount_starts_refresher_and_hydrates(
        self, config: SessionConfig, fake_api: FakeStorefrontApi
    ) -> None:
        """Test mounting resolves state and keeps the session alive."""
        fake_api.respond("GET", "/auth/me", json={"user": {"id": "u1", "name": "Asha", "email": "a@example.com"}})
        fake_api.respond("GET", "/cart", json={"cart": {"items": []}})
        fake_api.respond("GET", "/wishlist", json={"items": []})
        session = StorefrontSession(config, transport=fake_api.transport, cookies={"refreshToken": "r1"})

        await session.mount()
        try:
            assert session.refresher.is_running
            assert session.users.user.id == "u1"
            assert session.cart.cart.items == []
        finally:
            await session.unmount()

        assert session.refresher.is_running is False
        assert session.client._client.is_closed

    async def test_context_manager_for_guest(self, config: SessionConfig, fake_api: FakeStorefrontApi) -> None:
        """Test a guest session mounts without redirecting."""
        fake_api.respond("GET", "/auth/me", 401)
        fake_api.respond("POST", "/auth/refresh-token", 401)
        navigator = InMemoryNavigator("/")

        async with StorefrontSession(config, navigator=navigator, transport=fake_api.transport) as session:
            assert session.users.is_authenticated is False
            assert session.wishlist.items == []

        assert navigator.redirects == []
        assert session.client._client.is_closed

    async def test_shares_one_client(self, config: SessionConfig, fake_api: FakeStorefrontApi) -> None:
        """Test stores and refresher use the same cookie jar."""
        session = StorefrontSession(config, transport=fake_api.transport)
        try:
            assert session.refresher.client is session.client
            assert session.users.auth_api.client is session.client
            assert session.cart.cart_api.client is session.client
            assert session.wishlist.wishlist_api.client is session.client
            assert session.cart.guest_cart.path == config.guest_cart_path
        finally:
            await session.client.aclose()

    async def test_guest_session_then_login_merges_cart(
        self, config: SessionConfig, fake_api: FakeStorefrontApi
    ) -> None:
        """Test a guest cart survives until login and is merged afterwards."""
        fake_api.respond("GET", "/auth/me", 401)
        fake_api.respond("POST", "/auth/refresh-token", 401)
        fake_api.respond(
            "POST",
            "/cart/merge",
            json={"cart": {"items": [{"productId": "p1", "quantity": 1}]}},
        )

        async with StorefrontSession(config, transport=fake_api.transport) as session:
            await session.cart.add("p1", 1)
            assert session.cart.item_quantity("p1") == 1

            fake_api.respond("GET", "/auth/me", json={"user": {"id": "u1", "name": "A", "email": "a@example.com"}})
            await session.users.fetch_user()
            await session.cart.merge_guest_cart()

            assert len(fake_api.calls("POST", "/cart/merge")) == 1
            assert session.cart.guest_cart.has_items() is False
