"""Application-level wiring of the client, stores and refresher."""

import httpx
import structlog

from .api import AuthApi, CartApi, WishlistApi
from .config import SessionConfig
from .guest_cart import GuestCartStorage
from .http_client import ApiClient, Navigator
from .hydration import CartStore, Hydrator, UserStore, WishlistStore
from .refresher import PeriodicRefresher

logger = structlog.get_logger()


class StorefrontSession:
    """Everything a storefront page needs from the session layer.

    ``mount()`` starts the periodic refresh and hydrates the stores;
    ``unmount()`` stops the refresh and closes the HTTP client. Use it as an
    async context manager to get both.
    """

    def __init__(
        self,
        config: SessionConfig,
        navigator: Navigator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        cookies: dict[str, str] | None = None,
    ) -> None:
        self.config = config
        self.client = ApiClient(config, navigator=navigator, transport=transport, cookies=cookies)
        self.refresher = PeriodicRefresher(self.client)

        self.users = UserStore(AuthApi(self.client))
        self.cart = CartStore(CartApi(self.client), GuestCartStorage(config.guest_cart_path), self.users)
        self.wishlist = WishlistStore(WishlistApi(self.client), self.users)
        self.hydrator = Hydrator(self.users, self.cart, self.wishlist)

    async def mount(self) -> None:
        logger.info("Mounting storefront session", api_url=self.config.api_url)
        self.refresher.start()
        await self.hydrator.hydrate()

    async def unmount(self) -> None:
        await self.refresher.stop()
        await self.client.aclose()
        logger.info("Storefront session unmounted")

    async def __aenter__(self) -> "StorefrontSession":
        try:
            await self.mount()
        except BaseException:
            await self.unmount()
            raise
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.unmount()
