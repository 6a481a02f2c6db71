"""Client-side state stores and their hydration from the API.

On mount the user is resolved first. Cart and wishlist wait for that, since
their source depends on it: a guest's cart comes from local storage and a
guest has no wishlist, while a signed-in user's state comes from the API.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from .api import AuthApi, CartApi, WishlistApi
from .exceptions import StorefrontClientError
from .guest_cart import GuestCartStorage
from .models import Cart, CartItem, CartSummary, User, WishlistItem

logger = structlog.get_logger()

FREE_SHIPPING_THRESHOLD = 50
FLAT_SHIPPING = 5
TAX_RATE = 0.08


class UserStore:
    """The signed-in user, or None for a guest."""

    def __init__(self, auth_api: AuthApi) -> None:
        self.auth_api = auth_api
        self.user: User | None = None
        self.loading = True
        self.resolved = asyncio.Event()

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def set_user(self, user: User | None) -> None:
        self.user = user
        self.loading = False
        self.resolved.set()

    async def fetch_user(self) -> None:
        """Resolve the current user. Any failure means guest."""
        self.loading = True
        self.resolved.clear()
        try:
            self.user = await self.auth_api.me()
        except StorefrontClientError as e:
            logger.info("No signed-in user", error=str(e))
            self.user = None
        finally:
            self.loading = False
            self.resolved.set()
        logger.debug("User resolved", authenticated=self.is_authenticated)

    async def logout(self) -> None:
        try:
            await self.auth_api.logout()
        except StorefrontClientError as e:
            logger.warning("Logout request failed", error=str(e))
        self.set_user(None)


class CartStore:
    """Cart for guests (local file) and signed-in users (API)."""

    def __init__(self, cart_api: CartApi, guest_cart: GuestCartStorage, user_store: UserStore) -> None:
        self.cart_api = cart_api
        self.guest_cart = guest_cart
        self.user_store = user_store
        self.cart: Cart | None = None
        self.loading = False
        self.error: str | None = None

    async def initialize(self) -> None:
        if self.user_store.is_authenticated:
            await self.fetch_cart()
        else:
            self._load_guest_cart()

    async def fetch_cart(self) -> None:
        if not self.user_store.is_authenticated:
            self._load_guest_cart()
            return

        self.loading = True
        self.error = None
        try:
            self.cart = await self.cart_api.get()
        except StorefrontClientError as e:
            self.error = e.message or "Failed to fetch cart"
        finally:
            self.loading = False

    async def add(
        self,
        product_id: str,
        quantity: int,
        configuration: dict[str, Any] | None = None,
    ) -> None:
        """Add a product; lines with the same configuration merge."""
        await self._mutate(
            lambda: self.cart_api.add(product_id, quantity, configuration),
            lambda: self.guest_cart.add(product_id, quantity, configuration),
            "Failed to add item to cart",
        )

    async def update(self, product_id: str, quantity: int) -> None:
        await self._mutate(
            lambda: self.cart_api.update(product_id, quantity),
            lambda: self.guest_cart.update(product_id, quantity),
            "Failed to update cart item",
        )

    async def remove(self, product_id: str) -> None:
        await self._mutate(
            lambda: self.cart_api.remove(product_id),
            lambda: self.guest_cart.remove(product_id),
            "Failed to remove item from cart",
        )

    async def merge_guest_cart(self) -> None:
        """Move the guest cart into the user's cart after login."""
        if not self.user_store.is_authenticated:
            logger.warning("Cannot merge cart: user not logged in")
            return

        if not self.guest_cart.has_items():
            await self.fetch_cart()
            return

        self.loading = True
        self.error = None
        try:
            self.cart = await self.cart_api.merge(self.guest_cart.load())
            self.guest_cart.clear()
        except StorefrontClientError as e:
            logger.error("Cart merge failed", error=str(e))
            self.error = e.message or "Failed to merge carts"
        finally:
            self.loading = False

    def clear(self) -> None:
        if not self.user_store.is_authenticated:
            self.guest_cart.clear()
        self.cart = Cart()
        self.error = None

    def item_quantity(self, product_id: str) -> int:
        if not self.cart:
            return 0
        return next((i.quantity for i in self.cart.items if i.product_id == product_id), 0)

    def summary(self) -> CartSummary:
        """Cart totals: free shipping from 50 after discount, 8% tax."""
        if not self.cart or not self.cart.items:
            return CartSummary()

        items = self.cart.items
        total_items = sum(item.quantity for item in items)
        subtotal = sum(_price(item) * item.quantity for item in items)
        discount = sum(
            (_price(item) - item.product.discount_price) * item.quantity
            for item in items
            if item.product and item.product.price and item.product.discount_price
        )
        after_discount = sum(_effective_price(item) * item.quantity for item in items)

        if after_discount >= FREE_SHIPPING_THRESHOLD:
            shipping = 0
        elif after_discount > 0:
            shipping = FLAT_SHIPPING
        else:
            shipping = 0
        tax = after_discount * TAX_RATE

        return CartSummary(
            total_items=total_items,
            subtotal=subtotal,
            discount=discount,
            shipping=shipping,
            tax=tax,
            total=after_discount + shipping + tax,
        )

    def _load_guest_cart(self) -> None:
        guest = self.guest_cart.load()
        self.cart = Cart(
            items=[
                CartItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    configuration=item.configuration,
                )
                for item in guest.items
            ]
        )

    async def _mutate(
        self,
        remote: Callable[[], Awaitable[Cart]],
        local: Callable[[], object],
        failure: str,
    ) -> None:
        self.loading = True
        self.error = None
        try:
            if self.user_store.is_authenticated:
                self.cart = await remote()
            else:
                local()
                self._load_guest_cart()
        except StorefrontClientError as e:
            self.error = e.message or failure
            raise
        finally:
            self.loading = False


def _price(item: CartItem) -> float:
    return item.product.price if item.product else 0


def _effective_price(item: CartItem) -> float:
    if item.product is None:
        return 0
    return item.product.discount_price or item.product.price


class WishlistStore:
    """Wishlist of the signed-in user; always empty for guests."""

    def __init__(self, wishlist_api: WishlistApi, user_store: UserStore) -> None:
        self.wishlist_api = wishlist_api
        self.user_store = user_store
        self.items: list[WishlistItem] = []
        self.loading = False
        self.error: str | None = None

    async def initialize(self) -> None:
        if self.user_store.is_authenticated:
            await self.fetch()
        else:
            self.clear()

    async def fetch(self) -> None:
        self.loading = True
        self.error = None
        try:
            self.items = (await self.wishlist_api.get()).items
        except StorefrontClientError as e:
            logger.warning("Wishlist fetch failed", error=str(e))
            self.error = e.message or "Failed to fetch wishlist"
        finally:
            self.loading = False

    async def toggle(self, product_id: str) -> None:
        self.loading = True
        self.error = None
        try:
            await self.wishlist_api.toggle(product_id)
            if self.contains(product_id):
                self.items = [i for i in self.items if i.product_id != product_id]
            else:
                # Refetch to pick up the product details of the new line.
                await self.fetch()
        except StorefrontClientError as e:
            logger.warning("Wishlist toggle failed", product_id=product_id, error=str(e))
            self.error = e.message or "Failed to update wishlist"
        finally:
            self.loading = False

    def contains(self, product_id: str) -> bool:
        return any(item.product_id == product_id for item in self.items)

    def count(self) -> int:
        return len(self.items)

    def clear(self) -> None:
        self.items = []
        self.error = None
        self.loading = False


class Hydrator:
    """Reconciles the client stores with the API on mount."""

    def __init__(self, user_store: UserStore, cart_store: CartStore, wishlist_store: WishlistStore) -> None:
        self.user_store = user_store
        self.cart_store = cart_store
        self.wishlist_store = wishlist_store

    async def hydrate(self) -> None:
        """Resolve the user, then cart and wishlist concurrently."""
        self.user_store.resolved.clear()
        await asyncio.gather(
            self.user_store.fetch_user(),
            self._after_user(self.cart_store.initialize),
            self._after_user(self.wishlist_store.initialize),
        )
        logger.info(
            "Client state hydrated",
            authenticated=self.user_store.is_authenticated,
            cart_items=len(self.cart_store.cart.items) if self.cart_store.cart else 0,
            wishlist_items=self.wishlist_store.count(),
        )

    async def _after_user(self, initialize: Callable[[], Awaitable[None]]) -> None:
        await self.user_store.resolved.wait()
        await initialize()
