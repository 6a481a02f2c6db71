"""Thin REST wrappers for the auth, cart and wishlist endpoints."""

from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .exceptions import ApiResponseError
from .http_client import ApiClient
from .models import Cart, GuestCart, User, Wishlist

ModelT = TypeVar("ModelT", bound=BaseModel)


def _json_object(response: httpx.Response) -> dict[str, Any]:
    path = response.request.url.path
    try:
        payload = response.json()
    except ValueError as e:
        raise ApiResponseError(path, f"invalid JSON ({e})", response.status_code) from e
    if not isinstance(payload, dict):
        raise ApiResponseError(
            path, f"expected an object, got {type(payload).__name__}", response.status_code
        )
    return payload


def _validate(model: type[ModelT], data: Any, response: httpx.Response) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ApiResponseError(
            response.request.url.path,
            f"invalid {model.__name__} ({e.error_count()} errors)",
            response.status_code,
        ) from e


def _cart_from(response: httpx.Response) -> Cart:
    return _validate(Cart, _json_object(response).get("cart") or {}, response)


class AuthApi:
    def __init__(self, client: ApiClient) -> None:
        self.client = client

    async def me(self) -> User | None:
        """Current user, or None if the API returned no user.

        Guests are expected here, so an unrefreshable session does not
        force a redirect to the login page.

        Raises:
            ApiResponseError: If the body is not a user payload
        """
        response = await self.client.get(self.client.config.me_path, redirect_on_expiry=False)
        user = _json_object(response).get("user")
        return _validate(User, user, response) if user else None

    async def logout(self) -> None:
        await self.client.post(self.client.config.logout_path)


class CartApi:
    def __init__(self, client: ApiClient) -> None:
        self.client = client

    async def get(self) -> Cart:
        return _cart_from(await self.client.get("/cart"))

    async def add(
        self,
        product_id: str,
        quantity: int,
        configuration: dict[str, Any] | None = None,
    ) -> Cart:
        body: dict[str, Any] = {"productId": product_id, "quantity": quantity}
        if configuration is not None:
            body["configuration"] = configuration
        return _cart_from(await self.client.post("/cart/add", json=body))

    async def update(self, product_id: str, quantity: int) -> Cart:
        response = await self.client.put(
            f"/cart/update/{product_id}", json={"productId": product_id, "quantity": quantity}
        )
        return _cart_from(response)

    async def remove(self, product_id: str) -> Cart:
        response = await self.client.delete(
            f"/cart/remove/{product_id}", json={"productId": product_id}
        )
        return _cart_from(response)

    async def merge(self, guest_cart: GuestCart) -> Cart:
        """Fold a guest cart into the signed-in user's cart."""
        response = await self.client.post(
            "/cart/merge",
            json={"guestCart": guest_cart.model_dump(by_alias=True, exclude_none=True)},
        )
        return _cart_from(response)


class WishlistApi:
    def __init__(self, client: ApiClient) -> None:
        self.client = client

    async def get(self) -> Wishlist:
        response = await self.client.get("/wishlist")
        return _validate(Wishlist, _json_object(response), response)

    async def toggle(self, product_id: str) -> dict[str, Any]:
        """Add the product if absent, remove it if present."""
        return _json_object(await self.client.post(f"/wishlist/toggle/{product_id}"))
