"""Client-side models for user, cart and wishlist state.

The API speaks camelCase JSON; fields are snake_case here and accept either.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model reading and writing the API's camelCase payloads."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class User(ApiModel):
    """The signed-in customer, as returned by /auth/me."""

    id: str
    name: str
    email: str
    phone_number: str | None = None
    face_shape: str | None = None
    preferred_styles: list[str] = Field(default_factory=list)


class CartProduct(ApiModel):
    """Product details attached to a cart or wishlist line."""

    id: str
    name: str = "Product"
    price: float = 0
    discount_price: float | None = None
    brand: str = ""
    image: str | None = None


class CartItem(ApiModel):
    product_id: str
    quantity: int = Field(ge=0)
    configuration: dict[str, Any] | None = None
    product: CartProduct | None = None


class Cart(ApiModel):
    items: list[CartItem] = Field(default_factory=list)


class CartSummary(ApiModel):
    """Totals shown next to the cart."""

    total_items: int = 0
    subtotal: float = 0
    discount: float = 0
    shipping: float = 0
    tax: float = 0
    total: float = 0


class WishlistItem(ApiModel):
    product_id: str
    product: CartProduct | None = None


class Wishlist(ApiModel):
    items: list[WishlistItem] = Field(default_factory=list)


class GuestCartItem(ApiModel):
    """A cart line kept locally for a visitor who is not signed in."""

    product_id: str
    quantity: int = Field(ge=0)
    configuration: dict[str, Any] | None = None


class GuestCart(ApiModel):
    items: list[GuestCartItem] = Field(default_factory=list)
