"""Local persistence for the cart of a visitor who is not signed in."""

from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from .models import GuestCart, GuestCartItem

logger = structlog.get_logger()


class GuestCartStorage:
    """Guest cart kept as a JSON file.

    Read and write errors are logged and never raised: an unreadable file is
    an empty cart, and a failed write leaves the previous file in place.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> GuestCart:
        if not self.path.exists():
            return GuestCart()
        try:
            return GuestCart.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning("Could not read guest cart", path=str(self.path), error=str(e))
            return GuestCart()

    def save(self, cart: GuestCart) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(cart.model_dump_json(by_alias=True), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save guest cart", path=str(self.path), error=str(e))

    def add(
        self,
        product_id: str,
        quantity: int,
        configuration: dict[str, Any] | None = None,
    ) -> GuestCart:
        """Add ``quantity`` of a product; lines with the same configuration merge."""
        cart = self.load()
        for item in cart.items:
            if item.product_id == product_id and item.configuration == configuration:
                item.quantity += quantity
                break
        else:
            cart.items.append(
                GuestCartItem(product_id=product_id, quantity=quantity, configuration=configuration)
            )
        self.save(cart)
        return cart

    def remove(self, product_id: str) -> GuestCart:
        cart = self.load()
        cart.items = [item for item in cart.items if item.product_id != product_id]
        self.save(cart)
        return cart

    def update(self, product_id: str, quantity: int) -> GuestCart:
        """Set the quantity of a product; zero or less removes the line."""
        cart = self.load()
        for index, item in enumerate(cart.items):
            if item.product_id == product_id:
                if quantity <= 0:
                    del cart.items[index]
                else:
                    item.quantity = quantity
                break
        self.save(cart)
        return cart

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not clear guest cart", path=str(self.path), error=str(e))

    def item_count(self) -> int:
        return sum(item.quantity for item in self.load().items)

    def has_items(self) -> bool:
        return bool(self.load().items)
