"""Tests for guest cart storage."""

import json
from pathlib import Path

import pytest

from storefront_session.guest_cart import GuestCartStorage


@pytest.fixture
def storage(tmp_path: Path) -> GuestCartStorage:
    return GuestCartStorage(tmp_path / "carts" / "guest-cart.json")


class TestGuestCartStorage:
    """Tests for GuestCartStorage."""

    def test_missing_file_is_empty_cart(self, storage: GuestCartStorage) -> None:
        """Test loading before anything was saved."""
        assert storage.load().items == []
        assert storage.has_items() is False
        assert storage.item_count() == 0

    def test_add_creates_file_in_camel_case(self, storage: GuestCartStorage) -> None:
        """Test the stored payload matches the API's merge format."""
        storage.add("p1", 2, {"lens": "blue-light"})

        data = json.loads(storage.path.read_text())
        assert data == {
            "items": [{"productId": "p1", "quantity": 2, "configuration": {"lens": "blue-light"}}]
        }

    def test_add_same_line_merges_quantity(self, storage: GuestCartStorage) -> None:
        """Test repeated adds of the same configuration merge."""
        storage.add("p1", 1)
        storage.add("p1", 2)

        cart = storage.load()
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3

    def test_add_different_configuration_is_new_line(self, storage: GuestCartStorage) -> None:
        """Test a different configuration of the same product is kept apart."""
        storage.add("p1", 1, {"size": "M"})
        storage.add("p1", 1, {"size": "L"})

        assert len(storage.load().items) == 2
        assert storage.item_count() == 2

    def test_update_sets_quantity(self, storage: GuestCartStorage) -> None:
        """Test updating a line's quantity."""
        storage.add("p1", 1)

        storage.update("p1", 5)

        assert storage.load().items[0].quantity == 5

    def test_update_to_zero_removes_line(self, storage: GuestCartStorage) -> None:
        """Test a non-positive quantity deletes the line."""
        storage.add("p1", 1)
        storage.add("p2", 1)

        storage.update("p1", 0)

        assert [i.product_id for i in storage.load().items] == ["p2"]

    def test_remove(self, storage: GuestCartStorage) -> None:
        """Test removing a product."""
        storage.add("p1", 1)
        storage.add("p2", 3)

        storage.remove("p1")

        assert [i.product_id for i in storage.load().items] == ["p2"]

    def test_clear_deletes_file(self, storage: GuestCartStorage) -> None:
        """Test clearing, including when nothing was stored."""
        storage.add("p1", 1)

        storage.clear()
        storage.clear()

        assert not storage.path.exists()
        assert storage.has_items() is False

    @pytest.mark.parametrize("content", ["not json", '{"items": [{"quantity": 1}]}', '{"items": 3}'])
    def test_corrupt_file_is_empty_cart(self, storage: GuestCartStorage, content: str) -> None:
        """Test unreadable content is treated as an empty cart."""
        storage.path.parent.mkdir(parents=True)
        storage.path.write_text(content)

        assert storage.load().items == []

    def test_add_after_corrupt_file_overwrites(self, storage: GuestCartStorage) -> None:
        """Test a corrupt file is replaced on the next write."""
        storage.path.parent.mkdir(parents=True)
        storage.path.write_text("garbage")

        storage.add("p1", 1)

        assert storage.item_count() == 1
