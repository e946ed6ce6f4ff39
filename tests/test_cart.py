"""
Tests for the Cart aggregate
"""

from decimal import Decimal

import pytest

from shophub.cart import Cart, LineItem


class TestLineItem:
    """Tests for LineItem dataclass."""

    def test_create_line_item(self):
        """Test creating a line item."""
        item = LineItem(
            product_id="prod-123",
            name="Ankara Tote",
            thumbnail="https://cdn.test/a.png",
            unit_price=1000.0,
            quantity=2,
        )

        assert item.product_id == "prod-123"
        assert item.unit_price == Decimal("1000.0")
        assert item.line_total == Decimal("2000")
        assert item.is_deal is False
        assert item.old_price is None

    def test_rejects_negative_price(self):
        """Test a negative price is refused."""
        with pytest.raises(ValueError):
            LineItem(product_id="p", name="x", thumbnail="t", unit_price=-1)

    def test_rejects_zero_quantity(self):
        """Test a zero quantity is refused."""
        with pytest.raises(ValueError):
            LineItem(product_id="p", name="x", thumbnail="t", unit_price=1, quantity=0)

    def test_rejects_empty_product_id(self):
        """Test an empty product id is refused."""
        with pytest.raises(ValueError):
            LineItem(product_id="", name="x", thumbnail="t", unit_price=1)

    def test_to_dict(self, item_b):
        """Test serialization to dict."""
        data = item_b.to_dict()

        assert data["product_id"] == "prod-b"
        assert data["unit_price"] == "2500.50"
        assert data["old_price"] == "3000"
        assert data["is_deal"] is True
        assert data["quantity"] == 1

    def test_from_dict(self):
        """Test deserialization from dict."""
        data = {
            "product_id": "prod-123",
            "name": "Test",
            "thumbnail": "https://cdn.test/t.png",
            "unit_price": "100.00",
            "quantity": 3,
        }

        item = LineItem.from_dict(data)
        assert item.product_id == "prod-123"
        assert item.quantity == 3
        assert item.unit_price == Decimal("100.00")

    @pytest.mark.parametrize(
        "broken",
        [
            {"name": "x", "thumbnail": "t", "unit_price": "1", "quantity": 1},
            {"product_id": "p", "name": "x", "thumbnail": "t", "unit_price": "abc", "quantity": 1},
            {"product_id": "p", "name": "x", "thumbnail": "t", "unit_price": "1", "quantity": "2"},
            {"product_id": "p", "name": "x", "thumbnail": "t", "unit_price": "1", "quantity": 0},
            {"product_id": "p", "name": 5, "thumbnail": "t", "unit_price": "1", "quantity": 1},
            "not a dict",
        ],
    )
    def test_from_dict_rejects_malformed(self, broken):
        """Test malformed stored lines are refused."""
        with pytest.raises((KeyError, TypeError, ValueError)):
            LineItem.from_dict(broken)


class TestCart:
    """Tests for the Cart aggregate."""

    def test_create_empty_cart(self):
        """Test creating an empty cart."""
        cart = Cart()

        assert cart.is_empty
        assert cart.count == 0
        assert cart.total == 0

    def test_add_appends_new_line(self, item_a):
        """Test adding a new product appends a line."""
        cart = Cart()
        line = cart.add(item_a)

        assert line.quantity == 1
        assert len(cart) == 1
        assert cart.total == Decimal("1000")

    def test_repeated_add_merges_quantities(self, item_a):
        """Test re-adding a product merges quantities."""
        cart = Cart()
        for qty in (1, 3, 2):
            cart.add(item_a, qty)

        assert len(cart) == 1
        assert cart.get("prod-a").quantity == 6
        assert cart.count == 6

    def test_add_returns_merged_line(self, item_a):
        """Test add returns the merged line."""
        cart = Cart()
        cart.add(item_a)
        line = cart.add(item_a)

        assert line.quantity == 2

    def test_merge_keeps_stored_details(self, item_a):
        """Test a merge keeps the stored name and price."""
        cart = Cart()
        cart.add(item_a)
        cart.add(item_a.copy(name="Renamed", unit_price=Decimal("1")))

        line = cart.get("prod-a")
        assert line.name == "Ankara Tote"
        assert line.unit_price == Decimal("1000")

    def test_add_rejects_non_positive_quantity(self, item_a):
        """Test add refuses quantities below one."""
        cart = Cart()
        with pytest.raises(ValueError):
            cart.add(item_a, 0)
        assert cart.is_empty

    def test_scenario_add_twice(self, item_a):
        """Test adding the same product twice."""
        cart = Cart()
        cart.add(item_a)
        cart.add(item_a)

        assert len(cart) == 1
        assert cart.get("prod-a").quantity == 2
        assert cart.total == Decimal("2000")

    def test_update_quantity_sets_exactly(self, item_a):
        """Test update sets the quantity exactly."""
        cart = Cart()
        cart.add(item_a, 5)

        assert cart.update_quantity("prod-a", 2) is True
        assert cart.get("prod-a").quantity == 2

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_update_quantity_non_positive_removes(self, item_a, quantity):
        """Test a non-positive quantity removes the line."""
        cart = Cart()
        cart.add(item_a)

        cart.update_quantity("prod-a", quantity)

        assert not cart.contains("prod-a")
        assert cart.is_empty

    def test_update_quantity_absent_is_noop(self, item_a):
        """Test updating an absent product changes nothing."""
        cart = Cart()
        cart.add(item_a)
        revision = cart.revision

        assert cart.update_quantity("missing", 4) is False
        assert cart.revision == revision
        assert cart.get("prod-a").quantity == 1

    def test_remove(self, item_a, item_b):
        """Test removing a line."""
        cart = Cart()
        cart.add(item_a)
        cart.add(item_b)

        assert cart.remove("prod-a") is True
        assert cart.remove("prod-a") is False
        assert [i.product_id for i in cart.items] == ["prod-b"]

    def test_clear(self, item_a, item_b):
        """Test clearing the cart."""
        cart = Cart()
        cart.add(item_a)
        cart.add(item_b)
        cart.clear()

        assert cart.is_empty
        assert cart.total == 0

    def test_total_has_no_drift(self, item_a, item_b):
        """Test totals are exact decimals."""
        cart = Cart()
        cart.add(item_a)
        cart.add(item_b, 2)
        original = cart.total

        for _ in range(50):
            cart.add(item_b, 3)
            cart.update_quantity("prod-b", cart.get("prod-b").quantity - 3)
            cart.add(item_a.copy(product_id="tmp"), 1)
            cart.remove("tmp")

        assert cart.total == original == Decimal("6001.00")

    def test_insertion_order_is_display_order(self, item_a, item_b):
        """Test lines keep insertion order."""
        cart = Cart()
        cart.add(item_b)
        cart.add(item_a)
        cart.add(item_b)

        assert [i.product_id for i in cart] == ["prod-b", "prod-a"]

    def test_items_are_copies(self, item_a):
        """Test items hands out copies."""
        cart = Cart()
        cart.add(item_a)

        cart.items[0].quantity = 99

        assert cart.get("prod-a").quantity == 1

    def test_revision_increases_on_mutation(self, item_a):
        """Test each mutation bumps the revision."""
        cart = Cart()
        cart.add(item_a)
        cart.update_quantity("prod-a", 3)
        cart.remove("prod-a")

        assert cart.revision == 3

    def test_deduct(self, item_a, item_b):
        """Test deducting staged quantities."""
        cart = Cart()
        cart.add(item_a, 3)
        cart.add(item_b, 1)

        cart.deduct([item_a.copy(quantity=2), item_b.copy(quantity=1)])

        assert cart.get("prod-a").quantity == 1
        assert not cart.contains("prod-b")

    def test_payload_serialization(self, item_a, item_b):
        """Test payload round trip."""
        cart = Cart()
        cart.add(item_a, 2)
        cart.add(item_b)

        restored = Cart.from_payload(cart.to_payload())

        assert [i.product_id for i in restored] == ["prod-a", "prod-b"]
        assert restored.total == cart.total

    def test_from_payload_rejects_duplicates(self, item_a):
        """Test duplicate ids in a payload are refused."""
        payload = {"items": [item_a.to_dict(), item_a.to_dict()]}

        with pytest.raises(ValueError):
            Cart.from_payload(payload)

    def test_from_payload_requires_item_list(self):
        """Test a payload without an item list is refused."""
        with pytest.raises((KeyError, TypeError)):
            Cart.from_payload({})
        with pytest.raises(TypeError):
            Cart.from_payload({"items": "nope"})
