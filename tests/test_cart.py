import pytest

from storefront.errors import ValidationError
from storefront.services.cart import Cart
from storefront.utils.money import format_price

MAT = {"id": "p1", "name": "OG CatMat", "price": 3900, "description": "", "images": []}
PEEK = {"id": "p2", "name": "PeekMat", "price": 4500, "description": "", "images": ["/uploads/peek.png"]}


class TestCartAggregate:
    def test_add_merges_quantity_for_same_product(self):
        cart = Cart()
        cart.add_item(MAT)
        cart.add_item(MAT, 2)
        assert len(cart) == 1
        assert cart.items[0].quantity == 3

    def test_total_and_count(self):
        cart = Cart()
        cart.add_item(MAT, 2)
        cart.add_item(PEEK)
        assert cart.total() == 2 * 3900 + 4500
        assert cart.item_count() == 3

    def test_update_quantity_to_zero_removes_line(self):
        cart = Cart()
        cart.add_item(MAT)
        cart.add_item(PEEK)
        cart.update_quantity("p1", 0)
        assert [i.product_id for i in cart.items] == ["p2"]

    def test_update_quantity_sets_value(self):
        cart = Cart()
        cart.add_item(MAT)
        cart.update_quantity("p1", 5)
        assert cart.items[0].quantity == 5

    def test_remove_and_clear(self):
        cart = Cart()
        cart.add_item(MAT)
        cart.add_item(PEEK)
        cart.remove_item("p2")
        assert cart.item_count() == 1
        cart.clear()
        assert cart.is_empty()
        assert cart.total() == 0

    def test_add_rejects_non_positive_quantity(self):
        with pytest.raises(ValueError):
            Cart().add_item(MAT, 0)

    def test_json_round_trip_keeps_lines(self):
        cart = Cart()
        cart.add_item(MAT, 2)
        cart.add_item(PEEK)
        restored = Cart.from_json(cart.to_json())
        assert [(i.product_id, i.quantity) for i in restored.items] == [("p1", 2), ("p2", 1)]
        assert restored.total() == cart.total()


class TestCartFromPayload:
    def test_duplicate_lines_are_merged(self):
        cart = Cart.from_payload([
            {"productId": "p1", "product": MAT, "quantity": 1},
            {"productId": "p1", "product": MAT, "quantity": 2},
        ])
        assert cart.items[0].quantity == 3

    def test_none_is_an_empty_cart(self):
        assert Cart.from_payload(None).is_empty()

    @pytest.mark.parametrize("item", [
        {"productId": "p1", "product": {**MAT, "price": 0}, "quantity": 1},
        {"productId": "p1", "product": {**MAT, "price": 39.5}, "quantity": 1},
        {"productId": "p1", "product": MAT, "quantity": 0},
        {"productId": "p1", "product": MAT, "quantity": "2"},
        {"productId": "p1", "product": {**MAT, "name": ""}, "quantity": 1},
        {"productId": "p1", "quantity": 1},
        "p1",
    ])
    def test_invalid_items_are_rejected(self, item):
        with pytest.raises(ValidationError):
            Cart.from_payload([item])

    def test_items_must_be_a_list(self):
        with pytest.raises(ValidationError):
            Cart.from_payload({"productId": "p1"})

    def test_malformed_json(self):
        with pytest.raises(ValidationError):
            Cart.from_json("{not json")


class TestFormatPrice:
    def test_whole_dollars_have_no_decimals(self):
        assert format_price(3900) == "$39"

    def test_cents_are_shown(self):
        assert format_price(3950) == "$39.50"

    def test_thousands(self):
        assert format_price(123456) == "$1,234.56"
