# storefront/services/cart.py
"""Client-held cart.

The server never stores carts. The storefront keeps one in local storage and
posts its items to checkout, so this module is the aggregate plus the
serialization boundary used to read that payload back.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field

from ..errors import ValidationError


@dataclass
class CartItem:
    product_id: str
    product: dict
    quantity: int = 1

    @property
    def unit_price(self) -> int:
        return int(self.product["price"])

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {"productId": self.product_id, "product": self.product, "quantity": self.quantity}


@dataclass
class Cart:
    items: list[CartItem] = field(default_factory=list)

    def _find(self, product_id):
        for it in self.items:
            if it.product_id == product_id:
                return it
        return None

    def add_item(self, product: dict, quantity: int = 1) -> CartItem:
        """Add ``quantity`` of ``product``; an existing line for it is merged."""
        if quantity < 1:
            raise ValueError("quantity must be >= 1")
        product_id = str(product["id"])
        existing = self._find(product_id)
        if existing:
            existing.quantity += quantity
            return existing
        item = CartItem(product_id=product_id, product=dict(product), quantity=quantity)
        self.items.append(item)
        return item

    def remove_item(self, product_id: str) -> None:
        self.items = [it for it in self.items if it.product_id != product_id]

    def update_quantity(self, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_item(product_id)
            return
        it = self._find(product_id)
        if it:
            it.quantity = quantity

    def clear(self) -> None:
        self.items = []

    def total(self) -> int:
        return sum(it.line_total for it in self.items)

    def item_count(self) -> int:
        return sum(it.quantity for it in self.items)

    def is_empty(self) -> bool:
        return not self.items

    def __len__(self):
        return len(self.items)

    # ---- serialization ----
    def to_dict(self) -> dict:
        return {"items": [it.to_dict() for it in self.items]}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: dict) -> "Cart":
        return cls.from_payload((data or {}).get("items"))

    @classmethod
    def from_json(cls, raw: str) -> "Cart":
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise ValidationError("Malformed cart") from e
        if not isinstance(data, dict):
            raise ValidationError("Malformed cart")
        return cls.from_dict(data)

    @classmethod
    def from_payload(cls, items) -> "Cart":
        """Build a cart from a request's ``items`` list, validating every entry."""
        if items is None:
            items = []
        if not isinstance(items, list):
            raise ValidationError("items must be a list")

        cart = cls()
        for idx, raw in enumerate(items):
            if not isinstance(raw, dict):
                raise ValidationError(f"items[{idx}] must be an object")
            product = raw.get("product")
            if not isinstance(product, dict):
                raise ValidationError(f"items[{idx}].product is required")

            product_id = raw.get("productId") or product.get("id")
            if not product_id or not isinstance(product_id, (str, int)):
                raise ValidationError(f"items[{idx}].productId is required")

            name = product.get("name")
            if not isinstance(name, str) or not name.strip():
                raise ValidationError(f"items[{idx}].product.name is required")

            price = product.get("price")
            if isinstance(price, bool) or not isinstance(price, int) or price <= 0:
                raise ValidationError(f"items[{idx}].product.price must be a positive integer (cents)")

            quantity = raw.get("quantity", 1)
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                raise ValidationError(f"items[{idx}].quantity must be a positive integer")

            images = product.get("images") or []
            if not isinstance(images, list):
                raise ValidationError(f"items[{idx}].product.images must be a list")

            snapshot = dict(product)
            snapshot.update({
                "id": str(product_id),
                "name": name.strip(),
                "price": price,
                "description": product.get("description") or "",
                "images": [str(u) for u in images if u],
            })
            cart.add_item(snapshot, quantity)
        return cart
