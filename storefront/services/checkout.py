# storefront/services/checkout.py
"""Turns a cart snapshot into a Stripe hosted checkout session.

No order is written here. Everything the webhook needs to build the order
later is packed into the session metadata, so an abandoned checkout leaves
nothing behind locally.
"""
from __future__ import annotations

import json

import structlog
from flask import current_app

from ..errors import EmptyCart, ValidationError
from .cart import Cart

log = structlog.get_logger(__name__)

# Stripe limits: 50 metadata keys, 500 characters per value
METADATA_VALUE_LIMIT = 500
METADATA_MAX_CHUNKS = 40
METADATA_ITEMS_KEY = "items"
METADATA_CHUNKS_KEY = "items_chunks"

SHIPPING_OPTIONS = (
    {
        "display_name": "Standard Shipping",
        "amount": 500,
        "min_days": 5,
        "max_days": 7,
    },
    {
        "display_name": "Express Shipping",
        "amount": 1500,
        "min_days": 2,
        "max_days": 3,
    },
)


def shipping_options(currency: str) -> list[dict]:
    return [
        {
            "shipping_rate_data": {
                "type": "fixed_amount",
                "fixed_amount": {"amount": opt["amount"], "currency": currency},
                "display_name": opt["display_name"],
                "delivery_estimate": {
                    "minimum": {"unit": "business_day", "value": opt["min_days"]},
                    "maximum": {"unit": "business_day", "value": opt["max_days"]},
                },
            }
        }
        for opt in SHIPPING_OPTIONS
    ]


def build_line_items(cart: Cart, currency: str) -> list[dict]:
    line_items = []
    for it in cart.items:
        product = it.product
        product_data = {"name": product["name"]}
        # Stripe rejects empty strings
        if product.get("description"):
            product_data["description"] = product["description"]
        images = product.get("images") or []
        product_data["images"] = [images[0]] if images else []

        line_items.append({
            "price_data": {
                "currency": currency,
                "product_data": product_data,
                "unit_amount": it.unit_price,
            },
            "quantity": it.quantity,
        })
    return line_items


def encode_metadata_items(cart: Cart) -> dict:
    """Pack ``[{productId, name, quantity, price}]`` into session metadata.

    Small carts use the single ``items`` key. Larger payloads are split over
    ``items_0..items_n`` with ``items_chunks`` holding n+1.
    """
    payload = json.dumps(
        [
            {
                "productId": it.product_id,
                "name": it.product["name"],
                "quantity": it.quantity,
                "price": it.unit_price,
            }
            for it in cart.items
        ],
        separators=(",", ":"),
    )
    if len(payload) <= METADATA_VALUE_LIMIT:
        return {METADATA_ITEMS_KEY: payload}

    chunks = [
        payload[i:i + METADATA_VALUE_LIMIT]
        for i in range(0, len(payload), METADATA_VALUE_LIMIT)
    ]
    if len(chunks) > METADATA_MAX_CHUNKS:
        raise ValidationError("Too many items in cart")
    metadata = {f"{METADATA_ITEMS_KEY}_{i}": chunk for i, chunk in enumerate(chunks)}
    metadata[METADATA_CHUNKS_KEY] = str(len(chunks))
    return metadata


def decode_metadata_items(metadata) -> list[dict]:
    """Inverse of :func:`encode_metadata_items`. Missing metadata decodes to []."""
    metadata = metadata or {}
    if metadata.get(METADATA_CHUNKS_KEY):
        try:
            count = int(metadata[METADATA_CHUNKS_KEY])
            raw = "".join(metadata[f"{METADATA_ITEMS_KEY}_{i}"] for i in range(count))
        except (KeyError, ValueError) as e:
            raise ValidationError("Incomplete item metadata") from e
    else:
        raw = metadata.get(METADATA_ITEMS_KEY)
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except ValueError as e:
        raise ValidationError("Malformed item metadata") from e
    if not isinstance(items, list):
        raise ValidationError("Malformed item metadata")
    return items


def build_session_params(cart: Cart, email=None, origin=None) -> dict:
    cfg = current_app.config
    currency = cfg.get("STORE_CURRENCY", "usd")
    origin = (origin or cfg.get("STORE_ORIGIN") or "").rstrip("/")

    params = {
        "mode": "payment",
        "payment_method_types": ["card"],
        "line_items": build_line_items(cart, currency),
        "shipping_address_collection": {
            "allowed_countries": list(cfg.get("ALLOWED_SHIPPING_COUNTRIES") or ["US", "CA"]),
        },
        "shipping_options": shipping_options(currency),
        "success_url": f"{origin}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{origin}/cart",
        "metadata": encode_metadata_items(cart),
    }
    if email:
        params["customer_email"] = email
    return params


def create_checkout_session(cart: Cart, gateway, email=None, origin=None) -> dict:
    """Create the processor-side session for ``cart``.

    Returns ``{"sessionId", "url"}``. Raises EmptyCart before any external call.
    """
    if cart is None or cart.is_empty():
        raise EmptyCart()
    if email is not None and (not isinstance(email, str) or "@" not in email):
        raise ValidationError("Invalid email")

    params = build_session_params(cart, email=email, origin=origin)
    session = gateway.create_checkout_session(params)
    log.info(
        "checkout_session_created",
        session_id=session["id"],
        line_items=len(cart),
        item_count=cart.item_count(),
        cart_total=cart.total(),
    )
    return {"sessionId": session["id"], "url": session["url"]}
