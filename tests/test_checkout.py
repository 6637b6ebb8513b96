import json
from types import SimpleNamespace

import pytest
import stripe

from storefront.errors import EmptyCart, PaymentProcessorError
from storefront.services.cart import Cart
from storefront.services.checkout import (
    METADATA_CHUNKS_KEY,
    create_checkout_session,
    decode_metadata_items,
    encode_metadata_items,
)
from storefront.services.payments import StripeGateway

MAT = {
    "id": "p1",
    "name": "OG CatMat",
    "description": "The original.",
    "price": 3900,
    "images": ["https://cdn.example.com/og-1.jpg", "https://cdn.example.com/og-2.jpg"],
}


def _payload(**overrides):
    body = {"items": [{"productId": "p1", "product": MAT, "quantity": 2}]}
    body.update(overrides)
    return body


class TestCheckoutEndpoint:
    def test_creates_session_and_returns_redirect(self, client, gateway):
        resp = client.post("/api/checkout", json=_payload(email="cat@example.com"))
        assert resp.status_code == 200
        data = resp.get_json()
        assert data == {"sessionId": "cs_test_1", "url": "https://checkout.stripe.test/c/pay/cs_test_1"}
        assert len(gateway.sessions) == 1
        assert gateway.sessions[0]["params"]["customer_email"] == "cat@example.com"

    def test_line_item_carries_snapshot_price_and_quantity(self, client, gateway):
        client.post("/api/checkout", json=_payload())
        params = gateway.sessions[0]["params"]
        (line,) = params["line_items"]
        assert line["quantity"] == 2
        assert line["price_data"]["unit_amount"] == 3900
        assert line["price_data"]["currency"] == "usd"
        product_data = line["price_data"]["product_data"]
        assert product_data["name"] == "OG CatMat"
        assert product_data["description"] == "The original."
        assert product_data["images"] == ["https://cdn.example.com/og-1.jpg"]

    def test_metadata_embeds_items(self, client, gateway):
        client.post("/api/checkout", json=_payload())
        metadata = gateway.sessions[0]["params"]["metadata"]
        assert json.loads(metadata["items"]) == [
            {"productId": "p1", "name": "OG CatMat", "quantity": 2, "price": 3900},
        ]

    def test_fixed_shipping_options(self, client, gateway):
        client.post("/api/checkout", json=_payload())
        options = gateway.sessions[0]["params"]["shipping_options"]
        rates = [(o["shipping_rate_data"]["display_name"],
                  o["shipping_rate_data"]["fixed_amount"]["amount"],
                  o["shipping_rate_data"]["delivery_estimate"]["minimum"]["value"],
                  o["shipping_rate_data"]["delivery_estimate"]["maximum"]["value"]) for o in options]
        assert rates == [("Standard Shipping", 500, 5, 7), ("Express Shipping", 1500, 2, 3)]

    def test_redirect_urls_use_request_origin(self, client, gateway):
        client.post("/api/checkout", json=_payload(), headers={"Origin": "https://catmat.shop"})
        params = gateway.sessions[0]["params"]
        assert params["success_url"] == "https://catmat.shop/checkout/success?session_id={CHECKOUT_SESSION_ID}"
        assert params["cancel_url"] == "https://catmat.shop/cart"
        assert params["shipping_address_collection"] == {"allowed_countries": ["US", "CA"]}

    def test_redirect_urls_fall_back_to_configured_origin(self, client, gateway):
        client.post("/api/checkout", json=_payload())
        assert gateway.sessions[0]["params"]["cancel_url"] == "http://shop.test/cart"

    def test_empty_cart_is_rejected_without_external_call(self, client, gateway):
        resp = client.post("/api/checkout", json={"items": []})
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "No items in cart"}
        assert gateway.sessions == []

    def test_missing_items_is_rejected(self, client, gateway):
        resp = client.post("/api/checkout", json={})
        assert resp.status_code == 400
        assert gateway.sessions == []

    def test_invalid_item_is_rejected(self, client, gateway):
        resp = client.post("/api/checkout", json={"items": [{"productId": "p1", "product": MAT, "quantity": -1}]})
        assert resp.status_code == 400
        assert "error" in resp.get_json()
        assert gateway.sessions == []

    def test_processor_failure_is_500(self, client, gateway):
        gateway.fail = True
        resp = client.post("/api/checkout", json=_payload())
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Failed to create checkout session"}

    def test_no_order_is_written_at_checkout(self, client, admin_headers):
        client.post("/api/checkout", json=_payload())
        resp = client.get("/api/admin/orders", headers=admin_headers)
        assert resp.get_json()["data"]["items"] == []


class TestCreateCheckoutSession:
    def test_empty_cart_raises(self, app, gateway):
        with app.app_context():
            with pytest.raises(EmptyCart):
                create_checkout_session(Cart(), gateway)
        assert gateway.sessions == []

    def test_blank_description_is_left_out(self, app, gateway):
        cart = Cart()
        cart.add_item({**MAT, "description": "", "images": []})
        with app.app_context():
            create_checkout_session(cart, gateway)
        product_data = gateway.sessions[0]["params"]["line_items"][0]["price_data"]["product_data"]
        assert "description" not in product_data
        assert product_data["images"] == []


class TestMetadataEncoding:
    def test_small_cart_uses_single_key(self):
        cart = Cart()
        cart.add_item(MAT, 2)
        metadata = encode_metadata_items(cart)
        assert list(metadata) == ["items"]
        assert decode_metadata_items(metadata)[0]["price"] == 3900

    def test_large_cart_is_chunked_within_value_limit(self):
        cart = Cart()
        for n in range(40):
            cart.add_item({**MAT, "id": f"product-{n:03d}", "name": f"Limited Edition Mat #{n}"})
        metadata = encode_metadata_items(cart)
        assert METADATA_CHUNKS_KEY in metadata
        assert all(len(v) <= 500 for v in metadata.values())
        items = decode_metadata_items(metadata)
        assert len(items) == 40
        assert items[39]["productId"] == "product-039"

    def test_missing_metadata_decodes_to_nothing(self):
        assert decode_metadata_items(None) == []
        assert decode_metadata_items({}) == []


class TestStripeGateway:
    def test_session_create_passes_credentials_per_request(self, monkeypatch):
        calls = []

        def fake_create(**kwargs):
            calls.append(kwargs)
            return SimpleNamespace(id="cs_live_1", url="https://checkout.stripe.com/c/pay/cs_live_1")

        monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
        gw = StripeGateway(api_key="sk_test_abc", webhook_secret="whsec_x", api_version="2025-01-01")
        result = gw.create_checkout_session({"mode": "payment"})
        assert result == {"id": "cs_live_1", "url": "https://checkout.stripe.com/c/pay/cs_live_1"}
        assert calls[0]["api_key"] == "sk_test_abc"
        assert calls[0]["stripe_version"] == "2025-01-01"
        assert calls[0]["mode"] == "payment"

    def test_stripe_errors_become_processor_errors(self, monkeypatch):
        def fake_create(**kwargs):
            raise stripe.APIConnectionError("network down")

        monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
        gw = StripeGateway(api_key="sk_test_abc", webhook_secret="whsec_x")
        with pytest.raises(PaymentProcessorError):
            gw.create_checkout_session({"mode": "payment"})

    def test_missing_secret_key_is_a_processor_error(self):
        with pytest.raises(PaymentProcessorError):
            StripeGateway(api_key="", webhook_secret="whsec_x").create_checkout_session({})


class TestBareCheckoutPath:
    def test_empty_cart_on_bare_path_is_400(self, client, gateway):
        resp = client.post("/checkout", json={"items": []})
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "No items in cart"}
        assert gateway.sessions == []

    def test_session_created_on_bare_path(self, client, gateway):
        resp = client.post("/checkout", json=_payload())
        assert resp.status_code == 200
        assert resp.get_json()["sessionId"] == "cs_test_1"
