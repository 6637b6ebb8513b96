import hashlib
import hmac
import json
import time

import pytest
from werkzeug.security import generate_password_hash

from storefront import create_app
from storefront.config import TestConfig
from storefront.errors import PaymentProcessorError
from storefront.extensions import db
from storefront.model import AdminRole, User
from storefront.services.payments import StripeGateway

WEBHOOK_SECRET = TestConfig.STRIPE_WEBHOOK_SECRET


class FakeGateway(StripeGateway):
    """Records checkout sessions instead of calling Stripe.

    Webhook verification is the real one inherited from StripeGateway.
    """

    def __init__(self):
        super().__init__(api_key="sk_test_dummy", webhook_secret=WEBHOOK_SECRET)
        self.sessions = []
        self.fail = False

    def create_checkout_session(self, params):
        if self.fail:
            raise PaymentProcessorError()
        session_id = f"cs_test_{len(self.sessions) + 1}"
        self.sessions.append({"id": session_id, "params": params})
        return {"id": session_id, "url": f"https://checkout.stripe.test/c/pay/{session_id}"}


def sign_payload(payload: bytes, secret=WEBHOOK_SECRET, timestamp=None):
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
    sig = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


def completed_session_event(
    session_id="cs_test_1",
    items=None,
    shipping=500,
    tax=0,
    total=None,
    email="buyer@example.com",
    metadata=None,
):
    items = items if items is not None else [
        {"productId": "p1", "name": "OG CatMat", "quantity": 2, "price": 3900},
    ]
    subtotal = sum(i["quantity"] * i["price"] for i in items)
    return {
        "id": f"evt_{session_id}",
        "object": "event",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "amount_subtotal": subtotal,
                "amount_total": subtotal + shipping + tax if total is None else total,
                "shipping_cost": {"amount_total": shipping},
                "total_details": {"amount_tax": tax, "amount_discount": 0},
                "customer_email": email,
                "customer_details": {"email": email},
                "payment_intent": "pi_test_123",
                "metadata": metadata if metadata is not None else {"items": json.dumps(items)},
                "collected_information": {
                    "shipping_details": {
                        "name": "Mochi Cat",
                        "address": {
                            "line1": "1 Whisker Way",
                            "line2": None,
                            "city": "Portland",
                            "state": "OR",
                            "postal_code": "97201",
                            "country": "US",
                        },
                    }
                },
            }
        },
    }


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def app(gateway, tmp_path):
    app = create_app(TestConfig, payments=gateway)
    app.config["UPLOAD_FOLDER"] = str(tmp_path / "uploads")
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def post_event(client):
    """POST an event to the webhook endpoint, signed unless told otherwise."""
    def _post(event, signature=True, body=None):
        payload = body if body is not None else json.dumps(event).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if signature is True:
            headers["Stripe-Signature"] = sign_payload(payload)
        elif signature:
            headers["Stripe-Signature"] = signature
        return client.post("/api/webhook", data=payload, headers=headers)
    return _post


def _make_user(app, email, password="secret123", role=None):
    with app.app_context():
        u = User(email=email, display_name="Test", password_hash=generate_password_hash(password))
        db.session.add(u)
        db.session.flush()
        if role:
            db.session.add(AdminRole(user_id=u.id, role=role))
        db.session.commit()
        return u.id


def _login(client, email, password="secret123"):
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return {"Authorization": f"Bearer {resp.get_json()['data']['token']}"}


@pytest.fixture()
def admin_headers(app, client):
    _make_user(app, "admin@example.com", role="admin")
    return _login(client, "admin@example.com")


@pytest.fixture()
def customer_headers(app, client):
    _make_user(app, "shopper@example.com")
    return _login(client, "shopper@example.com")


@pytest.fixture()
def make_user(app):
    def _make(email, password="secret123", role=None):
        return _make_user(app, email, password, role)
    return _make


@pytest.fixture()
def login(client):
    def _do(email, password="secret123"):
        return _login(client, email, password)
    return _do
