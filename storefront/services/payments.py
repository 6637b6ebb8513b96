# storefront/services/payments.py
"""Thin handle around the Stripe SDK.

One ``StripeGateway`` is built by the app factory and kept in
``app.extensions["payments"]``. Nothing here touches ``stripe.api_key``;
credentials travel with each request so several apps (or tests) can coexist.
"""
import json

import stripe
import structlog
from flask import current_app

from ..errors import InvalidSignature, PaymentProcessorError, ValidationError

log = structlog.get_logger(__name__)

EXTENSION_KEY = "payments"


class StripeGateway:
    DEFAULT_TOLERANCE = 300  # seconds, same as stripe.Webhook

    def __init__(self, api_key, webhook_secret, api_version=None, tolerance=DEFAULT_TOLERANCE):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.api_version = api_version
        self.tolerance = tolerance

    @classmethod
    def from_config(cls, config):
        return cls(
            api_key=config.get("STRIPE_SECRET_KEY"),
            webhook_secret=config.get("STRIPE_WEBHOOK_SECRET"),
            api_version=config.get("STRIPE_API_VERSION"),
        )

    def create_checkout_session(self, params: dict) -> dict:
        """Create a hosted checkout session and return ``{"id", "url"}``."""
        if not self.api_key:
            log.error("stripe_secret_key_missing")
            raise PaymentProcessorError("Payment processor is not configured")

        opts = {"api_key": self.api_key}
        if self.api_version:
            opts["stripe_version"] = self.api_version
        try:
            session = stripe.checkout.Session.create(**opts, **params)
        except stripe.StripeError as e:
            log.error("checkout_session_create_failed", error=type(e).__name__, code=getattr(e, "code", None))
            raise PaymentProcessorError() from e
        return {"id": session.id, "url": session.url}

    def construct_event(self, payload: bytes, sig_header) -> dict:
        """Verify ``sig_header`` over the raw ``payload`` and only then parse it.

        Raises InvalidSignature for every verification problem without saying
        which part failed, ValidationError when a correctly signed body is not
        a JSON object.
        """
        if not self.webhook_secret:
            log.error("stripe_webhook_secret_missing")
            raise InvalidSignature()
        if not sig_header:
            raise InvalidSignature()

        try:
            text = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else payload
        except UnicodeDecodeError as e:
            raise InvalidSignature() from e

        try:
            stripe.WebhookSignature.verify_header(text, sig_header, self.webhook_secret, self.tolerance)
        except stripe.SignatureVerificationError as e:
            raise InvalidSignature() from e

        try:
            event = json.loads(text)
        except ValueError as e:
            raise ValidationError("Malformed event body") from e
        if not isinstance(event, dict) or not isinstance(event.get("type"), str):
            raise ValidationError("Malformed event body")
        return event


def init_gateway(app, gateway=None):
    gateway = gateway or StripeGateway.from_config(app.config)
    app.extensions[EXTENSION_KEY] = gateway
    return gateway


def get_gateway() -> StripeGateway:
    return current_app.extensions[EXTENSION_KEY]
