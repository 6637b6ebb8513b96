# storefront/services/webhooks.py
"""Payment webhook processing.

Stripe delivers events at least once and in no particular order across
sessions. ``checkout.session.completed`` is the only event that creates an
order: it is the one that carries the final address, shipping and tax. The
checkout session id is the idempotency key; the unique index on
``orders.stripe_checkout_session_id`` backs the lookup below when two
deliveries race.
"""
from __future__ import annotations

import structlog
from sqlalchemy.exc import IntegrityError

from ..errors import ValidationError
from ..model import PAID_STATUS
from . import orders
from .checkout import decode_metadata_items

log = structlog.get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"


def _int(value) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValidationError("Malformed amount")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError("Malformed amount") from e


def _ref_id(value):
    # expanded objects carry their id inside
    if isinstance(value, dict):
        return value.get("id")
    return value


def line_items_from_metadata(metadata) -> list[dict]:
    items = []
    for raw in decode_metadata_items(metadata):
        try:
            quantity = int(raw["quantity"])
            price = int(raw["price"])
            items.append({
                "product_id": str(raw["productId"]),
                "product_name": str(raw.get("name") or ""),
                "quantity": quantity,
                "price_at_purchase": price,
            })
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError("Malformed item metadata") from e
    return items


def shipping_address_from_session(session: dict):
    details = (session.get("collected_information") or {}).get("shipping_details")
    if not details:
        # API versions before collected_information
        details = session.get("shipping_details")
    if not details or not details.get("address"):
        return None
    address = details["address"]
    return {
        "name": details.get("name") or "",
        "line1": address.get("line1") or "",
        "line2": address.get("line2") or "",
        "city": address.get("city") or "",
        "state": address.get("state") or "",
        "postal_code": address.get("postal_code") or "",
        "country": address.get("country") or "",
    }


def order_fields_from_session(session: dict) -> dict:
    """Everything needed for an Order, read from the completed session alone.

    Prices come from the metadata written at checkout, never from the live
    catalog, so later price edits cannot change what the customer paid.
    """
    session_id = session.get("id")
    if not session_id:
        raise ValidationError("Checkout session has no id")

    email = session.get("customer_email") or (session.get("customer_details") or {}).get("email") or ""

    subtotal = _int(session.get("amount_subtotal"))
    shipping = _int((session.get("shipping_cost") or {}).get("amount_total"))
    tax = _int((session.get("total_details") or {}).get("amount_tax"))
    expected_total = subtotal + shipping + tax
    total = session.get("amount_total")
    total = expected_total if total is None else _int(total)
    if total != expected_total:
        log.error(
            "checkout_session_total_mismatch",
            session_id=session_id,
            subtotal=subtotal,
            shipping=shipping,
            tax=tax,
            total=total,
        )
        raise ValidationError("Session total does not match subtotal + shipping + tax")

    items = line_items_from_metadata(session.get("metadata"))
    if not items:
        log.warning("order_items_missing", session_id=session_id, subtotal=subtotal)

    return {
        "email": email,
        "items": items,
        "subtotal": subtotal,
        "shipping": shipping,
        "tax": tax,
        "total": total,
        "status": PAID_STATUS,
        "shipping_address": shipping_address_from_session(session),
        "stripe_checkout_session_id": session_id,
        "stripe_payment_intent_id": _ref_id(session.get("payment_intent")),
    }


def record_completed_checkout(session: dict):
    """Create the order for a completed session at most once.

    Returns ``(order, created)``. A redelivered event returns the existing
    order with ``created=False``. Persistence errors propagate so the HTTP
    layer answers 500 and Stripe redelivers.
    """
    fields = order_fields_from_session(session)
    session_id = fields["stripe_checkout_session_id"]

    existing = orders.get_by_checkout_session(session_id)
    if existing:
        log.info("order_already_recorded", session_id=session_id, order_id=existing.id)
        return existing, False

    try:
        order = orders.create_order(fields)
    except IntegrityError:
        # lost a race against a concurrent delivery of the same event
        existing = orders.get_by_checkout_session(session_id)
        if existing is None:
            raise
        log.info("order_already_recorded", session_id=session_id, order_id=existing.id, race=True)
        return existing, False

    log.info(
        "order_created",
        session_id=session_id,
        order_id=order.id,
        total=order.total,
        items=len(order.items),
    )
    return order, True


def handle_event(event: dict) -> dict:
    """Dispatch one verified event. Returns the acknowledgement body."""
    event_type = event.get("type")
    obj = (event.get("data") or {}).get("object") or {}

    if event_type == CHECKOUT_COMPLETED:
        record_completed_checkout(obj)
    elif event_type == PAYMENT_SUCCEEDED:
        log.info("payment_succeeded", payment_intent_id=obj.get("id"))
    elif event_type == PAYMENT_FAILED:
        log.info("payment_failed", payment_intent_id=obj.get("id"))
    else:
        log.debug("webhook_event_ignored", event_type=event_type, event_id=event.get("id"))

    return {"received": True}
