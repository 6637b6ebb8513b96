# storefront/services/orders.py
from __future__ import annotations

import structlog
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..errors import NotFound, ValidationError
from ..extensions import db
from ..model import Order, OrderItem, ORDER_STATUSES
from ..model.types import is_valid_id, utcnow

log = structlog.get_logger(__name__)

UPDATABLE_FIELDS = ("tracking_number", "notes", "shipping_address")


def _newest_first(q):
    return q.order_by(Order.created_at.desc(), Order.id.desc())


def list_orders(status=None, email=None, limit=None):
    q = Order.query
    if status:
        if status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown status '{status}'")
        q = q.filter(Order.status == status)
    if email:
        q = q.filter(func.lower(Order.email) == email.strip().lower())
    q = _newest_first(q)
    if limit is not None:
        if int(limit) < 1:
            raise ValidationError("limit must be a positive integer")
        q = q.limit(int(limit))
    return q.all()


def list_recent(limit=10):
    return list_orders(limit=limit)


def list_by_status(status):
    return list_orders(status=status)


def list_by_email(email):
    return list_orders(email=email)


def get_order(order_id) -> Order | None:
    if not is_valid_id(order_id):
        return None
    return db.session.get(Order, order_id)


def get_by_checkout_session(session_id) -> Order | None:
    if not session_id:
        return None
    return Order.query.filter_by(stripe_checkout_session_id=session_id).first()


def create_order(fields: dict) -> Order:
    """Insert an order and its line items in one commit.

    IntegrityError (e.g. a second order for the same checkout session) is
    rolled back and re-raised for the caller to resolve.
    """
    data = dict(fields)
    items = data.pop("items", [])
    now = utcnow()
    order = Order(created_at=now, updated_at=now, **data)
    for it in items:
        order.items.append(OrderItem(
            product_id=it["product_id"],
            product_name=it["product_name"],
            quantity=it["quantity"],
            price_at_purchase=it["price_at_purchase"],
        ))
    db.session.add(order)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise
    return order


def update_status(order_id, status, tracking_number=None) -> Order:
    """Set an order's status; any known status may be set by an admin.

    A blank or missing ``tracking_number`` keeps the stored one.
    """
    if status not in ORDER_STATUSES:
        raise ValidationError(f"Unknown status '{status}'")
    if tracking_number is not None and not isinstance(tracking_number, str):
        raise ValidationError("tracking_number must be a string")
    order = get_order(order_id)
    if not order:
        raise NotFound("order not found")

    previous = order.status
    if order.is_terminal and status != previous:
        # allowed, but worth a second look
        log.warning("order_status_left_terminal", order_id=order.id, previous=previous, status=status)

    order.status = status
    if tracking_number and tracking_number.strip():
        order.tracking_number = tracking_number.strip()
    order.updated_at = utcnow()
    db.session.commit()

    log.info("order_status_updated", order_id=order.id, previous=previous, status=status)
    return order


def update_order(order_id, fields: dict) -> Order:
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update: {', '.join(sorted(unknown))}")
    order = get_order(order_id)
    if not order:
        raise NotFound("order not found")

    for key, value in fields.items():
        if key == "shipping_address" and value is not None and not isinstance(value, dict):
            raise ValidationError("shipping_address must be an object or null")
        setattr(order, key, value)
    order.updated_at = utcnow()
    db.session.commit()
    return order
