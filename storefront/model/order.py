# storefront/model/order.py
from ..extensions import db
from .types import GUID, new_id, utcnow

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled", "refunded")

# reachable without an admin
AUTOMATIC_STATUSES = ("pending", "processing")
TERMINAL_STATUSES = ("delivered", "cancelled", "refunded")

# status assigned to an order created from a completed checkout
PAID_STATUS = "processing"


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(GUID(), primary_key=True, default=new_id)
    user_id = db.Column(db.Integer, nullable=True, index=True)
    email = db.Column(db.String(255), nullable=False, default="", index=True)
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)

    # minor units
    subtotal = db.Column(db.Integer, nullable=False, default=0)
    shipping = db.Column(db.Integer, nullable=False, default=0)
    tax = db.Column(db.Integer, nullable=False, default=0)
    total = db.Column(db.Integer, nullable=False, default=0)

    shipping_address = db.Column(db.JSON, nullable=True)

    # idempotency key for webhook deliveries
    stripe_checkout_session_id = db.Column(db.String(255), unique=True, index=True)
    stripe_payment_intent_id = db.Column(db.String(255), index=True)

    tracking_number = db.Column(db.String(120))
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    items = db.relationship(
        "OrderItem",
        backref="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.id",
    )

    __table_args__ = (
        db.CheckConstraint("total = subtotal + shipping + tax", name="ck_orders_total"),
    )

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    def as_api(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "email": self.email,
            "status": self.status,
            "items": [i.as_api() for i in self.items],
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "tax": self.tax,
            "total": self.total,
            "shipping_address": self.shipping_address,
            "stripe_checkout_session_id": self.stripe_checkout_session_id,
            "stripe_payment_intent_id": self.stripe_payment_intent_id,
            "tracking_number": self.tracking_number,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(GUID(), db.ForeignKey("orders.id"), nullable=False, index=True)

    # snapshot, not a FK: products can be deleted after purchase
    product_id = db.Column(db.String(64), index=True)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_at_purchase = db.Column(db.Integer, nullable=False)

    @property
    def line_total(self):
        return self.price_at_purchase * self.quantity

    def as_api(self):
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price_at_purchase": self.price_at_purchase,
            "line_total": self.line_total,
        }
