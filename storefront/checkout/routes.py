# storefront/checkout/routes.py
import structlog
from flask import request, jsonify, current_app

from . import bp
from ..errors import PaymentProcessorError, ValidationError
from ..services import orders
from ..services.cart import Cart
from ..services.checkout import create_checkout_session
from ..services.payments import get_gateway
from ..utils.api import api_ok, api_error

log = structlog.get_logger(__name__)


def _error(message, status):
    return jsonify({"error": message}), status


# POST /api/checkout  {items: CartItem[], email?: string} -> {sessionId, url}
@bp.post("")
def checkout():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _error("Invalid request body", 400)

    try:
        cart = Cart.from_payload(payload.get("items"))
        result = create_checkout_session(
            cart,
            get_gateway(),
            email=payload.get("email") or None,
            origin=request.headers.get("Origin") or current_app.config.get("STORE_ORIGIN"),
        )
    except ValidationError as e:
        return _error(e.message, 400)
    except PaymentProcessorError:
        return _error("Failed to create checkout session", 500)

    return jsonify(result), 200


# GET /api/checkout/session/<session_id>  (success page)
@bp.get("/session/<session_id>")
def checkout_result(session_id):
    order = orders.get_by_checkout_session(session_id)
    if not order:
        # webhook not processed yet; the page polls
        return jsonify(api_error("order not found", {"pending": True})), 404
    return jsonify(api_ok("order", {
        "id": order.id,
        "status": order.status,
        "email": order.email,
        "items": [i.as_api() for i in order.items],
        "subtotal": order.subtotal,
        "shipping": order.shipping,
        "tax": order.tax,
        "total": order.total,
    })), 200
