# storefront/order/routes.py
from flask import request, jsonify

from . import bp
from ..services import orders
from ..utils.api import api_ok, api_error
from ..utils.decorators import admin_required


def ok(msg, data=None, status=200):
    r = jsonify(api_ok(msg, data)); r.status_code = status; return r
def err(msg, status=400, data=None):
    r = jsonify(api_error(msg, data)); r.status_code = status; return r


@bp.get("")
@admin_required
def list_orders():
    """
    Query params:
      - status=pending|processing|shipped|delivered|cancelled|refunded
      - email=...
      - limit=N
    """
    status = request.args.get("status") or None
    email = request.args.get("email") or None
    limit = request.args.get("limit", type=int)
    if limit is not None:
        limit = max(1, min(limit, 500))
    items = orders.list_orders(status=status, email=email, limit=limit)
    return ok("orders", {"items": [o.as_api() for o in items], "total": len(items)})


@bp.get("/recent")
@admin_required
def recent_orders():
    limit = max(1, min(request.args.get("limit", default=10, type=int), 100))
    return ok("orders", {"items": [o.as_api() for o in orders.list_recent(limit)]})


@bp.get("/<order_id>")
@admin_required
def get_order(order_id):
    o = orders.get_order(order_id)
    if not o: return err("order not found", 404)
    return ok("order", o.as_api())


# PATCH /api/admin/orders/<id>/status  {status, tracking_number?}
@bp.patch("/<order_id>/status")
@admin_required
def update_status(order_id):
    body = request.get_json(silent=True) or {}
    status = body.get("status")
    if not isinstance(status, str) or not status.strip():
        return err("status is required")
    tracking = body.get("tracking_number", body.get("trackingNumber"))
    if tracking is not None and not isinstance(tracking, str):
        return err("tracking_number must be a string")
    status = status.strip().lower()
    o = orders.update_status(order_id, status, tracking_number=tracking)
    return ok("Order status updated", o.as_api())


# PATCH /api/admin/orders/<id>  {tracking_number?, notes?, shipping_address?}
@bp.patch("/<order_id>")
@admin_required
def update_order(order_id):
    body = request.get_json(silent=True)
    if not isinstance(body, dict) or not body:
        return err("nothing to update")
    o = orders.update_order(order_id, body)
    return ok("Order updated", o.as_api())
