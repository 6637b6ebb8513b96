# storefront/webhook/routes.py
import structlog
from flask import request, jsonify

from . import bp
from ..errors import InvalidSignature, ValidationError
from ..extensions import db
from ..services.payments import get_gateway
from ..services.webhooks import handle_event

log = structlog.get_logger(__name__)


# POST /api/webhook  (Stripe-Signature header over the raw body)
@bp.post("")
def webhook():
    # raw bytes: the signature covers the unparsed body
    payload = request.get_data(cache=False)
    signature = request.headers.get("Stripe-Signature") or request.headers.get("Signature")

    try:
        event = get_gateway().construct_event(payload, signature)
    except InvalidSignature:
        log.warning("webhook_signature_rejected", remote_addr=request.remote_addr)
        return jsonify({"error": "Invalid signature"}), 400
    except ValidationError as e:
        log.warning("webhook_body_rejected", reason=e.message)
        return jsonify({"error": e.message}), 400

    event_log = log.bind(event_id=event.get("id"), event_type=event.get("type"))
    try:
        ack = handle_event(event)
    except ValidationError as e:
        event_log.warning("webhook_event_rejected", reason=e.message)
        return jsonify({"error": e.message}), 400
    except Exception:
        db.session.rollback()
        event_log.exception("webhook_handler_failed")
        return jsonify({"error": "Webhook handler failed"}), 500

    return jsonify(ack), 200
