from flask import request, jsonify

from . import bp
from ..services import submissions
from ..utils.api import api_ok, api_error
from ..utils.decorators import admin_required


@bp.post("/contact")
def contact():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify(api_error("JSON body required")), 400
    msg = submissions.submit_contact_message(data)
    return jsonify(api_ok("Message sent", {"id": msg.id})), 201


@bp.post("/interest-check")
def interest_check():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify(api_error("JSON body required")), 400
    entry = submissions.submit_interest_check(data)
    return jsonify(api_ok("Thanks for your feedback", {"id": entry.id})), 201


@bp.get("/admin/contact-messages")
@admin_required
def list_contact_messages():
    items = [m.as_api() for m in submissions.list_contact_messages()]
    return jsonify(api_ok("OK", {"items": items})), 200


@bp.get("/admin/interest-checks")
@admin_required
def list_interest_checks():
    items = [c.as_api() for c in submissions.list_interest_checks()]
    return jsonify(api_ok("OK", {"items": items})), 200
