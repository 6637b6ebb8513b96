# ------- storefront/utils/decorators.py -------
from functools import wraps

from flask import g, jsonify
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from ..extensions import db
from ..model import AdminRole, User, ADMIN_ROLES
from ..utils.api import api_error


def _current_user():
    verify_jwt_in_request()
    uid = get_jwt_identity()
    try:
        uid = int(uid)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, uid)


def get_admin(user):
    """Admin-role record for an authenticated identity, or None."""
    if user is None:
        return None
    return db.session.get(AdminRole, user.id)


def current_admin():
    return g.get("admin")


def role_required(*roles, message: str | None = None):
    """Allow the request only for identities whose admin record has one of ``roles``."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            u = _current_user()
            if not u:
                return jsonify(api_error("Unauthorized")), 401
            admin = get_admin(u)
            if not admin or admin.role not in roles:
                return jsonify(api_error(message or "Forbidden")), 403
            g.user = u
            g.admin = admin
            return fn(*args, **kwargs)
        return wrapper
    return decorator


# admin and super_admin share every capability for now
admin_required = role_required(*ADMIN_ROLES)
