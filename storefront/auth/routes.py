from flask import request, jsonify
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity
from werkzeug.security import check_password_hash

from . import bp
from ..extensions import db
from ..model import User
from ..utils.api import api_ok, api_error
from ..utils.decorators import get_admin


@bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    if not email or not password:
        return jsonify(api_error("Email and password are required")), 400

    user = User.query.filter_by(email=email).first()
    if not user or not check_password_hash(user.password_hash, password):
        return jsonify(api_error("Invalid email or password")), 401

    admin = get_admin(user)
    access_token = create_access_token(identity=str(user.id))
    return jsonify(api_ok(
        "You've logged in successfully",
        data={
            "user": user.as_dict(),
            "admin": admin.as_dict() if admin else None,
            "is_admin": admin is not None,
            "token": access_token,
        },
    )), 200


@bp.get("/me")
@jwt_required()
def me():
    try:
        uid = int(get_jwt_identity())
    except (TypeError, ValueError):
        return jsonify(api_error("user not found")), 404
    user = db.session.get(User, uid)
    if not user:
        return jsonify(api_error("user not found")), 404
    admin = get_admin(user)
    return jsonify(api_ok("OK", data={
        "user": user.as_dict(),
        "admin": admin.as_dict() if admin else None,
        "is_admin": admin is not None,
    })), 200
