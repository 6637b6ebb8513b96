from flask import Blueprint

bp = Blueprint("product", __name__, url_prefix="/api/products")
admin_bp = Blueprint("product_admin", __name__, url_prefix="/api/admin/products")

from . import routes  # noqa: E402,F401
