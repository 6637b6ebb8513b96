# storefront/product/routes.py
from io import BytesIO

import pandas as pd
from flask import request, jsonify, send_file, url_for

from . import bp, admin_bp
from ..services import products
from ..utils.api import api_ok, api_error
from ..utils.decorators import admin_required


def ok(message: str, data=None, status_code=200):
    resp = jsonify(api_ok(message, data))
    resp.status_code = status_code
    return resp


def err(message: str, status_code=400, data=None):
    resp = jsonify(api_error(message, data))
    resp.status_code = status_code
    return resp


def _limit(default, cap=50):
    n = request.args.get("limit", default=default, type=int)
    return max(1, min(n, cap))


# ---------- storefront ----------
# GET /api/products
@bp.get("")
def list_products():
    items = [p.as_api() for p in products.list_active()]
    return ok("Products fetched", {"items": items, "total": len(items)})


# GET /api/products/featured?limit=4
@bp.get("/featured")
def featured_products():
    items = [p.as_api() for p in products.list_featured(limit=_limit(4))]
    return ok("Featured products fetched", {"items": items})


# GET /api/products/<slug>
@bp.get("/<slug>")
def get_product(slug):
    product = products.get_by_slug(slug)
    if not product:
        return err("product not found", 404)
    return ok("Product fetched", product.as_api())


# ---------- admin ----------
@admin_bp.get("")
@admin_required
def admin_list_products():
    items = [p.as_admin_api() for p in products.list_all()]
    return ok("Products fetched", {"items": items, "total": len(items)})


@admin_bp.get("/export")
@admin_required
def export_products():
    """All products as CSV, one row per product, images joined with '|'."""
    df = pd.DataFrame(products.export_rows(), columns=products.EXPORT_COLUMNS)

    output = BytesIO()
    df.to_csv(output, index=False)
    output.seek(0)

    return send_file(
        output,
        as_attachment=True,
        download_name="products_export.csv",
        mimetype="text/csv",
    )


@admin_bp.get("/<pid>")
@admin_required
def admin_get_product(pid):
    product = products.get_by_id(pid)
    if not product:
        return err("product not found", 404)
    return ok("Product fetched", product.as_admin_api())


@admin_bp.post("")
@admin_required
def create_product():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return err("JSON body required")
    product = products.create_product(data)
    resp = ok("Product created", product.as_admin_api(), status_code=201)
    resp.headers["Location"] = url_for("product_admin.admin_get_product", pid=product.id)
    return resp


@admin_bp.put("/<pid>")
@admin_required
def update_product(pid):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return err("JSON body required")
    product = products.update_product(pid, data)
    return ok("Product updated", product.as_admin_api())


@admin_bp.delete("/<pid>")
@admin_required
def delete_product(pid):
    products.delete_product(pid)
    return ok(f"Product {pid} deleted", {"id": pid})


# POST /api/admin/products/<id>/images  (multipart, field "image")
@admin_bp.post("/<pid>/images")
@admin_required
def upload_image(pid):
    file = request.files.get("image")
    if file is None:
        return err("No file part")
    product = products.add_image(pid, file)
    return ok("Image uploaded", product.as_admin_api(), status_code=201)


@admin_bp.delete("/<pid>/images/<int:image_id>")
@admin_required
def delete_image(pid, image_id):
    product = products.remove_image(pid, image_id)
    return ok("Image removed", product.as_admin_api())
