# storefront/services/products.py
from __future__ import annotations

import re

import structlog
from sqlalchemy.exc import IntegrityError

from ..errors import NotFound, ValidationError
from ..extensions import db
from ..model import Product, ProductImage, DIMENSION_UNITS
from ..model.types import is_valid_id
from ..utils.money import to_cents
from . import storage

log = structlog.get_logger(__name__)


def slugify(text):
    text = (text or "").strip().lower()
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def _parse_bool(v, default=False):
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}


def _parse_int(v, field):
    try:
        n = int(v)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid value for {field}") from e
    if n < 0:
        raise ValidationError(f"{field} must not be negative")
    return n


def _parse_opt_float(v, field):
    if v is None or (isinstance(v, str) and v.strip() == ""):
        return None
    try:
        return float(v)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid value for {field}") from e


# ---------- reads ----------
def list_active():
    return (Product.query.filter(Product.active.is_(True))
                         .order_by(Product.created_at.desc())
                         .all())


def list_all():
    return Product.query.order_by(Product.created_at.desc()).all()


def list_featured(limit=4):
    return (Product.query.filter(Product.active.is_(True), Product.featured.is_(True))
                         .order_by(Product.created_at.desc())
                         .limit(limit)
                         .all())


def get_by_slug(slug, include_inactive=False) -> Product | None:
    q = Product.query.filter_by(slug=slug)
    if not include_inactive:
        q = q.filter(Product.active.is_(True))
    return q.first()


def get_by_id(product_id) -> Product | None:
    if not is_valid_id(product_id):
        return None
    return db.session.get(Product, product_id)


# ---------- writes ----------
def _apply_fields(product, data, creating):
    if "name" in data or creating:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("name is required")
        product.name = name

    if "slug" in data or creating:
        slug = slugify(data.get("slug") or product.name)
        if not slug:
            raise ValidationError("slug is required")
        product.slug = slug

    if "description" in data:
        product.description = data.get("description") or ""

    if "price" in data or creating:
        try:
            product.price = to_cents(data.get("price"))
        except (TypeError, ValueError) as e:
            raise ValidationError("price must be a non-negative integer number of cents") from e

    if "stock" in data:
        product.stock = _parse_int(data["stock"], "stock")

    for flag in ("featured", "active"):
        if flag in data:
            setattr(product, flag, _parse_bool(data[flag]))

    if "dimensions" in data:
        dims = data.get("dimensions") or {}
        if not isinstance(dims, dict):
            raise ValidationError("dimensions must be an object")
        for key in ("width", "height", "thickness"):
            if key in dims:
                setattr(product, key, _parse_opt_float(dims[key], f"dimensions.{key}"))
        if "unit" in dims:
            if dims["unit"] not in DIMENSION_UNITS:
                raise ValidationError(f"dimensions.unit must be one of {', '.join(DIMENSION_UNITS)}")
            product.dimension_unit = dims["unit"]

    for ref in ("stripe_product_id", "stripe_price_id"):
        if ref in data:
            setattr(product, ref, data[ref] or None)

    if "images" in data:
        images = data.get("images") or []
        if not isinstance(images, list) or not all(isinstance(u, str) and u for u in images):
            raise ValidationError("images must be a list of URLs")
        keep = {img.url: img for img in product.images}
        product.images = [keep.get(url) or ProductImage(url=url, storage_path=storage.path_from_url(url))
                          for url in images]
        product.images.reorder()


def _commit(product):
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise ValidationError("Duplicate slug", status_code=409, data={"conflicts": {"slug": product.slug}}) from e


def create_product(data: dict) -> Product:
    product = Product()
    _apply_fields(product, data, creating=True)
    db.session.add(product)
    _commit(product)
    log.info("product_created", product_id=product.id, slug=product.slug)
    return product


def update_product(product_id, data: dict) -> Product:
    product = get_by_id(product_id)
    if not product:
        raise NotFound("product not found")
    _apply_fields(product, data, creating=False)
    _commit(product)
    log.info("product_updated", product_id=product.id, fields=sorted(data))
    return product


def delete_product(product_id):
    product = get_by_id(product_id)
    if not product:
        raise NotFound("product not found")
    urls = product.image_urls
    db.session.delete(product)
    db.session.commit()
    for url in urls:
        storage.delete_file_by_url(url)
    log.info("product_deleted", product_id=product_id)


def add_image(product_id, file_storage) -> Product:
    product = get_by_id(product_id)
    if not product:
        raise NotFound("product not found")
    stored = storage.save_product_image(file_storage, product.slug)
    product.images.append(ProductImage(url=stored["url"], storage_path=stored["path"]))
    db.session.commit()
    return product


def remove_image(product_id, image_id) -> Product:
    product = get_by_id(product_id)
    if not product:
        raise NotFound("product not found")
    image = next((img for img in product.images if img.id == image_id), None)
    if not image:
        raise NotFound("image not found")
    url = image.url
    product.images.remove(image)
    product.images.reorder()
    db.session.commit()
    storage.delete_file_by_url(url)
    return product


# ---------- bulk ----------
EXPORT_COLUMNS = [
    "id", "slug", "name", "description", "price", "stock", "featured", "active",
    "width", "height", "thickness", "dimension_unit", "images",
    "stripe_product_id", "stripe_price_id",
]


def export_rows():
    rows = []
    for p in list_all():
        rows.append({
            "id": p.id,
            "slug": p.slug,
            "name": p.name,
            "description": p.description,
            "price": p.price,
            "stock": p.stock,
            "featured": p.featured,
            "active": p.active,
            "width": p.width,
            "height": p.height,
            "thickness": p.thickness,
            "dimension_unit": p.dimension_unit,
            "images": "|".join(p.image_urls),
            "stripe_product_id": p.stripe_product_id,
            "stripe_price_id": p.stripe_price_id,
        })
    return rows


def row_to_product_data(row: dict) -> dict:
    """Map an export row (as read back from CSV) onto create/update fields."""
    def blank(v):
        return v is None or (isinstance(v, float) and v != v) or (isinstance(v, str) and not v.strip())

    data = {}
    for key in ("slug", "name", "description", "stripe_product_id", "stripe_price_id"):
        if key in row and not blank(row[key]):
            data[key] = str(row[key])
    for key in ("price", "stock"):
        if key in row and not blank(row[key]):
            data[key] = int(row[key])
    for key in ("featured", "active"):
        if key in row and not blank(row[key]):
            data[key] = _parse_bool(row[key])
    dims = {k: row[k] for k in ("width", "height", "thickness") if k in row and not blank(row[k])}
    if "dimension_unit" in row and not blank(row["dimension_unit"]):
        dims["unit"] = str(row["dimension_unit"])
    if dims:
        data["dimensions"] = dims
    if "images" in row and not blank(row["images"]):
        data["images"] = [u for u in str(row["images"]).split("|") if u]
    return data


def upsert_by_slug(data: dict):
    """Create or update keyed on slug. Returns (product, created)."""
    slug = slugify(data.get("slug") or data.get("name"))
    existing = get_by_slug(slug, include_inactive=True) if slug else None
    if existing:
        return update_product(existing.id, data), False
    return create_product(data), True
