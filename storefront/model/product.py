# storefront/model/product.py
from sqlalchemy.ext.orderinglist import ordering_list

from ..extensions import db
from .types import GUID, new_id, utcnow

DIMENSION_UNITS = ("in", "cm", "mm")


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(GUID(), primary_key=True, default=new_id)
    slug = db.Column(db.String(255), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False, default="")

    price = db.Column(db.Integer, nullable=False, default=0)  # cents

    # dimensions
    width = db.Column(db.Float)
    height = db.Column(db.Float)
    thickness = db.Column(db.Float)
    dimension_unit = db.Column(db.String(4), default="in")

    stock = db.Column(db.Integer, nullable=False, default=0)
    featured = db.Column(db.Boolean, nullable=False, default=False, index=True)
    active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    stripe_product_id = db.Column(db.String(255))
    stripe_price_id = db.Column(db.String(255))

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    images = db.relationship(
        "ProductImage",
        backref="product",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProductImage.position",
        collection_class=ordering_list("position"),
    )

    @property
    def image_urls(self):
        return [img.url for img in self.images]

    @property
    def dimensions(self):
        return {
            "width": self.width,
            "height": self.height,
            "thickness": self.thickness,
            "unit": self.dimension_unit,
        }

    def as_api(self):
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "images": self.image_urls,
            "dimensions": self.dimensions,
            "stock": self.stock,
            "featured": self.featured,
            "active": self.active,
            "stripe_product_id": self.stripe_product_id,
            "stripe_price_id": self.stripe_price_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def as_admin_api(self):
        data = self.as_api()
        data["image_records"] = [img.as_api() for img in self.images]
        return data


class ProductImage(db.Model):
    __tablename__ = "product_images"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(GUID(), db.ForeignKey("products.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    url = db.Column(db.String(1024), nullable=False)
    storage_path = db.Column(db.String(512))  # set only for files we stored ourselves

    def as_api(self):
        return {
            "id": self.id,
            "position": self.position,
            "url": self.url,
            "storage_path": self.storage_path,
        }
