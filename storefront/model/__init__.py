# ------ storefront/model/__init__.py ------

from .types import GUID
from .user import User, AdminRole, ADMIN_ROLES
from .product import Product, ProductImage, DIMENSION_UNITS
from .order import (
    Order,
    OrderItem,
    ORDER_STATUSES,
    AUTOMATIC_STATUSES,
    TERMINAL_STATUSES,
    PAID_STATUS,
)
from .submission import ContactMessage, InterestCheck

__all__ = [
    "GUID",
    "User",
    "AdminRole",
    "ADMIN_ROLES",
    "Product",
    "ProductImage",
    "DIMENSION_UNITS",
    "Order",
    "OrderItem",
    "ORDER_STATUSES",
    "AUTOMATIC_STATUSES",
    "TERMINAL_STATUSES",
    "PAID_STATUS",
    "ContactMessage",
    "InterestCheck",
]
