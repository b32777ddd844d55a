"""
Database models package.

Importing this package registers every model with the declarative Base.
"""

from ecostyle.database.models.order import (
    FulfillmentStatus,
    Order,
    OrderItem,
    PaymentProvider,
    PaymentStatus,
    generate_order_number,
)
from ecostyle.database.models.product import EcoTag, Product, ProductCategory

__all__ = [
    "EcoTag",
    "FulfillmentStatus",
    "Order",
    "OrderItem",
    "PaymentProvider",
    "PaymentStatus",
    "Product",
    "ProductCategory",
    "generate_order_number",
]
