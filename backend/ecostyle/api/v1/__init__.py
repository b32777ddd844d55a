"""
API v1 package initialization.

Routers for the EcoStyle storefront API, mounted under ``/api``.
"""

from ecostyle.api.v1.orders import router as orders_router
from ecostyle.api.v1.paypal import router as paypal_router
from ecostyle.api.v1.products import router as products_router

__all__ = ["orders_router", "paypal_router", "products_router"]
