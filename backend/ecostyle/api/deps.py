"""
FastAPI dependencies for database sessions and service construction.

This is the only place that turns settings into PayPal credentials and
checkout policy; the services receive them as constructor arguments.
"""

from typing import Annotated, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ecostyle.core.config import get_settings
from ecostyle.core.logging import get_logger
from ecostyle.database.connection import get_db
from ecostyle.services.orders.coordinator import OrderLifecycleCoordinator
from ecostyle.services.orders.repository import OrderRepository
from ecostyle.services.orders.service import OrderService
from ecostyle.services.payments.paypal_client import PayPalClient
from ecostyle.services.payments.pricing import CheckoutPricing
from ecostyle.services.products.repository import ProductRepository
from ecostyle.services.products.service import ProductService

logger = get_logger(__name__)

_paypal_client: Optional[PayPalClient] = None

DatabaseSession = Annotated[AsyncSession, Depends(get_db)]


def get_paypal_client() -> PayPalClient:
    """
    Get or create the application-wide PayPal client.

    The client keeps a pooled HTTP connection and a cached access token, so
    one instance is shared by all requests.
    """
    global _paypal_client

    if _paypal_client is None:
        settings = get_settings()
        _paypal_client = PayPalClient(
            client_id=settings.paypal_client_id,
            client_secret=settings.paypal_client_secret,
            mode=settings.paypal_mode,
            timeout=settings.paypal_timeout_seconds,
        )

    return _paypal_client


async def close_paypal_client() -> None:
    """Close the shared PayPal client on application shutdown."""
    global _paypal_client

    if _paypal_client is not None:
        await _paypal_client.aclose()
        logger.info("PayPal client closed")
    _paypal_client = None


def get_checkout_pricing() -> CheckoutPricing:
    settings = get_settings()
    return CheckoutPricing(
        free_shipping_threshold=settings.free_shipping_threshold,
        flat_shipping_rate=settings.flat_shipping_rate,
        currency=settings.currency,
    )


def get_order_repository(db: DatabaseSession) -> OrderRepository:
    return OrderRepository(db)


def get_order_coordinator(
    repository: Annotated[OrderRepository, Depends(get_order_repository)],
    gateway: Annotated[PayPalClient, Depends(get_paypal_client)],
    pricing: Annotated[CheckoutPricing, Depends(get_checkout_pricing)],
) -> OrderLifecycleCoordinator:
    """
    Dependency for the order lifecycle coordinator.

    Args:
        repository: Order store bound to the request's session
        gateway: Shared PayPal client
        pricing: Checkout pricing policy

    Returns:
        OrderLifecycleCoordinator: Configured coordinator
    """
    settings = get_settings()
    return OrderLifecycleCoordinator(
        repository=repository,
        gateway=gateway,
        pricing=pricing,
        return_url=settings.paypal_return_url,
        cancel_url=settings.paypal_cancel_url,
    )


def get_order_service(
    repository: Annotated[OrderRepository, Depends(get_order_repository)],
    coordinator: Annotated[OrderLifecycleCoordinator, Depends(get_order_coordinator)],
) -> OrderService:
    return OrderService(repository=repository, coordinator=coordinator)


def get_product_service(db: DatabaseSession) -> ProductService:
    return ProductService(ProductRepository(db))


PayPalGateway = Annotated[PayPalClient, Depends(get_paypal_client)]
Coordinator = Annotated[OrderLifecycleCoordinator, Depends(get_order_coordinator)]
Orders = Annotated[OrderService, Depends(get_order_service)]
Products = Annotated[ProductService, Depends(get_product_service)]
