"""
Pytest configuration and shared test fixtures.

This module provides pytest configuration, fixtures, and test utilities
for the EcoStyle backend. Settings are pinned to the test environment before
the application is imported, and the order and product fixtures build
in-memory model instances so no database is needed.
"""

import os

os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("APP_PAYPAL_CLIENT_ID", "test-client-id")
os.environ.setdefault("APP_PAYPAL_CLIENT_SECRET", "test-client-secret")

import uuid
from decimal import Decimal
from typing import Any, Callable, Generator, Optional
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from ecostyle.api.deps import (
    get_order_coordinator,
    get_order_service,
    get_paypal_client,
    get_product_service,
)
from ecostyle.database.models.order import (
    FulfillmentStatus,
    Order,
    OrderItem,
    PaymentStatus,
)
from ecostyle.database.models.product import Product
from ecostyle.main import app
from ecostyle.services.orders.coordinator import OrderLifecycleCoordinator
from ecostyle.services.orders.service import OrderService
from ecostyle.services.payments.paypal_client import PayPalClient
from ecostyle.services.products.service import ProductService


@pytest.fixture(scope="function")
def test_client() -> Generator[TestClient, None, None]:
    """
    Create a synchronous test client for the FastAPI application.

    Yields:
        TestClient: Synchronous test client for FastAPI app
    """
    with TestClient(app) as client:
        yield client


@pytest.fixture(autouse=True)
def reset_dependency_overrides() -> Generator[None, None, None]:
    """Remove dependency overrides installed by a test."""
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def order_factory() -> Callable[..., Order]:
    """
    Factory for in-memory orders.

    Example:
        order = order_factory(payment_status=PaymentStatus.COMPLETED)
    """

    def _make(
        items: Optional[list[dict[str, Any]]] = None,
        shipping: str = "10.00",
        **fields: Any,
    ) -> Order:
        items = items or [
            {"name": "Organic Cotton Tee", "unit_price": "20.00", "quantity": 2}
        ]
        order_items = [
            OrderItem(
                position=position,
                name=item["name"],
                unit_price=Decimal(item["unit_price"]),
                quantity=item["quantity"],
                eco_tags=item.get("eco_tags", []),
            )
            for position, item in enumerate(items)
        ]
        subtotal = sum(
            (Decimal(i["unit_price"]) * i["quantity"] for i in items),
            Decimal("0"),
        )
        fields.setdefault("subtotal", subtotal)
        fields.setdefault("shipping_amount", Decimal(shipping))
        fields.setdefault("total_amount", subtotal + Decimal(shipping))
        fields.setdefault("buyer_email", "buyer@example.com")
        fields.setdefault("payment_status", PaymentStatus.PENDING)
        fields.setdefault("fulfillment_status", FulfillmentStatus.PROCESSING)
        return Order(items=order_items, **fields)

    return _make


@pytest.fixture
def product_factory() -> Callable[..., Product]:
    """Factory for in-memory catalog products."""

    def _make(**fields: Any) -> Product:
        fields.setdefault("name", "Organic Cotton Tee")
        fields.setdefault("description", "Soft tee made from certified organic cotton.")
        fields.setdefault("price", Decimal("29.99"))
        fields.setdefault("category", "t-shirts")
        fields.setdefault("eco_tags", ["organic-cotton"])
        fields.setdefault("image_url", "https://cdn.example.com/tee.jpg")
        fields.setdefault("stock_qty", 25)
        return Product(**fields)

    return _make


@pytest.fixture
def cart_items() -> list[dict[str, Any]]:
    """Cart of two tees at 20.00, below the free shipping threshold."""
    return [
        {
            "product_id": str(uuid.uuid4()),
            "name": "Organic Cotton Tee",
            "unit_price": "20.00",
            "quantity": 2,
            "eco_tags": ["organic-cotton"],
        }
    ]


@pytest.fixture
def shipping_address() -> dict[str, str]:
    return {
        "street": "1 Green Way",
        "city": "Portland",
        "state": "OR",
        "zip_code": "97201",
        "country": "US",
    }


@pytest.fixture
def mock_coordinator() -> AsyncMock:
    """Coordinator mock installed as the API dependency."""
    coordinator = AsyncMock(spec=OrderLifecycleCoordinator)
    coordinator.currency = "USD"
    app.dependency_overrides[get_order_coordinator] = lambda: coordinator
    return coordinator


@pytest.fixture
def mock_order_service() -> AsyncMock:
    """Order service mock installed as the API dependency."""
    service = AsyncMock(spec=OrderService)
    app.dependency_overrides[get_order_service] = lambda: service
    return service


@pytest.fixture
def mock_product_service() -> AsyncMock:
    """Product service mock installed as the API dependency."""
    service = AsyncMock(spec=ProductService)
    app.dependency_overrides[get_product_service] = lambda: service
    return service


@pytest.fixture
def mock_gateway() -> AsyncMock:
    """PayPal client mock installed as the API dependency."""
    gateway = AsyncMock(spec=PayPalClient)
    app.dependency_overrides[get_paypal_client] = lambda: gateway
    return gateway
