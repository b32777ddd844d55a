"""
Order query and administration service.

This module implements the OrderService class used by the order API:
paginated listings, lookups by ID or order number, direct order creation and
administrative updates. Payment status changes are routed through the
lifecycle coordinator's consistency rule so fulfillment status follows.
"""

import math
import uuid
from decimal import Decimal
from typing import Any, Optional, Sequence

from ecostyle.core.logging import get_logger
from ecostyle.database.models.order import FulfillmentStatus, Order, PaymentStatus
from ecostyle.schemas.orders import OrderCreateRequest, OrderUpdateRequest
from ecostyle.services.orders.coordinator import (
    FULFILLMENT_FOR_PAYMENT,
    OrderLifecycleCoordinator,
    OrderPersistenceError,
    OrderValidationError,
)
from ecostyle.services.orders.repository import (
    SORTABLE_FIELDS,
    OrderNotFoundError,
    OrderRepository,
    OrderRepositoryError,
)
from ecostyle.services.payments.pricing import CheckoutQuote, calculate_subtotal

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def build_pagination(page: int, limit: int, total: int) -> dict[str, Any]:
    """
    Build the pagination block of a listing response.

    Args:
        page: Current page, starting at 1
        limit: Page size
        total: Total number of matching orders

    Returns:
        Pagination dictionary
    """
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "current_page": page,
        "total_pages": total_pages,
        "total_orders": total,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


class OrderService:
    """
    Order query and administration service.

    Attributes:
        repository: Order store
        coordinator: Lifecycle coordinator used for status consistency
    """

    def __init__(
        self,
        repository: OrderRepository,
        coordinator: OrderLifecycleCoordinator,
    ):
        self.repository = repository
        self.coordinator = coordinator

    @staticmethod
    def _validate_listing(page: int, limit: int, sort_by: str, sort_order: str) -> None:
        if page < 1:
            raise OrderValidationError("Page must be at least 1", page=page)
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise OrderValidationError(
                f"Limit must be between 1 and {MAX_PAGE_SIZE}",
                limit=limit,
            )
        if sort_by not in SORTABLE_FIELDS:
            raise OrderValidationError(
                "Unsupported sort field. Must be one of: "
                + ", ".join(sorted(SORTABLE_FIELDS)),
                sort_by=sort_by,
            )
        if sort_order not in ("asc", "desc"):
            raise OrderValidationError(
                "Sort order must be 'asc' or 'desc'",
                sort_order=sort_order,
            )

    async def list_orders(
        self,
        email: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> tuple[Sequence[Order], dict[str, Any]]:
        """
        List orders with optional buyer email and payment status filters.

        Args:
            email: Buyer email filter
            status: Payment status filter
            page: Page number, starting at 1
            limit: Page size
            sort_by: Column to sort on
            sort_order: "asc" or "desc"

        Returns:
            Tuple of (orders, pagination block)

        Raises:
            OrderValidationError: If a filter or paging parameter is invalid
            OrderPersistenceError: If the query fails
        """
        self._validate_listing(page, limit, sort_by, sort_order)

        payment_status = None
        if status:
            try:
                payment_status = PaymentStatus.from_string(status)
            except ValueError as e:
                raise OrderValidationError(
                    "Invalid payment status. Must be one of: "
                    + ", ".join(s.value for s in PaymentStatus),
                    status=status,
                ) from e

        try:
            orders, total = await self.repository.list_orders(
                email=email,
                payment_status=payment_status,
                page=page,
                limit=limit,
                sort_by=sort_by,
                sort_order=sort_order,
            )
        except OrderRepositoryError as e:
            raise OrderPersistenceError("Failed to fetch orders") from e

        return orders, build_pagination(page, limit, total)

    async def order_history(
        self,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> tuple[Sequence[Order], dict[str, Any]]:
        """List all orders, newest first by default."""
        return await self.list_orders(
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )

    async def get_order(self, id_or_number: str) -> Order:
        """
        Get an order by UUID, falling back to order number lookup.

        Raises:
            OrderNotFoundError: If no order matches
        """
        try:
            order_id = uuid.UUID(id_or_number)
        except ValueError:
            return await self.get_order_by_number(id_or_number)

        try:
            order = await self.repository.find_by_id(order_id)
        except OrderRepositoryError as e:
            raise OrderPersistenceError("Failed to fetch order") from e

        if order is None:
            raise OrderNotFoundError("Order not found", order_id=id_or_number)
        return order

    async def get_order_by_number(self, order_number: str) -> Order:
        """
        Get an order by its order number, ignoring case.

        Raises:
            OrderValidationError: If the order number is blank
            OrderNotFoundError: If no order matches
        """
        if not order_number or not order_number.strip():
            raise OrderValidationError("Order number is required")

        try:
            order = await self.repository.find_by_order_number(order_number)
        except OrderRepositoryError as e:
            raise OrderPersistenceError("Failed to fetch order") from e

        if order is None:
            raise OrderNotFoundError(
                "Order not found",
                order_number=order_number.strip().upper(),
            )
        return order

    async def create_order(self, request: OrderCreateRequest) -> Order:
        """
        Create an order directly, outside the PayPal checkout.

        The total is the sum of the items; no shipping is charged.

        Raises:
            OrderValidationError: If required fields are missing or items are
                invalid
            OrderPersistenceError: If the order cannot be stored
        """
        missing = [
            name
            for name, value in (
                ("items", request.items),
                ("buyer_email", request.buyer_email),
                ("shipping_address", request.shipping_address),
            )
            if not value
        ]
        if missing:
            raise OrderValidationError(
                "Missing required fields",
                missing_fields=missing,
            )

        self.coordinator.validate_items(request.items)

        missing_address = request.shipping_address.missing_fields()
        if missing_address:
            raise OrderValidationError(
                "Missing required shipping address fields",
                missing_fields=missing_address,
            )

        subtotal = calculate_subtotal(request.items)
        quote = CheckoutQuote(
            subtotal=subtotal,
            shipping=Decimal("0.00"),
            total=subtotal,
        )
        order = self.coordinator.build_order(
            request.items,
            quote,
            buyer_email=request.buyer_email,
            shipping_address=request.shipping_address.model_dump(),
            notes=request.notes,
            payment_status=PaymentStatus.PENDING,
            fulfillment_status=FulfillmentStatus.PROCESSING,
        )

        try:
            order = await self.repository.insert(order)
        except OrderRepositoryError as e:
            raise OrderPersistenceError("Failed to create order") from e

        logger.info(
            "Order created",
            order_id=str(order.id),
            order_number=order.order_number,
            total=str(order.total_amount),
        )
        return order

    async def update_order(
        self,
        order_id: uuid.UUID,
        request: OrderUpdateRequest,
    ) -> Order:
        """
        Apply an administrative update to an order.

        A payment status change also sets the fulfillment status it implies,
        overriding any fulfillment status in the same request.

        Raises:
            OrderNotFoundError: If the order does not exist
            OrderPersistenceError: If the update fails
        """
        changes = request.model_dump(exclude_unset=True)

        if "shipping_address" in changes and request.shipping_address is not None:
            changes["shipping_address"] = request.shipping_address.model_dump()

        payment_status = changes.get("payment_status")
        if payment_status is not None:
            implied = FULFILLMENT_FOR_PAYMENT.get(payment_status)
            if implied is not None:
                changes["fulfillment_status"] = implied

        # Statuses are required columns
        for name in ("payment_status", "fulfillment_status"):
            if name in changes and changes[name] is None:
                del changes[name]

        if not changes:
            return await self.get_order(str(order_id))

        try:
            order = await self.repository.update_fields(order_id, changes)
        except OrderRepositoryError as e:
            raise OrderPersistenceError(
                "Failed to update order",
                order_id=str(order_id),
            ) from e

        if order is None:
            raise OrderNotFoundError("Order not found", order_id=str(order_id))

        logger.info(
            "Order updated",
            order_id=str(order_id),
            fields=sorted(changes),
        )
        return order
