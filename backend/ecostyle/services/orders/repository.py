"""
Order data access repository.

This module implements the OrderRepository class, the order store used by the
checkout and the order administration API. Every write is committed before
the method returns, so once a call succeeds the change is durable; callers
that have just moved money through the gateway rely on this to tell a
recorded payment from an unrecorded one.
"""

import uuid
from typing import Any, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ecostyle.core.logging import get_logger
from ecostyle.database.models.order import Order, PaymentStatus

logger = get_logger(__name__)

# Fixed at creation; never rewritten by an update
IMMUTABLE_FIELDS = frozenset(
    {"id", "items", "subtotal", "shipping_amount", "total_amount", "order_number"}
)

UPDATABLE_FIELDS = frozenset(
    {
        "buyer_email",
        "shipping_address",
        "payment_status",
        "paypal_payment_id",
        "paypal_sale_id",
        "fulfillment_status",
        "tracking_number",
        "notes",
    }
)

SORTABLE_FIELDS = {
    "created_at": Order.created_at,
    "updated_at": Order.updated_at,
    "total_amount": Order.total_amount,
    "order_number": Order.order_number,
    "payment_status": Order.payment_status,
    "fulfillment_status": Order.fulfillment_status,
}


class OrderRepositoryError(Exception):
    """Base exception for order repository errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class OrderNotFoundError(OrderRepositoryError):
    """Raised when order is not found."""

    pass


class DuplicateOrderError(OrderRepositoryError):
    """Raised when an order number is already taken."""

    pass


class ImmutableOrderFieldError(OrderRepositoryError):
    """Raised when an update tries to rewrite items, amounts or the order number."""

    pass


class OrderRepository:
    """
    Repository for order data access operations.

    Provides async lookups by ID, order number and gateway references,
    partial updates restricted to mutable fields, deletion and paginated
    listing.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize order repository.

        Args:
            session: Async database session
        """
        self.session = session

    async def insert(self, order: Order) -> Order:
        """
        Persist a new order with its line items.

        Args:
            order: Order to insert

        Returns:
            Inserted order, refreshed from the database

        Raises:
            DuplicateOrderError: If the order number already exists
            OrderRepositoryError: If the insert fails
        """
        try:
            logger.info(
                "Inserting order",
                order_number=order.order_number,
                item_count=len(order.items),
                payment_status=order.payment_status.value,
            )

            self.session.add(order)
            await self.session.commit()
            await self.session.refresh(order)

            logger.info(
                "Order inserted",
                order_id=str(order.id),
                order_number=order.order_number,
            )

            return order

        except IntegrityError as e:
            await self.session.rollback()
            logger.error(
                "Order insert failed - integrity error",
                error=str(e),
                order_number=order.order_number,
            )
            if "order_number" in str(e.orig):
                raise DuplicateOrderError(
                    "Order number already exists",
                    order_number=order.order_number,
                ) from e
            raise OrderRepositoryError(
                "Order insert failed due to data integrity violation",
                order_number=order.order_number,
                error=str(e),
            ) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Order insert failed - database error",
                error=str(e),
                order_number=order.order_number,
            )
            raise OrderRepositoryError(
                "Order insert failed due to database error",
                order_number=order.order_number,
                error=str(e),
            ) from e

    async def _find_one(
        self,
        description: str,
        condition: Any,
        **log_context: Any,
    ) -> Optional[Order]:
        try:
            result = await self.session.execute(select(Order).where(condition))
            order = result.scalar_one_or_none()
            logger.debug(
                "Order found" if order else "Order not found",
                lookup=description,
                **log_context,
            )
            return order
        except SQLAlchemyError as e:
            logger.error(
                "Failed to fetch order",
                lookup=description,
                error=str(e),
                **log_context,
            )
            raise OrderRepositoryError(
                "Failed to fetch order",
                lookup=description,
                error=str(e),
                **log_context,
            ) from e

    async def find_by_id(self, order_id: uuid.UUID) -> Optional[Order]:
        """
        Get order by ID.

        Returns:
            Order if found, None otherwise

        Raises:
            OrderRepositoryError: If query fails
        """
        return await self._find_one("id", Order.id == order_id, order_id=str(order_id))

    async def find_by_order_number(self, order_number: str) -> Optional[Order]:
        """
        Get order by order number, ignoring case.

        Raises:
            OrderRepositoryError: If query fails
        """
        normalized = order_number.strip().upper()
        return await self._find_one(
            "order_number",
            Order.order_number == normalized,
            order_number=normalized,
        )

    async def find_by_payment_reference(self, payment_id: str) -> Optional[Order]:
        """
        Get order by PayPal payment ID.

        Raises:
            OrderRepositoryError: If query fails
        """
        return await self._find_one(
            "payment_reference",
            Order.paypal_payment_id == payment_id,
            payment_id=payment_id,
        )

    async def find_by_capture_reference(self, sale_id: str) -> Optional[Order]:
        """
        Get order by PayPal sale (capture) ID.

        Raises:
            OrderRepositoryError: If query fails
        """
        return await self._find_one(
            "capture_reference",
            Order.paypal_sale_id == sale_id,
            sale_id=sale_id,
        )

    async def update_fields(
        self,
        order_id: uuid.UUID,
        changes: dict[str, Any],
    ) -> Optional[Order]:
        """
        Apply a partial update to a single order.

        Args:
            order_id: Order identifier
            changes: Field values to set

        Returns:
            Updated order, or None if the order does not exist

        Raises:
            ImmutableOrderFieldError: If changes touch items, amounts or the
                order number
            OrderRepositoryError: If changes name unknown fields or the
                update fails
        """
        immutable = sorted(IMMUTABLE_FIELDS.intersection(changes))
        if immutable:
            raise ImmutableOrderFieldError(
                "Order items, amounts and number cannot be changed",
                order_id=str(order_id),
                fields=immutable,
            )

        unknown = sorted(set(changes) - UPDATABLE_FIELDS)
        if unknown:
            raise OrderRepositoryError(
                "Unknown order fields",
                order_id=str(order_id),
                fields=unknown,
            )

        order = await self.find_by_id(order_id)
        if order is None:
            return None

        try:
            logger.info(
                "Updating order",
                order_id=str(order_id),
                fields=sorted(changes),
            )

            for name, value in changes.items():
                setattr(order, name, value)

            await self.session.commit()
            await self.session.refresh(order)

            logger.info("Order updated", order_id=str(order_id))
            return order

        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to update order",
                order_id=str(order_id),
                error=str(e),
            )
            raise OrderRepositoryError(
                "Failed to update order",
                order_id=str(order_id),
                error=str(e),
            ) from e

    async def delete(self, order_id: uuid.UUID) -> bool:
        """
        Delete an order and its line items.

        Returns:
            True if an order was deleted, False if it did not exist

        Raises:
            OrderRepositoryError: If deletion fails
        """
        order = await self.find_by_id(order_id)
        if order is None:
            return False

        try:
            await self.session.delete(order)
            await self.session.commit()

            logger.info(
                "Order deleted",
                order_id=str(order_id),
                order_number=order.order_number,
            )
            return True

        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to delete order",
                order_id=str(order_id),
                error=str(e),
            )
            raise OrderRepositoryError(
                "Failed to delete order",
                order_id=str(order_id),
                error=str(e),
            ) from e

    async def list_orders(
        self,
        email: Optional[str] = None,
        payment_status: Optional[PaymentStatus] = None,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> tuple[Sequence[Order], int]:
        """
        List orders with filtering and pagination.

        Args:
            email: Optional buyer email filter
            payment_status: Optional payment status filter
            page: Page number, starting at 1
            limit: Page size
            sort_by: Column to sort on
            sort_order: "asc" or "desc"

        Returns:
            Tuple of (orders, total_count)

        Raises:
            OrderRepositoryError: If the sort column is unknown or the query fails
        """
        column = SORTABLE_FIELDS.get(sort_by)
        if column is None:
            raise OrderRepositoryError(
                "Unsupported sort field",
                sort_by=sort_by,
                allowed=sorted(SORTABLE_FIELDS),
            )

        conditions = []
        if email:
            conditions.append(Order.buyer_email == email.strip().lower())
        if payment_status:
            conditions.append(Order.payment_status == payment_status)

        ordering = column.asc() if sort_order == "asc" else column.desc()

        try:
            stmt = (
                select(Order)
                .where(*conditions)
                .order_by(ordering)
                .offset((page - 1) * limit)
                .limit(limit)
            )
            count_stmt = select(func.count()).select_from(Order).where(*conditions)

            result = await self.session.execute(stmt)
            count_result = await self.session.execute(count_stmt)

            orders = result.scalars().all()
            total_count = count_result.scalar_one()

            logger.debug(
                "Orders listed",
                count=len(orders),
                total=total_count,
                page=page,
            )

            return orders, total_count

        except SQLAlchemyError as e:
            logger.error("Failed to list orders", error=str(e))
            raise OrderRepositoryError(
                "Failed to list orders",
                error=str(e),
            ) from e
