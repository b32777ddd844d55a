"""
Order lifecycle coordinator for PayPal checkout.

This module implements the OrderLifecycleCoordinator, which ties the order
store to the payment gateway. It creates payment intents, captures approved
payments and records them as orders, handles cancellations and refunds, and
keeps payment and fulfillment status consistent.

The one failure mode that needs special care is a payment that the gateway
captured but that could not be written to the order store. Money has moved
at that point, so the failure is raised as PaymentCapturedNotRecordedError
with the gateway references needed for manual reconciliation, logged at
critical level, and never retried.
"""

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Sequence, Union

from ecostyle.core.logging import bind_payment_id, get_logger
from ecostyle.database.models.order import (
    NOTES_MAX_LENGTH,
    FulfillmentStatus,
    Order,
    OrderItem,
    PaymentStatus,
    generate_order_number,
)
from ecostyle.schemas.orders import OrderDataRequest, OrderItemRequest
from ecostyle.services.orders.repository import (
    OrderNotFoundError,
    OrderRepository,
    OrderRepositoryError,
)
from ecostyle.services.payments.paypal_client import (
    ExecutedPayment,
    GatewayRefund,
    PaymentLineItem,
    PayPalClient,
    PayPalClientError,
)
from ecostyle.services.payments.pricing import CheckoutPricing, CheckoutQuote, to_money

logger = get_logger(__name__)

# Fulfillment status implied by a payment status change
FULFILLMENT_FOR_PAYMENT = {
    PaymentStatus.COMPLETED: FulfillmentStatus.CONFIRMED,
    PaymentStatus.FAILED: FulfillmentStatus.CANCELLED,
    PaymentStatus.CANCELLED: FulfillmentStatus.CANCELLED,
}

SETTLED_PAYMENT_STATUSES = (PaymentStatus.COMPLETED, PaymentStatus.REFUNDED)


class OrderLifecycleError(Exception):
    """Base exception for order lifecycle errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class OrderValidationError(OrderLifecycleError):
    """Raised when checkout or order input is invalid."""

    pass


class OrderStateError(OrderLifecycleError):
    """Raised when an operation is not allowed in the order's current state."""

    def __init__(
        self,
        message: str,
        code: str = "ORDER_STATE_CONFLICT",
        **context: Any,
    ):
        super().__init__(message, **context)
        self.code = code


class PaymentGatewayError(OrderLifecycleError):
    """
    Raised when PayPal rejects a call or cannot be reached.

    Carries PayPal's diagnostic fields so they can be shown to the caller.
    """

    def __init__(
        self,
        message: str,
        gateway_error: Optional[PayPalClientError] = None,
        **context: Any,
    ):
        super().__init__(message, **context)
        self.gateway_error = gateway_error
        self.name = gateway_error.name if gateway_error else None
        self.gateway_message = gateway_error.message if gateway_error else None
        self.details = gateway_error.details if gateway_error else []
        self.debug_id = gateway_error.debug_id if gateway_error else None
        self.status_code = gateway_error.status_code if gateway_error else None


class OrderPersistenceError(OrderLifecycleError):
    """Raised when the order store cannot record a change."""

    pass


class PaymentCapturedNotRecordedError(OrderPersistenceError):
    """Raised when a captured payment could not be recorded as an order."""

    def __init__(
        self,
        message: str,
        payment_id: str,
        capture_reference: Optional[str],
        order_number: str,
        **context: Any,
    ):
        super().__init__(
            message,
            payment_id=payment_id,
            capture_reference=capture_reference,
            order_number=order_number,
            **context,
        )
        self.payment_id = payment_id
        self.capture_reference = capture_reference
        self.order_number = order_number


class RefundNotRecordedError(OrderPersistenceError):
    """Raised when a refund went through at PayPal but the order was not updated."""

    def __init__(
        self,
        message: str,
        capture_reference: str,
        refund_id: str,
        **context: Any,
    ):
        super().__init__(
            message,
            capture_reference=capture_reference,
            refund_id=refund_id,
            **context,
        )
        self.capture_reference = capture_reference
        self.refund_id = refund_id


@dataclass(frozen=True)
class PaymentIntentResult:
    """Payment created at PayPal together with its pending order."""

    payment_id: str
    approval_url: str
    currency: str
    subtotal: Decimal
    shipping: Decimal
    total: Decimal
    order_number: str
    total_adjusted: bool = False


@dataclass(frozen=True)
class CaptureResult:
    """Captured payment and the order recording it."""

    order: Order
    payment: ExecutedPayment


@dataclass(frozen=True)
class RefundResult:
    """Refund issued at PayPal and the updated order."""

    order: Order
    refund: GatewayRefund


class OrderLifecycleCoordinator:
    """
    Coordinates the payment lifecycle of orders.

    Attributes:
        repository: Order store
        gateway: PayPal client
        pricing: Checkout pricing policy
        return_url: Default URL PayPal redirects to after approval
        cancel_url: Default URL PayPal redirects to on cancellation
    """

    def __init__(
        self,
        repository: OrderRepository,
        gateway: PayPalClient,
        pricing: CheckoutPricing,
        return_url: str,
        cancel_url: str,
    ):
        self.repository = repository
        self.gateway = gateway
        self.pricing = pricing
        self.return_url = return_url
        self.cancel_url = cancel_url

    @property
    def currency(self) -> str:
        return self.pricing.currency

    @staticmethod
    def validate_items(items: Optional[Sequence[OrderItemRequest]]) -> None:
        """
        Check that there is at least one item and every item is chargeable.

        Raises:
            OrderValidationError: If items are missing or invalid
        """
        if not items:
            raise OrderValidationError("Items are required")

        for index, item in enumerate(items):
            # Prices are charged and stored in whole cents
            if item.unit_price is None or to_money(item.unit_price) <= 0:
                raise OrderValidationError(
                    "Item price must be greater than 0",
                    item_index=index,
                    name=item.name,
                )
            if (
                isinstance(item.quantity, bool)
                or not isinstance(item.quantity, int)
                or item.quantity <= 0
            ):
                raise OrderValidationError(
                    "Item quantity must be a whole number greater than 0",
                    item_index=index,
                    name=item.name,
                )

    @staticmethod
    def build_order_items(items: Sequence[OrderItemRequest]) -> list[OrderItem]:
        """Copy request line items into order line items."""
        return [
            OrderItem(
                product_id=item.product_id,
                position=position,
                name=item.name,
                unit_price=to_money(item.unit_price),
                quantity=item.quantity,
                eco_tags=list(item.eco_tags),
            )
            for position, item in enumerate(items)
        ]

    def build_order(
        self,
        items: Sequence[OrderItemRequest],
        quote: CheckoutQuote,
        **fields: Any,
    ) -> Order:
        """Create an in-memory order whose amounts come from a quote."""
        return Order(
            items=self.build_order_items(items),
            subtotal=quote.subtotal,
            shipping_amount=quote.shipping,
            total_amount=quote.total,
            currency=self.currency,
            **fields,
        )

    @staticmethod
    def _address_dict(payload: Optional[OrderDataRequest]) -> Optional[dict[str, Any]]:
        if payload is None or payload.shipping_address is None:
            return None
        return payload.shipping_address.model_dump()

    async def create_payment_intent(
        self,
        items: Sequence[OrderItemRequest],
        declared_total: Optional[Union[Decimal, float, str]],
        return_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
        buyer_email: Optional[str] = None,
        shipping_address: Optional[dict[str, Any]] = None,
    ) -> PaymentIntentResult:
        """
        Create a PayPal payment and record a pending order for it.

        Args:
            items: Cart line items
            declared_total: Total displayed to the buyer
            return_url: Approval redirect, defaults to the configured URL
            cancel_url: Cancellation redirect, defaults to the configured URL
            buyer_email: Optional buyer email stored on the pending order
            shipping_address: Optional address stored on the pending order

        Returns:
            PaymentIntentResult with the approval URL and charged amounts

        Raises:
            OrderValidationError: If items or the declared total are invalid
            PaymentGatewayError: If PayPal rejects the payment
            OrderPersistenceError: If the pending order cannot be recorded
        """
        self.validate_items(items)
        if declared_total is None or to_money(declared_total) <= 0:
            raise OrderValidationError("Valid total amount is required")

        quote = self.pricing.quote(items, declared_total)

        line_items = [
            PaymentLineItem(
                name=item.name,
                unit_price=to_money(item.unit_price),
                quantity=item.quantity,
                sku=str(item.product_id) if item.product_id else None,
            )
            for item in items
        ]

        try:
            payment = await self.gateway.create_payment(
                items=line_items,
                subtotal=quote.subtotal,
                shipping=quote.shipping,
                total=quote.total,
                currency=self.currency,
                return_url=return_url or self.return_url,
                cancel_url=cancel_url or self.cancel_url,
            )
        except PayPalClientError as e:
            logger.error(
                "PayPal payment creation failed",
                error=str(e),
                name=e.name,
                debug_id=e.debug_id,
            )
            raise PaymentGatewayError(
                "Failed to create PayPal payment",
                gateway_error=e,
            ) from e

        bind_payment_id(payment.payment_id)

        order = self.build_order(
            items,
            quote,
            payment_status=PaymentStatus.PENDING,
            fulfillment_status=FulfillmentStatus.PROCESSING,
            paypal_payment_id=payment.payment_id,
            buyer_email=buyer_email,
            shipping_address=shipping_address,
        )

        try:
            order = await self.repository.insert(order)
        except OrderRepositoryError as e:
            logger.error(
                "Pending order could not be recorded",
                payment_id=payment.payment_id,
                error=str(e),
            )
            raise OrderPersistenceError(
                "Payment created but pending order could not be recorded",
                payment_id=payment.payment_id,
            ) from e

        logger.info(
            "Payment intent created",
            payment_id=payment.payment_id,
            order_number=order.order_number,
            total=str(quote.total),
            total_adjusted=quote.adjusted,
        )

        return PaymentIntentResult(
            payment_id=payment.payment_id,
            approval_url=payment.approval_url,
            currency=self.currency,
            subtotal=quote.subtotal,
            shipping=quote.shipping,
            total=quote.total,
            order_number=order.order_number,
            total_adjusted=quote.adjusted,
        )

    async def _find_existing(self, payment_id: str) -> Optional[Order]:
        try:
            order = await self.repository.find_by_payment_reference(payment_id)
        except OrderRepositoryError as e:
            raise OrderPersistenceError(
                "Could not look up order for payment",
                payment_id=payment_id,
            ) from e

        if order is not None and order.payment_status in SETTLED_PAYMENT_STATUSES:
            raise OrderStateError(
                "Payment has already been captured",
                code="PAYMENT_ALREADY_CAPTURED",
                payment_id=payment_id,
                order_number=order.order_number,
                payment_status=order.payment_status.value,
            )
        return order

    async def _find_capturable(self, payment_id: str) -> Optional[Order]:
        """Look up the order for a payment that is about to be executed."""
        order = await self._find_existing(payment_id)

        # Only pending -> completed is a valid capture transition
        if order is not None and order.payment_status != PaymentStatus.PENDING:
            raise OrderStateError(
                f"Payment is {order.payment_status.value} and cannot be captured",
                payment_id=payment_id,
                order_number=order.order_number,
                payment_status=order.payment_status.value,
            )
        return order

    async def _execute(
        self,
        payment_id: str,
        payer_id: str,
        total: Decimal,
    ) -> ExecutedPayment:
        try:
            return await self.gateway.execute_payment(
                payment_id=payment_id,
                payer_id=payer_id,
                total=total,
                currency=self.currency,
            )
        except PayPalClientError as e:
            logger.error(
                "PayPal payment execution failed",
                payment_id=payment_id,
                error=str(e),
                name=e.name,
                debug_id=e.debug_id,
            )
            raise PaymentGatewayError(
                "Failed to execute PayPal payment",
                gateway_error=e,
                payment_id=payment_id,
            ) from e

    async def _record_capture(
        self,
        payment_id: str,
        executed: ExecutedPayment,
        existing: Optional[Order],
        payload: Optional[OrderDataRequest],
        quote: Optional[CheckoutQuote],
    ) -> Order:
        order_number = existing.order_number if existing else generate_order_number()
        if not executed.sale_id:
            # Without a capture reference the order could never be refunded
            logger.critical(
                "Payment captured without a capture reference",
                payment_id=payment_id,
                order_number=order_number,
                state=executed.state,
            )
            raise PaymentCapturedNotRecordedError(
                "Payment successful but PayPal returned no capture reference",
                payment_id=payment_id,
                capture_reference=None,
                order_number=order_number,
            )

        capture_fields: dict[str, Any] = {
            "payment_status": PaymentStatus.COMPLETED,
            "fulfillment_status": FulfillmentStatus.CONFIRMED,
            "paypal_payment_id": payment_id,
            "paypal_sale_id": executed.sale_id,
        }
        if payload is not None:
            if payload.buyer_email:
                capture_fields["buyer_email"] = payload.buyer_email
            if payload.shipping_address is not None:
                capture_fields["shipping_address"] = self._address_dict(payload)

        try:
            if existing is not None:
                order = await self.repository.update_fields(existing.id, capture_fields)
                if order is None:
                    raise OrderRepositoryError(
                        "Pending order no longer exists",
                        order_id=str(existing.id),
                    )
            else:
                order = await self.repository.insert(
                    self.build_order(
                        payload.items,
                        quote,
                        order_number=order_number,
                        notes=payload.notes,
                        **capture_fields,
                    )
                )
        except Exception as e:
            logger.critical(
                "Payment captured but order could not be recorded",
                payment_id=payment_id,
                capture_reference=executed.sale_id,
                order_number=order_number,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise PaymentCapturedNotRecordedError(
                "Payment successful but failed to record order",
                payment_id=payment_id,
                capture_reference=executed.sale_id,
                order_number=order_number,
            ) from e

        logger.info(
            "Payment captured",
            payment_id=payment_id,
            capture_reference=executed.sale_id,
            order_number=order.order_number,
            total=str(order.total_amount),
        )
        return order

    async def capture_payment(
        self,
        payment_id: Optional[str],
        payer_id: Optional[str],
        order_payload: Optional[OrderDataRequest],
    ) -> CaptureResult:
        """
        Execute an approved payment and record it as a completed order.

        The amount charged comes from the pending order recorded when the
        payment was created, or, when there is none, from the payload items.

        Args:
            payment_id: PayPal payment ID
            payer_id: PayPal payer ID
            order_payload: Order details from the storefront

        Returns:
            CaptureResult with the completed order

        Raises:
            OrderValidationError: If identifiers or order details are missing,
                checked before PayPal is called
            OrderStateError: If the payment was already captured, cancelled
                or failed
            PaymentGatewayError: If PayPal rejects the execution
            PaymentCapturedNotRecordedError: If the capture succeeded but the
                order could not be recorded
        """
        if not payment_id or not payer_id:
            raise OrderValidationError(
                "Payment ID and Payer ID are required",
                payment_id=payment_id,
                payer_id=payer_id,
            )
        if order_payload is None or not order_payload.items:
            raise OrderValidationError(
                "Order data is required to create order",
                payment_id=payment_id,
            )
        self.validate_items(order_payload.items)

        bind_payment_id(payment_id)
        existing = await self._find_capturable(payment_id)

        quote: Optional[CheckoutQuote] = None
        if existing is not None:
            total = to_money(existing.total_amount)
        else:
            quote = self.pricing.quote(order_payload.items, order_payload.total_amount)
            total = quote.total

        logger.info(
            "Capturing payment",
            payment_id=payment_id,
            total=str(total),
            has_pending_order=existing is not None,
        )

        executed = await self._execute(payment_id, payer_id, total)
        order = await self._record_capture(
            payment_id, executed, existing, order_payload, quote
        )
        return CaptureResult(order=order, payment=executed)

    async def complete_pending_payment(
        self,
        payment_id: Optional[str],
        payer_id: Optional[str],
    ) -> CaptureResult:
        """
        Execute an approved payment using only the recorded pending order.

        Used for the PayPal approval redirect, which carries no order data.

        Raises:
            OrderValidationError: If identifiers are missing
            OrderNotFoundError: If no order was recorded for the payment
            OrderStateError: If the payment was already captured, cancelled
                or failed
            PaymentGatewayError: If PayPal rejects the execution
            PaymentCapturedNotRecordedError: If the capture succeeded but the
                order could not be updated
        """
        if not payment_id or not payer_id:
            raise OrderValidationError(
                "Payment ID and Payer ID are required",
                payment_id=payment_id,
                payer_id=payer_id,
            )

        bind_payment_id(payment_id)
        existing = await self._find_capturable(payment_id)
        if existing is None:
            raise OrderNotFoundError(
                "No pending order recorded for this payment",
                payment_id=payment_id,
            )

        executed = await self._execute(
            payment_id, payer_id, to_money(existing.total_amount)
        )
        order = await self._record_capture(payment_id, executed, existing, None, None)
        return CaptureResult(order=order, payment=executed)

    async def cancel_payment(
        self,
        payment_id: Optional[str],
        order_payload: Optional[OrderDataRequest] = None,
    ) -> Order:
        """
        Record a payment the buyer cancelled at PayPal.

        PayPal is not called. The pending order is marked cancelled, or a new
        cancelled order is recorded from the payload when there is none.

        Raises:
            OrderValidationError: If the payment ID or, without a pending
                order, the order details are missing
            OrderStateError: If the payment was already captured
            OrderPersistenceError: If the cancellation cannot be recorded
        """
        if not payment_id:
            raise OrderValidationError("Payment ID is required")

        bind_payment_id(payment_id)
        existing = await self._find_existing(payment_id)

        cancel_fields: dict[str, Any] = {
            "payment_status": PaymentStatus.CANCELLED,
            "fulfillment_status": FulfillmentStatus.CANCELLED,
            "paypal_payment_id": payment_id,
        }

        if existing is None:
            if order_payload is None or not order_payload.items:
                raise OrderValidationError(
                    "Order data is required to record a cancelled payment",
                    payment_id=payment_id,
                )
            self.validate_items(order_payload.items)

        try:
            if existing is not None:
                order = await self.repository.update_fields(existing.id, cancel_fields)
                if order is None:
                    raise OrderNotFoundError(
                        "Order not found",
                        order_id=str(existing.id),
                    )
            else:
                quote = self.pricing.quote(order_payload.items)
                order = await self.repository.insert(
                    self.build_order(
                        order_payload.items,
                        quote,
                        buyer_email=order_payload.buyer_email,
                        shipping_address=self._address_dict(order_payload),
                        notes=order_payload.notes,
                        **cancel_fields,
                    )
                )
        except OrderNotFoundError:
            raise
        except OrderRepositoryError as e:
            logger.error(
                "Cancelled payment could not be recorded",
                payment_id=payment_id,
                error=str(e),
            )
            raise OrderPersistenceError(
                "Failed to record payment cancellation",
                payment_id=payment_id,
            ) from e

        logger.info(
            "Payment cancelled",
            payment_id=payment_id,
            order_number=order.order_number,
        )
        return order

    async def update_payment_status(
        self,
        order_id: uuid.UUID,
        status: Union[str, PaymentStatus],
        paypal_payment_id: Optional[str] = None,
        paypal_sale_id: Optional[str] = None,
    ) -> Order:
        """
        Set an order's payment status and the fulfillment status it implies.

        Completed payments confirm the order; failed and cancelled payments
        cancel it. Items and amounts are never touched.

        Raises:
            OrderValidationError: If the status is not a payment status
            OrderNotFoundError: If the order does not exist
            OrderPersistenceError: If the update fails
        """
        try:
            payment_status = PaymentStatus.from_string(
                status.value if isinstance(status, PaymentStatus) else status
            )
        except ValueError as e:
            raise OrderValidationError(
                "Invalid payment status. Must be one of: "
                + ", ".join(s.value for s in PaymentStatus),
                status=str(status),
            ) from e

        changes: dict[str, Any] = {"payment_status": payment_status}
        fulfillment = FULFILLMENT_FOR_PAYMENT.get(payment_status)
        if fulfillment is not None:
            changes["fulfillment_status"] = fulfillment
        if paypal_payment_id:
            changes["paypal_payment_id"] = paypal_payment_id
        if paypal_sale_id:
            changes["paypal_sale_id"] = paypal_sale_id

        try:
            order = await self.repository.update_fields(order_id, changes)
        except OrderRepositoryError as e:
            raise OrderPersistenceError(
                "Failed to update payment status",
                order_id=str(order_id),
            ) from e

        if order is None:
            raise OrderNotFoundError("Order not found", order_id=str(order_id))

        logger.info(
            "Payment status updated",
            order_id=str(order_id),
            payment_status=payment_status.value,
            fulfillment_status=order.fulfillment_status.value,
        )
        return order

    async def refund(
        self,
        capture_reference: Optional[str],
        amount: Optional[Union[Decimal, float, str]] = None,
        reason: Optional[str] = None,
    ) -> RefundResult:
        """
        Refund a captured sale in full or in part.

        Args:
            capture_reference: PayPal sale ID of the capture
            amount: Amount to refund, the full sale when omitted
            reason: Note stored on the order

        Returns:
            RefundResult with the refunded order

        Raises:
            OrderValidationError: If the reference or amount is invalid
            OrderNotFoundError: If no order has this capture reference
            PaymentGatewayError: If PayPal rejects the refund
            RefundNotRecordedError: If the refund succeeded but the order
                could not be updated
        """
        if not capture_reference:
            raise OrderValidationError("Payment ID is required")

        try:
            order = await self.repository.find_by_capture_reference(capture_reference)
        except OrderRepositoryError as e:
            raise OrderPersistenceError(
                "Could not look up order for refund",
                capture_reference=capture_reference,
            ) from e

        if order is None:
            raise OrderNotFoundError(
                "Order not found for this payment",
                capture_reference=capture_reference,
            )

        refund_amount: Optional[Decimal] = None
        if amount is not None:
            refund_amount = to_money(amount)
            if refund_amount <= 0 or refund_amount > to_money(order.total_amount):
                raise OrderValidationError(
                    "Refund amount must be greater than 0 and not exceed the order total",
                    amount=str(refund_amount),
                    total_amount=str(order.total_amount),
                )

        try:
            refund = await self.gateway.refund_sale(
                sale_id=capture_reference,
                amount=refund_amount,
                currency=order.currency,
            )
        except PayPalClientError as e:
            logger.error(
                "PayPal refund failed",
                capture_reference=capture_reference,
                error=str(e),
                name=e.name,
                debug_id=e.debug_id,
            )
            raise PaymentGatewayError(
                "Failed to process refund",
                gateway_error=e,
                capture_reference=capture_reference,
            ) from e

        note = (reason or f"Refunded: {refund.refund_id}")[:NOTES_MAX_LENGTH]

        try:
            updated = await self.repository.update_fields(
                order.id,
                {"payment_status": PaymentStatus.REFUNDED, "notes": note},
            )
            if updated is None:
                raise OrderRepositoryError(
                    "Order no longer exists",
                    order_id=str(order.id),
                )
        except Exception as e:
            logger.critical(
                "Refund processed but order could not be updated",
                capture_reference=capture_reference,
                refund_id=refund.refund_id,
                order_number=order.order_number,
                error=str(e),
            )
            raise RefundNotRecordedError(
                "Refund processed but failed to update order",
                capture_reference=capture_reference,
                refund_id=refund.refund_id,
                order_number=order.order_number,
            ) from e

        logger.info(
            "Refund processed",
            capture_reference=capture_reference,
            refund_id=refund.refund_id,
            amount=str(refund_amount) if refund_amount is not None else "full",
            order_number=updated.order_number,
        )
        return RefundResult(order=updated, refund=refund)

    def can_cancel(self, order: Order) -> bool:
        """Check whether an order is still eligible for cancellation."""
        return order.can_be_cancelled

    async def delete_order(self, order_id: uuid.UUID) -> None:
        """
        Delete an order unless its payment was captured.

        Raises:
            OrderNotFoundError: If the order does not exist
            OrderStateError: If the order's payment is completed
            OrderPersistenceError: If deletion fails
        """
        try:
            order = await self.repository.find_by_id(order_id)
        except OrderRepositoryError as e:
            raise OrderPersistenceError(
                "Failed to load order",
                order_id=str(order_id),
            ) from e

        if order is None:
            raise OrderNotFoundError("Order not found", order_id=str(order_id))

        if order.payment_status == PaymentStatus.COMPLETED:
            raise OrderStateError(
                "Cannot delete completed orders",
                code="ORDER_COMPLETED",
                order_id=str(order_id),
                order_number=order.order_number,
            )

        try:
            deleted = await self.repository.delete(order_id)
        except OrderRepositoryError as e:
            raise OrderPersistenceError(
                "Failed to delete order",
                order_id=str(order_id),
            ) from e

        if not deleted:
            raise OrderNotFoundError("Order not found", order_id=str(order_id))

        logger.info(
            "Order deleted",
            order_id=str(order_id),
            order_number=order.order_number,
        )
