"""
Order model for checkout, payment and fulfillment tracking.

This module defines the Order and OrderItem models. An order records what the
buyer purchased (line items copied from the catalog at creation time), what
was charged, and where the order stands on the payment and fulfillment axes.
Line items and amounts are fixed once the order exists; only statuses,
gateway references, tracking data and notes change afterwards.
"""

import secrets
import string
import time
import uuid
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Enum as SQLEnum,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ecostyle.database.base import BaseModel
from ecostyle.services.payments.pricing import to_money

ORDER_NUMBER_PREFIX = "ECO"
NOTES_MAX_LENGTH = 500

_BASE36_ALPHABET = string.digits + string.ascii_uppercase


class PaymentStatus(str, Enum):
    """
    Payment status enumeration for tracking the payment lifecycle.

    Attributes:
        PENDING: Checkout started, buyer has not approved or payment not captured
        COMPLETED: Payment captured by the gateway
        FAILED: Payment failed
        CANCELLED: Buyer cancelled at the gateway
        REFUNDED: Captured payment refunded in full or in part
    """

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"

    @classmethod
    def from_string(cls, value: str) -> "PaymentStatus":
        """
        Create PaymentStatus from string value.

        Raises:
            ValueError: If value is not a valid status
        """
        try:
            return cls(value.lower())
        except (ValueError, AttributeError):
            raise ValueError(f"Invalid payment status: {value}")


class FulfillmentStatus(str, Enum):
    """
    Fulfillment status enumeration for tracking order shipping.

    Attributes:
        PROCESSING: Order received, not yet confirmed for shipping
        CONFIRMED: Payment captured, order confirmed for shipping
        SHIPPED: Order handed to the carrier
        DELIVERED: Order delivered to the buyer
        CANCELLED: Order will not be shipped
    """

    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @classmethod
    def from_string(cls, value: str) -> "FulfillmentStatus":
        """
        Create FulfillmentStatus from string value.

        Raises:
            ValueError: If value is not a valid status
        """
        try:
            return cls(value.lower())
        except (ValueError, AttributeError):
            raise ValueError(f"Invalid fulfillment status: {value}")


class PaymentProvider(str, Enum):
    """Payment providers an order can be paid through."""

    PAYPAL = "paypal"


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_order_number() -> str:
    """
    Generate a human-readable order number.

    The number combines the creation time in milliseconds and six random
    characters, both base36, e.g. ``ECO-M1ZK3QX4-7GQ2WD``.

    Returns:
        Upper-case order number
    """
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(6))
    return f"{ORDER_NUMBER_PREFIX}-{timestamp}-{suffix}"


class Order(BaseModel):
    """
    Customer order with payment and fulfillment tracking.

    Attributes:
        id: Unique order identifier (UUID)
        order_number: Human-readable order number, assigned once
        items: Line items copied from the catalog at creation
        subtotal: Sum of line item prices times quantities
        shipping_amount: Shipping charged for the order
        total_amount: Amount charged, subtotal plus shipping
        currency: ISO currency code of all amounts
        buyer_email: Buyer contact email, lower-cased
        shipping_address: Delivery address stored as JSONB
        payment_provider: Gateway the order is paid through
        payment_status: Current payment status (enum)
        paypal_payment_id: Gateway payment (intent) reference
        paypal_sale_id: Gateway sale (capture) reference
        fulfillment_status: Current fulfillment status (enum)
        tracking_number: Carrier tracking number
        notes: Free-form notes, refund notes land here
        created_at: Record creation timestamp
        updated_at: Last modification timestamp
    """

    __tablename__ = "orders"

    order_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
        default=generate_order_number,
        comment="Human-readable order number",
    )

    # Pricing fields
    subtotal: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Sum of line item prices times quantities",
    )

    shipping_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        default=Decimal("0.00"),
        comment="Shipping charges",
    )

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Total charged, subtotal plus shipping",
    )

    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="USD",
        comment="ISO 4217 currency code",
    )

    # Buyer information
    buyer_email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        comment="Buyer contact email",
    )

    shipping_address: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSONB,
        nullable=True,
        comment="Shipping address stored as JSONB",
    )

    # Payment tracking
    payment_provider: Mapped[PaymentProvider] = mapped_column(
        SQLEnum(PaymentProvider, name="payment_provider", create_constraint=True),
        nullable=False,
        default=PaymentProvider.PAYPAL,
        comment="Payment gateway",
    )

    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus, name="payment_status", create_constraint=True),
        nullable=False,
        default=PaymentStatus.PENDING,
        index=True,
        comment="Current payment status",
    )

    paypal_payment_id: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        index=True,
        comment="PayPal payment identifier",
    )

    paypal_sale_id: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        index=True,
        comment="PayPal sale (capture) identifier",
    )

    # Fulfillment tracking
    fulfillment_status: Mapped[FulfillmentStatus] = mapped_column(
        SQLEnum(FulfillmentStatus, name="fulfillment_status", create_constraint=True),
        nullable=False,
        default=FulfillmentStatus.PROCESSING,
        index=True,
        comment="Current fulfillment status",
    )

    tracking_number: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="Carrier tracking number",
    )

    notes: Mapped[Optional[str]] = mapped_column(
        String(NOTES_MAX_LENGTH),
        nullable=True,
        comment="Additional order notes",
    )

    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )

    __table_args__ = (
        Index("ix_orders_status_created", "payment_status", "created_at"),
        Index("ix_orders_email_created", "buyer_email", "created_at"),
        CheckConstraint("subtotal >= 0", name="ck_orders_subtotal_non_negative"),
        CheckConstraint(
            "shipping_amount >= 0",
            name="ck_orders_shipping_amount_non_negative",
        ),
        CheckConstraint(
            "total_amount >= 0",
            name="ck_orders_total_amount_non_negative",
        ),
        {"comment": "Customer orders with payment and fulfillment tracking"},
    )

    def __init__(self, **kwargs: Any):
        # Column defaults only fire on flush; apply them up front so a new
        # order is usable before it is persisted.
        kwargs.setdefault("id", uuid.uuid4())
        kwargs.setdefault("order_number", generate_order_number())
        kwargs.setdefault("shipping_amount", Decimal("0.00"))
        kwargs.setdefault("currency", "USD")
        kwargs.setdefault("payment_provider", PaymentProvider.PAYPAL)
        kwargs.setdefault("payment_status", PaymentStatus.PENDING)
        kwargs.setdefault("fulfillment_status", FulfillmentStatus.PROCESSING)
        super().__init__(**kwargs)

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, order_number={self.order_number}, "
            f"payment_status={self.payment_status.value}, "
            f"total_amount={self.total_amount})>"
        )

    @property
    def item_count(self) -> int:
        """Total number of units across all line items."""
        return sum(item.quantity for item in self.items)

    @property
    def formatted_total(self) -> str:
        """Total amount formatted as a currency string."""
        return f"${to_money(self.total_amount):,.2f}"

    @property
    def can_be_cancelled(self) -> bool:
        """
        Check if the order is still eligible for cancellation.

        An order can be cancelled while it is processing and its payment has
        not been captured.
        """
        return (
            self.fulfillment_status == FulfillmentStatus.PROCESSING
            and self.payment_status != PaymentStatus.COMPLETED
        )

    def recalculate_subtotal(self) -> Decimal:
        """
        Recompute the subtotal from the line items.

        Returns:
            Sum of unit price times quantity, rounded to cents
        """
        return to_money(sum((item.line_total for item in self.items), Decimal("0")))

    def to_dict(self) -> dict[str, Any]:
        """
        Convert order to dictionary representation.

        Monetary values are rendered as two-decimal strings.
        """
        return {
            "id": str(self.id),
            "order_number": self.order_number,
            "items": [item.to_dict() for item in self.items],
            "item_count": self.item_count,
            "subtotal": str(to_money(self.subtotal)),
            "shipping_amount": str(to_money(self.shipping_amount)),
            "total_amount": str(to_money(self.total_amount)),
            "formatted_total": self.formatted_total,
            "currency": self.currency,
            "buyer_email": self.buyer_email,
            "shipping_address": self.shipping_address,
            "payment_provider": self.payment_provider.value,
            "payment_status": self.payment_status.value,
            "paypal_payment_id": self.paypal_payment_id,
            "paypal_sale_id": self.paypal_sale_id,
            "fulfillment_status": self.fulfillment_status.value,
            "tracking_number": self.tracking_number,
            "notes": self.notes,
            "can_be_cancelled": self.can_be_cancelled,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class OrderItem(BaseModel):
    """
    Line item of an order.

    Name, price and eco tags are copies taken when the order was created, so
    later catalog edits do not change what the buyer was charged for.
    """

    __tablename__ = "order_items"

    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Parent order",
    )

    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
        index=True,
        comment="Catalog product the item was taken from",
    )

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Line position within the order",
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Product name at time of purchase",
    )

    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Unit price at time of purchase",
    )

    quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Number of units",
    )

    eco_tags: Mapped[list[str]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default=text("'[]'::jsonb"),
        comment="Eco tags at time of purchase",
    )

    order: Mapped["Order"] = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
        CheckConstraint("unit_price > 0", name="ck_order_items_unit_price_positive"),
    )

    def __init__(self, **kwargs: Any):
        kwargs.setdefault("id", uuid.uuid4())
        kwargs.setdefault("position", 0)
        kwargs.setdefault("eco_tags", [])
        super().__init__(**kwargs)

    @property
    def line_total(self) -> Decimal:
        """Unit price times quantity."""
        return to_money(self.unit_price) * self.quantity

    def to_dict(self) -> dict[str, Any]:
        """Convert line item to dictionary representation."""
        return {
            "product_id": str(self.product_id) if self.product_id else None,
            "name": self.name,
            "unit_price": str(to_money(self.unit_price)),
            "quantity": self.quantity,
            "eco_tags": list(self.eco_tags or []),
        }
