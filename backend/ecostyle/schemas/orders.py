"""
Order Pydantic schemas for API request/response validation.

Request schemas check the shape of incoming data; the business rules on
items (positive prices and quantities, at least one item) are enforced by
the order services so that violations surface as 400 responses with a
stable error code. Monetary values are serialized as two-decimal strings.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Optional
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    PlainSerializer,
    field_validator,
)

from ecostyle.database.models.order import (
    NOTES_MAX_LENGTH,
    FulfillmentStatus,
    PaymentProvider,
    PaymentStatus,
)
from ecostyle.services.payments.pricing import to_money

Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: str(to_money(v)), return_type=str, when_used="json"),
]

REQUIRED_ADDRESS_FIELDS = ("street", "city", "state", "zip_code", "country")


class ShippingAddress(BaseModel):
    """Shipping address of an order."""

    model_config = ConfigDict(str_strip_whitespace=True)

    street: Optional[str] = Field(None, max_length=255, description="Street address")
    city: Optional[str] = Field(None, max_length=100, description="City")
    state: Optional[str] = Field(None, max_length=100, description="State or region")
    zip_code: Optional[str] = Field(
        None,
        max_length=20,
        validation_alias=AliasChoices("zip_code", "zipCode"),
        description="Postal/ZIP code",
    )
    country: Optional[str] = Field("US", max_length=2, description="Country code")

    @field_validator("country")
    @classmethod
    def validate_country_code(cls, v: Optional[str]) -> Optional[str]:
        """Normalize country code to upper case."""
        return v.upper() if v else v

    def missing_fields(self) -> list[str]:
        """Names of the address fields that are empty."""
        return [name for name in REQUIRED_ADDRESS_FIELDS if not getattr(self, name)]


class OrderItemRequest(BaseModel):
    """Line item as sent by the storefront cart."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    product_id: Optional[UUID] = Field(
        None,
        validation_alias=AliasChoices("product_id", "product"),
        description="Catalog product identifier",
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Product name",
    )
    unit_price: Decimal = Field(
        ...,
        validation_alias=AliasChoices("unit_price", "price"),
        description="Unit price in the checkout currency",
    )
    quantity: int = Field(..., description="Number of units")
    eco_tags: list[str] = Field(
        default_factory=list,
        description="Eco tags of the product",
    )


class OrderDataRequest(BaseModel):
    """
    Order details sent along with a capture or cancellation.

    The total is informational; the amount charged is always recomputed from
    the items.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    items: list[OrderItemRequest] = Field(
        default_factory=list,
        description="Items being purchased",
    )
    total_amount: Optional[Decimal] = Field(
        None,
        description="Total displayed to the buyer",
    )
    buyer_email: Optional[EmailStr] = Field(None, description="Buyer email")
    shipping_address: Optional[ShippingAddress] = Field(
        None,
        description="Shipping address",
    )
    notes: Optional[str] = Field(None, max_length=NOTES_MAX_LENGTH)

    @field_validator("buyer_email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        """Lower-case the email address."""
        return v.lower() if v else v


class OrderCreateRequest(OrderDataRequest):
    """
    Direct order creation request.

    Buyer email and a complete shipping address are required; missing values
    are reported by the order service with the list of missing fields.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "items": [
                    {
                        "product_id": "123e4567-e89b-12d3-a456-426614174000",
                        "name": "Organic Cotton Tee",
                        "unit_price": "29.99",
                        "quantity": 2,
                        "eco_tags": ["organic-cotton"],
                    }
                ],
                "buyer_email": "buyer@example.com",
                "shipping_address": {
                    "street": "1 Green Way",
                    "city": "Portland",
                    "state": "OR",
                    "zip_code": "97201",
                    "country": "US",
                },
            }
        },
    )


class OrderUpdateRequest(BaseModel):
    """
    Order update request.

    Items and amounts are not part of this schema; any such keys in the
    request body are ignored.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    fulfillment_status: Optional[FulfillmentStatus] = Field(
        None,
        validation_alias=AliasChoices("fulfillment_status", "order_status"),
        description="New fulfillment status",
    )
    payment_status: Optional[PaymentStatus] = Field(
        None,
        description="New payment status",
    )
    tracking_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=NOTES_MAX_LENGTH)
    shipping_address: Optional[ShippingAddress] = None
    buyer_email: Optional[EmailStr] = None

    @field_validator("buyer_email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        """Lower-case the email address."""
        return v.lower() if v else v


class PaymentStatusUpdateRequest(BaseModel):
    """Payment status change request."""

    payment_status: str = Field(
        ...,
        min_length=1,
        description="New payment status",
    )
    paypal_payment_id: Optional[str] = Field(None, max_length=100)
    paypal_sale_id: Optional[str] = Field(None, max_length=100)


class OrderItemResponse(BaseModel):
    """Line item in order responses."""

    model_config = ConfigDict(from_attributes=True)

    product_id: Optional[UUID] = None
    name: str
    unit_price: Money
    quantity: int
    eco_tags: list[str] = Field(default_factory=list)


class OrderResponse(BaseModel):
    """Order response with derived fields."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_number: str
    items: list[OrderItemResponse]
    item_count: int
    subtotal: Money
    shipping_amount: Money
    total_amount: Money
    formatted_total: str
    currency: str
    buyer_email: Optional[str] = None
    shipping_address: Optional[dict[str, Any]] = None
    payment_provider: PaymentProvider
    payment_status: PaymentStatus
    paypal_payment_id: Optional[str] = None
    paypal_sale_id: Optional[str] = None
    fulfillment_status: FulfillmentStatus
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    can_be_cancelled: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaginationResponse(BaseModel):
    """Pagination block for order listings."""

    current_page: int
    total_pages: int
    total_orders: int
    has_next: bool
    has_prev: bool


class OrderListResponse(BaseModel):
    """Paginated order listing."""

    orders: list[OrderResponse]
    pagination: PaginationResponse


class OrderMessageResponse(BaseModel):
    """Order mutation response."""

    message: str
    order: OrderResponse


class OrderDeletedResponse(BaseModel):
    """Order deletion response."""

    message: str
    order_id: UUID


class OrderDetailResponse(BaseModel):
    """Single order response."""

    order: OrderResponse
