"""
PayPal checkout Pydantic schemas for API request/response validation.
"""

from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ecostyle.database.models.order import NOTES_MAX_LENGTH
from ecostyle.schemas.orders import (
    Money,
    OrderDataRequest,
    OrderItemRequest,
    OrderResponse,
    ShippingAddress,
)


class CreatePaymentRequest(BaseModel):
    """Request to start a PayPal checkout for the cart."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "items": [
                    {
                        "product_id": "123e4567-e89b-12d3-a456-426614174000",
                        "name": "Organic Cotton Tee",
                        "unit_price": "29.99",
                        "quantity": 1,
                    }
                ],
                "total_amount": "39.99",
            }
        },
    )

    items: list[OrderItemRequest] = Field(
        default_factory=list,
        description="Cart line items",
    )
    total_amount: Optional[Decimal] = Field(
        None,
        description="Total displayed to the buyer",
    )
    return_url: Optional[str] = Field(None, max_length=500)
    cancel_url: Optional[str] = Field(None, max_length=500)
    buyer_email: Optional[EmailStr] = None
    shipping_address: Optional[ShippingAddress] = None

    @field_validator("buyer_email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        """Lower-case the email address."""
        return v.lower() if v else v


class CreatePaymentResponse(BaseModel):
    """PayPal payment awaiting buyer approval."""

    payment_id: str
    approval_url: str
    currency: str
    subtotal: Money
    shipping: Money
    total: Money
    order_number: str
    total_adjusted: bool = Field(
        False,
        description="True when the declared total was replaced by the computed one",
    )


class ExecutePaymentRequest(BaseModel):
    """Request to capture an approved PayPal payment."""

    model_config = ConfigDict(str_strip_whitespace=True)

    payment_id: Optional[str] = Field(None, max_length=100)
    payer_id: Optional[str] = Field(None, max_length=100)
    order_data: Optional[OrderDataRequest] = None


class ExecutePaymentResponse(BaseModel):
    """Captured payment and the recorded order."""

    success: bool = True
    message: str
    order_id: str
    order_number: str
    order: OrderResponse
    payment_id: str
    sale_id: Optional[str] = None
    state: str
    currency: str
    redirect: Optional[str] = Field(
        None,
        description="Storefront page to show after an approval redirect",
    )


class CancelPaymentRequest(BaseModel):
    """Request to record a payment the buyer cancelled."""

    model_config = ConfigDict(str_strip_whitespace=True)

    payment_id: Optional[str] = Field(None, max_length=100)
    order_data: Optional[OrderDataRequest] = None


class CancelPaymentResponse(BaseModel):
    success: bool = True
    message: str
    order: OrderResponse


class RefundRequest(BaseModel):
    """Refund request; omit the amount for a full refund."""

    amount: Optional[Decimal] = Field(None, description="Amount to refund")
    reason: Optional[str] = Field(None, max_length=NOTES_MAX_LENGTH)


class RefundResponse(BaseModel):
    success: bool = True
    message: str
    refund_id: str
    state: str
    amount: Optional[Money] = None
    currency: str
    order: OrderResponse


class PaymentDetailsResponse(BaseModel):
    """Payment as returned by PayPal."""

    payment: dict[str, Any]


class PayPalConfigResponse(BaseModel):
    """Public PayPal configuration for the storefront checkout button."""

    client_id: str
    mode: Literal["sandbox", "live"]
    currency: str
