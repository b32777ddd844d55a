"""
PayPal checkout API endpoints.

Creating a payment records a pending order; executing it captures the
payment and completes that order. Cancellation and refunds are recorded on
the same order so its payment status always reflects PayPal.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, HTTPException, Query, status

from ecostyle.api.deps import Coordinator, PayPalGateway
from ecostyle.api.errors import ORDER_ERRORS, order_http_exception
from ecostyle.core.config import get_settings
from ecostyle.core.logging import bind_payment_id, get_logger
from ecostyle.schemas.orders import OrderResponse
from ecostyle.schemas.payments import (
    CancelPaymentRequest,
    CancelPaymentResponse,
    CreatePaymentRequest,
    CreatePaymentResponse,
    ExecutePaymentRequest,
    ExecutePaymentResponse,
    PaymentDetailsResponse,
    PayPalConfigResponse,
    RefundRequest,
    RefundResponse,
)
from ecostyle.services.orders.coordinator import CaptureResult
from ecostyle.services.payments.paypal_client import PayPalClientError

logger = get_logger(__name__)

router = APIRouter(prefix="/paypal", tags=["paypal"])


def _execute_response(
    result: CaptureResult,
    currency: str,
    redirect: Optional[str] = None,
) -> ExecutePaymentResponse:
    order = result.order
    return ExecutePaymentResponse(
        message="Payment executed successfully",
        order_id=str(order.id),
        order_number=order.order_number,
        order=OrderResponse.model_validate(order),
        payment_id=result.payment.payment_id,
        sale_id=result.payment.sale_id,
        state=result.payment.state,
        currency=currency,
        redirect=redirect,
    )


@router.post(
    "/create-payment",
    response_model=CreatePaymentResponse,
    summary="Create PayPal payment",
    description="Create a PayPal payment for the cart and record a pending order",
)
async def create_payment(
    request: CreatePaymentRequest,
    coordinator: Coordinator,
) -> CreatePaymentResponse:
    """
    Create a PayPal payment awaiting buyer approval.

    Args:
        request: Cart items, declared total and optional redirect URLs
        coordinator: Order lifecycle coordinator

    Returns:
        Approval URL and the amounts PayPal will charge

    Raises:
        HTTPException: 400 for invalid carts, 502 for PayPal errors
    """
    logger.info(
        "Creating PayPal payment",
        item_count=len(request.items),
        declared_total=str(request.total_amount),
    )

    try:
        result = await coordinator.create_payment_intent(
            items=request.items,
            declared_total=request.total_amount,
            return_url=request.return_url,
            cancel_url=request.cancel_url,
            buyer_email=request.buyer_email,
            shipping_address=(
                request.shipping_address.model_dump()
                if request.shipping_address
                else None
            ),
        )
    except ORDER_ERRORS as e:
        raise order_http_exception(e, "create_payment") from e

    return CreatePaymentResponse(
        payment_id=result.payment_id,
        approval_url=result.approval_url,
        currency=result.currency,
        subtotal=result.subtotal,
        shipping=result.shipping,
        total=result.total,
        order_number=result.order_number,
        total_adjusted=result.total_adjusted,
    )


@router.get(
    "/execute-payment",
    response_model=ExecutePaymentResponse,
    summary="Handle PayPal approval redirect",
)
async def execute_payment_redirect(
    coordinator: Coordinator,
    payment_id: Annotated[Optional[str], Query(alias="paymentId")] = None,
    payer_id: Annotated[Optional[str], Query(alias="PayerID")] = None,
) -> ExecutePaymentResponse:
    """
    Capture a payment from PayPal's approval redirect.

    The redirect carries no order details, so the pending order recorded at
    creation supplies the amount.
    """
    if payment_id:
        bind_payment_id(payment_id)
    logger.info("PayPal approval redirect received", payer_id=payer_id)

    try:
        result = await coordinator.complete_pending_payment(payment_id, payer_id)
    except ORDER_ERRORS as e:
        raise order_http_exception(e, "execute_payment_redirect") from e

    return _execute_response(result, coordinator.currency, redirect="/orders")


@router.post(
    "/execute-payment",
    response_model=ExecutePaymentResponse,
    summary="Execute PayPal payment",
    description="Capture an approved payment and record the completed order",
)
async def execute_payment(
    request: ExecutePaymentRequest,
    coordinator: Coordinator,
) -> ExecutePaymentResponse:
    """
    Capture an approved PayPal payment.

    Raises:
        HTTPException: 400 for missing data, 409 if already captured,
            502 for PayPal errors, 500 if the capture could not be recorded
    """
    if request.payment_id:
        bind_payment_id(request.payment_id)
    logger.info("Executing PayPal payment", payer_id=request.payer_id)

    try:
        result = await coordinator.capture_payment(
            payment_id=request.payment_id,
            payer_id=request.payer_id,
            order_payload=request.order_data,
        )
    except ORDER_ERRORS as e:
        raise order_http_exception(e, "execute_payment") from e

    logger.info(
        "PayPal payment executed",
        order_number=result.order.order_number,
        sale_id=result.payment.sale_id,
    )
    return _execute_response(result, coordinator.currency)


@router.post(
    "/cancel-payment",
    response_model=CancelPaymentResponse,
    summary="Cancel PayPal payment",
)
async def cancel_payment(
    request: CancelPaymentRequest,
    coordinator: Coordinator,
) -> CancelPaymentResponse:
    """Record a payment the buyer cancelled at PayPal."""
    if request.payment_id:
        bind_payment_id(request.payment_id)

    try:
        order = await coordinator.cancel_payment(
            payment_id=request.payment_id,
            order_payload=request.order_data,
        )
    except ORDER_ERRORS as e:
        raise order_http_exception(e, "cancel_payment") from e

    return CancelPaymentResponse(
        message="Payment cancelled",
        order=OrderResponse.model_validate(order),
    )


@router.post(
    "/refund/{sale_id}",
    response_model=RefundResponse,
    summary="Refund PayPal sale",
    description="Refund a captured sale in full, or in part when an amount is given",
)
async def refund_payment(
    sale_id: str,
    coordinator: Coordinator,
    request: Optional[RefundRequest] = None,
) -> RefundResponse:
    """
    Refund a captured PayPal sale.

    Args:
        sale_id: PayPal sale ID recorded on the order
        request: Optional amount and reason
        coordinator: Order lifecycle coordinator

    Raises:
        HTTPException: 404 if no order holds the sale, 502 for PayPal errors,
            500 if the refund could not be recorded
    """
    request = request or RefundRequest()
    logger.info(
        "Refunding PayPal sale",
        sale_id=sale_id,
        amount=str(request.amount) if request.amount is not None else "full",
    )

    try:
        result = await coordinator.refund(
            capture_reference=sale_id,
            amount=request.amount,
            reason=request.reason,
        )
    except ORDER_ERRORS as e:
        raise order_http_exception(e, "refund_payment") from e

    return RefundResponse(
        message="Refund processed successfully",
        refund_id=result.refund.refund_id,
        state=result.refund.state,
        amount=result.refund.amount,
        currency=coordinator.currency,
        order=OrderResponse.model_validate(result.order),
    )


@router.get(
    "/payment/{payment_id}",
    response_model=PaymentDetailsResponse,
    summary="Get PayPal payment",
)
async def get_payment(
    payment_id: str,
    gateway: PayPalGateway,
) -> PaymentDetailsResponse:
    """Fetch a payment's current details from PayPal."""
    bind_payment_id(payment_id)

    try:
        payment = await gateway.get_payment(payment_id)
    except PayPalClientError as e:
        logger.error(
            "Failed to fetch PayPal payment",
            error=str(e),
            name=e.name,
            debug_id=e.debug_id,
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "message": "Failed to get payment details",
                "code": "PAYMENT_GATEWAY_ERROR",
                "context": {"payment_id": payment_id},
                "gateway": {
                    "name": e.name,
                    "message": str(e),
                    "details": e.details,
                    "debug_id": e.debug_id,
                },
            },
        ) from e

    return PaymentDetailsResponse(payment=payment)


@router.get(
    "/config",
    response_model=PayPalConfigResponse,
    summary="Get PayPal configuration",
)
async def get_config() -> PayPalConfigResponse:
    """Public PayPal settings for the storefront checkout button."""
    settings = get_settings()
    return PayPalConfigResponse(
        client_id=settings.paypal_client_id,
        mode=settings.paypal_mode,
        currency=settings.currency,
    )
