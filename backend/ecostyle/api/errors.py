"""
Translation of service exceptions into HTTP errors.

Every error response carries a ``detail`` object with a human readable
``message``, a stable ``code`` and the exception's ``context``.
"""

from typing import Any

from fastapi import HTTPException, status

from ecostyle.core.logging import get_logger
from ecostyle.services.orders.coordinator import (
    OrderLifecycleError,
    OrderPersistenceError,
    OrderStateError,
    OrderValidationError,
    PaymentCapturedNotRecordedError,
    PaymentGatewayError,
    RefundNotRecordedError,
)
from ecostyle.services.orders.repository import OrderNotFoundError, OrderRepositoryError
from ecostyle.services.products.repository import (
    ProductNotFoundError,
    ProductRepositoryError,
)
from ecostyle.services.products.service import (
    ProductServiceError,
    ProductValidationError,
)

logger = get_logger(__name__)

# Exceptions the endpoints translate with the functions below
ORDER_ERRORS = (OrderLifecycleError, OrderRepositoryError)
PRODUCT_ERRORS = (ProductServiceError, ProductRepositoryError)


def _detail(
    message: str,
    code: str,
    context: dict[str, Any],
    **extra: Any,
) -> dict[str, Any]:
    detail = {"message": message, "code": code, "context": context}
    detail.update(extra)
    return detail


def order_http_exception(error: Exception, operation: str) -> HTTPException:
    """
    Map an order or payment exception to an HTTPException.

    Args:
        error: Exception raised by the order services
        operation: Name of the API operation, for logging

    Returns:
        HTTPException to raise from the endpoint
    """
    context = getattr(error, "context", {})

    if isinstance(error, OrderValidationError):
        logger.warning(
            "Order request rejected",
            operation=operation,
            error=str(error),
            context=context,
        )
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_detail(str(error), "VALIDATION_ERROR", context),
        )

    if isinstance(error, OrderNotFoundError):
        logger.warning("Order not found", operation=operation, context=context)
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=_detail(str(error), "ORDER_NOT_FOUND", context),
        )

    if isinstance(error, OrderStateError):
        logger.warning(
            "Order state conflict",
            operation=operation,
            error=str(error),
            code=error.code,
            context=context,
        )
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=_detail(str(error), error.code, context),
        )

    if isinstance(error, PaymentGatewayError):
        logger.error(
            "Payment gateway error",
            operation=operation,
            error=str(error),
            name=error.name,
            debug_id=error.debug_id,
        )
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=_detail(
                str(error),
                "PAYMENT_GATEWAY_ERROR",
                context,
                gateway={
                    "name": error.name,
                    "message": error.gateway_message,
                    "details": error.details,
                    "debug_id": error.debug_id,
                },
            ),
        )

    if isinstance(error, PaymentCapturedNotRecordedError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_detail(
                str(error),
                "PAYMENT_CAPTURED_ORDER_NOT_SAVED",
                context,
                payment_id=error.payment_id,
                capture_reference=error.capture_reference,
                order_number=error.order_number,
            ),
        )

    if isinstance(error, RefundNotRecordedError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_detail(
                str(error),
                "REFUND_NOT_RECORDED",
                context,
                capture_reference=error.capture_reference,
                refund_id=error.refund_id,
            ),
        )

    if isinstance(error, OrderPersistenceError):
        logger.error(
            "Order persistence error",
            operation=operation,
            error=str(error),
            context=context,
        )
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_detail(str(error), "PERSISTENCE_ERROR", context),
        )

    logger.error(
        "Unexpected order error",
        operation=operation,
        error=str(error),
        error_type=type(error).__name__,
    )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=_detail("An unexpected error occurred", "INTERNAL_ERROR", {}),
    )


def product_http_exception(error: Exception, operation: str) -> HTTPException:
    """Map a catalog exception to an HTTPException."""
    context = getattr(error, "context", {})

    if isinstance(error, ProductValidationError):
        logger.warning(
            "Product request rejected",
            operation=operation,
            error=str(error),
        )
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_detail(str(error), "VALIDATION_ERROR", context),
        )

    if isinstance(error, ProductNotFoundError):
        logger.warning("Product not found", operation=operation, context=context)
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=_detail(str(error), "PRODUCT_NOT_FOUND", context),
        )

    logger.error(
        "Product operation failed",
        operation=operation,
        error=str(error),
        error_type=type(error).__name__,
    )
    code = (
        "DATABASE_ERROR"
        if isinstance(error, ProductRepositoryError)
        else "INTERNAL_ERROR"
    )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=_detail(f"Failed to {operation.replace('_', ' ')}", code, {}),
    )
