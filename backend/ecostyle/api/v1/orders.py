"""
Order management API endpoints.

Listing, lookup and administrative edits of orders. Payment state changes
go through the lifecycle coordinator so fulfillment stays consistent with
the payment.
"""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from ecostyle.api.deps import Coordinator, Orders
from ecostyle.api.errors import ORDER_ERRORS, order_http_exception
from ecostyle.core.logging import get_logger
from ecostyle.schemas.orders import (
    OrderCreateRequest,
    OrderDeletedResponse,
    OrderDetailResponse,
    OrderListResponse,
    OrderMessageResponse,
    OrderResponse,
    OrderUpdateRequest,
    PaginationResponse,
    PaymentStatusUpdateRequest,
)
from ecostyle.services.orders.service import DEFAULT_PAGE_SIZE

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


def _listing(orders, pagination) -> OrderListResponse:
    return OrderListResponse(
        orders=[OrderResponse.model_validate(order) for order in orders],
        pagination=PaginationResponse(**pagination),
    )


@router.get(
    "",
    response_model=OrderListResponse,
    summary="List orders",
    description="List orders with optional buyer email and payment status filters",
)
async def list_orders(
    service: Orders,
    email: Optional[str] = None,
    order_status: Annotated[Optional[str], Query(alias="status")] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> OrderListResponse:
    """
    List orders.

    Args:
        service: Order service
        email: Buyer email filter
        order_status: Payment status filter
        page: Page number
        limit: Page size
        sort_by: Column to sort on
        sort_order: "asc" or "desc"

    Returns:
        Orders with pagination

    Raises:
        HTTPException: 400 for invalid filters, 500 if the query fails
    """
    logger.info(
        "Listing orders",
        email=email,
        status=order_status,
        page=page,
        limit=limit,
    )

    try:
        orders, pagination = await service.list_orders(
            email=email,
            status=order_status,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except ORDER_ERRORS as e:
        raise order_http_exception(e, "list_orders") from e

    return _listing(orders, pagination)


@router.get(
    "/history",
    response_model=OrderListResponse,
    summary="Order history",
)
async def order_history(
    service: Orders,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> OrderListResponse:
    """List all orders, newest first by default."""
    try:
        orders, pagination = await service.order_history(
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except ORDER_ERRORS as e:
        raise order_http_exception(e, "order_history") from e

    return _listing(orders, pagination)


@router.get(
    "/order-number/{order_number}",
    response_model=OrderDetailResponse,
    summary="Get order by number",
)
async def get_order_by_number(
    order_number: str,
    service: Orders,
) -> OrderDetailResponse:
    try:
        order = await service.get_order_by_number(order_number)
    except ORDER_ERRORS as e:
        raise order_http_exception(e, "get_order_by_number") from e

    return OrderDetailResponse(order=OrderResponse.model_validate(order))


@router.get(
    "/{order_ref}",
    response_model=OrderDetailResponse,
    summary="Get order",
    description="Get an order by ID or, failing that, by order number",
)
async def get_order(
    order_ref: str,
    service: Orders,
) -> OrderDetailResponse:
    try:
        order = await service.get_order(order_ref)
    except ORDER_ERRORS as e:
        raise order_http_exception(e, "get_order") from e

    return OrderDetailResponse(order=OrderResponse.model_validate(order))


@router.post(
    "",
    response_model=OrderMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create order",
    description="Create an order outside the PayPal checkout",
)
async def create_order(
    request: OrderCreateRequest,
    service: Orders,
) -> OrderMessageResponse:
    """
    Create an order directly.

    Raises:
        HTTPException: 400 for missing fields or invalid items,
            500 if the order cannot be stored
    """
    logger.info(
        "Creating order",
        item_count=len(request.items),
        buyer_email=request.buyer_email,
    )

    try:
        order = await service.create_order(request)
    except ORDER_ERRORS as e:
        raise order_http_exception(e, "create_order") from e

    return OrderMessageResponse(
        message="Order created successfully",
        order=OrderResponse.model_validate(order),
    )


@router.put(
    "/{order_id}",
    response_model=OrderMessageResponse,
    summary="Update order",
)
async def update_order(
    order_id: UUID,
    request: OrderUpdateRequest,
    service: Orders,
) -> OrderMessageResponse:
    """
    Apply an administrative update.

    Raises:
        HTTPException: 404 if the order does not exist
    """
    try:
        order = await service.update_order(order_id, request)
    except ORDER_ERRORS as e:
        raise order_http_exception(e, "update_order") from e

    return OrderMessageResponse(
        message="Order updated successfully",
        order=OrderResponse.model_validate(order),
    )


@router.put(
    "/{order_id}/payment-status",
    response_model=OrderMessageResponse,
    summary="Update payment status",
    description="Set the payment status and the fulfillment status it implies",
)
async def update_payment_status(
    order_id: UUID,
    request: PaymentStatusUpdateRequest,
    coordinator: Coordinator,
) -> OrderMessageResponse:
    """
    Update an order's payment status.

    Raises:
        HTTPException: 400 for unknown statuses, 404 if the order does not exist
    """
    logger.info(
        "Updating payment status",
        order_id=str(order_id),
        payment_status=request.payment_status,
    )

    try:
        order = await coordinator.update_payment_status(
            order_id,
            request.payment_status,
            paypal_payment_id=request.paypal_payment_id,
            paypal_sale_id=request.paypal_sale_id,
        )
    except ORDER_ERRORS as e:
        raise order_http_exception(e, "update_payment_status") from e

    return OrderMessageResponse(
        message="Payment status updated successfully",
        order=OrderResponse.model_validate(order),
    )


@router.delete(
    "/{order_id}",
    response_model=OrderDeletedResponse,
    summary="Delete order",
)
async def delete_order(
    order_id: UUID,
    coordinator: Coordinator,
) -> OrderDeletedResponse:
    """
    Delete an order.

    Raises:
        HTTPException: 404 if the order does not exist,
            409 if its payment was completed
    """
    try:
        await coordinator.delete_order(order_id)
    except ORDER_ERRORS as e:
        raise order_http_exception(e, "delete_order") from e

    return OrderDeletedResponse(
        message="Order deleted successfully",
        order_id=order_id,
    )
