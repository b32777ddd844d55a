"""
Tests for the order management API endpoints.

The order service and lifecycle coordinator are replaced with mocks so the
tests exercise routing, request validation, response serialization and the
mapping of service errors to HTTP responses.
"""

import uuid

import pytest
from fastapi import status

from ecostyle.database.models.order import FulfillmentStatus, PaymentStatus
from ecostyle.services.orders.coordinator import (
    OrderPersistenceError,
    OrderStateError,
    OrderValidationError,
)
from ecostyle.services.orders.repository import OrderNotFoundError
from ecostyle.services.orders.service import build_pagination


class TestListOrders:
    """Test suite for GET /api/orders."""

    def test_lists_orders_with_pagination(
        self, test_client, mock_order_service, order_factory
    ):
        orders = [order_factory(), order_factory()]
        mock_order_service.list_orders.return_value = (
            orders,
            build_pagination(1, 20, 2),
        )

        response = test_client.get("/api/orders")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert len(data["orders"]) == 2
        assert data["pagination"]["total_orders"] == 2
        assert data["pagination"]["has_next"] is False
        assert data["orders"][0]["order_number"] == orders[0].order_number

    def test_money_serialized_as_strings(
        self, test_client, mock_order_service, order_factory
    ):
        mock_order_service.list_orders.return_value = (
            [order_factory()],
            build_pagination(1, 20, 1),
        )

        response = test_client.get("/api/orders")

        order = response.json()["orders"][0]
        assert order["subtotal"] == "40.00"
        assert order["shipping_amount"] == "10.00"
        assert order["total_amount"] == "50.00"
        assert order["formatted_total"] == "$50.00"
        assert order["items"][0]["unit_price"] == "20.00"
        assert order["item_count"] == 2

    def test_filters_forwarded_to_service(self, test_client, mock_order_service):
        mock_order_service.list_orders.return_value = ([], build_pagination(2, 5, 0))

        response = test_client.get(
            "/api/orders",
            params={
                "email": "buyer@example.com",
                "status": "completed",
                "page": 2,
                "limit": 5,
                "sort_order": "asc",
            },
        )

        assert response.status_code == status.HTTP_200_OK
        mock_order_service.list_orders.assert_awaited_once_with(
            email="buyer@example.com",
            status="completed",
            page=2,
            limit=5,
            sort_by="created_at",
            sort_order="asc",
        )

    def test_invalid_filter_returns_400(self, test_client, mock_order_service):
        mock_order_service.list_orders.side_effect = OrderValidationError(
            "Invalid payment status: paid",
            status="paid",
        )

        response = test_client.get("/api/orders", params={"status": "paid"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        detail = response.json()["detail"]
        assert detail["code"] == "VALIDATION_ERROR"
        assert detail["context"] == {"status": "paid"}

    def test_history(self, test_client, mock_order_service):
        mock_order_service.order_history.return_value = ([], build_pagination(1, 20, 0))

        response = test_client.get("/api/orders/history")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["orders"] == []
        mock_order_service.order_history.assert_awaited_once()


class TestGetOrder:
    """Test suite for order lookup endpoints."""

    def test_get_by_reference(self, test_client, mock_order_service, order_factory):
        order = order_factory()
        mock_order_service.get_order.return_value = order

        response = test_client.get(f"/api/orders/{order.id}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["order"]["id"] == str(order.id)
        mock_order_service.get_order.assert_awaited_once_with(str(order.id))

    def test_get_by_order_number(
        self, test_client, mock_order_service, order_factory
    ):
        order = order_factory()
        mock_order_service.get_order_by_number.return_value = order

        response = test_client.get(f"/api/orders/order-number/{order.order_number}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["order"]["order_number"] == order.order_number

    def test_missing_order_returns_404(self, test_client, mock_order_service):
        mock_order_service.get_order.side_effect = OrderNotFoundError(
            "Order not found",
            order_ref="ECO-NOPE-000000",
        )

        response = test_client.get("/api/orders/ECO-NOPE-000000")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"]["code"] == "ORDER_NOT_FOUND"


class TestCreateOrder:
    """Test suite for POST /api/orders."""

    def test_creates_order(
        self,
        test_client,
        mock_order_service,
        order_factory,
        cart_items,
        shipping_address,
    ):
        mock_order_service.create_order.return_value = order_factory()

        response = test_client.post(
            "/api/orders",
            json={
                "items": cart_items,
                "buyer_email": "Buyer@Example.com",
                "shipping_address": shipping_address,
            },
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["message"] == "Order created successfully"
        request = mock_order_service.create_order.call_args.args[0]
        assert request.buyer_email == "buyer@example.com"
        assert request.items[0].quantity == 2

    def test_missing_fields_returns_400(self, test_client, mock_order_service):
        mock_order_service.create_order.side_effect = OrderValidationError(
            "Missing required fields",
            missing_fields=["items", "buyer_email", "shipping_address"],
        )

        response = test_client.post("/api/orders", json={})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        detail = response.json()["detail"]
        assert detail["context"]["missing_fields"] == [
            "items",
            "buyer_email",
            "shipping_address",
        ]

    def test_malformed_email_rejected_by_schema(self, test_client, mock_order_service):
        response = test_client.post("/api/orders", json={"buyer_email": "not-an-email"})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error"] == "Validation Error"
        mock_order_service.create_order.assert_not_called()

    def test_store_failure_returns_500(
        self, test_client, mock_order_service, cart_items, shipping_address
    ):
        mock_order_service.create_order.side_effect = OrderPersistenceError(
            "Failed to store order"
        )

        response = test_client.post(
            "/api/orders",
            json={
                "items": cart_items,
                "buyer_email": "buyer@example.com",
                "shipping_address": shipping_address,
            },
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["detail"]["code"] == "PERSISTENCE_ERROR"


class TestUpdateOrder:
    """Test suite for order update endpoints."""

    def test_update_order(self, test_client, mock_order_service, order_factory):
        order = order_factory(tracking_number="1Z999")
        mock_order_service.update_order.return_value = order

        response = test_client.put(
            f"/api/orders/{order.id}",
            json={"order_status": "shipped", "tracking_number": "1Z999"},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Order updated successfully"
        order_id, request = mock_order_service.update_order.call_args.args
        assert order_id == order.id
        assert request.fulfillment_status == FulfillmentStatus.SHIPPED

    def test_invalid_order_id_rejected(self, test_client, mock_order_service):
        response = test_client.put("/api/orders/not-a-uuid", json={})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        mock_order_service.update_order.assert_not_called()

    def test_update_payment_status(
        self, test_client, mock_coordinator, order_factory
    ):
        order = order_factory(
            payment_status=PaymentStatus.COMPLETED,
            fulfillment_status=FulfillmentStatus.CONFIRMED,
            paypal_sale_id="SALE-456",
        )
        mock_coordinator.update_payment_status.return_value = order

        response = test_client.put(
            f"/api/orders/{order.id}/payment-status",
            json={"payment_status": "completed", "paypal_sale_id": "SALE-456"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"] == "Payment status updated successfully"
        assert data["order"]["payment_status"] == "completed"
        assert data["order"]["fulfillment_status"] == "confirmed"
        mock_coordinator.update_payment_status.assert_awaited_once_with(
            order.id,
            "completed",
            paypal_payment_id=None,
            paypal_sale_id="SALE-456",
        )

    def test_unknown_payment_status_returns_400(self, test_client, mock_coordinator):
        mock_coordinator.update_payment_status.side_effect = OrderValidationError(
            "Invalid payment status: paid"
        )

        response = test_client.put(
            f"/api/orders/{uuid.uuid4()}/payment-status",
            json={"payment_status": "paid"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestDeleteOrder:
    """Test suite for DELETE /api/orders/{order_id}."""

    def test_delete_order(self, test_client, mock_coordinator):
        order_id = uuid.uuid4()

        response = test_client.delete(f"/api/orders/{order_id}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "message": "Order deleted successfully",
            "order_id": str(order_id),
        }
        mock_coordinator.delete_order.assert_awaited_once_with(order_id)

    def test_completed_order_returns_409(self, test_client, mock_coordinator):
        mock_coordinator.delete_order.side_effect = OrderStateError(
            "Cannot delete completed order",
            code="ORDER_COMPLETED",
        )

        response = test_client.delete(f"/api/orders/{uuid.uuid4()}")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["detail"]["code"] == "ORDER_COMPLETED"

    @pytest.mark.parametrize(
        "error,expected_status",
        [
            (OrderNotFoundError("Order not found"), status.HTTP_404_NOT_FOUND),
            (
                OrderPersistenceError("Failed to delete order"),
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            ),
        ],
    )
    def test_error_mapping(self, test_client, mock_coordinator, error, expected_status):
        mock_coordinator.delete_order.side_effect = error

        response = test_client.delete(f"/api/orders/{uuid.uuid4()}")

        assert response.status_code == expected_status
