"""
Tests for the PayPal checkout API endpoints.

The lifecycle coordinator and PayPal client are mocked; these tests cover
request parsing, response shapes and the HTTP mapping of checkout errors.
"""

from decimal import Decimal

import pytest
from fastapi import status

from ecostyle.database.models.order import FulfillmentStatus, PaymentStatus
from ecostyle.services.orders.coordinator import (
    CaptureResult,
    OrderStateError,
    OrderValidationError,
    PaymentCapturedNotRecordedError,
    PaymentGatewayError,
    PaymentIntentResult,
    RefundNotRecordedError,
    RefundResult,
)
from ecostyle.services.payments.paypal_client import (
    ExecutedPayment,
    GatewayRefund,
    PayPalClientError,
)


@pytest.fixture
def completed_order(order_factory):
    return order_factory(
        payment_status=PaymentStatus.COMPLETED,
        fulfillment_status=FulfillmentStatus.CONFIRMED,
        paypal_payment_id="PAY-123",
        paypal_sale_id="SALE-456",
    )


@pytest.fixture
def capture_result(completed_order):
    return CaptureResult(
        order=completed_order,
        payment=ExecutedPayment(
            payment_id="PAY-123",
            state="approved",
            sale_id="SALE-456",
        ),
    )


@pytest.fixture
def gateway_error():
    return PaymentGatewayError(
        "Failed to create PayPal payment",
        gateway_error=PayPalClientError(
            "Request is not well-formed",
            status_code=400,
            name="VALIDATION_ERROR",
            details=[{"field": "transactions[0].amount", "issue": "Invalid"}],
            debug_id="dbg-42",
        ),
    )


class TestCreatePayment:
    """Test suite for POST /api/paypal/create-payment."""

    def test_returns_approval_url_and_amounts(
        self, test_client, mock_coordinator, cart_items
    ):
        mock_coordinator.create_payment_intent.return_value = PaymentIntentResult(
            payment_id="PAY-123",
            approval_url="https://www.sandbox.paypal.com/checkoutnow?token=EC-1",
            currency="USD",
            subtotal=Decimal("40.00"),
            shipping=Decimal("10.00"),
            total=Decimal("50.00"),
            order_number="ECO-M1ZK3QX4-7GQ2WD",
            total_adjusted=True,
        )

        response = test_client.post(
            "/api/paypal/create-payment",
            json={"items": cart_items, "total_amount": "1.00"},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "payment_id": "PAY-123",
            "approval_url": "https://www.sandbox.paypal.com/checkoutnow?token=EC-1",
            "currency": "USD",
            "subtotal": "40.00",
            "shipping": "10.00",
            "total": "50.00",
            "order_number": "ECO-M1ZK3QX4-7GQ2WD",
            "total_adjusted": True,
        }
        kwargs = mock_coordinator.create_payment_intent.call_args.kwargs
        assert kwargs["declared_total"] == Decimal("1.00")
        assert kwargs["return_url"] is None
        assert kwargs["shipping_address"] is None

    def test_items_accept_storefront_aliases(self, test_client, mock_coordinator):
        mock_coordinator.create_payment_intent.side_effect = OrderValidationError(
            "Cart is empty"
        )

        test_client.post(
            "/api/paypal/create-payment",
            json={"items": [{"name": "Tee", "price": 12.5, "quantity": 1}]},
        )

        item = mock_coordinator.create_payment_intent.call_args.kwargs["items"][0]
        assert item.unit_price == Decimal("12.5")

    def test_empty_cart_returns_400(self, test_client, mock_coordinator):
        mock_coordinator.create_payment_intent.side_effect = OrderValidationError(
            "Items are required"
        )

        response = test_client.post("/api/paypal/create-payment", json={"items": []})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"

    def test_gateway_error_returns_502_with_diagnostics(
        self, test_client, mock_coordinator, cart_items, gateway_error
    ):
        mock_coordinator.create_payment_intent.side_effect = gateway_error

        response = test_client.post(
            "/api/paypal/create-payment",
            json={"items": cart_items},
        )

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        detail = response.json()["detail"]
        assert detail["code"] == "PAYMENT_GATEWAY_ERROR"
        assert detail["gateway"] == {
            "name": "VALIDATION_ERROR",
            "message": "Request is not well-formed",
            "details": [{"field": "transactions[0].amount", "issue": "Invalid"}],
            "debug_id": "dbg-42",
        }


class TestExecutePayment:
    """Test suite for the execute-payment endpoints."""

    def test_post_captures_payment(
        self, test_client, mock_coordinator, capture_result, cart_items
    ):
        mock_coordinator.capture_payment.return_value = capture_result

        response = test_client.post(
            "/api/paypal/execute-payment",
            json={
                "payment_id": "PAY-123",
                "payer_id": "PAYER-1",
                "order_data": {"items": cart_items, "total_amount": "50.00"},
            },
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Payment executed successfully"
        assert data["order_number"] == capture_result.order.order_number
        assert data["sale_id"] == "SALE-456"
        assert data["currency"] == "USD"
        assert data["redirect"] is None
        assert data["order"]["payment_status"] == "completed"
        kwargs = mock_coordinator.capture_payment.call_args.kwargs
        assert kwargs["payment_id"] == "PAY-123"
        assert kwargs["payer_id"] == "PAYER-1"
        assert kwargs["order_payload"].total_amount == Decimal("50.00")

    def test_get_redirect_uses_paypal_query_names(
        self, test_client, mock_coordinator, capture_result
    ):
        mock_coordinator.complete_pending_payment.return_value = capture_result

        response = test_client.get(
            "/api/paypal/execute-payment",
            params={"paymentId": "PAY-123", "PayerID": "PAYER-1", "token": "EC-1"},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["redirect"] == "/orders"
        mock_coordinator.complete_pending_payment.assert_awaited_once_with(
            "PAY-123", "PAYER-1"
        )

    def test_already_captured_returns_409(self, test_client, mock_coordinator):
        mock_coordinator.capture_payment.side_effect = OrderStateError(
            "Payment already captured",
            code="PAYMENT_ALREADY_CAPTURED",
            payment_id="PAY-123",
        )

        response = test_client.post(
            "/api/paypal/execute-payment",
            json={"payment_id": "PAY-123", "payer_id": "PAYER-1"},
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["detail"]["code"] == "PAYMENT_ALREADY_CAPTURED"

    def test_captured_but_not_recorded_returns_500(
        self, test_client, mock_coordinator
    ):
        mock_coordinator.capture_payment.side_effect = PaymentCapturedNotRecordedError(
            "Payment captured but order could not be saved",
            payment_id="PAY-123",
            capture_reference="SALE-456",
            order_number="ECO-M1ZK3QX4-7GQ2WD",
        )

        response = test_client.post(
            "/api/paypal/execute-payment",
            json={"payment_id": "PAY-123", "payer_id": "PAYER-1"},
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        detail = response.json()["detail"]
        assert detail["code"] == "PAYMENT_CAPTURED_ORDER_NOT_SAVED"
        assert detail["payment_id"] == "PAY-123"
        assert detail["capture_reference"] == "SALE-456"
        assert detail["order_number"] == "ECO-M1ZK3QX4-7GQ2WD"

    def test_missing_ids_returns_400(self, test_client, mock_coordinator):
        mock_coordinator.capture_payment.side_effect = OrderValidationError(
            "Payment ID and Payer ID are required"
        )

        response = test_client.post("/api/paypal/execute-payment", json={})

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestCancelPayment:
    """Test suite for POST /api/paypal/cancel-payment."""

    def test_records_cancellation(self, test_client, mock_coordinator, order_factory):
        order = order_factory(
            payment_status=PaymentStatus.CANCELLED,
            fulfillment_status=FulfillmentStatus.CANCELLED,
            paypal_payment_id="PAY-123",
        )
        mock_coordinator.cancel_payment.return_value = order

        response = test_client.post(
            "/api/paypal/cancel-payment",
            json={"payment_id": "PAY-123"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"] == "Payment cancelled"
        assert data["order"]["payment_status"] == "cancelled"
        assert data["order"]["fulfillment_status"] == "cancelled"


class TestRefund:
    """Test suite for POST /api/paypal/refund/{sale_id}."""

    def test_full_refund_without_body(
        self, test_client, mock_coordinator, completed_order
    ):
        completed_order.payment_status = PaymentStatus.REFUNDED
        mock_coordinator.refund.return_value = RefundResult(
            order=completed_order,
            refund=GatewayRefund(
                refund_id="REF-789",
                state="completed",
                amount=Decimal("50.00"),
            ),
        )

        response = test_client.post("/api/paypal/refund/SALE-456")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"] == "Refund processed successfully"
        assert data["refund_id"] == "REF-789"
        assert data["amount"] == "50.00"
        assert data["order"]["payment_status"] == "refunded"
        mock_coordinator.refund.assert_awaited_once_with(
            capture_reference="SALE-456",
            amount=None,
            reason=None,
        )

    def test_partial_refund(self, test_client, mock_coordinator, completed_order):
        mock_coordinator.refund.return_value = RefundResult(
            order=completed_order,
            refund=GatewayRefund(
                refund_id="REF-790",
                state="completed",
                amount=Decimal("10.00"),
            ),
        )

        response = test_client.post(
            "/api/paypal/refund/SALE-456",
            json={"amount": "10.00", "reason": "Damaged"},
        )

        assert response.status_code == status.HTTP_200_OK
        kwargs = mock_coordinator.refund.call_args.kwargs
        assert kwargs["amount"] == Decimal("10.00")
        assert kwargs["reason"] == "Damaged"

    def test_refund_not_recorded_returns_500(self, test_client, mock_coordinator):
        mock_coordinator.refund.side_effect = RefundNotRecordedError(
            "Refund processed but order could not be updated",
            capture_reference="SALE-456",
            refund_id="REF-789",
        )

        response = test_client.post("/api/paypal/refund/SALE-456")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        detail = response.json()["detail"]
        assert detail["code"] == "REFUND_NOT_RECORDED"
        assert detail["refund_id"] == "REF-789"

    def test_gateway_rejection_returns_502(
        self, test_client, mock_coordinator, gateway_error
    ):
        mock_coordinator.refund.side_effect = gateway_error

        response = test_client.post("/api/paypal/refund/SALE-456")

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json()["detail"]["gateway"]["debug_id"] == "dbg-42"


class TestPaymentDetails:
    """Test suite for GET /api/paypal/payment/{payment_id}."""

    def test_returns_paypal_payment(self, test_client, mock_gateway):
        mock_gateway.get_payment.return_value = {"id": "PAY-123", "state": "approved"}

        response = test_client.get("/api/paypal/payment/PAY-123")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "payment": {"id": "PAY-123", "state": "approved"}
        }

    def test_gateway_error_returns_502(self, test_client, mock_gateway):
        mock_gateway.get_payment.side_effect = PayPalClientError(
            "The requested resource was not found",
            status_code=404,
            name="INVALID_RESOURCE_ID",
            debug_id="dbg-7",
        )

        response = test_client.get("/api/paypal/payment/PAY-404")

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        detail = response.json()["detail"]
        assert detail["message"] == "Failed to get payment details"
        assert detail["context"] == {"payment_id": "PAY-404"}
        assert detail["gateway"]["name"] == "INVALID_RESOURCE_ID"


class TestConfig:
    def test_public_configuration(self, test_client):
        response = test_client.get("/api/paypal/config")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "client_id": "test-client-id",
            "mode": "sandbox",
            "currency": "USD",
        }
