"""
PayPal REST API client with error handling and structured logging.

This module wraps the PayPal Payments v1 REST API (sale intent) behind an
async client built on httpx. It covers the calls the checkout needs: create a
payment and obtain the buyer approval URL, execute an approved payment,
refund a sale and look a payment up. Credentials are passed in explicitly.

Calls are never retried. Executing a payment or refunding a sale moves money,
and repeating such a call after an ambiguous failure could charge or refund
twice; failures are raised to the caller with whatever diagnostic data
PayPal returned.
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Literal, Optional

import httpx

from ecostyle.core.logging import get_logger, log_performance
from ecostyle.services.payments.pricing import to_money

logger = get_logger(__name__)

SANDBOX_BASE_URL = "https://api-m.sandbox.paypal.com"
LIVE_BASE_URL = "https://api-m.paypal.com"

# Refresh the access token this many seconds before PayPal expires it
TOKEN_EXPIRY_MARGIN_SECONDS = 60

DEFAULT_DESCRIPTION = "EcoStyle Sustainable Fashion Purchase"


class PayPalClientError(Exception):
    """
    Base exception for PayPal client errors.

    Carries the diagnostic fields of a PayPal error response so they can be
    forwarded to API callers and support staff.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        name: Optional[str] = None,
        details: Optional[list[dict[str, Any]]] = None,
        debug_id: Optional[str] = None,
        **context: Any,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.name = name
        self.details = details or []
        self.debug_id = debug_id
        self.context = context


class PayPalAuthenticationError(PayPalClientError):
    """Exception for rejected client credentials or access tokens."""

    pass


class PayPalConnectionError(PayPalClientError):
    """Exception for network failures and timeouts talking to PayPal."""

    pass


@dataclass(frozen=True)
class PaymentLineItem:
    """Line item as sent to PayPal in the payment item list."""

    name: str
    unit_price: Decimal
    quantity: int
    sku: Optional[str] = None


@dataclass(frozen=True)
class GatewayPayment:
    """Payment created at PayPal, waiting for buyer approval."""

    payment_id: str
    approval_url: str
    state: str


@dataclass(frozen=True)
class ExecutedPayment:
    """Result of executing an approved payment."""

    payment_id: str
    state: str
    sale_id: Optional[str]
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class GatewayRefund:
    """Result of refunding a sale."""

    refund_id: str
    state: str
    amount: Optional[Decimal]
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


def _extract_sale_id(payment: dict[str, Any]) -> Optional[str]:
    try:
        return payment["transactions"][0]["related_resources"][0]["sale"]["id"]
    except (KeyError, IndexError, TypeError):
        return None


class PayPalClient:
    """
    Async PayPal REST client.

    An OAuth2 access token is obtained with the client credentials grant and
    cached until shortly before it expires.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        mode: Literal["sandbox", "live"] = "sandbox",
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize PayPal client.

        Args:
            client_id: REST application client ID
            client_secret: REST application client secret
            mode: PayPal environment, sandbox or live
            timeout: Timeout for a single API call in seconds
            http_client: Preconfigured httpx client, mainly for tests
        """
        if mode not in ("sandbox", "live"):
            raise ValueError(f"Invalid PayPal mode: {mode}")

        self.client_id = client_id
        self._client_secret = client_secret
        self.mode = mode
        self.base_url = LIVE_BASE_URL if mode == "live" else SANDBOX_BASE_URL
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json"},
        )
        self._access_token: Optional[str] = None
        self._token_expires_at = 0.0

        if not client_id or not client_secret:
            logger.warning("PayPal client has no credentials configured", mode=mode)

        logger.info("PayPal client initialized", mode=mode, base_url=self.base_url)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this client created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _get_access_token(self) -> str:
        if self._access_token and time.monotonic() < self._token_expires_at:
            return self._access_token

        try:
            response = await self._client.post(
                f"{self.base_url}/v1/oauth2/token",
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self._client_secret),
            )
        except httpx.HTTPError as e:
            logger.error(
                "PayPal token request failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise PayPalConnectionError(
                f"Could not reach PayPal: {e}",
                name="CONNECTION_ERROR",
            ) from e

        if response.is_error:
            error = self._error_from_response(response, PayPalAuthenticationError)
            logger.error(
                "PayPal authentication failed",
                status_code=response.status_code,
                name=error.name,
                debug_id=error.debug_id,
            )
            raise error

        payload = response.json()
        self._access_token = payload["access_token"]
        expires_in = int(payload.get("expires_in", 0))
        self._token_expires_at = time.monotonic() + max(
            expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 0
        )

        logger.debug("PayPal access token obtained", expires_in=expires_in)
        return self._access_token

    def _error_from_response(
        self,
        response: httpx.Response,
        error_class: type[PayPalClientError] = PayPalClientError,
    ) -> PayPalClientError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        # The token endpoint reports errors in OAuth2 form
        name = body.get("name") or body.get("error")
        message = (
            body.get("message")
            or body.get("error_description")
            or f"PayPal request failed with status {response.status_code}"
        )
        debug_id = body.get("debug_id") or response.headers.get("PayPal-Debug-Id")

        return error_class(
            message,
            status_code=response.status_code,
            name=name,
            details=body.get("details"),
            debug_id=debug_id,
        )

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        json: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        token = await self._get_access_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        try:
            with log_performance(logger, operation, path=path):
                response = await self._client.request(
                    method,
                    f"{self.base_url}{path}",
                    json=json,
                    headers=headers,
                )
        except httpx.HTTPError as e:
            raise PayPalConnectionError(
                f"Could not reach PayPal: {e}",
                name="CONNECTION_ERROR",
                operation=operation,
            ) from e

        if response.status_code == 401:
            self._access_token = None
            raise self._error_from_response(response, PayPalAuthenticationError)

        if response.is_error:
            error = self._error_from_response(response)
            logger.error(
                "PayPal request rejected",
                operation=operation,
                status_code=response.status_code,
                name=error.name,
                message=error.message,
                debug_id=error.debug_id,
            )
            raise error

        if not response.content:
            return {}
        return response.json()

    async def create_payment(
        self,
        items: Iterable[PaymentLineItem],
        subtotal: Decimal,
        shipping: Decimal,
        total: Decimal,
        currency: str,
        return_url: str,
        cancel_url: str,
        description: str = DEFAULT_DESCRIPTION,
    ) -> GatewayPayment:
        """
        Create a sale payment and return the buyer approval URL.

        Args:
            items: Line items shown to the buyer at PayPal
            subtotal: Sum of line items
            shipping: Shipping charge
            total: Amount to charge, subtotal plus shipping
            currency: ISO currency code
            return_url: Where PayPal sends the buyer after approval
            cancel_url: Where PayPal sends the buyer on cancellation
            description: Transaction description

        Returns:
            GatewayPayment with the payment ID and approval URL

        Raises:
            PayPalClientError: If PayPal rejects the payment or returns no
                approval link
        """
        item_list = []
        for item in items:
            entry: dict[str, Any] = {
                "name": item.name,
                "price": str(to_money(item.unit_price)),
                "currency": currency,
                "quantity": int(item.quantity),
            }
            if item.sku:
                entry["sku"] = item.sku
            item_list.append(entry)

        body = {
            "intent": "sale",
            "payer": {"payment_method": "paypal"},
            "redirect_urls": {"return_url": return_url, "cancel_url": cancel_url},
            "transactions": [
                {
                    "item_list": {"items": item_list},
                    "amount": {
                        "currency": currency,
                        "total": str(to_money(total)),
                        "details": {
                            "subtotal": str(to_money(subtotal)),
                            "shipping": str(to_money(shipping)),
                            "tax": "0.00",
                        },
                    },
                    "description": description,
                }
            ],
        }

        logger.info(
            "Creating PayPal payment",
            item_count=len(item_list),
            subtotal=str(subtotal),
            shipping=str(shipping),
            total=str(total),
            currency=currency,
        )

        payment = await self._request(
            "POST", "/v1/payments/payment", "paypal_create_payment", json=body
        )

        approval_url = next(
            (
                link.get("href")
                for link in payment.get("links", [])
                if link.get("rel") == "approval_url"
            ),
            None,
        )
        if not approval_url:
            raise PayPalClientError(
                "PayPal approval URL not found",
                name="MISSING_APPROVAL_URL",
                payment_id=payment.get("id"),
            )

        logger.info(
            "PayPal payment created",
            payment_id=payment["id"],
            state=payment.get("state"),
        )

        return GatewayPayment(
            payment_id=payment["id"],
            approval_url=approval_url,
            state=payment.get("state", "created"),
        )

    async def execute_payment(
        self,
        payment_id: str,
        payer_id: str,
        total: Decimal,
        currency: str,
    ) -> ExecutedPayment:
        """
        Execute (capture) a payment the buyer approved.

        Args:
            payment_id: PayPal payment ID
            payer_id: PayPal payer ID from the approval redirect
            total: Amount to capture
            currency: ISO currency code

        Returns:
            ExecutedPayment including the sale ID of the capture

        Raises:
            PayPalClientError: If PayPal rejects the execution
        """
        body = {
            "payer_id": payer_id,
            "transactions": [
                {"amount": {"currency": currency, "total": str(to_money(total))}}
            ],
        }

        payment = await self._request(
            "POST",
            f"/v1/payments/payment/{payment_id}/execute",
            "paypal_execute_payment",
            json=body,
        )

        sale_id = _extract_sale_id(payment)
        if sale_id is None:
            logger.error(
                "Executed PayPal payment has no sale reference",
                payment_id=payment_id,
            )

        logger.info(
            "PayPal payment executed",
            payment_id=payment.get("id", payment_id),
            state=payment.get("state"),
            sale_id=sale_id,
        )

        return ExecutedPayment(
            payment_id=payment.get("id", payment_id),
            state=payment.get("state", ""),
            sale_id=sale_id,
            raw=payment,
        )

    async def refund_sale(
        self,
        sale_id: str,
        amount: Optional[Decimal] = None,
        currency: str = "USD",
    ) -> GatewayRefund:
        """
        Refund a captured sale.

        Args:
            sale_id: PayPal sale ID
            amount: Amount to refund, the full sale when omitted
            currency: ISO currency code

        Returns:
            GatewayRefund with the refund ID and state

        Raises:
            PayPalClientError: If PayPal rejects the refund
        """
        body: dict[str, Any] = {}
        if amount is not None:
            body["amount"] = {"total": str(to_money(amount)), "currency": currency}

        logger.info(
            "Refunding PayPal sale",
            sale_id=sale_id,
            amount=str(amount) if amount is not None else None,
            currency=currency,
        )

        refund = await self._request(
            "POST",
            f"/v1/payments/sale/{sale_id}/refund",
            "paypal_refund_sale",
            json=body,
        )

        refunded_total = (refund.get("amount") or {}).get("total")

        logger.info(
            "PayPal sale refunded",
            sale_id=sale_id,
            refund_id=refund.get("id"),
            state=refund.get("state"),
        )

        return GatewayRefund(
            refund_id=refund.get("id", ""),
            state=refund.get("state", ""),
            amount=to_money(refunded_total) if refunded_total is not None else None,
            raw=refund,
        )

    async def get_payment(self, payment_id: str) -> dict[str, Any]:
        """
        Look up a payment.

        Raises:
            PayPalClientError: If PayPal rejects the lookup
        """
        return await self._request(
            "GET",
            f"/v1/payments/payment/{payment_id}",
            "paypal_get_payment",
        )
