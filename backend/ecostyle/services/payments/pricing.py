"""
Money handling and checkout pricing.

All amounts are Decimal values with exactly two fractional digits, rounded
half up. The server always derives the amount to charge from the line items;
a total declared by the client is only compared against it.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Union

from ecostyle.core.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")
TOTAL_TOLERANCE = Decimal("0.01")
DEFAULT_FREE_SHIPPING_THRESHOLD = Decimal("50.00")
DEFAULT_FLAT_SHIPPING_RATE = Decimal("10.00")
DEFAULT_CURRENCY = "USD"

MoneyLike = Union[Decimal, int, float, str]


def to_money(value: MoneyLike) -> Decimal:
    """
    Coerce a value to a two-decimal Decimal.

    Floats are converted through their string form so that 29.99 stays
    29.99 instead of its binary approximation.

    Args:
        value: Amount as Decimal, int, float or numeric string

    Returns:
        Amount quantized to cents

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid monetary amount: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid monetary amount: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Invalid monetary amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _item_value(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item[name]
    return getattr(item, name)


def calculate_subtotal(items: Iterable[Any]) -> Decimal:
    """
    Sum unit price times quantity over line items.

    Args:
        items: Objects or mappings exposing ``unit_price`` and ``quantity``

    Returns:
        Subtotal rounded to cents
    """
    total = Decimal("0")
    for item in items:
        total += to_money(_item_value(item, "unit_price")) * int(
            _item_value(item, "quantity")
        )
    return to_money(total)


def calculate_shipping(
    subtotal: MoneyLike,
    free_shipping_threshold: Decimal = DEFAULT_FREE_SHIPPING_THRESHOLD,
    flat_rate: Decimal = DEFAULT_FLAT_SHIPPING_RATE,
) -> Decimal:
    """
    Shipping charge for a subtotal.

    Shipping is free only when the subtotal is strictly above the threshold.
    """
    if to_money(subtotal) > to_money(free_shipping_threshold):
        return Decimal("0.00")
    return to_money(flat_rate)


def totals_match(first: MoneyLike, second: MoneyLike) -> bool:
    """Check whether two amounts agree within one cent."""
    return abs(to_money(first) - to_money(second)) <= TOTAL_TOLERANCE


@dataclass(frozen=True)
class CheckoutQuote:
    """
    Authoritative amounts for a checkout.

    Attributes:
        subtotal: Sum of line items
        shipping: Shipping charge
        total: Amount to charge
        declared_total: Total the client sent, if any
        adjusted: True when the declared total was overridden
    """

    subtotal: Decimal
    shipping: Decimal
    total: Decimal
    declared_total: Optional[Decimal] = None
    adjusted: bool = False


class CheckoutPricing:
    """
    Checkout pricing policy.

    Holds the free shipping threshold, the flat shipping rate and the single
    supported currency, and turns line items into a CheckoutQuote.
    """

    def __init__(
        self,
        free_shipping_threshold: MoneyLike = DEFAULT_FREE_SHIPPING_THRESHOLD,
        flat_shipping_rate: MoneyLike = DEFAULT_FLAT_SHIPPING_RATE,
        currency: str = DEFAULT_CURRENCY,
    ):
        self.free_shipping_threshold = to_money(free_shipping_threshold)
        self.flat_shipping_rate = to_money(flat_shipping_rate)
        self.currency = currency

    def shipping_for(self, subtotal: MoneyLike) -> Decimal:
        return calculate_shipping(
            subtotal, self.free_shipping_threshold, self.flat_shipping_rate
        )

    def quote(
        self,
        items: Iterable[Any],
        declared_total: Optional[MoneyLike] = None,
    ) -> CheckoutQuote:
        """
        Compute the amounts to charge for a set of line items.

        When the declared total differs from the computed one by more than a
        cent, the computed total wins and the discrepancy is logged.

        Args:
            items: Line items exposing ``unit_price`` and ``quantity``
            declared_total: Total the client displayed to the buyer

        Returns:
            CheckoutQuote with the authoritative amounts
        """
        subtotal = calculate_subtotal(items)
        shipping = self.shipping_for(subtotal)
        total = to_money(subtotal + shipping)

        declared = to_money(declared_total) if declared_total is not None else None
        adjusted = declared is not None and not totals_match(total, declared)

        if adjusted:
            logger.warning(
                "Declared total does not match computed total, using computed",
                declared_total=str(declared),
                computed_total=str(total),
                subtotal=str(subtotal),
                shipping=str(shipping),
            )

        return CheckoutQuote(
            subtotal=subtotal,
            shipping=shipping,
            total=total,
            declared_total=declared,
            adjusted=adjusted,
        )
