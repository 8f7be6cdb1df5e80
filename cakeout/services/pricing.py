"""Derived invoice totals.

The pricing snapshot is a pure function of the line items and the adjustment
fields. Arithmetic keeps full Decimal precision; rounding to two decimals only
happens when an amount is formatted for display.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cakeout.services.item_ledger import LineItem

ZERO = Decimal("0")
CENT = Decimal("0.01")

# Largest amount accepted from user input
MAX_AMOUNT = Decimal("9999999999.99")


def to_amount(value: Any) -> Decimal:
    """Coerce an adjustment field to a Decimal, treating junk as zero.

    Args:
        value: A number, numeric string, Decimal or None.

    Returns:
        The value as a Decimal, or 0 when missing or not numeric.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return ZERO
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return ZERO
    else:
        return ZERO

    if not amount.is_finite():
        return ZERO
    return amount


def format_money(amount: Any) -> str:
    """Format an amount with exactly two decimals (half-up), whatever its size."""
    value = to_amount(amount)
    with localcontext() as ctx:
        # quantize fails when the result needs more digits than the precision
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return str(value.quantize(CENT, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class PricingSnapshot:
    """Totals derived from the items and adjustments of a draft."""

    subtotal: Decimal
    discount: Decimal
    delivery_charge: Decimal
    tax: Decimal
    grand_total: Decimal
    balance_amount: Decimal

    def formatted(self) -> dict[str, str]:
        """Return every amount formatted for display."""
        return {
            "subtotal": format_money(self.subtotal),
            "discount": format_money(self.discount),
            "delivery_charge": format_money(self.delivery_charge),
            "tax": format_money(self.tax),
            "grand_total": format_money(self.grand_total),
            "balance_amount": format_money(self.balance_amount),
        }


def compute_snapshot(
    items: Iterable["LineItem"],
    discount: Any = None,
    delivery_charge: Any = None,
    tax: Any = None,
    advance_payment: Any = None,
) -> PricingSnapshot:
    """Compute the pricing snapshot for a set of line items.

    subtotal = sum of quantity * unit_price over the items
    grand_total = subtotal - discount + delivery_charge + tax
    balance_amount = grand_total - advance_payment

    Args:
        items: Line items of the draft.
        discount: Flat discount amount.
        delivery_charge: Delivery charge amount.
        tax: Tax amount.
        advance_payment: Amount already paid.

    Returns:
        The derived PricingSnapshot.
    """
    subtotal = sum((item.quantity * item.unit_price for item in items), ZERO)
    discount_amount = to_amount(discount)
    delivery_amount = to_amount(delivery_charge)
    tax_amount = to_amount(tax)

    grand_total = subtotal - discount_amount + delivery_amount + tax_amount
    balance = grand_total - to_amount(advance_payment)

    return PricingSnapshot(
        subtotal=subtotal,
        discount=discount_amount,
        delivery_charge=delivery_amount,
        tax=tax_amount,
        grand_total=grand_total,
        balance_amount=balance,
    )
