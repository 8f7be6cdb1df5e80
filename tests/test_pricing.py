"""Tests for derived invoice totals."""

from decimal import Decimal

import pytest

from cakeout.services.item_ledger import ItemLedger, LineItem
from cakeout.services.pricing import (
    PricingSnapshot,
    compute_snapshot,
    format_money,
    to_amount,
)


class TestToAmount:
    """Tests for adjustment coercion."""

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "1.2.3", float("nan"), True, [], {}])
    def test_missing_or_junk_is_zero(self, value: object) -> None:
        """Test that missing and non-numeric values count as zero."""
        assert to_amount(value) == Decimal("0")

    def test_numeric_inputs(self) -> None:
        """Test numbers, strings and Decimals are converted exactly."""
        assert to_amount(5) == Decimal("5")
        assert to_amount(2.5) == Decimal("2.5")
        assert to_amount(" 10.25 ") == Decimal("10.25")
        assert to_amount(Decimal("0.10")) == Decimal("0.10")

    def test_float_keeps_short_representation(self) -> None:
        """Test that 0.1 does not turn into its binary expansion."""
        assert to_amount(0.1) == Decimal("0.1")


class TestFormatMoney:
    """Tests for two-decimal formatting."""

    def test_two_decimals(self) -> None:
        assert format_money(Decimal("20")) == "20.00"
        assert format_money("3.5") == "3.50"

    def test_rounds_half_up(self) -> None:
        assert format_money(Decimal("2.675")) == "2.68"
        assert format_money(Decimal("2.674")) == "2.67"

    def test_junk_formats_as_zero(self) -> None:
        assert format_money("n/a") == "0.00"

    def test_amount_wider_than_context_precision(self) -> None:
        """Test that amounts with more than 28 digits still format."""
        assert format_money(Decimal("1e30")) == "1" + "0" * 30 + ".00"
        assert format_money("12345678901234567890123456789.005") == (
            "12345678901234567890123456789.01"
        )


class TestComputeSnapshot:
    """Tests for compute_snapshot."""

    def test_cake_scenario(self) -> None:
        """Test two cakes at 10.00 with 5.00 delivery and 10.00 paid in advance."""
        items = [LineItem("Cake", 2, Decimal("10.00"))]
        snapshot = compute_snapshot(
            items, discount=0, delivery_charge=5, tax=0, advance_payment=10
        )

        assert snapshot.subtotal == Decimal("20.00")
        assert snapshot.grand_total == Decimal("25.00")
        assert snapshot.balance_amount == Decimal("15.00")

    def test_empty_items(self) -> None:
        """Test that an empty draft totals zero."""
        snapshot = compute_snapshot([])
        assert snapshot == PricingSnapshot(
            subtotal=Decimal("0"),
            discount=Decimal("0"),
            delivery_charge=Decimal("0"),
            tax=Decimal("0"),
            grand_total=Decimal("0"),
            balance_amount=Decimal("0"),
        )

    def test_grand_total_formula(self) -> None:
        """Test grand_total = subtotal - discount + delivery_charge + tax."""
        items = [
            LineItem("Cupcake", 12, Decimal("1.50")),
            LineItem("Birthday Cake", 1, Decimal("45.00")),
        ]
        snapshot = compute_snapshot(
            items,
            discount="5",
            delivery_charge="7.50",
            tax=Decimal("3.20"),
            advance_payment="20",
        )

        assert snapshot.subtotal == Decimal("63.00")
        assert snapshot.grand_total == Decimal("63.00") - 5 + Decimal("7.50") + Decimal("3.20")
        assert snapshot.balance_amount == snapshot.grand_total - 20

    def test_non_numeric_adjustments_ignored(self) -> None:
        """Test that junk in adjustment fields is treated as zero."""
        items = [LineItem("Tart", 3, Decimal("4.00"))]
        snapshot = compute_snapshot(items, discount="abc", delivery_charge=None, tax="")

        assert snapshot.grand_total == Decimal("12.00")
        assert snapshot.balance_amount == Decimal("12.00")

    def test_full_precision_until_formatting(self) -> None:
        """Test that rounding only happens when formatting."""
        items = [LineItem("Cookie", 3, Decimal("0.333"))]
        snapshot = compute_snapshot(items)

        assert snapshot.subtotal == Decimal("0.999")
        assert snapshot.formatted()["subtotal"] == "1.00"

    def test_recomputed_after_every_ledger_change(self) -> None:
        """Test that subtotal tracks the ledger through add, edit and remove."""
        ledger = ItemLedger()

        def expected() -> Decimal:
            return sum((item.quantity * item.unit_price for item in ledger), Decimal("0"))

        ledger.add(LineItem("Cake", 2, Decimal("10.00")))
        assert compute_snapshot(ledger).subtotal == expected() == Decimal("20.00")

        ledger.add(LineItem("Candles", 10, Decimal("0.25")))
        assert compute_snapshot(ledger).subtotal == expected() == Decimal("22.50")

        ledger.edit(0, quantity=3)
        assert compute_snapshot(ledger).subtotal == expected() == Decimal("32.50")

        ledger.remove(1)
        assert compute_snapshot(ledger).subtotal == expected() == Decimal("30.00")

    def test_formatted_snapshot(self) -> None:
        """Test every amount is formatted with two decimals."""
        snapshot = compute_snapshot([LineItem("Cake", 1, Decimal("9.5"))], tax="0.5")
        assert snapshot.formatted() == {
            "subtotal": "9.50",
            "discount": "0.00",
            "delivery_charge": "0.00",
            "tax": "0.50",
            "grand_total": "10.00",
            "balance_amount": "10.00",
        }
