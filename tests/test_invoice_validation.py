"""Tests for submit-time invoice validation."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal

import pytest

from cakeout.errors import DateOrderError, ValidationError, ValidationErrorKind
from cakeout.schemas import Customer, DeliveryType
from cakeout.services.invoice_form import DeliveryInfo, InvoiceDraft
from cakeout.services.invoice_validation import ensure_valid, validate_draft
from cakeout.services.item_ledger import ItemLedger, LineItem

TODAY = date(2026, 3, 14)


@pytest.fixture
def draft() -> InvoiceDraft:
    """A draft that passes every rule."""
    draft = InvoiceDraft(
        invoice_date=TODAY,
        ordered_date=TODAY - timedelta(days=2),
        items=ItemLedger([LineItem("Cake", 2, Decimal("10.00"))]),
        delivery=DeliveryInfo(
            kind=DeliveryType.PICKUP,
            delivery_date=TODAY + timedelta(days=1),
            delivery_time=time(14, 30),
        ),
    )
    draft.customer.type_text("Jordan Lee")
    return draft


class TestValidateDraft:
    """Tests for validate_draft."""

    def test_valid_pickup(self, draft: InvoiceDraft) -> None:
        assert validate_draft(draft) is None
        ensure_valid(draft)

    def test_valid_delivery(self, draft: InvoiceDraft) -> None:
        draft.delivery = DeliveryInfo(
            kind=DeliveryType.DELIVERY,
            delivery_date=TODAY,
            delivery_time=time(9, 0),
            address="12 Baker Street",
        )
        assert validate_draft(draft) is None

    def test_missing_invoice_date_passes(self, draft: InvoiceDraft) -> None:
        """Test that the date order is only checked once both dates are set."""
        draft.invoice_date = None
        assert validate_draft(draft) is None

    def test_both_dates_missing_reports_ordered_date(self, draft: InvoiceDraft) -> None:
        draft.invoice_date = None
        draft.ordered_date = None
        error = validate_draft(draft)
        assert error is not None
        assert error.kind == ValidationErrorKind.ORDERED_DATE_REQUIRED

    def test_ordered_date_required(self, draft: InvoiceDraft) -> None:
        draft.ordered_date = None
        error = validate_draft(draft)
        assert error is not None
        assert error.kind == ValidationErrorKind.ORDERED_DATE_REQUIRED

    def test_ordered_after_invoice_date(self, draft: InvoiceDraft) -> None:
        draft.ordered_date = TODAY + timedelta(days=1)
        error = validate_draft(draft)

        assert isinstance(error, DateOrderError)
        assert error.kind == ValidationErrorKind.DATE_ORDER
        assert error.message == "Ordered date must be less than or equal to invoice date"
        assert error.field == "ordered_date"

    def test_equal_dates_pass(self, draft: InvoiceDraft) -> None:
        draft.ordered_date = TODAY
        assert validate_draft(draft) is None

    def test_dates_compared_without_time(self, draft: InvoiceDraft) -> None:
        """Test that a later time on the same day is not a date order failure."""
        draft.invoice_date = datetime(2026, 3, 14, 8, 0)
        draft.ordered_date = datetime(2026, 3, 14, 18, 0)
        assert validate_draft(draft) is None

    def test_items_required(self, draft: InvoiceDraft) -> None:
        draft.items = ItemLedger()
        error = validate_draft(draft)
        assert error is not None
        assert error.kind == ValidationErrorKind.ITEMS_REQUIRED
        assert error.message == "Please add at least one item"

    def test_delivery_type_required(self, draft: InvoiceDraft) -> None:
        draft.delivery = DeliveryInfo()
        error = validate_draft(draft)
        assert error is not None
        assert error.kind == ValidationErrorKind.DELIVERY_TYPE_REQUIRED

    @pytest.mark.parametrize(
        ("delivery_date", "delivery_time"),
        [(None, time(10, 0)), (TODAY, None), (None, None)],
    )
    def test_pickup_needs_date_and_time(
        self, draft: InvoiceDraft, delivery_date: date | None, delivery_time: time | None
    ) -> None:
        draft.delivery = DeliveryInfo(
            kind=DeliveryType.PICKUP,
            delivery_date=delivery_date,
            delivery_time=delivery_time,
        )
        error = validate_draft(draft)
        assert error is not None
        assert error.kind == ValidationErrorKind.PICKUP_SCHEDULE_REQUIRED
        assert error.message == "Pickup Date and Time are required"

    def test_pickup_does_not_need_address(self, draft: InvoiceDraft) -> None:
        draft.delivery.address = None
        assert validate_draft(draft) is None

    def test_delivery_needs_date_and_time(self, draft: InvoiceDraft) -> None:
        draft.delivery = DeliveryInfo(
            kind=DeliveryType.DELIVERY,
            delivery_date=TODAY,
            address="12 Baker Street",
        )
        error = validate_draft(draft)
        assert error is not None
        assert error.kind == ValidationErrorKind.DELIVERY_SCHEDULE_REQUIRED

    @pytest.mark.parametrize("address", [None, "", "   "])
    def test_delivery_needs_address(self, draft: InvoiceDraft, address: str | None) -> None:
        draft.delivery = DeliveryInfo(
            kind=DeliveryType.DELIVERY,
            delivery_date=TODAY,
            delivery_time=time(11, 0),
            address=address,
        )
        error = validate_draft(draft)
        assert error is not None
        assert error.kind == ValidationErrorKind.DELIVERY_ADDRESS_REQUIRED
        assert error.message == "Delivery Address is required"

    def test_customer_required(self, draft: InvoiceDraft) -> None:
        draft.customer.type_text("   ")
        error = validate_draft(draft)
        assert error is not None
        assert error.kind == ValidationErrorKind.CUSTOMER_REQUIRED

    def test_selected_customer_passes(self, draft: InvoiceDraft) -> None:
        draft.customer.select(Customer(id=3, name="Pat"))
        assert validate_draft(draft) is None

    def test_first_failure_wins(self, draft: InvoiceDraft) -> None:
        """Test that rules are checked in order."""
        draft.ordered_date = TODAY + timedelta(days=5)
        draft.items = ItemLedger()
        draft.delivery = DeliveryInfo()
        draft.customer.clear()

        error = validate_draft(draft)
        assert error is not None
        assert error.kind == ValidationErrorKind.DATE_ORDER

        draft.ordered_date = TODAY
        error = validate_draft(draft)
        assert error is not None
        assert error.kind == ValidationErrorKind.ITEMS_REQUIRED

    def test_ensure_valid_raises(self, draft: InvoiceDraft) -> None:
        draft.items = ItemLedger()
        with pytest.raises(ValidationError) as exc_info:
            ensure_valid(draft)
        assert exc_info.value.kind == ValidationErrorKind.ITEMS_REQUIRED
