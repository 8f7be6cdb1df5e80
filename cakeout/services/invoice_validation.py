"""Submit-time validation rules for invoice drafts.

Rules are evaluated in a fixed order and the first failure wins. Validation
runs only when the draft is saved (as draft or final), never while typing,
and the same rules apply to both save modes.
"""

from datetime import date, datetime
from typing import TYPE_CHECKING

from cakeout.errors import DateOrderError, ValidationError, ValidationErrorKind
from cakeout.schemas import DeliveryType

if TYPE_CHECKING:
    from cakeout.services.invoice_form import InvoiceDraft


def _as_date(value: date | datetime) -> date:
    """Drop any time component so comparisons are date-only."""
    if isinstance(value, datetime):
        return value.date()
    return value


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def validate_draft(draft: "InvoiceDraft") -> ValidationError | None:
    """Validate a draft before submission.

    Args:
        draft: The invoice draft to check.

    Returns:
        The first ValidationError found, or None if the draft can be sent.
    """
    if draft.ordered_date is None:
        return ValidationError(
            ValidationErrorKind.ORDERED_DATE_REQUIRED,
            "Ordered date is required",
            field="ordered_date",
        )

    # Only comparable once an invoice date is set
    if draft.invoice_date is not None and _as_date(draft.ordered_date) > _as_date(
        draft.invoice_date
    ):
        return DateOrderError()

    if len(draft.items) == 0:
        return ValidationError(
            ValidationErrorKind.ITEMS_REQUIRED,
            "Please add at least one item",
            field="items",
        )

    delivery = draft.delivery
    if delivery.kind is None:
        return ValidationError(
            ValidationErrorKind.DELIVERY_TYPE_REQUIRED,
            "Please select Delivery or Pickup",
            field="delivery_type",
        )

    if delivery.kind == DeliveryType.PICKUP:
        if delivery.delivery_date is None or delivery.delivery_time is None:
            return ValidationError(
                ValidationErrorKind.PICKUP_SCHEDULE_REQUIRED,
                "Pickup Date and Time are required",
                field="delivery_date",
            )
    elif delivery.kind == DeliveryType.DELIVERY:
        if delivery.delivery_date is None or delivery.delivery_time is None:
            return ValidationError(
                ValidationErrorKind.DELIVERY_SCHEDULE_REQUIRED,
                "Delivery Date and Time are required",
                field="delivery_date",
            )
        if _is_blank(delivery.address):
            return ValidationError(
                ValidationErrorKind.DELIVERY_ADDRESS_REQUIRED,
                "Delivery Address is required",
                field="delivery_address",
            )

    if draft.customer.resolve() is None:
        return ValidationError(
            ValidationErrorKind.CUSTOMER_REQUIRED,
            "Please select or enter a customer name",
            field="customer",
        )

    return None


def ensure_valid(draft: "InvoiceDraft") -> None:
    """Raise the first validation failure of a draft, if any.

    Raises:
        ValidationError: If any rule fails.
    """
    error = validate_draft(draft)
    if error is not None:
        raise error
