"""Error taxonomy shared by the invoicing services and the web surface.

Validation errors are user-fixable and block a submission. API errors wrap
failures talking to the upstream backend. None of them are fatal: the draft
being edited is left untouched so the user can correct it and retry.
"""

from enum import Enum


class ValidationErrorKind(str, Enum):
    """Distinct reasons a draft or line item can be rejected."""

    ORDERED_DATE_REQUIRED = "ordered_date_required"
    DATE_ORDER = "date_order"
    ITEMS_REQUIRED = "items_required"
    DELIVERY_TYPE_REQUIRED = "delivery_type_required"
    PICKUP_SCHEDULE_REQUIRED = "pickup_schedule_required"
    DELIVERY_SCHEDULE_REQUIRED = "delivery_schedule_required"
    DELIVERY_ADDRESS_REQUIRED = "delivery_address_required"
    CUSTOMER_REQUIRED = "customer_required"
    ITEM_NAME_REQUIRED = "item_name_required"
    INVALID_QUANTITY = "invalid_quantity"
    INVALID_UNIT_PRICE = "invalid_unit_price"


class InvoicingError(Exception):
    """Base class for all invoicing errors."""


class ValidationError(InvoicingError):
    """Raised (or returned) when a draft or line item breaks a rule."""

    def __init__(
        self,
        kind: ValidationErrorKind,
        message: str,
        field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.field = field

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class DateOrderError(ValidationError):
    """Raised when the ordered date falls after the invoice date."""

    def __init__(
        self,
        message: str = "Ordered date must be less than or equal to invoice date",
    ) -> None:
        super().__init__(ValidationErrorKind.DATE_ORDER, message, field="ordered_date")


class SubmissionInProgressError(InvoicingError):
    """Raised when a draft is submitted while a previous submit is pending."""


class APIError(InvoicingError):
    """Raised when a call to the invoicing backend fails."""


class NetworkError(APIError):
    """Raised when the backend is unreachable or answers with an error status."""


class NotFoundError(APIError):
    """Raised when the backend reports that a record does not exist."""


class AuthError(APIError):
    """Raised when the backend rejects the credentials or the session token."""
