"""Invoice creation flow: the draft aggregate and its submission.

A draft is created empty when the user starts a new invoice, edited through
the item ledger and the form fields, and handed to the backend on submit.
Pricing is derived from the current state every time it is read, so the
totals shown can never lag behind the inputs.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, time
from typing import TYPE_CHECKING, Any

from cakeout.errors import SubmissionInProgressError
from cakeout.schemas import DeliveryType, Invoice, InvoiceStatus, PaymentMethod, PaymentStatus
from cakeout.services.customer_resolution import CustomerBinding, customer_payload
from cakeout.services.invoice_validation import ensure_valid
from cakeout.services.item_ledger import ItemLedger
from cakeout.services.pricing import PricingSnapshot, compute_snapshot, format_money

if TYPE_CHECKING:
    from cakeout.services.api_client import CakeOutClient

logger = logging.getLogger(__name__)


@dataclass
class DeliveryInfo:
    """Delivery or pickup details; an address is only needed for delivery."""

    kind: DeliveryType | None = None
    delivery_date: date | None = None
    delivery_time: time | None = None
    address: str | None = None


@dataclass
class InvoiceDraft:
    """Everything entered for an invoice that has not been created yet."""

    invoice_date: date | None = field(default_factory=date.today)
    ordered_date: date | None = field(default_factory=date.today)
    items: ItemLedger = field(default_factory=ItemLedger)
    customer: CustomerBinding = field(default_factory=CustomerBinding)
    discount: Any = 0
    delivery_charge: Any = 0
    tax: Any = 0
    advance_payment: Any = 0
    payment_method: PaymentMethod | None = None
    payment_status: PaymentStatus = PaymentStatus.DUE
    delivery: DeliveryInfo = field(default_factory=DeliveryInfo)
    status: InvoiceStatus = InvoiceStatus.DRAFT

    @property
    def pricing(self) -> PricingSnapshot:
        """Totals for the current items and adjustments."""
        return compute_snapshot(
            self.items,
            discount=self.discount,
            delivery_charge=self.delivery_charge,
            tax=self.tax,
            advance_payment=self.advance_payment,
        )


def build_payload(draft: InvoiceDraft, status: InvoiceStatus) -> dict[str, Any]:
    """Serialize a validated draft for the invoice create call.

    Args:
        draft: A draft that passed validation.
        status: The save mode chosen by the user.

    Returns:
        JSON-ready request body.

    Raises:
        ValueError: If the draft has no resolvable customer.
    """
    ref = draft.customer.resolve()
    if ref is None:
        raise ValueError("Draft has no customer to submit")

    pricing = draft.pricing
    delivery = draft.delivery
    payload: dict[str, Any] = {
        "invoice_date": draft.invoice_date.isoformat() if draft.invoice_date else None,
        "ordered_date": draft.ordered_date.isoformat() if draft.ordered_date else None,
        "items": [item.to_payload() for item in draft.items],
        "subtotal": format_money(pricing.subtotal),
        "discount": format_money(pricing.discount),
        "delivery_charge": format_money(pricing.delivery_charge),
        "tax": format_money(pricing.tax),
        "grand_total": format_money(pricing.grand_total),
        "advance_payment": format_money(draft.advance_payment),
        "balance_amount": format_money(pricing.balance_amount),
        "payment_status": draft.payment_status.value,
        "status": status.value,
    }
    if draft.payment_method is not None:
        payload["payment_method"] = draft.payment_method.value
    if delivery.kind is not None:
        payload["delivery_type"] = delivery.kind.value
    if delivery.delivery_date is not None:
        payload["delivery_date"] = delivery.delivery_date.isoformat()
    if delivery.delivery_time is not None:
        payload["delivery_time"] = delivery.delivery_time.strftime("%H:%M")
    if delivery.address:
        payload["delivery_address"] = delivery.address.strip()

    payload.update(customer_payload(ref))
    return payload


class InvoiceForm:
    """Submission controller for a single draft.

    Only one submit may be in flight at a time; a failed submit leaves the
    draft exactly as it was so it can be corrected and sent again.
    """

    def __init__(self, draft: InvoiceDraft | None = None) -> None:
        self.draft = draft or InvoiceDraft()
        self.is_submitting = False
        self.last_error: Exception | None = None

    @property
    def pricing(self) -> PricingSnapshot:
        return self.draft.pricing

    async def submit(self, client: "CakeOutClient", status: InvoiceStatus) -> Invoice:
        """Validate the draft and create the invoice.

        Args:
            client: Backend client used for the create call.
            status: Save as draft or final.

        Returns:
            The persisted invoice.

        Raises:
            SubmissionInProgressError: If a submit is already running.
            ValidationError: If the draft breaks a rule.
            APIError: If the create call fails.
        """
        if self.is_submitting:
            raise SubmissionInProgressError("Invoice submission already in progress")

        self.last_error = None
        try:
            ensure_valid(self.draft)
            payload = build_payload(self.draft, status)
        except Exception as e:
            self.last_error = e
            raise

        self.is_submitting = True
        try:
            invoice = await client.create_invoice(payload)
        except Exception as e:
            self.last_error = e
            logger.warning("Invoice submission failed: %s", e)
            raise
        finally:
            self.is_submitting = False

        self.draft.status = status
        logger.info(
            "Created invoice %s (order %s) as %s",
            invoice.invoice_id,
            invoice.order_id,
            status.value,
        )
        return invoice
