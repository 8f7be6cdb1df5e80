"""Reconcile the customer text field with a selected customer record.

A draft either points at an existing customer (picked from the autocomplete)
or carries a free-text name that the backend turns into a new customer, or
reuses a matching one, when the invoice is created.
"""

import logging
from dataclasses import dataclass
from typing import Any

from cakeout.schemas import Customer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExistingCustomer:
    """The draft is bound to a customer that already exists."""

    customer_id: int
    name: str


@dataclass(frozen=True)
class DraftCustomer:
    """The draft names a customer the backend should create or reuse."""

    name: str
    phone: str | None = None
    address: str | None = None


CustomerRef = ExistingCustomer | DraftCustomer


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def resolve_customer(
    selected: Customer | None,
    text: str,
    phone: str | None = None,
    address: str | None = None,
) -> CustomerRef | None:
    """Decide which customer a submission refers to.

    Args:
        selected: The customer picked from the suggestions, if any.
        text: Current contents of the customer text field.
        phone: Contact phone for a new customer.
        address: Contact address for a new customer.

    Returns:
        ExistingCustomer when the selection still matches the text,
        DraftCustomer for any other non-blank text, None when blank.
    """
    if selected is not None and text == selected.name:
        return ExistingCustomer(customer_id=selected.id, name=selected.name)
    name = text.strip()
    if name:
        return DraftCustomer(name=name, phone=_clean(phone), address=_clean(address))
    return None


def customer_payload(ref: CustomerRef) -> dict[str, Any]:
    """Build the customer part of an invoice create request."""
    if isinstance(ref, ExistingCustomer):
        return {"customer_id": ref.customer_id}
    customer: dict[str, Any] = {"name": ref.name}
    if ref.phone:
        customer["phone"] = ref.phone
    if ref.address:
        customer["address"] = ref.address
    return {"customer": customer}


class CustomerBinding:
    """Customer text field plus the customer currently selected for it."""

    def __init__(self) -> None:
        self.selected: Customer | None = None
        self.text = ""
        # Only sent when the backend creates the customer
        self.phone: str | None = None
        self.address: str | None = None

    @property
    def is_bound(self) -> bool:
        return self.selected is not None

    def type_text(self, text: str) -> None:
        """Record a keystroke in the customer field.

        Text that no longer equals the selected customer's name drops the
        selection right away, so continuing to type replaces the customer.
        """
        self.text = text
        if self.selected is not None and text != self.selected.name:
            logger.debug("Customer text diverged from %r, clearing selection", self.selected.name)
            self.selected = None

    def select(self, customer: Customer) -> None:
        """Bind a customer picked from the suggestions."""
        self.selected = customer
        self.text = customer.name

    def clear(self) -> None:
        self.selected = None
        self.text = ""
        self.phone = None
        self.address = None

    def resolve(self) -> CustomerRef | None:
        return resolve_customer(self.selected, self.text, self.phone, self.address)
