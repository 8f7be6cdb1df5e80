"""Pydantic schemas for records exchanged with the invoicing backend.

Monetary values are parsed into Decimal; the backend may send them either as
numbers or as strings.
"""

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class DeliveryType(str, Enum):
    """How the order reaches the customer."""

    DELIVERY = "delivery"
    PICKUP = "pickup"


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status."""

    DRAFT = "draft"
    FINAL = "final"


class PaymentMethod(str, Enum):
    """Accepted payment methods."""

    CASH = "Cash"
    CARD = "Card"
    BANK_TRANSFER = "Bank Transfer"
    ONLINE = "Online"


class PaymentStatus(str, Enum):
    """Payment progress of an invoice."""

    PAID = "Paid"
    PARTIALLY_PAID = "Partially Paid"
    DUE = "Due"


class Customer(BaseModel):
    """A customer record as returned by the backend."""

    id: int
    name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def reference(self) -> str:
        """Display reference, e.g. CUST-0042."""
        return f"CUST-{self.id:04d}"


class InvoiceItemRecord(BaseModel):
    """A persisted invoice line."""

    id: int | None = None
    item_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class Invoice(BaseModel):
    """A persisted invoice with server-assigned identifiers."""

    id: int
    invoice_id: str
    order_id: str
    invoice_date: date
    ordered_date: date
    customer_id: int
    customer: Customer | None = None
    items: list[InvoiceItemRecord] = Field(default_factory=list)
    subtotal: Decimal
    discount: Decimal | None = None
    delivery_charge: Decimal | None = None
    tax: Decimal | None = None
    grand_total: Decimal
    payment_method: PaymentMethod | None = None
    payment_status: PaymentStatus = PaymentStatus.DUE
    advance_payment: Decimal | None = None
    balance_amount: Decimal
    delivery_type: DeliveryType | None = None
    delivery_date: date | None = None
    delivery_time: time | None = None
    delivery_address: str | None = None
    status: InvoiceStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None


class User(BaseModel):
    """The signed-in user profile."""

    id: int
    name: str
    email: str


class AuthResult(BaseModel):
    """Response of a successful login."""

    access_token: str
    user: User
