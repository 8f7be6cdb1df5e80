"""Business logic services for the invoicing application."""

from cakeout.services.api_client import CakeOutClient
from cakeout.services.customer_resolution import (
    CustomerBinding,
    CustomerRef,
    DraftCustomer,
    ExistingCustomer,
    customer_payload,
    resolve_customer,
)
from cakeout.services.customer_search import CustomerSearchController, SearchState
from cakeout.services.invoice_form import DeliveryInfo, InvoiceDraft, InvoiceForm, build_payload
from cakeout.services.invoice_validation import ensure_valid, validate_draft
from cakeout.services.item_ledger import ItemLedger, LineItem
from cakeout.services.pricing import PricingSnapshot, compute_snapshot, format_money

__all__ = [
    "CakeOutClient",
    "CustomerBinding",
    "CustomerRef",
    "CustomerSearchController",
    "DeliveryInfo",
    "DraftCustomer",
    "ExistingCustomer",
    "InvoiceDraft",
    "InvoiceForm",
    "ItemLedger",
    "LineItem",
    "PricingSnapshot",
    "SearchState",
    "build_payload",
    "compute_snapshot",
    "customer_payload",
    "ensure_valid",
    "format_money",
    "resolve_customer",
    "validate_draft",
]
