"""FastAPI routes for the invoice creation flow.

A draft lives in memory from the moment the user starts a new invoice until
it is submitted successfully or discarded.
"""

import logging
from collections.abc import Callable
from datetime import date, time
from decimal import Decimal
from time import monotonic
from typing import Annotated, Any
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from cakeout.api.deps import api_error_to_http, require_token, validation_error_to_http
from cakeout.config import settings
from cakeout.errors import APIError, SubmissionInProgressError, ValidationError
from cakeout.schemas import DeliveryType, Invoice, InvoiceStatus, PaymentMethod, PaymentStatus
from cakeout.services.api_client import CakeOutClient
from cakeout.services.invoice_form import InvoiceForm
from cakeout.services.item_ledger import LineItem
from cakeout.services.pricing import MAX_AMOUNT, format_money

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drafts", tags=["drafts"])


class DraftRegistry:
    """In-memory drafts keyed by id.

    Drafts older than ``max_age_seconds`` are dropped, and the oldest ones
    are dropped once more than ``max_drafts`` exist. Pruning happens when a
    new draft is created and never touches a draft that is being submitted.
    """

    def __init__(
        self,
        max_age_seconds: float | None = None,
        max_drafts: int | None = None,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        if max_age_seconds is None:
            max_age_seconds = settings.draft_max_age_minutes * 60
        if max_drafts is None:
            max_drafts = settings.max_drafts
        self.max_age_seconds = max_age_seconds
        self.max_drafts = max_drafts
        self._clock = clock
        # Insertion order is creation order
        self._forms: dict[str, tuple[InvoiceForm, float]] = {}

    def create(self) -> tuple[str, InvoiceForm]:
        self.prune()
        draft_id = str(uuid4())
        form = InvoiceForm()
        self._forms[draft_id] = (form, self._clock())
        return draft_id, form

    def get(self, draft_id: str) -> InvoiceForm | None:
        entry = self._forms.get(draft_id)
        return entry[0] if entry else None

    def discard(self, draft_id: str) -> None:
        self._forms.pop(draft_id, None)

    def prune(self) -> int:
        """Drop expired drafts, then the oldest ones, to make room for one more.

        Returns:
            Number of drafts dropped.
        """
        now = self._clock()
        idle = [
            draft_id
            for draft_id, (form, _) in self._forms.items()
            if not form.is_submitting
        ]
        expired = [
            draft_id
            for draft_id in idle
            if now - self._forms[draft_id][1] > self.max_age_seconds
        ]
        overflow = len(self._forms) - len(expired) - (self.max_drafts - 1)
        if overflow > 0:
            remaining = [draft_id for draft_id in idle if draft_id not in expired]
            expired.extend(remaining[:overflow])

        for draft_id in expired:
            del self._forms[draft_id]
        if expired:
            logger.info("Pruned %d stale invoice drafts", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._forms)


_registry = DraftRegistry()


def get_draft_registry() -> DraftRegistry:
    return _registry


# --- Pydantic Schemas ---

# Money entered by the user: never negative, never beyond MAX_AMOUNT
Amount = Annotated[Decimal, Field(ge=0, le=MAX_AMOUNT)]


class LineItemResponse(BaseModel):
    """A line of the draft with its derived total."""

    index: int
    name: str
    quantity: int
    unit_price: str
    line_total: str


class DraftResponse(BaseModel):
    """Current state of a draft, including derived pricing."""

    id: str
    invoice_date: date | None
    ordered_date: date | None
    customer_name: str
    customer_id: int | None = Field(description="Bound existing customer, if any")
    customer_phone: str | None
    customer_address: str | None
    items: list[LineItemResponse]
    pricing: dict[str, str]
    advance_payment: str
    payment_method: PaymentMethod | None
    payment_status: PaymentStatus
    delivery_type: DeliveryType | None
    delivery_date: date | None
    delivery_time: time | None
    delivery_address: str | None
    status: InvoiceStatus
    is_submitting: bool


class DraftUpdate(BaseModel):
    """Partial update of draft fields; only fields sent are applied."""

    invoice_date: date | None = None
    ordered_date: date | None = None
    customer_name: str | None = Field(
        default=None,
        description="Text typed in the customer field",
    )
    customer_phone: str | None = None
    customer_address: str | None = None
    discount: Amount | None = None
    delivery_charge: Amount | None = None
    tax: Amount | None = None
    advance_payment: Amount | None = None
    payment_method: PaymentMethod | None = None
    payment_status: PaymentStatus | None = None
    delivery_type: DeliveryType | None = None
    delivery_date: date | None = None
    delivery_time: time | None = None
    delivery_address: str | None = None


class ItemRequest(BaseModel):
    """Request schema for adding a line item."""

    name: str
    quantity: int = 1
    unit_price: Decimal = Field(default=Decimal("0"), le=MAX_AMOUNT)


class ItemPatch(BaseModel):
    """Request schema for editing some fields of a line item."""

    name: str | None = None
    quantity: int | None = None
    unit_price: Decimal | None = Field(default=None, le=MAX_AMOUNT)


class CustomerSelection(BaseModel):
    customer_id: int


# --- Helpers ---


def _draft_response(draft_id: str, form: InvoiceForm) -> DraftResponse:
    draft = form.draft
    return DraftResponse(
        id=draft_id,
        invoice_date=draft.invoice_date,
        ordered_date=draft.ordered_date,
        customer_name=draft.customer.text,
        customer_id=draft.customer.selected.id if draft.customer.selected else None,
        customer_phone=draft.customer.phone,
        customer_address=draft.customer.address,
        items=[
            LineItemResponse(
                index=index,
                name=item.name,
                quantity=item.quantity,
                unit_price=format_money(item.unit_price),
                line_total=format_money(item.line_total),
            )
            for index, item in enumerate(draft.items)
        ],
        pricing=form.pricing.formatted(),
        advance_payment=format_money(draft.advance_payment),
        payment_method=draft.payment_method,
        payment_status=draft.payment_status,
        delivery_type=draft.delivery.kind,
        delivery_date=draft.delivery.delivery_date,
        delivery_time=draft.delivery.delivery_time,
        delivery_address=draft.delivery.address,
        status=draft.status,
        is_submitting=form.is_submitting,
    )


def _get_form(registry: DraftRegistry, draft_id: str) -> InvoiceForm:
    form = registry.get(draft_id)
    if form is None:
        raise HTTPException(status_code=404, detail="Draft not found")
    return form


def _apply_update(form: InvoiceForm, changes: dict[str, Any]) -> None:
    draft = form.draft
    delivery_fields = {
        "delivery_type": "kind",
        "delivery_date": "delivery_date",
        "delivery_time": "delivery_time",
        "delivery_address": "address",
    }
    for key, value in changes.items():
        if key == "customer_name":
            draft.customer.type_text(value or "")
        elif key == "customer_phone":
            draft.customer.phone = value
        elif key == "customer_address":
            draft.customer.address = value
        elif key in delivery_fields:
            setattr(draft.delivery, delivery_fields[key], value)
        elif key == "payment_status":
            draft.payment_status = value or PaymentStatus.DUE
        else:
            setattr(draft, key, value)


# --- API Endpoints ---


@router.post("", response_model=DraftResponse, status_code=status.HTTP_201_CREATED)
async def create_draft(
    registry: Annotated[DraftRegistry, Depends(get_draft_registry)],
) -> DraftResponse:
    """Start a new, empty invoice draft dated today."""
    draft_id, form = registry.create()
    logger.info("Started invoice draft %s", draft_id)
    return _draft_response(draft_id, form)


@router.get("/{draft_id}", response_model=DraftResponse)
async def get_draft(
    draft_id: str,
    registry: Annotated[DraftRegistry, Depends(get_draft_registry)],
) -> DraftResponse:
    return _draft_response(draft_id, _get_form(registry, draft_id))


@router.patch("/{draft_id}", response_model=DraftResponse)
async def update_draft(
    draft_id: str,
    update: DraftUpdate,
    registry: Annotated[DraftRegistry, Depends(get_draft_registry)],
) -> DraftResponse:
    """Change draft fields; pricing in the response reflects the change."""
    form = _get_form(registry, draft_id)
    _apply_update(form, update.model_dump(exclude_unset=True))
    return _draft_response(draft_id, form)


@router.delete("/{draft_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_draft(
    draft_id: str,
    registry: Annotated[DraftRegistry, Depends(get_draft_registry)],
) -> None:
    _get_form(registry, draft_id)
    registry.discard(draft_id)


@router.post(
    "/{draft_id}/items",
    response_model=DraftResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_item(
    draft_id: str,
    request: ItemRequest,
    registry: Annotated[DraftRegistry, Depends(get_draft_registry)],
) -> DraftResponse:
    """Append a line item.

    Raises:
        HTTPException: 422 if the item name is blank or the numbers are invalid.
    """
    form = _get_form(registry, draft_id)
    try:
        form.draft.items.add(
            LineItem(name=request.name, quantity=request.quantity, unit_price=request.unit_price)
        )
    except ValidationError as e:
        raise validation_error_to_http(e) from e
    return _draft_response(draft_id, form)


@router.patch("/{draft_id}/items/{index}", response_model=DraftResponse)
async def edit_item(
    draft_id: str,
    index: int,
    request: ItemPatch,
    registry: Annotated[DraftRegistry, Depends(get_draft_registry)],
) -> DraftResponse:
    """Edit a line item in place; its total is recomputed."""
    form = _get_form(registry, draft_id)
    try:
        form.draft.items.edit(index, **request.model_dump(exclude_none=True))
    except IndexError as e:
        raise HTTPException(status_code=404, detail="Line item not found") from e
    except ValidationError as e:
        raise validation_error_to_http(e) from e
    return _draft_response(draft_id, form)


@router.delete("/{draft_id}/items/{index}", response_model=DraftResponse)
async def remove_item(
    draft_id: str,
    index: int,
    registry: Annotated[DraftRegistry, Depends(get_draft_registry)],
) -> DraftResponse:
    form = _get_form(registry, draft_id)
    try:
        form.draft.items.remove(index)
    except IndexError as e:
        raise HTTPException(status_code=404, detail="Line item not found") from e
    return _draft_response(draft_id, form)


@router.post("/{draft_id}/customer", response_model=DraftResponse)
async def select_customer(
    draft_id: str,
    selection: CustomerSelection,
    token: Annotated[str, Depends(require_token)],
    registry: Annotated[DraftRegistry, Depends(get_draft_registry)],
) -> DraftResponse:
    """Bind an existing customer picked from the search suggestions."""
    form = _get_form(registry, draft_id)
    try:
        async with CakeOutClient(token=token) as client:
            customer = await client.get_customer(selection.customer_id)
    except APIError as e:
        raise api_error_to_http(e, not_found="Customer not found") from e
    form.draft.customer.select(customer)
    return _draft_response(draft_id, form)


@router.post(
    "/{draft_id}/submit",
    response_model=Invoice,
    status_code=status.HTTP_201_CREATED,
)
async def submit_draft(
    draft_id: str,
    token: Annotated[str, Depends(require_token)],
    registry: Annotated[DraftRegistry, Depends(get_draft_registry)],
    save_as: Annotated[
        InvoiceStatus,
        Query(alias="status", description="Save as draft or final"),
    ] = InvoiceStatus.FINAL,
) -> Invoice:
    """Validate and create the invoice; the draft is dropped on success.

    Raises:
        HTTPException: 422 with the failing rule if validation fails.
        HTTPException: 409 if a submit for this draft is already running.
        HTTPException: 502 if the backend call fails (the draft is kept).
    """
    form = _get_form(registry, draft_id)
    try:
        async with CakeOutClient(token=token) as client:
            invoice = await form.submit(client, save_as)
    except ValidationError as e:
        raise validation_error_to_http(e) from e
    except SubmissionInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except APIError as e:
        raise api_error_to_http(e) from e

    registry.discard(draft_id)
    return invoice
