"""FastAPI routes for browsing and exporting invoices."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from cakeout.api.deps import api_error_to_http, require_token
from cakeout.errors import APIError
from cakeout.schemas import Invoice, InvoiceStatus
from cakeout.services.api_client import CakeOutClient
from cakeout.services.export import (
    export_filename,
    image_to_jpeg,
    image_to_pdf,
    render_invoice_image,
)

router = APIRouter(prefix="/invoices", tags=["invoices"])

INVOICE_NOT_FOUND = "Invoice not found"


async def _fetch_invoice(token: str, invoice_id: int) -> Invoice:
    try:
        async with CakeOutClient(token=token) as client:
            return await client.get_invoice(invoice_id)
    except APIError as e:
        raise api_error_to_http(e, not_found=INVOICE_NOT_FOUND) from e


@router.get("", response_model=list[Invoice])
async def list_invoices(
    token: Annotated[str, Depends(require_token)],
    status: Annotated[
        InvoiceStatus | None,
        Query(description="Filter by lifecycle status (draft, final)"),
    ] = None,
) -> list[Invoice]:
    """List invoices, optionally only drafts or only finals."""
    try:
        async with CakeOutClient(token=token) as client:
            return await client.list_invoices(status)
    except APIError as e:
        raise api_error_to_http(e) from e


@router.get("/{invoice_id}", response_model=Invoice)
async def get_invoice(
    invoice_id: int,
    token: Annotated[str, Depends(require_token)],
) -> Invoice:
    """Get a single invoice.

    Raises:
        HTTPException: 404 if the invoice does not exist.
    """
    return await _fetch_invoice(token, invoice_id)


@router.get("/{invoice_id}/export.pdf")
async def export_pdf(
    invoice_id: int,
    token: Annotated[str, Depends(require_token)],
) -> Response:
    """Download the rendered invoice as an A4 PDF."""
    invoice = await _fetch_invoice(token, invoice_id)
    content = image_to_pdf(render_invoice_image(invoice))
    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(invoice, "pdf")}"'
        },
    )


@router.get("/{invoice_id}/export.jpg")
async def export_jpg(
    invoice_id: int,
    token: Annotated[str, Depends(require_token)],
) -> Response:
    """Download the rendered invoice as a JPEG image."""
    invoice = await _fetch_invoice(token, invoice_id)
    content = image_to_jpeg(render_invoice_image(invoice))
    return Response(
        content=content,
        media_type="image/jpeg",
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(invoice, "jpg")}"'
        },
    )
