"""Render a persisted invoice to an image and to a multi-page A4 PDF.

The invoice is drawn onto a single tall raster at A4 width. For the PDF the
raster is cut into A4-height slices, one per page, so long item lists flow
onto additional pages.
"""

import io
import logging

from PIL import Image, ImageDraw, ImageFont

from cakeout.config import settings
from cakeout.schemas import Invoice
from cakeout.services.formatting import format_currency, format_date, format_time
from cakeout.services.pricing import to_amount

logger = logging.getLogger(__name__)

A4_WIDTH_MM = 210
A4_HEIGHT_MM = 297
MM_PER_INCH = 25.4

# A4 width at 150 dpi
PAGE_WIDTH_PX = 1240
MARGIN_PX = 60
LINE_HEIGHT_PX = 34
FONT_SIZE = 22
TITLE_FONT_SIZE = 36

# Column x offsets of the items table, relative to the left margin
ITEM_COLUMNS = (0, 620, 780, 960)

Row = list[tuple[int, str]]


def export_filename(invoice: Invoice, extension: str) -> str:
    """File name used for downloads, e.g. Invoice_INV-0001.pdf."""
    return f"Invoice_{invoice.invoice_id}.{extension}"


def _invoice_rows(invoice: Invoice) -> list[Row]:
    """Lay out the invoice as rows of (x offset, text) cells."""
    right = PAGE_WIDTH_PX - 2 * MARGIN_PX - 360
    rows: list[Row] = [
        [(0, settings.business_name), (right, "INVOICE")],
    ]
    header_right = [
        f"Invoice #: {invoice.invoice_id}",
        f"Order #: {invoice.order_id}",
        f"Status: {invoice.status.value.upper()}",
    ]
    header_left = [
        *settings.business_address_lines,
        f"Phone: {settings.business_phone}",
        f"Email: {settings.business_email}",
    ]
    for i in range(max(len(header_left), len(header_right))):
        row: Row = []
        if i < len(header_left):
            row.append((0, header_left[i]))
        if i < len(header_right):
            row.append((right, header_right[i]))
        rows.append(row)

    rows.append([])
    rows.append([(0, f"Invoice Date: {format_date(invoice.invoice_date)}")])
    rows.append([(0, f"Ordered Date: {format_date(invoice.ordered_date)}")])
    rows.append([])

    customer = invoice.customer
    rows.append([(0, "Bill To:")])
    rows.append([(0, customer.name if customer else f"Customer #{invoice.customer_id}")])
    if customer is not None:
        if customer.phone:
            rows.append([(0, f"Phone: {customer.phone}")])
        if customer.email:
            rows.append([(0, f"Email: {customer.email}")])
        if customer.address:
            rows.append([(0, f"Address: {customer.address}")])
    rows.append([])

    name_x, qty_x, price_x, total_x = ITEM_COLUMNS
    rows.append([(name_x, "Item"), (qty_x, "Qty"), (price_x, "Unit Price"), (total_x, "Total")])
    for item in invoice.items:
        rows.append(
            [
                (name_x, item.item_name),
                (qty_x, str(item.quantity)),
                (price_x, format_currency(item.unit_price)),
                (total_x, format_currency(item.total_price)),
            ]
        )
    rows.append([])

    label_x, amount_x = price_x - 200, total_x
    rows.append([(label_x, "Subtotal:"), (amount_x, format_currency(invoice.subtotal))])
    for label, amount in (
        ("Discount:", invoice.discount),
        ("Delivery Charge:", invoice.delivery_charge),
        ("Tax:", invoice.tax),
    ):
        if to_amount(amount) > 0:
            rows.append([(label_x, label), (amount_x, format_currency(amount))])
    rows.append([(label_x, "Grand Total:"), (amount_x, format_currency(invoice.grand_total))])
    if to_amount(invoice.advance_payment) > 0:
        rows.append(
            [(label_x, "Advance Payment:"), (amount_x, format_currency(invoice.advance_payment))]
        )
    rows.append([(label_x, "Balance:"), (amount_x, format_currency(invoice.balance_amount))])
    rows.append([])

    if invoice.payment_method is not None:
        rows.append([(0, f"Payment Method: {invoice.payment_method.value}")])
    rows.append([(0, f"Payment Status: {invoice.payment_status.value}")])

    if invoice.delivery_type is not None:
        kind = invoice.delivery_type.value.capitalize()
        rows.append([])
        rows.append([(0, f"{kind} Date: {format_date(invoice.delivery_date)}")])
        rows.append([(0, f"{kind} Time: {format_time(invoice.delivery_time)}")])
        if invoice.delivery_address:
            rows.append([(0, f"Delivery Address: {invoice.delivery_address}")])

    return rows


def render_invoice_image(invoice: Invoice) -> Image.Image:
    """Draw an invoice onto a white RGB raster of A4 width."""
    rows = _invoice_rows(invoice)
    height = 2 * MARGIN_PX + TITLE_FONT_SIZE + LINE_HEIGHT_PX * len(rows)

    image = Image.new("RGB", (PAGE_WIDTH_PX, height), "white")
    draw = ImageDraw.Draw(image)
    font = ImageFont.load_default(size=FONT_SIZE)
    title_font = ImageFont.load_default(size=TITLE_FONT_SIZE)

    y = MARGIN_PX
    for index, row in enumerate(rows):
        for x, text in row:
            draw.text((MARGIN_PX + x, y), text, fill="black", font=title_font if index == 0 else font)
        y += TITLE_FONT_SIZE + 10 if index == 0 else LINE_HEIGHT_PX

    logger.debug("Rendered invoice %s at %dx%d", invoice.invoice_id, image.width, image.height)
    return image


def image_to_jpeg(image: Image.Image, quality: int = 95) -> bytes:
    buffer = io.BytesIO()
    image.convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def paginate(image: Image.Image) -> list[Image.Image]:
    """Cut a raster into A4-proportioned pages; the last page is padded white."""
    page_height = round(image.width * A4_HEIGHT_MM / A4_WIDTH_MM)
    pages = []
    for top in range(0, image.height, page_height):
        page = Image.new("RGB", (image.width, page_height), "white")
        page.paste(image.crop((0, top, image.width, min(top + page_height, image.height))), (0, 0))
        pages.append(page)
    return pages


def image_to_pdf(image: Image.Image) -> bytes:
    """Assemble an A4 PDF from a rendered invoice raster.

    Returns:
        The PDF document as bytes.
    """
    pages = paginate(image.convert("RGB"))
    dpi = image.width / (A4_WIDTH_MM / MM_PER_INCH)
    buffer = io.BytesIO()
    pages[0].save(
        buffer,
        format="PDF",
        save_all=True,
        append_images=pages[1:],
        resolution=dpi,
    )
    logger.debug("Built PDF with %d page(s)", len(pages))
    return buffer.getvalue()
