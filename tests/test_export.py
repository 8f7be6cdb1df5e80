"""Tests for rendering invoices to JPEG and PDF."""

import io

import pytest
from PIL import Image

from cakeout.schemas import Invoice
from cakeout.services.export import (
    A4_HEIGHT_MM,
    A4_WIDTH_MM,
    PAGE_WIDTH_PX,
    _invoice_rows,
    export_filename,
    image_to_jpeg,
    image_to_pdf,
    paginate,
    render_invoice_image,
)


def make_invoice(item_count: int = 1, **overrides: object) -> Invoice:
    """Create a persisted invoice with a number of items."""
    data = {
        "id": 11,
        "invoice_id": "INV-0011",
        "order_id": "ORD-0011",
        "invoice_date": "2026-03-14",
        "ordered_date": "2026-03-12",
        "customer_id": 5,
        "customer": {"id": 5, "name": "Jordan Lee", "phone": "555-0100"},
        "items": [
            {
                "item_name": f"Cake {i + 1}",
                "quantity": 2,
                "unit_price": "10.00",
                "total_price": "20.00",
            }
            for i in range(item_count)
        ],
        "subtotal": "20.00",
        "discount": "0",
        "delivery_charge": "5.00",
        "grand_total": "25.00",
        "advance_payment": "10.00",
        "balance_amount": "15.00",
        "payment_method": "Cash",
        "payment_status": "Partially Paid",
        "delivery_type": "delivery",
        "delivery_date": "2026-03-15",
        "delivery_time": "14:30",
        "delivery_address": "12 Baker Street",
        "status": "final",
    }
    data.update(overrides)
    return Invoice.model_validate(data)


def _texts(invoice: Invoice) -> list[str]:
    return [text for row in _invoice_rows(invoice) for _, text in row]


class TestInvoiceLayout:
    """Tests for the text content of a rendered invoice."""

    def test_identifiers_and_totals(self) -> None:
        texts = _texts(make_invoice())

        assert "Invoice #: INV-0011" in texts
        assert "Order #: ORD-0011" in texts
        assert "Jordan Lee" in texts
        assert "$25.00" in texts
        assert "$15.00" in texts
        assert "Delivery Time: 2:30 PM" in texts
        assert "Delivery Address: 12 Baker Street" in texts

    def test_zero_adjustments_hidden(self) -> None:
        texts = _texts(make_invoice())
        assert "Discount:" not in texts
        assert "Tax:" not in texts
        assert "Delivery Charge:" in texts

    def test_pickup_labels(self) -> None:
        texts = _texts(make_invoice(delivery_type="pickup", delivery_address=None))
        assert "Pickup Date: March 15, 2026" in texts
        assert not any(text.startswith("Delivery Address") for text in texts)

    def test_customer_without_record(self) -> None:
        texts = _texts(make_invoice(customer=None))
        assert "Customer #5" in texts


class TestRendering:
    """Tests for image and PDF output."""

    def test_export_filename(self) -> None:
        invoice = make_invoice()
        assert export_filename(invoice, "pdf") == "Invoice_INV-0011.pdf"
        assert export_filename(invoice, "jpg") == "Invoice_INV-0011.jpg"

    def test_render_is_a4_width(self) -> None:
        image = render_invoice_image(make_invoice())
        assert image.width == PAGE_WIDTH_PX
        assert image.mode == "RGB"

    def test_jpeg_bytes(self) -> None:
        content = image_to_jpeg(render_invoice_image(make_invoice()))
        assert content[:3] == b"\xff\xd8\xff"
        assert Image.open(io.BytesIO(content)).format == "JPEG"

    def test_pdf_bytes(self) -> None:
        content = image_to_pdf(render_invoice_image(make_invoice()))
        assert content.startswith(b"%PDF")

    def test_long_invoice_spans_pages(self) -> None:
        """Test that many items flow onto additional PDF pages."""
        image = render_invoice_image(make_invoice(item_count=80))
        pages = paginate(image)

        page_height = round(PAGE_WIDTH_PX * A4_HEIGHT_MM / A4_WIDTH_MM)
        assert len(pages) > 1
        assert all(page.size == (PAGE_WIDTH_PX, page_height) for page in pages)
        assert image_to_pdf(image).startswith(b"%PDF")

    @pytest.mark.parametrize("height", [10, 1754, 1755, 4000])
    def test_paginate_page_count(self, height: int) -> None:
        image = Image.new("RGB", (PAGE_WIDTH_PX, height), "white")
        page_height = round(PAGE_WIDTH_PX * A4_HEIGHT_MM / A4_WIDTH_MM)
        expected = -(-height // page_height)
        assert len(paginate(image)) == expected

    def test_last_page_padded_white(self) -> None:
        image = Image.new("RGB", (PAGE_WIDTH_PX, 100), "black")
        (page,) = paginate(image)
        assert page.getpixel((0, 50)) == (0, 0, 0)
        assert page.getpixel((0, page.height - 1)) == (255, 255, 255)
