import io

import openpyxl
import pytest
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

INVOICE_LINES = (
    "INVOICE INV-2041",
    "Date: 2024-03-15",
    "Consulting services",
    "VAT @ 23%: 23.00",
    "Net: 100.00",
    "Total: 123.00",
)


def _pdf(pages: list[list[str]]) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    for lines in pages:
        y = 780
        for line in lines:
            c.drawString(72, y, line)
            y -= 18
        c.showPage()
    c.save()
    return buf.getvalue()


def make_workbook(header: list[object], rows: list[list[object]]) -> bytes:
    """Build an xlsx workbook with one sheet."""
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.title = "Orders"
    sheet.append(header)
    for row in rows:
        sheet.append(row)
    buf = io.BytesIO()
    workbook.save(buf)
    return buf.getvalue()


@pytest.fixture()
def invoice_pdf_bytes() -> bytes:
    """Single-page PDF invoice with a text layer: VAT 23.00 on a 123.00 total."""
    return _pdf([list(INVOICE_LINES)])


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Two-page PDF with known text on each page."""
    return _pdf([["Page one content"], ["Page two content"]])


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """A valid PDF with no text content (blank page)."""
    return _pdf([[]])


@pytest.fixture()
def woocommerce_xlsx_bytes() -> bytes:
    """Order export whose two tax columns sum to 75.90."""
    return make_workbook(
        ["Order ID", "Customer", "Item Tax Amt.", "Shipping Tax Amt."],
        [[1001, "A. Murphy", 23.00, 3.45], [1002, "B. Kelly", 46.00, 3.45]],
    )


@pytest.fixture()
def workbook_factory():  # type: ignore[no-untyped-def]
    """Builder for single-sheet xlsx workbooks: (header, rows) -> bytes."""
    return make_workbook
