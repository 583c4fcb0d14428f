import io
from decimal import Decimal
from unittest.mock import patch

import pytest
import pytesseract
from PIL import Image

from vat_extraction.documents.models import Document, DocumentCategory
from vat_extraction.extractors.exceptions import (
    MalformedDocumentError,
    ServiceError,
    UnsupportedFormatError,
)
from vat_extraction.extractors.models import CapabilityKind
from vat_extraction.extractors.ocr_extractor import OcrExtractor
from vat_extraction.pdf.renderer import PdfPageRenderer

OCR_TEXT = "SUPERVALU\nVAT @ 13.5%: €5,59\nTotal: €47.00\n"
IMAGE_TO_STRING = "vat_extraction.extractors.ocr_extractor.pytesseract.image_to_string"


def _png() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (64, 32), "white").save(buf, format="PNG")
    return buf.getvalue()


def _doc(content: bytes, mime_type: str = "image/png") -> Document:
    return Document(
        content=content,
        mime_type=mime_type,
        filename="till_receipt.png",
        category=DocumentCategory.PURCHASE_INVOICE,
    )


def _extractor() -> OcrExtractor:
    return OcrExtractor(renderer=PdfPageRenderer(dpi=72, max_pages=2), language="eng")


class TestOcrExtractor:
    def test_kind(self) -> None:
        assert OcrExtractor.kind is CapabilityKind.OCR

    def test_image_text_runs_primary_patterns(self) -> None:
        with patch(IMAGE_TO_STRING, return_value=OCR_TEXT) as mock_ocr:
            raw = _extractor().extract(_doc(_png()))
        mock_ocr.assert_called_once()
        assert mock_ocr.call_args.kwargs["lang"] == "eng"
        assert raw.candidate_values == [Decimal("5.59")]
        assert raw.total_amount == Decimal("47.00")
        assert raw.vat_rate == 13.5
        assert raw.details == {"pages": 1, "language": "eng"}

    def test_pdf_pages_are_rendered_before_ocr(self, multi_page_pdf_bytes: bytes) -> None:
        with patch(IMAGE_TO_STRING, side_effect=["page one", "VAT: €2.30"]) as mock_ocr:
            raw = _extractor().extract(_doc(multi_page_pdf_bytes, "application/pdf"))
        assert mock_ocr.call_count == 2
        assert raw.text == "page one\nVAT: €2.30"
        assert raw.candidate_values == [Decimal("2.30")]

    def test_missing_tesseract_is_service_error(self) -> None:
        with patch(IMAGE_TO_STRING, side_effect=pytesseract.TesseractNotFoundError()):
            with pytest.raises(ServiceError, match="not installed"):
                _extractor().extract(_doc(_png()))

    def test_tesseract_failure_is_service_error(self) -> None:
        with patch(IMAGE_TO_STRING, side_effect=pytesseract.TesseractError(1, "bad")):
            with pytest.raises(ServiceError, match="Tesseract failed"):
                _extractor().extract(_doc(_png()))

    def test_unreadable_image_is_malformed(self) -> None:
        with pytest.raises(MalformedDocumentError):
            _extractor().extract(_doc(b"\x89PNG truncated"))

    def test_text_documents_unsupported(self) -> None:
        with pytest.raises(UnsupportedFormatError):
            _extractor().extract(_doc(b"hello", "text/plain"))

    def test_probe_reports_tesseract_version(self) -> None:
        with patch(
            "vat_extraction.extractors.ocr_extractor.pytesseract.get_tesseract_version",
            return_value="5.3.0",
        ):
            assert _extractor().probe() is True
