import base64
from decimal import Decimal

from vat_extraction.documents.models import Document, DocumentCategory
from vat_extraction.orchestration.fallback import (
    BASE64_TEXT,
    DECODED_TEXT,
    NO_READABLE_TEXT,
    SALVAGED_TEXT,
    FallbackExtractor,
)


def _doc(content: bytes) -> Document:
    return Document(
        content=content,
        mime_type="application/octet-stream",
        filename="upload.bin",
        category=DocumentCategory.PURCHASE_INVOICE,
    )


class TestFallbackExtractor:
    def test_salvaged_text_takes_priority(self) -> None:
        raw, source = FallbackExtractor().extract(_doc(b"VAT 1.00"), "Paid €12.30 at till")
        assert source == SALVAGED_TEXT
        assert raw.candidate_values == [Decimal("12.30")]

    def test_raw_bytes_decoded_as_text(self) -> None:
        raw, source = FallbackExtractor().extract(_doc(b"Tax charged 5.75 EUR"))
        assert source == DECODED_TEXT
        assert raw.candidate_values == [Decimal("5.75")]
        assert raw.candidates[0].source == "fallback:tax_keyword"

    def test_base64_text_is_unwrapped(self) -> None:
        payload = base64.b64encode("Receipt total VAT 6.90 EUR".encode())
        raw, source = FallbackExtractor().extract(_doc(payload))
        assert source == BASE64_TEXT
        assert raw.candidate_values == [Decimal("6.90")]

    def test_unreadable_bytes_yield_empty_extraction(self) -> None:
        raw, source = FallbackExtractor().extract(_doc(bytes(range(128, 256)) * 8))
        assert source == NO_READABLE_TEXT
        assert raw.candidates == ()
        assert raw.text == ""

    def test_scan_is_bounded(self) -> None:
        content = b"a" * 20 + b" " + b"x" * 20_000 + b" VAT 9.99"
        raw, _ = FallbackExtractor(max_chars=1000).extract(_doc(content))
        assert len(raw.text) == 1000
        assert raw.candidates == ()

    def test_same_input_same_output(self) -> None:
        document = _doc(b"Card payment \xe2\x82\xac18.45 incl VAT")
        extractor = FallbackExtractor()
        assert extractor.extract(document) == extractor.extract(document)
