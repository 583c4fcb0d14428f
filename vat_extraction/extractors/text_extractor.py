from decimal import Decimal
from typing import ClassVar, cast

from vat_extraction.documents.models import Document
from vat_extraction.extractors.base import BaseExtractor
from vat_extraction.extractors.exceptions import MalformedDocumentError
from vat_extraction.extractors.models import AmountCandidate, CapabilityKind, RawExtraction
from vat_extraction.logging.logger import Log
from vat_extraction.patterns.text_quality import readability_ratio
from vat_extraction.patterns.vat_patterns import MAX_SCAN_CHARS, PatternTier, extract_from_text
from vat_extraction.pdf.base import BasePdfTextReader
from vat_extraction.pdf.exceptions import PdfReadError


class PlainTextExtractor(BaseExtractor):
    """Runs the primary pattern tier over already-textual content.

    Handles text-based PDFs (via the configured PDF text reader) and text/*
    uploads. Reports a readability ratio rather than its own confidence.
    """

    kind: ClassVar[CapabilityKind] = CapabilityKind.TEXT

    def __init__(self, pdf_reader: BasePdfTextReader) -> None:
        self._pdf_reader = pdf_reader

    def extract(self, document: Document) -> RawExtraction:
        text = self._read_text(document)[:MAX_SCAN_CHARS]
        found = extract_from_text(text, PatternTier.PRIMARY)
        candidates = cast(list[AmountCandidate], found["candidates"])
        Log.debug(
            f"Plain-text extraction of {document.filename}: "
            f"{len(text)} chars, {len(candidates)} candidates"
        )
        return RawExtraction(
            text=text,
            candidates=tuple(candidates),
            total_amount=cast(Decimal | None, found["total_amount"]),
            vat_rate=cast(float | None, found["vat_rate"]),
            readability_ratio=readability_ratio(text),
            details={"source": "pdf_text_layer" if document.is_pdf else "decoded_text"},
        )

    def _read_text(self, document: Document) -> str:
        if document.is_pdf:
            try:
                return self._pdf_reader.read_text(document.content)
            except PdfReadError as exc:
                raise MalformedDocumentError(str(exc)) from exc
        try:
            return document.content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedDocumentError(
                f"{document.filename} is not valid UTF-8 text: {exc}"
            ) from exc
