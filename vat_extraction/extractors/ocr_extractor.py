import io
from decimal import Decimal
from typing import ClassVar, cast

import pytesseract
from PIL import Image, UnidentifiedImageError

from vat_extraction.documents.models import Document
from vat_extraction.extractors.base import BaseExtractor
from vat_extraction.extractors.exceptions import (
    MalformedDocumentError,
    ServiceError,
    UnsupportedFormatError,
)
from vat_extraction.extractors.models import AmountCandidate, CapabilityKind, RawExtraction
from vat_extraction.logging.logger import Log
from vat_extraction.patterns.text_quality import readability_ratio
from vat_extraction.patterns.vat_patterns import MAX_SCAN_CHARS, PatternTier, extract_from_text
from vat_extraction.pdf.exceptions import PdfReadError
from vat_extraction.pdf.renderer import PdfPageRenderer


class OcrExtractor(BaseExtractor):
    """Converts image/PDF pages to text with Tesseract, then runs the primary tier."""

    kind: ClassVar[CapabilityKind] = CapabilityKind.OCR

    def __init__(self, renderer: PdfPageRenderer, language: str = "eng") -> None:
        self._renderer = renderer
        self._language = language

    def extract(self, document: Document) -> RawExtraction:
        images = self._load_images(document)
        pages = [self._ocr(image) for image in images]
        text = "\n".join(p for p in pages if p).strip()[:MAX_SCAN_CHARS]
        found = extract_from_text(text, PatternTier.PRIMARY)
        candidates = cast(list[AmountCandidate], found["candidates"])
        Log.info(
            f"OCR read {len(text)} chars from {len(images)} page(s) of {document.filename}"
        )
        return RawExtraction(
            text=text,
            candidates=tuple(candidates),
            total_amount=cast(Decimal | None, found["total_amount"]),
            vat_rate=cast(float | None, found["vat_rate"]),
            readability_ratio=readability_ratio(text),
            details={"pages": len(images), "language": self._language},
        )

    def probe(self) -> bool:
        return bool(pytesseract.get_tesseract_version())

    def _load_images(self, document: Document) -> list[Image.Image]:
        if document.is_pdf:
            try:
                png_pages = self._renderer.render_png_pages(document.content)
            except PdfReadError as exc:
                raise MalformedDocumentError(str(exc)) from exc
            return [self._open_image(page, document.filename) for page in png_pages]
        if document.is_image:
            return [self._open_image(document.content, document.filename)]
        raise UnsupportedFormatError(f"OCR cannot read {document.normalized_mime_type}")

    @staticmethod
    def _open_image(data: bytes, filename: str) -> Image.Image:
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise MalformedDocumentError(f"{filename} is not a readable image: {exc}") from exc
        return image

    def _ocr(self, image: Image.Image) -> str:
        try:
            return cast(str, pytesseract.image_to_string(image, lang=self._language))
        except pytesseract.TesseractNotFoundError as exc:
            raise ServiceError(f"Tesseract is not installed: {exc}") from exc
        except (pytesseract.TesseractError, RuntimeError) as exc:
            raise ServiceError(f"Tesseract failed: {exc}") from exc
