from collections.abc import Mapping

from vat_extraction.config.settings import Settings
from vat_extraction.documents.models import Document
from vat_extraction.extractors.base import BaseExtractor
from vat_extraction.extractors.exceptions import UnsupportedFormatError
from vat_extraction.extractors.models import CapabilityKind
from vat_extraction.extractors.ocr_extractor import OcrExtractor
from vat_extraction.extractors.tabular_extractor import TabularExtractor
from vat_extraction.extractors.text_extractor import PlainTextExtractor
from vat_extraction.extractors.vision.factory import VisionClientFactory
from vat_extraction.extractors.vision.vision_extractor import VisionExtractor
from vat_extraction.pdf.factory import PdfFactory


class ExtractorRegistry:
    """Fixed mapping of capability kinds to extractor adapters.

    Built once at start-up; decides which primary adapters a document is
    tried with, in order.
    """

    def __init__(self, extractors: Mapping[CapabilityKind, BaseExtractor]) -> None:
        for kind, extractor in extractors.items():
            if extractor.kind is not kind:
                raise ValueError(
                    f"Extractor {type(extractor).__name__} registered as {kind.value} "
                    f"but declares {extractor.kind.value}"
                )
        self._extractors = dict(extractors)

    @property
    def kinds(self) -> list[CapabilityKind]:
        return list(self._extractors)

    @property
    def extractors(self) -> dict[CapabilityKind, BaseExtractor]:
        return dict(self._extractors)

    def primary_chain(self, document: Document) -> list[BaseExtractor]:
        """Ordered primary adapters for a document.

        Raises:
            UnsupportedFormatError: if none of the adapters the MIME type
                needs is registered.
        """
        wanted = self.preferred_kinds(document)
        chain = [self._extractors[kind] for kind in wanted if kind in self._extractors]
        if not chain:
            raise UnsupportedFormatError(
                f"No extractor registered for {document.normalized_mime_type} "
                f"(needs one of {[k.value for k in wanted]})"
            )
        return chain

    @staticmethod
    def preferred_kinds(document: Document) -> list[CapabilityKind]:
        if document.is_spreadsheet:
            return [CapabilityKind.TABULAR]
        if document.is_image:
            return [CapabilityKind.AI, CapabilityKind.OCR]
        if document.is_pdf:
            return [CapabilityKind.AI, CapabilityKind.OCR, CapabilityKind.TEXT]
        return [CapabilityKind.TEXT]


class ExtractorRegistryFactory:
    """Builds the registry from settings."""

    @classmethod
    def create(cls, settings: Settings) -> ExtractorRegistry:
        extractors: dict[CapabilityKind, BaseExtractor] = {}
        if settings.vision_enabled:
            extractors[CapabilityKind.AI] = VisionExtractor(
                client=VisionClientFactory.create(settings),
                renderer=PdfFactory.vision_renderer(settings),
                model=settings.vision_model_name,
                temperature=settings.vision_temperature,
            )
        if settings.ocr_enabled:
            extractors[CapabilityKind.OCR] = OcrExtractor(
                renderer=PdfFactory.ocr_renderer(settings),
                language=settings.ocr_language,
            )
        if settings.tabular_enabled:
            extractors[CapabilityKind.TABULAR] = TabularExtractor()
        extractors[CapabilityKind.TEXT] = PlainTextExtractor(
            pdf_reader=PdfFactory.text_reader(settings),
        )
        return ExtractorRegistry(extractors)
